from __future__ import annotations

from typing import Protocol


class SecretCipher(Protocol):
    def encrypt(self, plain: str) -> str: ...

    def decrypt(self, cipher: str) -> str: ...


class PlainCipher:
    """Pass-through used when credential secrets are stored unencrypted."""

    def encrypt(self, plain: str) -> str:
        return plain

    def decrypt(self, cipher: str) -> str:
        return cipher
