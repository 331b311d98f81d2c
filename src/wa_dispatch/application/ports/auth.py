from __future__ import annotations

from typing import Protocol

from wa_dispatch.application.dto.principal import Principal


class TokenVerifier(Protocol):
    """Turns a bearer token into a tenant-scoped principal, or raises."""

    async def verify(self, token: str) -> Principal: ...
