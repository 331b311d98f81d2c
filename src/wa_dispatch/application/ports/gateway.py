from __future__ import annotations

from typing import Any, Protocol

from wa_dispatch.application.dto.gateway import SendResult
from wa_dispatch.domain.entities.gateway_credential import GatewayCredential


class GatewayClient(Protocol):
    """Messaging gateway capability set.

    Every method raises ``GatewayError`` with ``retryable`` already classified.
    """

    async def send(self, credential: GatewayCredential, payload: dict[str, Any]) -> SendResult: ...

    async def mark_read(
        self,
        credential: GatewayCredential,
        provider_message_id: str,
        remote_jid: str | None = None,
    ) -> None: ...

    async def connection_state(self, credential: GatewayCredential) -> str: ...


class MediaSigner(Protocol):
    async def create_signed_url(self, path: str, ttl_seconds: int) -> str: ...
