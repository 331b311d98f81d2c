from __future__ import annotations

from typing import Protocol
from uuid import UUID

from wa_dispatch.domain.entities.gateway_credential import GatewayCredential


class CredentialReader(Protocol):
    async def get_active(self, tenant_id: UUID, account_id: UUID | None) -> GatewayCredential | None: ...

    async def list_active(self) -> list[GatewayCredential]: ...


class CredentialWriter(Protocol):
    async def add(self, credential: GatewayCredential) -> None: ...
