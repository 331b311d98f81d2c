from __future__ import annotations

from dataclasses import dataclass, replace
from uuid import UUID


@dataclass(frozen=True, slots=True)
class GatewayCredential:
    id: UUID
    tenant_id: UUID
    endpoint: str
    api_key: str
    instance_id: str
    active: bool = True

    def with_api_key(self, api_key: str) -> GatewayCredential:
        return replace(self, api_key=api_key)

    def __repr__(self) -> str:
        return (
            f"GatewayCredential(id={self.id}, tenant_id={self.tenant_id}, "
            f"endpoint={self.endpoint!r}, instance_id={self.instance_id!r}, api_key='****')"
        )
