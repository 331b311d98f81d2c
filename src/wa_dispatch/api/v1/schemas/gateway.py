from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel


class ConnectionCheckResponse(BaseModel):
    credential_id: UUID
    tenant_id: UUID
    instance_id: str
    online: bool
    state: str
    error: str | None = None

    model_config = {"from_attributes": True}


class GatewayHealthResponse(BaseModel):
    status: str
    total_instances: int
    online_count: int
    offline_count: int
    checks: list[ConnectionCheckResponse]
