from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wa_dispatch.domain.entities.gateway_credential import GatewayCredential
from wa_dispatch.infrastructure.db.mappers import credential as mapper
from wa_dispatch.infrastructure.db.models.credential import GatewayCredentialModel


class CredentialReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_active(self, tenant_id: UUID, account_id: UUID | None) -> GatewayCredential | None:
        stmt = select(GatewayCredentialModel).where(
            GatewayCredentialModel.tenant_id == tenant_id,
            GatewayCredentialModel.active.is_(True),
        )
        if account_id is not None:
            stmt = stmt.where(GatewayCredentialModel.id == account_id)
        stmt = stmt.order_by(GatewayCredentialModel.created_at.desc()).limit(1)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def list_active(self) -> list[GatewayCredential]:
        stmt = (
            select(GatewayCredentialModel)
            .where(GatewayCredentialModel.active.is_(True))
            .order_by(GatewayCredentialModel.tenant_id, GatewayCredentialModel.created_at)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class CredentialWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, credential: GatewayCredential) -> None:
        self._session.add(mapper.entity_to_model(credential))
        await self._session.flush()
