from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from wa_dispatch.domain.entities.audit_entry import AuditEntry
from wa_dispatch.infrastructure.bus.serializer import to_jsonable
from wa_dispatch.infrastructure.db.models.audit import AuditLogModel


class AuditLogRepo:
    """Implements application.repositories.audit.AuditSink on wa_audit_log."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, entry: AuditEntry) -> None:
        self._session.add(
            AuditLogModel(
                event_type=entry.event_type.value,
                tenant_id=entry.tenant_id,
                actor_id=entry.actor_id,
                description=entry.description,
                metadata_=to_jsonable(entry.metadata),
                occurred_at=entry.occurred_at,
            )
        )
        await self._session.flush()
