from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import literal, update
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession

from wa_dispatch.domain.entities.message import Message
from wa_dispatch.domain.value_objects.enums import MessageStatus
from wa_dispatch.infrastructure.db.mappers import message as mapper
from wa_dispatch.infrastructure.db.models.message import MessageModel


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, message_id: UUID) -> Message | None:
        model = await self._session.get(MessageModel, message_id)
        return mapper.model_to_entity(model) if model else None


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, message: Message) -> None:
        self._session.add(mapper.entity_to_model(message))
        await self._session.flush()

    async def mark_sent(self, message_id: UUID, provider_message_id: str, sent_at: datetime) -> None:
        await self._update(
            message_id,
            status=MessageStatus.SENT.value,
            provider_message_id=provider_message_id,
            sent_at=sent_at,
            error_message=None,
        )

    async def mark_failed(self, message_id: UUID, error: str) -> None:
        await self._update(message_id, status=MessageStatus.FAILED.value, error_message=error)

    async def mark_read(self, message_id: UUID, read_at: datetime) -> None:
        await self._update(message_id, status=MessageStatus.READ.value, read_at=read_at)

    async def set_media_url(self, message_id: UUID, media_url: str) -> None:
        await self._update(
            message_id,
            content=MessageModel.content.op("||")(literal({"media_url": media_url}, type_=JSONB)),
        )

    async def _update(self, message_id: UUID, **values: object) -> None:
        stmt = (
            update(MessageModel)
            .where(MessageModel.id == message_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)
