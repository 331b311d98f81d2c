from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from wa_dispatch.domain.entities.message import Message


class MessageReader(Protocol):
    async def get_by_id(self, message_id: UUID) -> Message | None: ...


class MessageWriter(Protocol):
    async def add(self, message: Message) -> None: ...

    async def mark_sent(self, message_id: UUID, provider_message_id: str, sent_at: datetime) -> None: ...

    async def mark_failed(self, message_id: UUID, error: str) -> None: ...

    async def mark_read(self, message_id: UUID, read_at: datetime) -> None: ...

    async def set_media_url(self, message_id: UUID, media_url: str) -> None: ...
