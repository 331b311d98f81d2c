from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Callable, Protocol

from wa_dispatch.application.repositories.audit import AuditSink
from wa_dispatch.application.repositories.credential import CredentialReader, CredentialWriter
from wa_dispatch.application.repositories.message import MessageReader, MessageWriter
from wa_dispatch.application.repositories.outbox import OutboxStore


class UnitOfWork(Protocol):
    outbox: OutboxStore
    messages: MessageReader
    messages_w: MessageWriter
    credentials: CredentialReader
    credentials_w: CredentialWriter
    audit: AuditSink

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...


# Each call opens a fresh transaction; leaving the block without commit() rolls back.
UoWFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]
