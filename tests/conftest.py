"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable
from uuid import UUID

import pytest

from wa_dispatch.application.dto.gateway import SendResult
from wa_dispatch.application.dto.principal import Principal
from wa_dispatch.application.policies.retry import RetryDecision, RetryPolicy
from wa_dispatch.domain.entities.audit_entry import AuditEntry
from wa_dispatch.domain.entities.gateway_credential import GatewayCredential
from wa_dispatch.domain.entities.message import Message
from wa_dispatch.domain.entities.outbox_item import OutboxItem
from wa_dispatch.domain.value_objects.enums import AuditEvent, MessageStatus, OutboxStatus

T0 = datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc)
TENANT_ID = UUID("00000000-0000-0000-0000-0000000000a1")
OTHER_TENANT_ID = UUID("00000000-0000-0000-0000-0000000000b2")


class FakeClock:
    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@dataclass
class InMemoryDb:
    """Committed state shared by every FakeUoW opened against it."""

    outbox: dict[UUID, OutboxItem] = field(default_factory=dict)
    messages: dict[UUID, Message] = field(default_factory=dict)
    credentials: dict[UUID, GatewayCredential] = field(default_factory=dict)
    audit: list[AuditEntry] = field(default_factory=list)

    def audit_events(self, event_type: AuditEvent | None = None) -> list[AuditEntry]:
        return [a for a in self.audit if event_type is None or a.event_type == event_type]


class _Table:
    """Writes straight into the shared dict, journaling the old value for rollback."""

    def __init__(self, rows: dict[UUID, Any], undo: list[Callable[[], None]]) -> None:
        self._rows = rows
        self._undo = undo

    def put(self, row: Any) -> None:
        key = row.id
        if key in self._rows:
            old = self._rows[key]
            self._undo.append(lambda: self._rows.__setitem__(key, old))
        else:
            self._undo.append(lambda: self._rows.pop(key, None))
        self._rows[key] = row


class FakeOutboxStore:
    def __init__(self, db: InMemoryDb, undo: list[Callable[[], None]]) -> None:
        self._db = db
        self._table = _Table(db.outbox, undo)

    async def add(self, item: OutboxItem) -> None:
        self._table.put(item)

    async def get(self, item_id: UUID) -> OutboxItem | None:
        return self._db.outbox.get(item_id)

    async def claim_batch(self, limit: int, *, now: datetime, worker_id: str) -> list[OutboxItem]:
        # Yield like a DB round-trip; the select-and-update below has no await,
        # so concurrent claimers interleave only between whole claims.
        await asyncio.sleep(0)
        candidates = sorted(
            (i for i in self._db.outbox.values() if i.status == OutboxStatus.QUEUED and i.not_before <= now),
            key=lambda i: (i.not_before, i.created_at),
        )[:limit]
        claimed = []
        for item in candidates:
            updated = replace(
                item,
                status=OutboxStatus.PROCESSING,
                claimed_at=now,
                claimed_by=worker_id,
                last_attempt_at=now,
            )
            self._table.put(updated)
            claimed.append(updated)
        return claimed

    async def mark_sent(self, item_id: UUID, provider_message_id: str, *, now: datetime) -> bool:
        item = self._db.outbox.get(item_id)
        if item is None or item.status.is_terminal:
            return False
        self._table.put(
            replace(
                item,
                status=OutboxStatus.SENT,
                provider_message_id=provider_message_id,
                last_error=None,
                last_attempt_at=now,
                claimed_at=None,
                claimed_by=None,
            )
        )
        return True

    async def mark_failed(self, item_id: UUID, error: str, *, now: datetime, claimed_by: str | None) -> bool:
        item = self._owned(item_id, claimed_by)
        if item is None:
            return False
        self._table.put(
            replace(item, status=OutboxStatus.FAILED, last_error=error, last_attempt_at=now, claimed_at=None, claimed_by=None)
        )
        return True

    async def mark_failed_or_retry(
        self,
        item_id: UUID,
        error: str,
        *,
        now: datetime,
        claimed_by: str | None,
        policy: RetryPolicy,
    ) -> RetryDecision | None:
        item = self._owned(item_id, claimed_by)
        if item is None:
            return None
        decision = policy.decide(item.retry_count, item.max_retries, now)
        self._table.put(
            replace(
                item,
                status=decision.status,
                retry_count=decision.retry_count,
                not_before=decision.not_before or item.not_before,
                last_error=error,
                last_attempt_at=now,
                claimed_at=None,
                claimed_by=None,
            )
        )
        return decision

    async def reap_stale(self, *, claimed_before: datetime, now: datetime) -> list[UUID]:
        reaped = []
        for item in list(self._db.outbox.values()):
            if item.status == OutboxStatus.PROCESSING and item.claimed_at is not None and item.claimed_at < claimed_before:
                self._table.put(replace(item, status=OutboxStatus.QUEUED, not_before=now, claimed_at=None, claimed_by=None))
                reaped.append(item.id)
        return reaped

    def _owned(self, item_id: UUID, claimed_by: str | None) -> OutboxItem | None:
        item = self._db.outbox.get(item_id)
        if item is None or item.status != OutboxStatus.PROCESSING or item.claimed_by != claimed_by:
            return None
        return item


class FakeMessageRepo:
    def __init__(self, db: InMemoryDb, undo: list[Callable[[], None]]) -> None:
        self._db = db
        self._table = _Table(db.messages, undo)

    async def get_by_id(self, message_id: UUID) -> Message | None:
        return self._db.messages.get(message_id)

    async def add(self, message: Message) -> None:
        self._table.put(message)

    async def mark_sent(self, message_id: UUID, provider_message_id: str, sent_at: datetime) -> None:
        self._update(message_id, status=MessageStatus.SENT, provider_message_id=provider_message_id, sent_at=sent_at, error_message=None)

    async def mark_failed(self, message_id: UUID, error: str) -> None:
        self._update(message_id, status=MessageStatus.FAILED, error_message=error)

    async def mark_read(self, message_id: UUID, read_at: datetime) -> None:
        self._update(message_id, status=MessageStatus.READ, read_at=read_at)

    async def set_media_url(self, message_id: UUID, media_url: str) -> None:
        message = self._db.messages[message_id]
        self._table.put(replace(message, content={**message.content, "media_url": media_url}))

    def _update(self, message_id: UUID, **changes: Any) -> None:
        self._table.put(replace(self._db.messages[message_id], **changes))


class FakeCredentialRepo:
    def __init__(self, db: InMemoryDb, undo: list[Callable[[], None]]) -> None:
        self._db = db
        self._table = _Table(db.credentials, undo)

    async def get_active(self, tenant_id: UUID, account_id: UUID | None) -> GatewayCredential | None:
        if account_id is not None:
            credential = self._db.credentials.get(account_id)
            if credential and credential.active and credential.tenant_id == tenant_id:
                return credential
            return None
        for credential in reversed(list(self._db.credentials.values())):
            if credential.active and credential.tenant_id == tenant_id:
                return credential
        return None

    async def list_active(self) -> list[GatewayCredential]:
        return [c for c in self._db.credentials.values() if c.active]

    async def add(self, credential: GatewayCredential) -> None:
        self._table.put(credential)


class FakeAuditSink:
    def __init__(self, db: InMemoryDb, undo: list[Callable[[], None]]) -> None:
        self._db = db
        self._undo = undo

    async def append(self, entry: AuditEntry) -> None:
        self._db.audit.append(entry)
        self._undo.append(lambda: self._db.audit.remove(entry))


class FakeUoW:
    """In-memory UoW for unit tests.

    Usable directly (as the API dependency) or as an async context manager
    (as the dispatcher's factory); leaving the block without commit() undoes
    this UoW's writes only.
    """

    def __init__(self, db: InMemoryDb | None = None) -> None:
        self.db = db or InMemoryDb()
        self._undo: list[Callable[[], None]] = []
        self.outbox = FakeOutboxStore(self.db, self._undo)
        self.messages = FakeMessageRepo(self.db, self._undo)
        self.messages_w = self.messages
        self.credentials = FakeCredentialRepo(self.db, self._undo)
        self.credentials_w = self.credentials
        self.audit = FakeAuditSink(self.db, self._undo)
        self._committed = False

    async def __aenter__(self) -> FakeUoW:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if not self._committed:
            await self.rollback()

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self._undo.clear()
        self._committed = True

    async def rollback(self) -> None:
        while self._undo:
            self._undo.pop()()


def uow_factory_for(db: InMemoryDb) -> Callable[[], FakeUoW]:
    return lambda: FakeUoW(db)


class FakeGateway:
    """Scripted gateway: each send pops the next response (SendResult or exception)."""

    def __init__(self, responses: list[SendResult | Exception] | None = None, *, delay: float = 0.0) -> None:
        self.responses = list(responses or [])
        self.delay = delay
        self.sent: list[tuple[GatewayCredential, dict[str, Any]]] = []
        self.read: list[tuple[GatewayCredential, str, str | None]] = []
        self.states: dict[str, str | Exception] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    async def send(self, credential: GatewayCredential, payload: dict[str, Any]) -> SendResult:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            self.sent.append((credential, payload))
            response = self.responses.pop(0) if self.responses else SendResult(f"prov-{len(self.sent)}")
            if isinstance(response, Exception):
                raise response
            return response
        finally:
            self.in_flight -= 1

    async def mark_read(self, credential: GatewayCredential, provider_message_id: str, remote_jid: str | None = None) -> None:
        self.read.append((credential, provider_message_id, remote_jid))

    async def connection_state(self, credential: GatewayCredential) -> str:
        state = self.states.get(credential.instance_id, "open")
        if isinstance(state, Exception):
            raise state
        return state


class FakeSigner:
    def __init__(self, url: str = "https://storage.test/signed/abc?token=t") -> None:
        self.url = url
        self.calls: list[tuple[str, int]] = []

    async def create_signed_url(self, path: str, ttl_seconds: int) -> str:
        self.calls.append((path, ttl_seconds))
        return self.url


class FakePublisher:
    def __init__(self, *, fail: bool = False) -> None:
        self.published: list[tuple[str, dict[str, Any]]] = []
        self.fail = fail

    async def publish(self, channel: str, payload: dict[str, Any]) -> None:
        if self.fail:
            raise ConnectionError("redis down")
        self.published.append((channel, payload))


def make_credential(
    *,
    tenant_id: UUID = TENANT_ID,
    api_key: str = "key-1",
    instance_id: str = "inst-1",
    active: bool = True,
) -> GatewayCredential:
    return GatewayCredential(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        endpoint="https://gateway.test",
        api_key=api_key,
        instance_id=instance_id,
        active=active,
    )


def make_message(
    *,
    tenant_id: UUID = TENANT_ID,
    account_id: UUID | None = None,
    status: MessageStatus = MessageStatus.QUEUED,
    content: dict[str, Any] | None = None,
    provider_message_id: str | None = None,
) -> Message:
    return Message(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        account_id=account_id,
        status=status,
        content=content if content is not None else {"type": "text", "text": "hi"},
        provider_message_id=provider_message_id,
        error_message=None,
        created_at=T0,
    )


def make_item(
    *,
    tenant_id: UUID = TENANT_ID,
    account_id: UUID | None = None,
    message_id: UUID | None = None,
    payload: dict[str, Any] | None = None,
    status: OutboxStatus = OutboxStatus.QUEUED,
    retry_count: int = 0,
    max_retries: int = 3,
    not_before: datetime = T0,
    created_at: datetime = T0,
    claimed_by: str | None = None,
) -> OutboxItem:
    return OutboxItem(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        account_id=account_id,
        message_id=message_id,
        payload=payload or {"number": "11999990000", "type": "text", "text": "hello"},
        status=status,
        retry_count=retry_count,
        max_retries=max_retries,
        not_before=not_before,
        created_at=created_at,
        claimed_at=not_before if claimed_by else None,
        claimed_by=claimed_by,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def db() -> InMemoryDb:
    return InMemoryDb()


@pytest.fixture
def principal() -> Principal:
    return Principal(tenant_id=TENANT_ID, subject_id="user-42", roles=[])


@pytest.fixture
def policy() -> RetryPolicy:
    return RetryPolicy(base_delay_seconds=60, max_delay_seconds=3600)
