from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import ColumnElement, Select, Update, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wa_dispatch.application.policies.retry import RetryDecision, RetryPolicy
from wa_dispatch.domain.entities.outbox_item import OutboxItem
from wa_dispatch.domain.value_objects.enums import OutboxStatus
from wa_dispatch.infrastructure.db.mappers import outbox as mapper
from wa_dispatch.infrastructure.db.models.outbox import OutboxItemModel

_NON_TERMINAL = (OutboxStatus.QUEUED.value, OutboxStatus.PROCESSING.value)


def build_claim_statement(limit: int, now: datetime, worker_id: str) -> Update:
    """Single-statement claim: rows locked by another claimer are skipped."""
    claimable = (
        select(OutboxItemModel.id)
        .where(
            OutboxItemModel.status == OutboxStatus.QUEUED.value,
            OutboxItemModel.not_before <= now,
        )
        .order_by(OutboxItemModel.not_before.asc(), OutboxItemModel.created_at.asc())
        .limit(limit)
        .with_for_update(skip_locked=True)
    )
    return (
        update(OutboxItemModel)
        .where(OutboxItemModel.id.in_(claimable))
        .values(
            status=OutboxStatus.PROCESSING.value,
            claimed_at=now,
            claimed_by=worker_id,
            last_attempt_at=now,
        )
        .returning(OutboxItemModel)
        .execution_options(synchronize_session=False)
    )


def build_mark_sent_statement(item_id: UUID, provider_message_id: str, now: datetime) -> Update:
    """Only a non-terminal row can complete, so a second completion matches nothing."""
    return (
        update(OutboxItemModel)
        .where(
            OutboxItemModel.id == item_id,
            OutboxItemModel.status.in_(_NON_TERMINAL),
        )
        .values(
            status=OutboxStatus.SENT.value,
            provider_message_id=provider_message_id,
            last_error=None,
            last_attempt_at=now,
            claimed_at=None,
            claimed_by=None,
        )
        .execution_options(synchronize_session=False)
    )


def _owned_by(item_id: UUID, claimed_by: str) -> tuple[ColumnElement[bool], ...]:
    return (
        OutboxItemModel.id == item_id,
        OutboxItemModel.status == OutboxStatus.PROCESSING.value,
        OutboxItemModel.claimed_by == claimed_by,
    )


def build_mark_failed_statement(item_id: UUID, error: str, now: datetime, claimed_by: str) -> Update:
    return (
        update(OutboxItemModel)
        .where(*_owned_by(item_id, claimed_by))
        .values(
            status=OutboxStatus.FAILED.value,
            last_error=error,
            last_attempt_at=now,
            claimed_at=None,
            claimed_by=None,
        )
        .execution_options(synchronize_session=False)
    )


def build_owned_retry_state_select(item_id: UUID, claimed_by: str) -> Select:
    """Lock the row's retry counters while the claim is still ours."""
    return (
        select(OutboxItemModel.retry_count, OutboxItemModel.max_retries)
        .where(*_owned_by(item_id, claimed_by))
        .with_for_update()
    )


def build_reap_statement(claimed_before: datetime, now: datetime) -> Update:
    """Requeue abandoned claims as due now; retry_count is left alone."""
    return (
        update(OutboxItemModel)
        .where(
            OutboxItemModel.status == OutboxStatus.PROCESSING.value,
            OutboxItemModel.claimed_at < claimed_before,
        )
        .values(
            status=OutboxStatus.QUEUED.value,
            not_before=now,
            claimed_at=None,
            claimed_by=None,
        )
        .returning(OutboxItemModel.id)
        .execution_options(synchronize_session=False)
    )


class OutboxStoreRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, item: OutboxItem) -> None:
        self._session.add(mapper.entity_to_model(item))
        await self._session.flush()

    async def get(self, item_id: UUID) -> OutboxItem | None:
        model = await self._session.get(OutboxItemModel, item_id)
        return mapper.model_to_entity(model) if model else None

    async def claim_batch(self, limit: int, *, now: datetime, worker_id: str) -> list[OutboxItem]:
        result = await self._session.execute(build_claim_statement(limit, now, worker_id))
        rows = result.scalars().all()
        # RETURNING does not preserve the subquery ordering.
        items = [mapper.model_to_entity(r) for r in rows]
        items.sort(key=lambda i: (i.not_before, i.created_at))
        return items

    async def mark_sent(self, item_id: UUID, provider_message_id: str, *, now: datetime) -> bool:
        result = await self._session.execute(build_mark_sent_statement(item_id, provider_message_id, now))
        return result.rowcount == 1

    async def mark_failed(
        self,
        item_id: UUID,
        error: str,
        *,
        now: datetime,
        claimed_by: str,
    ) -> bool:
        result = await self._session.execute(build_mark_failed_statement(item_id, error, now, claimed_by))
        return result.rowcount == 1

    async def mark_failed_or_retry(
        self,
        item_id: UUID,
        error: str,
        *,
        now: datetime,
        claimed_by: str,
        policy: RetryPolicy,
    ) -> RetryDecision | None:
        row = (await self._session.execute(build_owned_retry_state_select(item_id, claimed_by))).one_or_none()
        if row is None:
            return None

        decision = policy.decide(row.retry_count, row.max_retries, now)
        values: dict[str, object] = {
            "status": decision.status.value,
            "retry_count": decision.retry_count,
            "last_error": error,
            "last_attempt_at": now,
            "claimed_at": None,
            "claimed_by": None,
        }
        if decision.not_before is not None:
            values["not_before"] = decision.not_before
        await self._session.execute(
            update(OutboxItemModel)
            .where(OutboxItemModel.id == item_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return decision

    async def reap_stale(self, *, claimed_before: datetime, now: datetime) -> list[UUID]:
        result = await self._session.execute(build_reap_statement(claimed_before, now))
        return list(result.scalars().all())
