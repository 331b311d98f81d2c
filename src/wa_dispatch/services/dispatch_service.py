"""Per-item dispatch state machine: resolve -> send -> finalize."""
from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from wa_dispatch.application.dto.events import MessageStatusEvent
from wa_dispatch.application.dto.gateway import SendResult
from wa_dispatch.application.exceptions import CredentialsNotFoundError, GatewayError
from wa_dispatch.application.policies.retry import RetryPolicy
from wa_dispatch.application.ports.bus import EventPublisher
from wa_dispatch.application.ports.clock import Clock, SystemClock
from wa_dispatch.application.ports.gateway import GatewayClient
from wa_dispatch.application.uow import UnitOfWork, UoWFactory
from wa_dispatch.domain.entities.audit_entry import AuditEntry
from wa_dispatch.domain.entities.outbox_item import OutboxItem
from wa_dispatch.domain.value_objects.enums import AuditEvent, MessageStatus
from wa_dispatch.services.credential_resolver import CredentialResolver
from wa_dispatch.services.status_events import publish_status

logger = logging.getLogger(__name__)


class DispatchOutcome(StrEnum):
    SENT = "sent"
    REQUEUED = "requeued"
    FAILED = "failed"
    # Another writer finalized or re-claimed the item first; nothing was written.
    SUPERSEDED = "superseded"
    ERROR = "error"


class Dispatcher:
    def __init__(
        self,
        *,
        uow_factory: UoWFactory,
        resolver: CredentialResolver,
        gateway: GatewayClient,
        policy: RetryPolicy,
        publisher: EventPublisher | None = None,
        status_channel: str = "wa.message_status",
        clock: Clock | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._resolver = resolver
        self._gateway = gateway
        self._policy = policy
        self._publisher = publisher
        self._status_channel = status_channel
        self._clock = clock or SystemClock()

    async def process(self, item: OutboxItem) -> DispatchOutcome:
        """Drive one claimed item to SENT, FAILED or back to QUEUED.

        Store errors propagate; the item's transaction is rolled back and it
        stays PROCESSING until the reaper requeues it.
        """
        if item.claimed_by is None:
            raise ValueError(f"outbox item {item.id} was not claimed")

        try:
            credential = await self._resolver.resolve(item.tenant_id, item.account_id)
        except CredentialsNotFoundError as exc:
            return await self._fail(item, exc.detail, reason="credentials_not_found")

        try:
            result = await self._gateway.send(credential, item.payload)
        except GatewayError as exc:
            if exc.retryable:
                return await self._retry(item, exc)
            return await self._fail(item, exc.detail, reason="permanent_gateway_error", status_code=exc.status_code)

        return await self._complete(item, result)

    async def _complete(self, item: OutboxItem, result: SendResult) -> DispatchOutcome:
        now = self._clock.now()
        async with self._uow_factory() as uow:
            if not await uow.outbox.mark_sent(item.id, result.provider_message_id, now=now):
                logger.info(
                    "Outbox item %s already finalized; duplicate completion (%s) ignored",
                    item.id,
                    result.provider_message_id,
                )
                return DispatchOutcome.SUPERSEDED
            if item.message_id is not None:
                await uow.messages_w.mark_sent(item.message_id, result.provider_message_id, now)
            await self._audit(
                uow,
                item,
                AuditEvent.SEND_RESULT,
                "WhatsApp message sent",
                outcome="sent",
                provider_message_id=result.provider_message_id,
            )
            await uow.commit()

        logger.info(
            "Outbox item %s sent (provider id %s, retries %d)",
            item.id,
            result.provider_message_id,
            item.retry_count,
        )
        await self._notify(item, MessageStatus.SENT, provider_message_id=result.provider_message_id)
        return DispatchOutcome.SENT

    async def _retry(self, item: OutboxItem, exc: GatewayError) -> DispatchOutcome:
        now = self._clock.now()
        async with self._uow_factory() as uow:
            decision = await uow.outbox.mark_failed_or_retry(
                item.id,
                exc.detail,
                now=now,
                claimed_by=item.claimed_by,
                policy=self._policy,
            )
            if decision is None:
                logger.warning("Outbox item %s no longer owned by %s; retry not recorded", item.id, item.claimed_by)
                return DispatchOutcome.SUPERSEDED

            if decision.exhausted:
                if item.message_id is not None:
                    await uow.messages_w.mark_failed(item.message_id, exc.detail)
                await self._audit(
                    uow,
                    item,
                    AuditEvent.SEND_RESULT,
                    "WhatsApp message failed after exhausting retries",
                    outcome="failed",
                    reason="retries_exhausted",
                    error=exc.detail,
                    status_code=exc.status_code,
                    retry_count=decision.retry_count,
                )
            else:
                await self._audit(
                    uow,
                    item,
                    AuditEvent.SEND_ATTEMPT,
                    "WhatsApp send attempt failed; retry scheduled",
                    outcome="requeued",
                    error=exc.detail,
                    status_code=exc.status_code,
                    retry_count=decision.retry_count,
                    not_before=decision.not_before,
                )
            await uow.commit()

        if decision.exhausted:
            logger.warning("Outbox item %s failed after %d retries: %s", item.id, decision.retry_count, exc.detail)
            await self._notify(item, MessageStatus.FAILED, error=exc.detail)
            return DispatchOutcome.FAILED

        logger.info(
            "Outbox item %s requeued (retry %d/%d, not before %s): %s",
            item.id,
            decision.retry_count,
            item.max_retries,
            decision.not_before.isoformat() if decision.not_before else "-",
            exc.detail,
        )
        return DispatchOutcome.REQUEUED

    async def _fail(self, item: OutboxItem, error: str, *, reason: str, **metadata: Any) -> DispatchOutcome:
        now = self._clock.now()
        async with self._uow_factory() as uow:
            if not await uow.outbox.mark_failed(item.id, error, now=now, claimed_by=item.claimed_by):
                logger.warning("Outbox item %s no longer owned by %s; failure not recorded", item.id, item.claimed_by)
                return DispatchOutcome.SUPERSEDED
            if item.message_id is not None:
                await uow.messages_w.mark_failed(item.message_id, error)
            await self._audit(
                uow,
                item,
                AuditEvent.SEND_RESULT,
                "WhatsApp message failed",
                outcome="failed",
                reason=reason,
                error=error,
                **metadata,
            )
            await uow.commit()

        logger.warning("Outbox item %s failed permanently (%s): %s", item.id, reason, error)
        await self._notify(item, MessageStatus.FAILED, error=error)
        return DispatchOutcome.FAILED

    async def _audit(
        self,
        uow: UnitOfWork,
        item: OutboxItem,
        event_type: AuditEvent,
        description: str,
        **metadata: Any,
    ) -> None:
        await uow.audit.append(
            AuditEntry(
                event_type=event_type,
                tenant_id=item.tenant_id,
                actor_id=item.claimed_by,
                description=description,
                occurred_at=self._clock.now(),
                metadata={
                    "outbox_id": item.id,
                    "message_id": item.message_id,
                    "account_id": item.account_id,
                    "attempt": item.retry_count + 1,
                    **metadata,
                },
            )
        )

    async def _notify(self, item: OutboxItem, status: MessageStatus, **fields: Any) -> None:
        if item.message_id is None:
            return
        event = MessageStatusEvent(message_id=item.message_id, tenant_id=item.tenant_id, status=status, **fields)
        await publish_status(self._publisher, self._status_channel, event)
