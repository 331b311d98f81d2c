"""Dispatch worker pool: claims outbox batches and drives them with bounded concurrency."""
from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import timedelta

from wa_dispatch.application.policies.retry import RetryPolicy
from wa_dispatch.application.ports.clock import Clock, SystemClock, cutoff
from wa_dispatch.application.uow import UoWFactory
from wa_dispatch.domain.entities.outbox_item import OutboxItem
from wa_dispatch.services.dispatch_service import DispatchOutcome, Dispatcher

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BatchStats:
    claimed: int = 0
    outcomes: Counter[DispatchOutcome] = field(default_factory=Counter)

    def as_dict(self) -> dict[str, int]:
        return {"claimed": self.claimed, **{o.value: self.outcomes[o] for o in DispatchOutcome}}


class DispatchWorkerPool:
    """Fixed-size pool of concurrent dispatchers over the durable outbox.

    Ownership lives in the store (atomic claim), not in this process, so any
    number of pool instances may run against one outbox.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        uow_factory: UoWFactory,
        *,
        batch_size: int,
        concurrency: int,
        poll_interval: float,
        reaper_interval: float,
        reaper_timeout: float,
        max_error_backoff: float | None = None,
        clock: Clock | None = None,
        worker_id: str | None = None,
    ) -> None:
        if batch_size <= 0 or concurrency <= 0:
            raise ValueError("batch_size and concurrency must be positive")
        self.worker_id = worker_id or f"dispatcher-{uuid.uuid4().hex[:8]}"
        self._dispatcher = dispatcher
        self._uow_factory = uow_factory
        self._batch_size = batch_size
        self._concurrency = concurrency
        self._poll_interval = poll_interval
        self._reaper_interval = reaper_interval
        self._reaper_timeout = timedelta(seconds=reaper_timeout)
        self._error_backoff = RetryPolicy(
            base_delay_seconds=poll_interval,
            max_delay_seconds=max(max_error_backoff or poll_interval * 32, poll_interval),
        )
        self._clock = clock or SystemClock()
        self._semaphore = asyncio.Semaphore(concurrency)
        self._stop = asyncio.Event()

    def stop(self) -> None:
        self._stop.set()

    async def run_once(self) -> BatchStats:
        """Claim one batch and process it. Claim errors propagate to the caller."""
        items = await self._claim()
        stats = BatchStats(claimed=len(items))
        if not items:
            return stats

        outcomes = await asyncio.gather(*(self._process_bounded(item) for item in items))
        stats.outcomes.update(outcomes)
        logger.info("Dispatched batch of %d: %s", len(items), dict(stats.outcomes))
        return stats

    async def reap_once(self) -> list[uuid.UUID]:
        """Requeue items stuck in PROCESSING longer than the reaper timeout."""
        now, claimed_before = cutoff(self._clock, self._reaper_timeout)
        async with self._uow_factory() as uow:
            reaped = await uow.outbox.reap_stale(claimed_before=claimed_before, now=now)
            await uow.commit()
        if reaped:
            logger.warning("Reaper requeued %d stale outbox items: %s", len(reaped), ", ".join(map(str, reaped)))
        return reaped

    async def run(self) -> None:
        logger.info(
            "Dispatch pool %s started (poll=%.1fs, batch=%d, concurrency=%d)",
            self.worker_id,
            self._poll_interval,
            self._batch_size,
            self._concurrency,
        )
        reaper = asyncio.create_task(self._reaper_loop(), name="outbox-reaper")
        consecutive_errors = 0
        try:
            while not self._stop.is_set():
                try:
                    stats = await self.run_once()
                except Exception:
                    consecutive_errors += 1
                    delay = self._error_backoff.backoff(consecutive_errors - 1).total_seconds()
                    logger.exception("Outbox claim failed (%d in a row); backing off %.1fs", consecutive_errors, delay)
                    await self._sleep(delay)
                    continue

                consecutive_errors = 0
                if stats.claimed == 0:
                    await self._sleep(self._poll_interval)
        finally:
            reaper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reaper
            logger.info("Dispatch pool %s stopped", self.worker_id)

    async def _claim(self) -> list[OutboxItem]:
        async with self._uow_factory() as uow:
            items = await uow.outbox.claim_batch(self._batch_size, now=self._clock.now(), worker_id=self.worker_id)
            await uow.commit()
        return items

    async def _process_bounded(self, item: OutboxItem) -> DispatchOutcome:
        async with self._semaphore:
            try:
                return await self._dispatcher.process(item)
            except Exception:
                logger.exception("Dispatch of outbox item %s failed; left PROCESSING for the reaper", item.id)
                return DispatchOutcome.ERROR

    async def _reaper_loop(self) -> None:
        while not self._stop.is_set():
            try:
                await self.reap_once()
            except Exception:
                logger.exception("Outbox reaper sweep failed")
            await self._sleep(self._reaper_interval)

    async def _sleep(self, seconds: float) -> None:
        """Sleep that returns early once stop() is called."""
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
