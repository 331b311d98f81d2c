"""Bounded exponential backoff for retryable dispatch failures."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from wa_dispatch.domain.value_objects.enums import OutboxStatus

# 2**32 base delays is far past any sane cap; avoids float overflow on huge counts.
_MAX_EXPONENT = 32


@dataclass(frozen=True, slots=True)
class RetryDecision:
    status: OutboxStatus
    retry_count: int
    not_before: datetime | None

    @property
    def exhausted(self) -> bool:
        return self.status == OutboxStatus.FAILED


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    base_delay_seconds: float
    max_delay_seconds: float

    def __post_init__(self) -> None:
        if self.base_delay_seconds <= 0:
            raise ValueError("base_delay_seconds must be positive")
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")

    def backoff(self, retry_count: int) -> timedelta:
        exponent = min(max(retry_count, 0), _MAX_EXPONENT)
        delay = min(self.base_delay_seconds * (2 ** exponent), self.max_delay_seconds)
        return timedelta(seconds=delay)

    def decide(self, retry_count: int, max_retries: int, now: datetime) -> RetryDecision:
        """Requeue while budget remains, otherwise fail without bumping the count.

        ``retry_count`` is the value before this failure, so the delay grows
        as ``base * 2**retry_count`` and the count stops at ``max_retries``.
        """
        if retry_count < max_retries:
            return RetryDecision(
                status=OutboxStatus.QUEUED,
                retry_count=retry_count + 1,
                not_before=now + self.backoff(retry_count),
            )
        return RetryDecision(status=OutboxStatus.FAILED, retry_count=retry_count, not_before=None)
