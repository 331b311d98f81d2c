from __future__ import annotations

from datetime import timedelta

import pytest

from wa_dispatch.application.policies.retry import RetryPolicy
from wa_dispatch.domain.value_objects.enums import OutboxStatus
from tests.conftest import T0


def test_backoff_doubles_until_cap():
    policy = RetryPolicy(base_delay_seconds=60, max_delay_seconds=300)

    delays = [policy.backoff(n).total_seconds() for n in range(5)]

    assert delays == [60, 120, 240, 300, 300]


def test_backoff_huge_retry_count_stays_capped():
    policy = RetryPolicy(base_delay_seconds=1, max_delay_seconds=10)
    assert policy.backoff(10_000) == timedelta(seconds=10)


def test_decide_requeues_while_budget_remains(policy):
    decision = policy.decide(retry_count=1, max_retries=3, now=T0)

    assert decision.status == OutboxStatus.QUEUED
    assert decision.retry_count == 2
    assert decision.not_before == T0 + timedelta(seconds=120)
    assert decision.exhausted is False


def test_decide_fails_without_incrementing_when_exhausted(policy):
    decision = policy.decide(retry_count=3, max_retries=3, now=T0)

    assert decision.status == OutboxStatus.FAILED
    assert decision.retry_count == 3
    assert decision.not_before is None
    assert decision.exhausted is True


def test_zero_max_retries_fails_first_retryable_error(policy):
    assert policy.decide(retry_count=0, max_retries=0, now=T0).exhausted


def test_not_before_strictly_increases_across_retries(policy):
    now = T0
    previous = None
    retry_count = 0
    while True:
        decision = policy.decide(retry_count, 5, now)
        if decision.exhausted:
            break
        assert decision.not_before > now
        if previous is not None:
            assert decision.not_before > previous
        previous = decision.not_before
        now = decision.not_before
        retry_count = decision.retry_count
    assert retry_count == 5


@pytest.mark.parametrize("base,maximum", [(0, 10), (-1, 10), (10, 5)])
def test_invalid_policy_rejected(base, maximum):
    with pytest.raises(ValueError):
        RetryPolicy(base_delay_seconds=base, max_delay_seconds=maximum)
