"""Gateway HTTP status classification.

Single source of truth for which gateway failures the dispatcher retries.
"""
from __future__ import annotations

from enum import StrEnum


class Outcome(StrEnum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    PERMANENT = "permanent"


# 4xx codes that signal a transient condition on the gateway side.
RETRYABLE_CLIENT_STATUS_CODES: frozenset[int] = frozenset({408, 425, 429})


def classify_status(status_code: int) -> Outcome:
    if 200 <= status_code < 300:
        return Outcome.SUCCESS
    if status_code >= 500 or status_code in RETRYABLE_CLIENT_STATUS_CODES:
        return Outcome.RETRYABLE
    return Outcome.PERMANENT


def is_retryable_status(status_code: int) -> bool:
    return classify_status(status_code) == Outcome.RETRYABLE
