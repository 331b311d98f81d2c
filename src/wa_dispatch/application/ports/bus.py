from __future__ import annotations

from typing import Any, Mapping, Protocol


class EventPublisher(Protocol):
    """Best-effort notification of state changes that are already committed.

    May raise on transport failure; callers decide whether that matters.
    """

    async def publish(self, channel: str, payload: Mapping[str, Any]) -> None: ...
