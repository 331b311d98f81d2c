from __future__ import annotations

import logging

from wa_dispatch.application.dto.events import MessageStatusEvent
from wa_dispatch.application.ports.bus import EventPublisher

logger = logging.getLogger(__name__)


async def publish_status(publisher: EventPublisher | None, channel: str, event: MessageStatusEvent) -> None:
    """Fan out a committed status change. Never raises: the transition already happened."""
    if publisher is None:
        return
    try:
        await publisher.publish(channel, event.to_payload())
    except Exception:
        logger.exception("Failed to publish status %s for message %s", event.status, event.message_id)
