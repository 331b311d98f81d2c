from __future__ import annotations

from enum import StrEnum


class OutboxStatus(StrEnum):
    QUEUED = "QUEUED"
    PROCESSING = "PROCESSING"
    SENT = "SENT"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (OutboxStatus.SENT, OutboxStatus.FAILED)


class MessageStatus(StrEnum):
    QUEUED = "QUEUED"
    SENT = "SENT"
    FAILED = "FAILED"
    READ = "READ"


class MessageType(StrEnum):
    TEXT = "text"
    IMAGE = "image"
    DOCUMENT = "document"
    VIDEO = "video"
    AUDIO = "audio"


class AuditEvent(StrEnum):
    SEND_ATTEMPT = "message_send_attempt"
    SEND_RESULT = "message_send_result"
    MARK_READ = "wa_mark_read"
    MEDIA_URL_REFRESHED = "whatsapp_media_url_refreshed"
    HEALTHCHECK = "whatsapp_healthcheck"
