"""Normalization of opaque outbox payloads into gateway send requests."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from wa_dispatch.application.exceptions import GatewayError
from wa_dispatch.domain.value_objects.enums import MessageType

_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True, slots=True)
class SendRequest:
    route: str
    body: dict[str, Any]


def normalize_number(raw: str, default_country_code: str) -> str:
    digits = _NON_DIGITS.sub("", raw or "")
    if not digits:
        raise GatewayError(f"invalid recipient number {raw!r}", retryable=False)
    if raw.strip().startswith("+") or digits.startswith(default_country_code):
        return digits
    return f"{default_country_code}{digits}"


def build_send_request(payload: dict[str, Any], default_country_code: str) -> SendRequest:
    """Map a payload to the gateway's sendText/sendMedia contract.

    Malformed payloads raise a non-retryable GatewayError: resending the same
    payload can never succeed.
    """
    raw_type = payload.get("type") or MessageType.TEXT.value
    try:
        msg_type = MessageType(raw_type)
    except ValueError:
        raise GatewayError(f"unsupported message type {raw_type!r}", retryable=False) from None

    number = normalize_number(str(payload.get("to") or payload.get("number") or ""), default_country_code)
    text = payload.get("text") or ""

    if msg_type == MessageType.TEXT:
        if not text:
            raise GatewayError("text message without body", retryable=False)
        return SendRequest(route="sendText", body={"number": number, "text": text})

    media_url = payload.get("media_url")
    if not media_url:
        raise GatewayError(f"{msg_type.value} message without media_url", retryable=False)

    body: dict[str, Any] = {"number": number, "mediatype": msg_type.value, "media": media_url}
    if msg_type == MessageType.DOCUMENT:
        body["fileName"] = payload.get("file_name") or text or "documento.pdf"
        body["caption"] = payload.get("caption") or ""
    elif msg_type != MessageType.AUDIO:
        body["caption"] = payload.get("caption") or text
    if payload.get("mime"):
        body["mimetype"] = payload["mime"]
    return SendRequest(route="sendMedia", body=body)


def extract_provider_message_id(data: dict[str, Any]) -> str | None:
    key = data.get("key")
    if isinstance(key, dict) and key.get("id"):
        return str(key["id"])
    for field_name in ("id", "messageId"):
        if data.get(field_name):
            return str(data[field_name])
    return None
