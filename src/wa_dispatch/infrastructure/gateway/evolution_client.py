from __future__ import annotations

import logging
from typing import Any

import httpx

from wa_dispatch.application.dto.gateway import SendResult
from wa_dispatch.application.exceptions import GatewayError
from wa_dispatch.domain.entities.gateway_credential import GatewayCredential
from wa_dispatch.infrastructure.gateway.http import HttpExecutor
from wa_dispatch.infrastructure.gateway.payloads import build_send_request, extract_provider_message_id

logger = logging.getLogger(__name__)


class EvolutionGatewayClient(HttpExecutor):
    """Implements application.ports.gateway.GatewayClient for the Evolution API."""

    def __init__(self, client: httpx.AsyncClient, default_country_code: str = "55") -> None:
        super().__init__(client)
        self._default_country_code = default_country_code

    async def send(self, credential: GatewayCredential, payload: dict[str, Any]) -> SendResult:
        request = build_send_request(payload, self._default_country_code)
        url = f"{_base(credential)}/message/{request.route}/{credential.instance_id}"
        data = await self._execute("send", "POST", url, headers=_headers(credential), json=request.body)

        provider_message_id = extract_provider_message_id(data)
        if provider_message_id is None:
            # Accepted but unidentifiable; retrying could deliver twice.
            raise GatewayError("send: gateway accepted the request without a message id", retryable=False)
        logger.debug("Gateway accepted message %s on instance %s", provider_message_id, credential.instance_id)
        return SendResult(provider_message_id=provider_message_id, raw=data)

    async def mark_read(
        self,
        credential: GatewayCredential,
        provider_message_id: str,
        remote_jid: str | None = None,
    ) -> None:
        body: dict[str, Any] = {"messageId": provider_message_id, "instance": credential.instance_id}
        if remote_jid:
            body["remoteJid"] = remote_jid
        await self._execute("mark_read", "POST", f"{_base(credential)}/message/read", headers=_headers(credential), json=body)

    async def connection_state(self, credential: GatewayCredential) -> str:
        url = f"{_base(credential)}/instance/connectionState/{credential.instance_id}"
        data = await self._execute("connection_state", "GET", url, headers=_headers(credential))
        instance = data.get("instance")
        if isinstance(instance, dict) and instance.get("state"):
            return str(instance["state"])
        return str(data.get("state") or "unknown")


def _base(credential: GatewayCredential) -> str:
    return credential.endpoint.rstrip("/")


def _headers(credential: GatewayCredential) -> dict[str, str]:
    return {"apikey": credential.api_key, "Content-Type": "application/json"}
