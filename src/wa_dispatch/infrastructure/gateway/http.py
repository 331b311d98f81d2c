"""Shared classify-and-execute HTTP core for every gateway-facing adapter."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from wa_dispatch.application.exceptions import GatewayError
from wa_dispatch.application.policies.classification import Outcome, classify_status, is_retryable_status

logger = logging.getLogger(__name__)


class HttpExecutor:
    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def _execute(
        self,
        operation: str,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run one request and return the decoded body, or raise a classified GatewayError."""
        try:
            response = await self._client.request(method, url, headers=headers, json=json)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise GatewayError(f"{operation}: invalid gateway url {url!r}", retryable=False) from exc
        except httpx.TimeoutException as exc:
            raise GatewayError(f"{operation}: gateway timeout", retryable=True) from exc
        except httpx.TransportError as exc:
            raise GatewayError(f"{operation}: {exc.__class__.__name__}: {exc}", retryable=True) from exc
        except httpx.RequestError as exc:
            # The request reached the gateway (undecodable body, redirect loop); resending may duplicate.
            raise GatewayError(f"{operation}: {exc.__class__.__name__}: {exc}", retryable=False) from exc

        body = _decode(response)
        outcome = classify_status(response.status_code)
        if outcome == Outcome.SUCCESS:
            return body

        logger.warning("%s %s -> HTTP %d (%s)", method, url, response.status_code, outcome)
        raise GatewayError(
            f"{operation}: HTTP {response.status_code}: {_error_message(body, response)}",
            retryable=is_retryable_status(response.status_code),
            status_code=response.status_code,
        )


def _decode(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {"data": data}


def _error_message(body: dict[str, Any], response: httpx.Response) -> str:
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    for key in ("message", "error", "response"):
        if body.get(key):
            return str(body[key])
    return response.text[:200] or response.reason_phrase
