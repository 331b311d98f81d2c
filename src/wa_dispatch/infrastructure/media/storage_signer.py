from __future__ import annotations

from urllib.parse import quote

import httpx

from wa_dispatch.application.exceptions import GatewayError
from wa_dispatch.infrastructure.gateway.http import HttpExecutor


class StorageUrlSigner(HttpExecutor):
    """Implements application.ports.gateway.MediaSigner against the object storage sign endpoint."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, service_key: str, bucket: str) -> None:
        super().__init__(client)
        self._base_url = base_url.rstrip("/")
        self._service_key = service_key
        self._bucket = bucket

    async def create_signed_url(self, path: str, ttl_seconds: int) -> str:
        if not self._base_url:
            raise GatewayError("media storage is not configured", retryable=False)
        if ttl_seconds <= 0:
            raise GatewayError("ttl_seconds must be positive", retryable=False)

        object_path = quote(path.lstrip("/"), safe="/")
        url = f"{self._base_url}/storage/v1/object/sign/{self._bucket}/{object_path}"
        headers = {
            "Authorization": f"Bearer {self._service_key}",
            "apikey": self._service_key,
            "Content-Type": "application/json",
        }
        data = await self._execute("sign_media_url", "POST", url, headers=headers, json={"expiresIn": ttl_seconds})

        signed = data.get("signedURL") or data.get("signedUrl")
        if not signed:
            raise GatewayError("sign_media_url: response without signed url", retryable=False)
        if signed.startswith("http"):
            return signed
        return f"{self._base_url}/storage/v1{signed}"
