"""Builds the dispatch object graph from settings; shared by the API and the worker."""
from __future__ import annotations

import httpx
import redis.asyncio as aioredis

from wa_dispatch.application.policies.retry import RetryPolicy
from wa_dispatch.application.ports.crypto import PlainCipher, SecretCipher
from wa_dispatch.config import Settings
from wa_dispatch.infrastructure.bus.redis_pubsub import RedisPubSubPublisher
from wa_dispatch.infrastructure.crypto.fernet_cipher import FernetCipher
from wa_dispatch.infrastructure.db.uow import open_uow
from wa_dispatch.infrastructure.gateway.evolution_client import EvolutionGatewayClient
from wa_dispatch.infrastructure.media.storage_signer import StorageUrlSigner
from wa_dispatch.services.credential_resolver import CredentialResolver
from wa_dispatch.services.dispatch_service import Dispatcher
from wa_dispatch.workers.pool import DispatchWorkerPool


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.GATEWAY_TIMEOUT_SECONDS)


def build_cipher(settings: Settings) -> SecretCipher:
    if settings.CREDENTIALS_ENCRYPTION_KEY:
        return FernetCipher(settings.CREDENTIALS_ENCRYPTION_KEY)
    return PlainCipher()


def build_retry_policy(settings: Settings) -> RetryPolicy:
    return RetryPolicy(
        base_delay_seconds=settings.DISPATCH_BACKOFF_BASE_SECONDS,
        max_delay_seconds=settings.DISPATCH_BACKOFF_MAX_SECONDS,
    )


def build_resolver(settings: Settings) -> CredentialResolver:
    return CredentialResolver(open_uow, build_cipher(settings))


def build_gateway(settings: Settings, http: httpx.AsyncClient) -> EvolutionGatewayClient:
    return EvolutionGatewayClient(http, default_country_code=settings.GATEWAY_DEFAULT_COUNTRY_CODE)


def build_media_signer(settings: Settings, http: httpx.AsyncClient) -> StorageUrlSigner:
    return StorageUrlSigner(
        http,
        base_url=settings.MEDIA_STORAGE_URL,
        service_key=settings.MEDIA_STORAGE_KEY,
        bucket=settings.MEDIA_BUCKET,
    )


def build_pool(settings: Settings, http: httpx.AsyncClient, redis: aioredis.Redis) -> DispatchWorkerPool:
    dispatcher = Dispatcher(
        uow_factory=open_uow,
        resolver=build_resolver(settings),
        gateway=build_gateway(settings, http),
        policy=build_retry_policy(settings),
        publisher=RedisPubSubPublisher(redis),
        status_channel=settings.REDIS_STATUS_CHANNEL,
    )
    return DispatchWorkerPool(
        dispatcher,
        open_uow,
        batch_size=settings.DISPATCH_BATCH_SIZE,
        concurrency=settings.DISPATCH_CONCURRENCY,
        poll_interval=settings.DISPATCH_POLL_INTERVAL,
        reaper_interval=settings.DISPATCH_REAPER_INTERVAL,
        reaper_timeout=settings.DISPATCH_REAPER_TIMEOUT_SECONDS,
        max_error_backoff=settings.DISPATCH_BACKOFF_MAX_SECONDS,
    )
