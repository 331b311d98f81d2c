from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wa_dispatch.api.middleware.request_context import RequestContextMiddleware
from wa_dispatch.api.v1.routers import health, internal, messages
from wa_dispatch.application.exceptions import (
    CredentialsNotFoundError,
    GatewayError,
    NotFoundError,
    ValidationError,
)
from wa_dispatch.config import settings
from wa_dispatch.infrastructure.bus.redis_pubsub import RedisPubSubPublisher
from wa_dispatch.wiring import (
    build_gateway,
    build_http_client,
    build_media_signer,
    build_pool,
    build_resolver,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.redis = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    app.state.http = build_http_client(settings)
    app.state.resolver = build_resolver(settings)
    app.state.gateway = build_gateway(settings, app.state.http)
    app.state.media_signer = build_media_signer(settings, app.state.http)
    app.state.publisher = RedisPubSubPublisher(app.state.redis)
    app.state.pool = build_pool(settings, app.state.http, app.state.redis)
    logger.info("Gateway and Redis clients created")

    yield

    await app.state.http.aclose()
    await app.state.redis.aclose()
    logger.info("Gateway and Redis clients closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="WhatsApp Dispatch Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(internal.router)
    app.include_router(messages.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CredentialsNotFoundError)
    async def _not_configured(_req: Request, exc: CredentialsNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})

    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})

    @app.exception_handler(GatewayError)
    async def _gateway(_req: Request, exc: GatewayError) -> JSONResponse:
        return JSONResponse(
            status_code=502,
            content={"detail": exc.detail, "retryable": exc.retryable},
        )
