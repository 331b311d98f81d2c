"""FastAPI dependency injection helpers."""
from __future__ import annotations

import hmac
from typing import Annotated, AsyncIterator

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from wa_dispatch.application.dto.principal import Principal
from wa_dispatch.application.ports.auth import TokenVerifier
from wa_dispatch.application.ports.bus import EventPublisher
from wa_dispatch.application.ports.gateway import GatewayClient, MediaSigner
from wa_dispatch.config import settings
from wa_dispatch.infrastructure.auth.hs256_verifier import HS256Verifier
from wa_dispatch.infrastructure.auth.jwks_verifier import JWKSVerifier
from wa_dispatch.infrastructure.db.session import AsyncSessionLocal
from wa_dispatch.infrastructure.db.uow import SqlAlchemyUoW
from wa_dispatch.services.credential_resolver import CredentialResolver
from wa_dispatch.workers.pool import DispatchWorkerPool

_bearer_scheme = HTTPBearer()


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        try:
            yield uow
        finally:
            await session.close()


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]


def _get_verifier() -> TokenVerifier:
    if settings.JWT_VERIFY_MODE == "jwks":
        assert settings.JWKS_URL, "JWKS_URL must be set when JWT_VERIFY_MODE=jwks"
        return JWKSVerifier(settings.JWKS_URL)
    return HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)


_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = _get_verifier()
    return _verifier


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(_bearer_scheme)],
) -> Principal:
    verifier = get_verifier()
    try:
        return await verifier.verify(credentials.credentials)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


async def require_internal_token(
    x_internal_token: Annotated[str | None, Header()] = None,
) -> None:
    expected = settings.INTERNAL_API_TOKEN
    if not expected or not x_internal_token or not hmac.compare_digest(x_internal_token, expected):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Internal access required")


InternalOnly = Depends(require_internal_token)


def get_resolver(request: Request) -> CredentialResolver:
    return request.app.state.resolver


def get_gateway(request: Request) -> GatewayClient:
    return request.app.state.gateway


def get_media_signer(request: Request) -> MediaSigner:
    return request.app.state.media_signer


def get_publisher(request: Request) -> EventPublisher | None:
    return getattr(request.app.state, "publisher", None)


def get_pool(request: Request) -> DispatchWorkerPool:
    return request.app.state.pool


ResolverDep = Annotated[CredentialResolver, Depends(get_resolver)]
GatewayDep = Annotated[GatewayClient, Depends(get_gateway)]
MediaSignerDep = Annotated[MediaSigner, Depends(get_media_signer)]
PublisherDep = Annotated[EventPublisher | None, Depends(get_publisher)]
PoolDep = Annotated[DispatchWorkerPool, Depends(get_pool)]
