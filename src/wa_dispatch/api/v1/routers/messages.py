from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from wa_dispatch.api.deps import (
    CurrentPrincipal,
    GatewayDep,
    MediaSignerDep,
    PublisherDep,
    ResolverDep,
    UoWDep,
)
from wa_dispatch.api.v1.schemas.message import (
    MarkReadResponse,
    RefreshMediaRequest,
    RefreshMediaResponse,
)
from wa_dispatch.config import settings
from wa_dispatch.services import media_service, read_service

router = APIRouter(prefix="/api/v1/wa", tags=["messages"])


@router.post("/messages/{message_id}/read", response_model=MarkReadResponse)
async def mark_read(
    message_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    resolver: ResolverDep,
    gateway: GatewayDep,
    publisher: PublisherDep,
) -> MarkReadResponse:
    message = await read_service.mark_read(
        message_id,
        principal,
        uow,
        resolver,
        gateway,
        publisher=publisher,
        status_channel=settings.REDIS_STATUS_CHANNEL,
    )
    return MarkReadResponse(message_id=message.id, status=message.status, read_at=message.read_at)


@router.post("/media/refresh", response_model=RefreshMediaResponse)
async def refresh_media(
    body: RefreshMediaRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    signer: MediaSignerDep,
) -> RefreshMediaResponse:
    refreshed = await media_service.refresh_media_url(
        principal,
        uow,
        signer,
        ttl_seconds=settings.MEDIA_URL_TTL_SECONDS,
        message_id=body.message_id,
        storage_path=body.storage_path,
    )
    return RefreshMediaResponse(
        media_url=refreshed.media_url,
        storage_path=refreshed.storage_path,
        expires_in_seconds=refreshed.expires_in_seconds,
    )
