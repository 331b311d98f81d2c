"""Internal surface: enqueue contract, scheduler trigger, gateway healthcheck."""
from __future__ import annotations

from fastapi import APIRouter

from wa_dispatch.api.deps import GatewayDep, InternalOnly, PoolDep, ResolverDep, UoWDep
from wa_dispatch.api.v1.schemas.gateway import ConnectionCheckResponse, GatewayHealthResponse
from wa_dispatch.api.v1.schemas.outbox import DispatchRunResponse, EnqueueRequest, OutboxItemResponse
from wa_dispatch.config import settings
from wa_dispatch.services import enqueue_service, healthcheck_service

router = APIRouter(prefix="/internal", tags=["internal"], dependencies=[InternalOnly])


@router.post("/outbox", response_model=OutboxItemResponse, status_code=201)
async def enqueue(body: EnqueueRequest, uow: UoWDep) -> OutboxItemResponse:
    item = await enqueue_service.enqueue(
        uow,
        tenant_id=body.tenant_id,
        account_id=body.account_id,
        message_id=body.message_id,
        payload=body.payload,
        max_retries=settings.DISPATCH_MAX_RETRIES if body.max_retries is None else body.max_retries,
    )
    return OutboxItemResponse.model_validate(item, from_attributes=True)


@router.post("/dispatch/run", response_model=DispatchRunResponse)
async def run_dispatch(pool: PoolDep) -> DispatchRunResponse:
    """One claim/dispatch cycle plus one reaper sweep, for scheduled invocation."""
    reaped = await pool.reap_once()
    stats = await pool.run_once()
    return DispatchRunResponse(**stats.as_dict(), reaped=len(reaped))


@router.get("/gateways/health", response_model=GatewayHealthResponse)
async def gateways_health(uow: UoWDep, resolver: ResolverDep, gateway: GatewayDep) -> GatewayHealthResponse:
    report = await healthcheck_service.check_gateways(uow, resolver, gateway)
    return GatewayHealthResponse(
        status=report.status,
        total_instances=len(report.checks),
        online_count=report.online_count,
        offline_count=len(report.checks) - report.online_count,
        checks=[ConnectionCheckResponse.model_validate(c, from_attributes=True) for c in report.checks],
    )
