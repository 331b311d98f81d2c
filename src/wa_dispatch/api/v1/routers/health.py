from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from wa_dispatch.infrastructure.db.session import AsyncSessionLocal

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


async def _postgres(_request: Request) -> None:
    async with AsyncSessionLocal() as session:
        await session.execute(text("SELECT 1 FROM wa_outbox LIMIT 1"))


async def _redis(request: Request) -> None:
    await request.app.state.redis.ping()


_READINESS_CHECKS: dict[str, Callable[[Request], Awaitable[None]]] = {
    "postgres": _postgres,
    "redis": _redis,
}


@router.get("/readyz")
async def readyz(request: Request) -> JSONResponse:
    """Ready once the outbox table is reachable and the status channel's Redis answers."""
    errors: dict[str, str] = {}
    for name, check in _READINESS_CHECKS.items():
        try:
            await check(request)
        except Exception as exc:  # noqa: BLE001
            errors[name] = str(exc) or exc.__class__.__name__

    if errors:
        return JSONResponse(status_code=503, content={"status": "unavailable", "errors": errors})
    return JSONResponse(content={"status": "ready"})
