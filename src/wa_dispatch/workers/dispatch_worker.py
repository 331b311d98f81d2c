"""Dispatch worker process: runs the pool until SIGINT/SIGTERM."""
from __future__ import annotations

import asyncio
import logging
import signal

import redis.asyncio as aioredis

from wa_dispatch.config import settings
from wa_dispatch.infrastructure.db.session import engine
from wa_dispatch.wiring import build_http_client, build_pool

logger = logging.getLogger(__name__)


async def run_dispatch_worker() -> None:
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    http = build_http_client(settings)
    pool = build_pool(settings, http, redis)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, pool.stop)

    try:
        await pool.run()
    finally:
        await http.aclose()
        await redis.aclose()
        await engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(run_dispatch_worker())


if __name__ == "__main__":
    main()
