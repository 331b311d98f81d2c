from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from wa_dispatch.config import Settings, settings


def build_engine(cfg: Settings, *, application_name: str = "wa_dispatch") -> AsyncEngine:
    # Claims hold row locks for one short statement; pre-ping drops connections
    # the server closed while a worker idled between polls.
    return create_async_engine(
        cfg.database_url,
        pool_size=cfg.DB_POOL_SIZE,
        max_overflow=cfg.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=cfg.DB_POOL_RECYCLE,
        connect_args={"server_settings": {"application_name": application_name}},
    )


engine = build_engine(settings)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)
