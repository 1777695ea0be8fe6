from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from sandwich_scanner.app.config import Settings


def create_app_async_engine(settings: Settings, *, echo: bool = False) -> AsyncEngine:
    """
    Factory for AsyncEngine shared by the query path and scan jobs.

    Centralizing engine creation keeps connection handling consistent
    across tasks and makes it easier to tweak pool settings in one place.
    """
    return create_async_engine(
        settings.database_url,  # postgresql+asyncpg://...
        echo=echo,
        pool_pre_ping=True,
    )
