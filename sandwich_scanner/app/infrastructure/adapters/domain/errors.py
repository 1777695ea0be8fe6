from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError

from sandwich_scanner.app.domain.errors import PersistenceError


@asynccontextmanager
async def persistence_errors(action: str) -> AsyncIterator[None]:
    """Re-raise SQLAlchemy failures as PersistenceError."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise PersistenceError(f"Database error while {action}") from exc
