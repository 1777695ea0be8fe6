from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from sandwich_scanner.app.domain.models import ScanRange
from sandwich_scanner.app.infrastructure.adapters.domain.errors import persistence_errors

_RANGE_COLUMNS = "range_id, pair_id, lower_bound, upper_bound, scan_complete, scan_failed"

_SELECT_COVERING_SQL = text(
    f"""
    SELECT {_RANGE_COLUMNS}
    FROM domain.scan_ranges
    WHERE pair_id = :pair_id
      AND lower_bound <= :block_number
      AND upper_bound >= :block_number
    ORDER BY range_id
    LIMIT 1
    """
)

_SELECT_PRECEDING_UPPER_SQL = text(
    """
    SELECT MAX(upper_bound) AS upper_bound
    FROM domain.scan_ranges
    WHERE pair_id = :pair_id
      AND upper_bound < :block_number
    """
)

_INSERT_SQL = text(
    f"""
    INSERT INTO domain.scan_ranges (
        pair_id,
        lower_bound,
        upper_bound,
        scan_complete,
        scan_failed
    )
    VALUES (
        :pair_id,
        :lower_bound,
        :upper_bound,
        FALSE,
        FALSE
    )
    RETURNING {_RANGE_COLUMNS}
    """
)

# Only an open range may change state; finished ranges are never reverted.
_UPDATE_STATUS_SQL = text(
    """
    UPDATE domain.scan_ranges
    SET scan_complete = :complete,
        scan_failed = :failed
    WHERE range_id = :range_id
      AND NOT scan_complete
      AND NOT scan_failed
    """
)


def _to_range(row: Mapping[str, Any]) -> ScanRange:
    return ScanRange(
        range_id=row["range_id"],
        pair_id=row["pair_id"],
        lower_bound=row["lower_bound"],
        upper_bound=row["upper_bound"],
        scan_complete=row["scan_complete"],
        scan_failed=row["scan_failed"],
    )


class SqlAlchemyScanRangesRepository:
    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def find_covering(self, *, pair_id: int, block_number: int) -> ScanRange | None:
        async with persistence_errors("reading scan range"), self._engine.connect() as conn:
            result = await conn.execute(
                _SELECT_COVERING_SQL,
                {"pair_id": pair_id, "block_number": block_number},
            )
            row = result.mappings().one_or_none()
        return _to_range(row) if row is not None else None

    async def find_preceding_upper_bound(self, *, pair_id: int, block_number: int) -> int | None:
        async with persistence_errors("reading scan range"), self._engine.connect() as conn:
            result = await conn.execute(
                _SELECT_PRECEDING_UPPER_SQL,
                {"pair_id": pair_id, "block_number": block_number},
            )
            return result.scalar_one_or_none()

    async def insert(self, *, pair_id: int, lower_bound: int, upper_bound: int) -> ScanRange:
        async with persistence_errors("inserting scan range"), self._engine.begin() as conn:
            result = await conn.execute(
                _INSERT_SQL,
                {"pair_id": pair_id, "lower_bound": lower_bound, "upper_bound": upper_bound},
            )
            row = result.mappings().one()
        return _to_range(row)

    async def set_status(self, *, range_id: int, complete: bool, failed: bool) -> None:
        if complete and failed:
            raise ValueError("A scan range cannot be both complete and failed")
        async with persistence_errors("updating scan range"), self._engine.begin() as conn:
            await conn.execute(
                _UPDATE_STATUS_SQL,
                {"range_id": range_id, "complete": complete, "failed": failed},
            )
