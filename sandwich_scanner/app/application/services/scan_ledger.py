from __future__ import annotations

import logging

from sandwich_scanner.app.config import MAX_BLOCK_NUMBER
from sandwich_scanner.app.domain.errors import NumericOverflowError
from sandwich_scanner.app.domain.models import ScanRange
from sandwich_scanner.app.domain.ports.out import ScanRangesRepository

logger = logging.getLogger(__name__)


def check_block_number(block_number: int, *, name: str = "block_number") -> int:
    if block_number < 0 or block_number > MAX_BLOCK_NUMBER:
        raise NumericOverflowError(f"{name}={block_number} is outside the representable block range")
    return block_number


class ScanRangeLedger:
    """
    Tracks which block intervals of a pair's history have been scanned.

    Ranges of one pair never overlap: a new range always starts right after
    the closest range below it. Allocation takes no lock, so two concurrent
    queries for the same uncovered window can still race each other.
    """

    def __init__(self, repository: ScanRangesRepository) -> None:
        self._repository = repository

    async def find_covering_range(self, *, pair_id: int, block_number: int) -> ScanRange | None:
        return await self._repository.find_covering(pair_id=pair_id, block_number=block_number)

    async def find_preceding_upper_bound(self, *, pair_id: int, block_number: int) -> int | None:
        """Greatest upper bound strictly below `block_number`, if any."""
        return await self._repository.find_preceding_upper_bound(
            pair_id=pair_id,
            block_number=block_number,
        )

    async def allocate_range(self, *, pair_id: int, lower_bound: int, upper_bound: int) -> ScanRange:
        check_block_number(lower_bound, name="lower_bound")
        check_block_number(upper_bound, name="upper_bound")
        if lower_bound > upper_bound:
            raise ValueError("lower_bound must be <= upper_bound")

        scan_range = await self._repository.insert(
            pair_id=pair_id,
            lower_bound=lower_bound,
            upper_bound=upper_bound,
        )
        logger.info(
            "Allocated scan range: range_id=%s, pair_id=%s, blocks=[%s, %s]",
            scan_range.range_id,
            pair_id,
            lower_bound,
            upper_bound,
        )
        return scan_range

    async def allocate_before(self, *, pair_id: int, before: int, max_window: int) -> ScanRange:
        """
        Allocate the range ending at `before` for an uncovered query.

        lower = max(preceding.upper + 1, before - max_window + 1, 0)
        """
        check_block_number(before, name="before")
        if max_window <= 0 or max_window > MAX_BLOCK_NUMBER:
            raise NumericOverflowError(f"max_window={max_window} is outside the representable range")

        lower_bound = max(before - max_window + 1, 0)
        preceding = await self.find_preceding_upper_bound(pair_id=pair_id, block_number=before)
        if preceding is not None:
            lower_bound = max(lower_bound, preceding + 1)

        return await self.allocate_range(pair_id=pair_id, lower_bound=lower_bound, upper_bound=before)

    async def mark_complete(self, scan_range: ScanRange) -> None:
        await self._repository.set_status(range_id=scan_range.range_id, complete=True, failed=False)
        logger.info("Scan range complete: range_id=%s", scan_range.range_id)

    async def mark_failed(self, scan_range: ScanRange) -> None:
        await self._repository.set_status(range_id=scan_range.range_id, complete=False, failed=True)
        logger.warning("Scan range failed: range_id=%s", scan_range.range_id)
