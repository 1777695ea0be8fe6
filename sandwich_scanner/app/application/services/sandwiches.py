from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from sandwich_scanner.app.application.services.chain_context import ChainContext
from sandwich_scanner.app.application.services.chunked_scanner import (
    ChunkedScanner,
    ScanTarget,
    run_scan_job,
)
from sandwich_scanner.app.application.services.metadata_enricher import SandwichEnricher
from sandwich_scanner.app.application.services.pairs import resolve_pair
from sandwich_scanner.app.application.services.scan_jobs import ScanJobRunner
from sandwich_scanner.app.application.services.scan_ledger import ScanRangeLedger, check_block_number
from sandwich_scanner.app.domain.models import ScanRange, StoredSandwich, TokenRef

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SandwichesResult:
    """
    Sandwiches of one pair in [earliest_fetched_block, latest_fetched_block].

    scan_complete / scan_failed describe the range covering `before`;
    both False means a scan of that range is still running.
    """

    sandwiches: list[StoredSandwich]
    earliest_fetched_block: int
    latest_fetched_block: int
    range_lower_bound: int
    range_upper_bound: int
    scan_complete: bool
    scan_failed: bool
    scan_started: bool = False
    pair_address: str = ""
    exchange_name: str = ""
    warnings: list[str] = field(default_factory=list)


async def get_sandwiches(
    ctx: ChainContext,
    *,
    runner: ScanJobRunner,
    pair_address: str,
    before: int | None = None,
) -> SandwichesResult:
    """
    Read sandwiches before `before` for a pair, scanning missing history.

    If a scan range already covers `before`, persisted sandwiches inside
    [max(after, range.lower_bound), before] are returned. Otherwise a new
    range is allocated, a scan job is launched in the background, and the
    result reports `scan_started` with no sandwiches yet.
    """
    if before is None:
        before = await ctx.client.get_latest_block_number()
    check_block_number(before, name="before")

    params = ctx.chain.scan
    after = max(0, before - params.max_window)

    resolved = await resolve_pair(ctx, pair_address)
    pair = resolved.pair
    ledger = ScanRangeLedger(ctx.scan_ranges)

    covering = await ledger.find_covering_range(pair_id=pair.pair_id, block_number=before)
    if covering is not None:
        earliest = max(after, covering.lower_bound)
        sandwiches = await ctx.sandwiches.list_for_pair(
            pair_id=pair.pair_id,
            min_block=earliest,
            max_block=before,
        )
        return SandwichesResult(
            sandwiches=list(sandwiches),
            earliest_fetched_block=earliest,
            latest_fetched_block=before,
            range_lower_bound=covering.lower_bound,
            range_upper_bound=covering.upper_bound,
            scan_complete=covering.scan_complete,
            scan_failed=covering.scan_failed,
            pair_address=pair.pair_address,
            exchange_name=resolved.exchange.name,
            warnings=_partial_warnings(sandwiches),
        )

    scan_range = await ledger.allocate_before(
        pair_id=pair.pair_id,
        before=before,
        max_window=params.max_window,
    )

    target = ScanTarget(
        pair=pair,
        exchange_kind=resolved.exchange.kind,
        base=TokenRef(token_id=resolved.base.token_id, decimals=resolved.base.decimals),
        quote=TokenRef(token_id=resolved.quote.token_id, decimals=resolved.quote.decimals),
    )
    _start_scan(ctx, runner=runner, ledger=ledger, target=target, scan_range=scan_range)

    return SandwichesResult(
        sandwiches=[],
        earliest_fetched_block=scan_range.lower_bound,
        latest_fetched_block=before,
        range_lower_bound=scan_range.lower_bound,
        range_upper_bound=scan_range.upper_bound,
        scan_complete=False,
        scan_failed=False,
        scan_started=True,
        pair_address=pair.pair_address,
        exchange_name=resolved.exchange.name,
    )


def _start_scan(
    ctx: ChainContext,
    *,
    runner: ScanJobRunner,
    ledger: ScanRangeLedger,
    target: ScanTarget,
    scan_range: ScanRange,
) -> None:
    scanner = ChunkedScanner(
        client=ctx.client,
        sandwiches=ctx.sandwiches,
        enricher=SandwichEnricher(client=ctx.client, native_decimals=ctx.chain.native_decimals),
        params=ctx.chain.scan,
    )
    runner.start(
        run_scan_job(scanner=scanner, ledger=ledger, target=target, scan_range=scan_range),
        name=f"scan:{ctx.chain_id}:{target.pair.pair_address}:{scan_range.range_id}",
    )


def _partial_warnings(sandwiches: Sequence[StoredSandwich]) -> list[str]:
    # parent and leg rows are written separately
    return [
        f"sandwich {s.sandwich_id} at block {s.block_number} is missing legs"
        for s in sandwiches
        if s.frontrun is None or s.backrun is None
    ]
