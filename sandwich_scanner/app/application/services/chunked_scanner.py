from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass

from sandwich_scanner.app.application.services.metadata_enricher import SandwichEnricher
from sandwich_scanner.app.application.services.scan_ledger import ScanRangeLedger
from sandwich_scanner.app.config import ScanParams
from sandwich_scanner.app.domain.models import (
    ExchangeKind,
    Pair,
    ScanRange,
    Swap,
    TokenRef,
)
from sandwich_scanner.app.domain.ports.out import BlockchainClient, SandwichesRepository
from sandwich_scanner.app.domain.sandwich_detector import MIN_SWAPS_PER_SANDWICH, detect_sandwiches
from sandwich_scanner.app.domain.swap_normalizer import normalize_swap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanTarget:
    """Everything a scan job needs to know about the pair it walks."""

    pair: Pair
    exchange_kind: ExchangeKind
    base: TokenRef
    quote: TokenRef


def chunk_lower_bound(*, upper: int, chunk_size: int, floor: int) -> int:
    return max(floor, upper - chunk_size + 1)


def next_chunk_size(
    *,
    events_fetched: int,
    blocks_spanned: int,
    params: ScanParams,
) -> int:
    """
    Size the next chunk so it holds roughly `target_events_per_chunk` events.

    An empty chunk carries no density signal, so the scan jumps to the
    largest allowed chunk.
    """
    if blocks_spanned <= 0:
        raise ValueError("blocks_spanned must be positive")
    if events_fetched <= 0:
        return params.max_chunk_size

    density = events_fetched / blocks_spanned
    size = params.target_events_per_chunk / density
    if not math.isfinite(size):
        return params.max_chunk_size
    return max(1, min(math.floor(size), params.max_chunk_size))


def group_by_block(swaps: list[Swap]) -> dict[int, list[Swap]]:
    """
    Group swaps by block, keeping only blocks with enough swaps for a bracket.

    Each block's swaps come back sorted by transaction index.
    """
    by_block: dict[int, list[Swap]] = defaultdict(list)
    for swap in swaps:
        by_block[swap.block_number].append(swap)

    return {
        block: sorted(block_swaps, key=lambda s: s.tx_index)
        for block, block_swaps in by_block.items()
        if len(block_swaps) >= MIN_SWAPS_PER_SANDWICH
    }


class ChunkedScanner:
    """
    Walks a scan range backward in adaptively sized chunks.

    Chunks are processed strictly one after another: the next chunk's size
    depends on the density observed in the current one, and the current
    chunk's writes finish before the next fetch starts.
    """

    def __init__(
        self,
        *,
        client: BlockchainClient,
        sandwiches: SandwichesRepository,
        enricher: SandwichEnricher,
        params: ScanParams,
    ) -> None:
        self._client = client
        self._sandwiches = sandwiches
        self._enricher = enricher
        self._params = params

    async def scan(self, target: ScanTarget, scan_range: ScanRange) -> int:
        """Scan [lower_bound, upper_bound] of `scan_range`; returns sandwiches stored."""
        floor = scan_range.lower_bound
        upper = scan_range.upper_bound
        chunk_size = self._params.initial_chunk_size
        stored = 0

        logger.info(
            "Scanning pair %s (%s): range_id=%s, blocks=[%s, %s]",
            target.pair.pair_address,
            target.exchange_kind.value,
            scan_range.range_id,
            floor,
            upper,
        )

        while upper >= floor:
            lower = chunk_lower_bound(upper=upper, chunk_size=chunk_size, floor=floor)

            events_fetched, stored_in_chunk = await self._scan_chunk(target, lower, upper)
            stored += stored_in_chunk

            chunk_size = next_chunk_size(
                events_fetched=events_fetched,
                blocks_spanned=upper - lower + 1,
                params=self._params,
            )
            upper = lower - 1

        logger.info(
            "Finished scanning pair %s: range_id=%s, sandwiches=%s",
            target.pair.pair_address,
            scan_range.range_id,
            stored,
        )
        return stored

    async def _scan_chunk(self, target: ScanTarget, lower: int, upper: int) -> tuple[int, int]:
        raw_events = await self._client.get_logs(
            contract_address=target.pair.pair_address,
            event_schema=target.exchange_kind,
            from_block=lower,
            to_block=upper,
        )

        swaps = [
            Swap(
                event=normalize_swap(target.exchange_kind, decoded, meta),
                base=target.base,
                quote=target.quote,
            )
            for decoded, meta in raw_events
        ]
        blocks = group_by_block(swaps)

        logger.info(
            "Chunk [%s, %s]: %s swaps, %s blocks with %s+ swaps",
            lower,
            upper,
            len(swaps),
            len(blocks),
            MIN_SWAPS_PER_SANDWICH,
        )

        stored = 0
        for block_number in sorted(blocks, reverse=True):
            for sandwich in detect_sandwiches(blocks[block_number]):
                enriched = await self._enricher.enrich(sandwich)
                await self._sandwiches.insert_sandwich(pair_id=target.pair.pair_id, sandwich=enriched)
                stored += 1

            logger.debug("Block %s processed", block_number)

        return len(raw_events), stored


async def run_scan_job(
    *,
    scanner: ChunkedScanner,
    ledger: ScanRangeLedger,
    target: ScanTarget,
    scan_range: ScanRange,
) -> bool:
    """
    Background job boundary: scan the range, then mark it complete or failed.

    Any error, including one while recording completion, aborts the job; the
    range is marked failed and never retried here. A later query has to
    allocate a new range to cover it again.
    """
    try:
        await scanner.scan(target, scan_range)
        await ledger.mark_complete(scan_range)
    except Exception:
        logger.exception(
            "Scan job failed: range_id=%s, pair=%s",
            scan_range.range_id,
            target.pair.pair_address,
        )
    else:
        return True

    try:
        await ledger.mark_failed(scan_range)
    except Exception:
        logger.exception("Could not mark scan range failed: range_id=%s", scan_range.range_id)
    return False
