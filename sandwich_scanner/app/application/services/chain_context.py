from __future__ import annotations

from dataclasses import dataclass

from sandwich_scanner.app.config import ChainConfig
from sandwich_scanner.app.domain.ports.out import (
    BlockchainClient,
    PairsRepository,
    SandwichesRepository,
    ScanRangesRepository,
    TokensRepository,
)


@dataclass(frozen=True)
class ChainContext:
    """Per-chain dependencies shared by the query path and scan jobs."""

    chain_id: str
    chain: ChainConfig
    client: BlockchainClient
    tokens: TokensRepository
    pairs: PairsRepository
    scan_ranges: ScanRangesRepository
    sandwiches: SandwichesRepository
