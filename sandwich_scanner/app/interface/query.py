from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Callable

from sqlalchemy.ext.asyncio import AsyncEngine

from sandwich_scanner.app.application.services.chain_context import ChainContext
from sandwich_scanner.app.application.services.pairs import resolve_pair
from sandwich_scanner.app.application.services.sandwiches import get_sandwiches
from sandwich_scanner.app.application.services.scan_jobs import ScanJobRunner
from sandwich_scanner.app.config import ChainRegistry
from sandwich_scanner.app.domain.errors import (
    NotFoundError,
    NumericOverflowError,
    PairNotFoundError,
    ParseError,
    PersistenceError,
    ProviderError,
    UnsupportedChainError,
    UnsupportedExchangeError,
)
from sandwich_scanner.app.domain.models import StoredSandwich, TransactionLeg
from sandwich_scanner.app.infrastructure.factories.chain_context_factory import chain_context_factory

logger = logging.getLogger(__name__)

ContextFactory = Callable[..., ChainContext]

# Ordered: the first matching class wins.
_USER_MESSAGES: list[tuple[type[Exception], str]] = [
    (UnsupportedChainError, "blockchain not supported"),
    (UnsupportedExchangeError, "exchange not supported"),
    (PairNotFoundError, "pair does not exist"),
    (NotFoundError, "provider error"),
    (ProviderError, "provider error"),
    (ParseError, "invalid input"),
    (NumericOverflowError, "numeric overflow"),
    (PersistenceError, "database error"),
]


def user_message(exc: Exception) -> str:
    """Map an internal error to one of a fixed set of user-facing messages."""
    for exc_type, message in _USER_MESSAGES:
        if isinstance(exc, exc_type):
            return message
    return "internal error"


@dataclass
class TokenData:
    address: str
    name: str
    symbol: str
    decimals: int


@dataclass
class PairResponse:
    pair_address: str | None = None
    exchange_name: str | None = None
    base: TokenData | None = None
    quote: TokenData | None = None
    error_message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class TransactionData:
    hash: str
    index: int
    base_in: float
    quote_in: float
    base_out: float
    quote_out: float
    gas: float


@dataclass
class SandwichData:
    block_number: int
    frontrun: TransactionData | None
    lunchmeat: list[TransactionData]
    backrun: TransactionData | None


@dataclass
class ScannerMetadata:
    earliest_fetched_block: int
    latest_fetched_block: int
    range_lower_bound: int
    range_upper_bound: int
    scan_complete: bool
    scan_failed: bool
    scan_started: bool


@dataclass
class SandwichesResponse:
    sandwiches: list[SandwichData] | None = None
    metadata: ScannerMetadata | None = None
    warnings: list[str] = field(default_factory=list)
    error_message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _transaction_data(leg: TransactionLeg) -> TransactionData:
    return TransactionData(
        hash=leg.tx_hash,
        index=leg.tx_index,
        base_in=leg.base_in,
        quote_in=leg.quote_in,
        base_out=leg.base_out,
        quote_out=leg.quote_out,
        gas=leg.gas,
    )


def _sandwich_data(sandwich: StoredSandwich) -> SandwichData:
    # frontrun / backrun are None only for partially written sandwiches
    return SandwichData(
        block_number=sandwich.block_number,
        frontrun=_transaction_data(sandwich.frontrun) if sandwich.frontrun is not None else None,
        lunchmeat=[_transaction_data(leg) for leg in sandwich.lunchmeat],
        backrun=_transaction_data(sandwich.backrun) if sandwich.backrun is not None else None,
    )


async def fetch_pair(
    *,
    engine: AsyncEngine,
    registry: ChainRegistry,
    blockchain: str,
    pair_address: str,
    backend: str = "sqlalchemy",
    context_factory: ContextFactory = chain_context_factory,
) -> PairResponse:
    """Pair metadata by (chain, address); registers the pair on first request."""
    try:
        ctx = context_factory(backend=backend, engine=engine, registry=registry, chain_id=blockchain)
        resolved = await resolve_pair(ctx, pair_address)
    except Exception as exc:
        logger.exception("Pair request failed: chain=%s, pair=%s", blockchain, pair_address)
        return PairResponse(error_message=user_message(exc))

    return PairResponse(
        pair_address=resolved.pair.pair_address,
        exchange_name=resolved.exchange.name,
        base=TokenData(
            address=resolved.base.address,
            name=resolved.base.name,
            symbol=resolved.base.symbol,
            decimals=resolved.base.decimals,
        ),
        quote=TokenData(
            address=resolved.quote.address,
            name=resolved.quote.name,
            symbol=resolved.quote.symbol,
            decimals=resolved.quote.decimals,
        ),
    )


async def fetch_sandwiches(
    *,
    engine: AsyncEngine,
    registry: ChainRegistry,
    runner: ScanJobRunner,
    blockchain: str,
    pair_address: str,
    before: int | None = None,
    backend: str = "sqlalchemy",
    context_factory: ContextFactory = chain_context_factory,
) -> SandwichesResponse:
    """Sandwiches before `before`, paginated backward by the chain's max window."""
    try:
        ctx = context_factory(backend=backend, engine=engine, registry=registry, chain_id=blockchain)
        result = await get_sandwiches(ctx, runner=runner, pair_address=pair_address, before=before)
    except Exception as exc:
        logger.exception("Sandwiches request failed: chain=%s, pair=%s", blockchain, pair_address)
        return SandwichesResponse(error_message=user_message(exc))

    return SandwichesResponse(
        sandwiches=[_sandwich_data(s) for s in result.sandwiches],
        metadata=ScannerMetadata(
            earliest_fetched_block=result.earliest_fetched_block,
            latest_fetched_block=result.latest_fetched_block,
            range_lower_bound=result.range_lower_bound,
            range_upper_bound=result.range_upper_bound,
            scan_complete=result.scan_complete,
            scan_failed=result.scan_failed,
            scan_started=result.scan_started,
        ),
        warnings=list(result.warnings),
    )
