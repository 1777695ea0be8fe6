from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict

from sqlalchemy.ext.asyncio import AsyncEngine
from web3 import AsyncHTTPProvider, AsyncWeb3

from sandwich_scanner.app.application.services.chain_context import ChainContext
from sandwich_scanner.app.config import ChainConfig, ChainRegistry
from sandwich_scanner.app.domain.errors import UnsupportedChainError
from sandwich_scanner.app.domain.models import ExchangeKind
from sandwich_scanner.app.infrastructure.adapters.domain.pairs_repository import SqlAlchemyPairsRepository
from sandwich_scanner.app.infrastructure.adapters.domain.sandwiches_repository import (
    SqlAlchemySandwichesRepository,
)
from sandwich_scanner.app.infrastructure.adapters.domain.scan_ranges_repository import (
    SqlAlchemyScanRangesRepository,
)
from sandwich_scanner.app.infrastructure.adapters.domain.tokens_repository import SqlAlchemyTokensRepository
from sandwich_scanner.app.infrastructure.decoders.swap_event_decoder import AbiSwapEventDecoder
from sandwich_scanner.app.infrastructure.fetchers.web3_blockchain_client import Web3BlockchainClient

ChainContextFactory = Callable[[AsyncEngine, str, ChainConfig], ChainContext]

_CHAIN_CONTEXT_REGISTRY: Dict[str, ChainContextFactory] = {}

_RPC_TIMEOUT_SECONDS = 30

# Resolve ABI paths relative to the package, not the current working dir
_ABI_DIR = Path(__file__).resolve().parents[2] / "registry" / "abi"

_SWAP_ABI_PATHS: dict[ExchangeKind, Path] = {
    ExchangeKind.V2: _ABI_DIR / "UniswapV2Pair.json",
    ExchangeKind.V3: _ABI_DIR / "UniswapV3Pool.json",
}
_DATA_AGGREGATOR_ABI_PATH = _ABI_DIR / "DataAggregator.json"


def _make_swap_decoders() -> dict[ExchangeKind, AbiSwapEventDecoder]:
    return {
        kind: AbiSwapEventDecoder(abi_path=path, event_name="Swap")
        for kind, path in _SWAP_ABI_PATHS.items()
    }


def _make_sqlalchemy_context(
    engine: AsyncEngine,
    *,
    chain_id: str,
    chain: ChainConfig,
) -> ChainContext:
    """
    Wire dependencies for the SQLAlchemy backend:
    - AsyncWeb3 provider (one RPC endpoint per chain)
    - Swap decoders for both event encodings + DataAggregator reads
    - SQLAlchemy repositories sharing one engine
    """
    w3 = AsyncWeb3(
        AsyncHTTPProvider(
            chain.rpc_url,
            request_kwargs={"timeout": _RPC_TIMEOUT_SECONDS},
        )
    )

    client = Web3BlockchainClient(
        w3=w3,
        decoders=_make_swap_decoders(),
        data_aggregator_address=chain.data_aggregator_address,
        data_aggregator_abi_path=_DATA_AGGREGATOR_ABI_PATH,
    )

    return ChainContext(
        chain_id=chain_id,
        chain=chain,
        client=client,
        tokens=SqlAlchemyTokensRepository(engine),
        pairs=SqlAlchemyPairsRepository(engine),
        scan_ranges=SqlAlchemyScanRangesRepository(engine),
        sandwiches=SqlAlchemySandwichesRepository(engine),
    )


# Register backends
_CHAIN_CONTEXT_REGISTRY["sqlalchemy"] = lambda engine, chain_id, chain: _make_sqlalchemy_context(
    engine,
    chain_id=chain_id,
    chain=chain,
)


def chain_context_factory(
    *,
    backend: str,
    engine: AsyncEngine,
    registry: ChainRegistry,
    chain_id: str,
) -> ChainContext:
    """
    Create the per-chain context for the given backend.

    Raises UnsupportedChainError when `chain_id` is not in the registry.
    """
    try:
        factory = _CHAIN_CONTEXT_REGISTRY[backend]
    except KeyError:
        raise ValueError(f"Unsupported chain context backend: {backend!r}")

    chain = registry.get(chain_id)
    if chain is None:
        raise UnsupportedChainError(f"Chain {chain_id!r} is not supported")

    return factory(engine, chain_id.lower(), chain)
