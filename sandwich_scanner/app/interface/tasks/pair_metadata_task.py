from __future__ import annotations

from sandwich_scanner.app.config import ChainRegistry, load_settings
from sandwich_scanner.app.infrastructure.db.engine import create_app_async_engine
from sandwich_scanner.app.interface.query import PairResponse, fetch_pair


async def pair_metadata_task(
    *,
    chain: str,
    pair_address: str,
    backend: str = "sqlalchemy",
) -> PairResponse:
    """
    Task: resolve pair metadata for a given chain and pair address.

    - reads the pair (and its tokens) from domain.pairs / domain.tokens,
    - on a miss, reads DataAggregator.getMetadata on-chain and registers pair + tokens.
    """
    settings = load_settings()
    registry = ChainRegistry.from_file(settings.chains_config_path)

    engine = create_app_async_engine(settings)
    try:
        return await fetch_pair(
            engine=engine,
            registry=registry,
            blockchain=chain,
            pair_address=pair_address,
            backend=backend,
        )
    finally:
        await engine.dispose()
