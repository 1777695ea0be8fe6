from __future__ import annotations

import logging

from sandwich_scanner.app.application.services.scan_jobs import ScanJobRunner
from sandwich_scanner.app.config import ChainRegistry, load_settings
from sandwich_scanner.app.infrastructure.db.engine import create_app_async_engine
from sandwich_scanner.app.interface.query import SandwichesResponse, fetch_sandwiches

logger = logging.getLogger(__name__)


async def sandwiches_task(
    *,
    chain: str,
    pair_address: str,
    before: int | None = None,
    wait: bool = True,
    backend: str = "sqlalchemy",
) -> SandwichesResponse:
    """
    Task: read sandwiches of a pair before a given block (default: latest block).

    - returns persisted sandwiches when a scan range already covers `before`,
    - otherwise allocates a new scan range and starts a scan job; with
      wait=True the task keeps the process alive until the job finishes.
    """
    settings = load_settings()
    registry = ChainRegistry.from_file(settings.chains_config_path)
    runner = ScanJobRunner()

    engine = create_app_async_engine(settings)
    try:
        response = await fetch_sandwiches(
            engine=engine,
            registry=registry,
            runner=runner,
            blockchain=chain,
            pair_address=pair_address,
            before=before,
            backend=backend,
        )
        if wait and runner.running:
            logger.info("Waiting for %s scan job(s) to finish", runner.running)
            await runner.wait()
        return response
    finally:
        await engine.dispose()
