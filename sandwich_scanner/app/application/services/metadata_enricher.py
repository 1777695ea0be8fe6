from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Mapping, Sequence, TypeVar

from sandwich_scanner.app.domain.models import (
    DetectedSandwich,
    EnrichedSandwich,
    LegRole,
    Swap,
    TransactionLeg,
    to_decimal_units,
)
from sandwich_scanner.app.domain.ports.out import BlockchainClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_or_cancel(aws: Sequence[Awaitable[T]]) -> list[T]:
    """
    Run all awaitables concurrently and return results in input order.

    The first failure cancels whatever is still running and is re-raised.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def _as_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def compute_gas_cost(
    transaction: Mapping[str, Any],
    receipt: Mapping[str, Any],
    *,
    native_decimals: int,
) -> float:
    """gas price * gas used in native-token units; 0.0 when either is unknown."""
    gas_price = _as_int(transaction.get("gasPrice"))
    if gas_price is None:
        gas_price = _as_int(receipt.get("effectiveGasPrice"))
    gas_used = _as_int(receipt.get("gasUsed"))

    if gas_price is None or gas_used is None:
        return 0.0
    return to_decimal_units(gas_price * gas_used, native_decimals)


def _roles(sandwich: DetectedSandwich) -> list[tuple[LegRole, int]]:
    roles = [(LegRole.FRONTRUN, 0)]
    roles.extend((LegRole.LUNCHMEAT, position) for position in range(len(sandwich.lunchmeat)))
    roles.append((LegRole.BACKRUN, 0))
    return roles


def _to_leg(swap: Swap, role: LegRole, position: int, gas: float) -> TransactionLeg:
    return TransactionLeg(
        role=role,
        position=position,
        tx_hash=swap.tx_hash,
        tx_index=swap.tx_index,
        base_in=swap.base_in,
        quote_in=swap.quote_in,
        base_out=swap.base_out,
        quote_out=swap.quote_out,
        gas=gas,
    )


class SandwichEnricher:
    """
    Attaches transaction metadata (gas cost) to every leg of a sandwich.

    For k legs, 2k fetches (transaction + receipt per leg) run concurrently.
    A missing transaction or receipt fails the whole sandwich; a missing gas
    price or gas used only zeroes that leg's gas cost.
    """

    def __init__(self, *, client: BlockchainClient, native_decimals: int) -> None:
        self._client = client
        self._native_decimals = native_decimals

    async def enrich(self, sandwich: DetectedSandwich) -> EnrichedSandwich:
        swaps = sandwich.swaps

        fetches: list[Awaitable[Mapping[str, Any]]] = []
        for swap in swaps:
            fetches.append(self._client.get_transaction(swap.tx_hash))
            fetches.append(self._client.get_transaction_receipt(swap.tx_hash))

        results = await gather_or_cancel(fetches)

        legs: list[TransactionLeg] = []
        for k, (swap, (role, position)) in enumerate(zip(swaps, _roles(sandwich), strict=True)):
            transaction, receipt = results[2 * k], results[2 * k + 1]
            gas = compute_gas_cost(transaction, receipt, native_decimals=self._native_decimals)
            legs.append(_to_leg(swap, role, position, gas))

        logger.debug(
            "Enriched sandwich: block=%s, legs=%s",
            sandwich.block_number,
            len(legs),
        )
        return EnrichedSandwich(block_number=sandwich.block_number, legs=tuple(legs))
