"""
In-memory implementations of the repository and blockchain ports used by the tests.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any, Mapping, Sequence

from sandwich_scanner.app.application.services.chain_context import ChainContext
from sandwich_scanner.app.config import ChainConfig, ExchangeConfig, ScanParams
from sandwich_scanner.app.domain.errors import NotFoundError, ProviderError
from sandwich_scanner.app.domain.models import (
    EnrichedSandwich,
    ExchangeKind,
    LegRole,
    LogMeta,
    Pair,
    PairMetadata,
    ScanRange,
    StoredSandwich,
    Swap,
    SwapEvent,
    Token,
    TokenRef,
)

BASE = TokenRef(token_id=1, decimals=18)
QUOTE = TokenRef(token_id=2, decimals=6)

FACTORY_V2 = "0x5c69bee701ef814a2b6a3edd4b1652cb9cc5aa6f"
PAIR_ADDRESS = "0xb4e16d0168e52d35cacd2c6185b44281ec28c9dc"
BASE_ADDRESS = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
QUOTE_ADDRESS = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"


def tx_hash(n: int) -> str:
    return "0x" + f"{n:064x}"


def make_swap(
    tx_index: int,
    *,
    in0: int = 0,
    in1: int = 0,
    out0: int = 0,
    out1: int = 0,
    block: int = 100,
    base: TokenRef = BASE,
    quote: TokenRef = QUOTE,
) -> Swap:
    return Swap(
        event=SwapEvent(
            block_number=block,
            tx_hash=tx_hash(block * 1000 + tx_index),
            tx_index=tx_index,
            in0=in0,
            in1=in1,
            out0=out0,
            out1=out1,
        ),
        base=base,
        quote=quote,
    )


def v2_log(
    block: int,
    tx_index: int,
    *,
    in0: int = 0,
    in1: int = 0,
    out0: int = 0,
    out1: int = 0,
) -> tuple[dict[str, Any], LogMeta]:
    decoded = {
        "sender": "0x" + "11" * 20,
        "to": "0x" + "22" * 20,
        "amount0In": in0,
        "amount1In": in1,
        "amount0Out": out0,
        "amount1Out": out1,
    }
    return decoded, LogMeta(block_number=block, tx_hash=tx_hash(block * 1000 + tx_index), tx_index=tx_index)


class InMemoryTokensRepository:
    def __init__(self) -> None:
        self.rows: dict[int, Token] = {}

    async def get_by_address(self, *, chain: str, address: str) -> Token | None:
        for token in self.rows.values():
            if token.chain == chain.lower() and token.address == address.lower():
                return token
        return None

    async def get_by_id(self, token_id: int) -> Token | None:
        return self.rows.get(token_id)

    async def insert(self, *, chain: str, address: str, name: str, symbol: str, decimals: int) -> Token:
        token = Token(
            token_id=len(self.rows) + 1,
            name=name,
            symbol=symbol,
            decimals=decimals,
            chain=chain.lower(),
            address=address.lower(),
        )
        self.rows[token.token_id] = token
        return token


class InMemoryPairsRepository:
    def __init__(self) -> None:
        self.rows: dict[int, Pair] = {}

    async def get_by_address(self, *, chain: str, address: str) -> Pair | None:
        for pair in self.rows.values():
            if pair.chain == chain.lower() and pair.pair_address == address.lower():
                return pair
        return None

    async def insert(
        self,
        *,
        chain: str,
        factory_address: str,
        pair_address: str,
        base_token_id: int,
        quote_token_id: int,
    ) -> Pair:
        pair = Pair(
            pair_id=len(self.rows) + 1,
            chain=chain.lower(),
            factory_address=factory_address.lower(),
            pair_address=pair_address.lower(),
            base_token_id=base_token_id,
            quote_token_id=quote_token_id,
        )
        self.rows[pair.pair_id] = pair
        return pair


class InMemoryScanRangesRepository:
    def __init__(self) -> None:
        self.rows: dict[int, ScanRange] = {}

    async def find_covering(self, *, pair_id: int, block_number: int) -> ScanRange | None:
        for r in sorted(self.rows.values(), key=lambda r: r.range_id):
            if r.pair_id == pair_id and r.contains(block_number):
                return r
        return None

    async def find_preceding_upper_bound(self, *, pair_id: int, block_number: int) -> int | None:
        uppers = [
            r.upper_bound
            for r in self.rows.values()
            if r.pair_id == pair_id and r.upper_bound < block_number
        ]
        return max(uppers) if uppers else None

    async def insert(self, *, pair_id: int, lower_bound: int, upper_bound: int) -> ScanRange:
        r = ScanRange(
            range_id=len(self.rows) + 1,
            pair_id=pair_id,
            lower_bound=lower_bound,
            upper_bound=upper_bound,
        )
        self.rows[r.range_id] = r
        return r

    async def set_status(self, *, range_id: int, complete: bool, failed: bool) -> None:
        current = self.rows[range_id]
        if current.scan_complete or current.scan_failed:
            return
        self.rows[range_id] = replace(current, scan_complete=complete, scan_failed=failed)


class InMemorySandwichesRepository:
    def __init__(self) -> None:
        self.rows: list[tuple[int, int, EnrichedSandwich]] = []

    async def insert_sandwich(self, *, pair_id: int, sandwich: EnrichedSandwich) -> int:
        sandwich_id = len(self.rows) + 1
        self.rows.append((sandwich_id, pair_id, sandwich))
        return sandwich_id

    async def list_for_pair(
        self,
        *,
        pair_id: int,
        min_block: int | None = None,
        max_block: int | None = None,
    ) -> Sequence[StoredSandwich]:
        out = []
        for sandwich_id, row_pair_id, sandwich in self.rows:
            if row_pair_id != pair_id:
                continue
            if min_block is not None and sandwich.block_number < min_block:
                continue
            if max_block is not None and sandwich.block_number > max_block:
                continue
            legs = sandwich.legs
            out.append(
                StoredSandwich(
                    sandwich_id=sandwich_id,
                    pair_id=row_pair_id,
                    block_number=sandwich.block_number,
                    frontrun=next((leg for leg in legs if leg.role is LegRole.FRONTRUN), None),
                    lunchmeat=[leg for leg in legs if leg.role is LegRole.LUNCHMEAT],
                    backrun=next((leg for leg in legs if leg.role is LegRole.BACKRUN), None),
                )
            )
        return sorted(out, key=lambda s: (s.block_number, s.sandwich_id))


class FakeBlockchainClient:
    """
    Serves canned logs, transactions and receipts.

    Transactions / receipts default to gasPrice=1 gwei, gasUsed=100_000 for
    any hash not in `missing`.
    """

    def __init__(
        self,
        *,
        logs: list[tuple[dict[str, Any], LogMeta]] | None = None,
        latest_block: int = 1_000,
        metadata: PairMetadata | None = None,
        missing: set[str] | None = None,
        failing_ranges: set[tuple[int, int]] | None = None,
        delays: dict[str, float] | None = None,
        gas_prices: dict[str, int] | None = None,
    ) -> None:
        self.logs = logs or []
        self.latest_block = latest_block
        self.metadata = metadata
        self.missing = missing or set()
        self.failing_ranges = failing_ranges or set()
        self.delays = delays or {}
        self.gas_prices = gas_prices or {}
        self.get_logs_calls: list[tuple[int, int]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_latest_block_number(self) -> int:
        return self.latest_block

    async def get_logs(
        self,
        *,
        contract_address: str,
        event_schema: ExchangeKind,
        from_block: int,
        to_block: int,
    ) -> list[tuple[dict[str, Any], LogMeta]]:
        self.get_logs_calls.append((from_block, to_block))
        if (from_block, to_block) in self.failing_ranges:
            raise ProviderError("eth_getLogs failed")
        return [
            (decoded, meta)
            for decoded, meta in self.logs
            if from_block <= meta.block_number <= to_block
        ]

    async def _fetch(self, tx_hash: str, payload: Mapping[str, Any]) -> Mapping[str, Any]:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(tx_hash, 0.01))
            if tx_hash in self.missing:
                raise NotFoundError(f"{tx_hash} not found")
            return payload
        finally:
            self.in_flight -= 1

    async def get_transaction(self, tx_hash: str) -> Mapping[str, Any]:
        return await self._fetch(tx_hash, {"hash": tx_hash, "gasPrice": self.gas_prices.get(tx_hash, 10**9)})

    async def get_transaction_receipt(self, tx_hash: str) -> Mapping[str, Any]:
        return await self._fetch(tx_hash, {"transactionHash": tx_hash, "gasUsed": 100_000})

    async def get_pair_metadata(self, pair_address: str) -> PairMetadata:
        if self.metadata is None:
            raise ProviderError("getMetadata reverted")
        return self.metadata


def default_metadata(factory: str = FACTORY_V2) -> PairMetadata:
    return PairMetadata(
        factory_address=factory,
        base_address=BASE_ADDRESS.upper().replace("0X", "0x"),
        base_name="Wrapped Ether",
        base_symbol="WETH",
        base_decimals=18,
        quote_address=QUOTE_ADDRESS,
        quote_name="USD Coin",
        quote_symbol="USDC",
        quote_decimals=6,
    )


def make_chain(**scan: int) -> ChainConfig:
    return ChainConfig(
        name="Ethereum",
        rpc_url="http://localhost:8545",
        data_aggregator_address="0x" + "ab" * 20,
        native_decimals=18,
        exchanges={FACTORY_V2: ExchangeConfig(kind=ExchangeKind.V2, name="Uniswap V2")},
        scan=ScanParams(**scan),
    )


def make_context(client: FakeBlockchainClient, **scan: int) -> ChainContext:
    return ChainContext(
        chain_id="ethereum",
        chain=make_chain(**scan),
        client=client,
        tokens=InMemoryTokensRepository(),
        pairs=InMemoryPairsRepository(),
        scan_ranges=InMemoryScanRangesRepository(),
        sandwiches=InMemorySandwichesRepository(),
    )
