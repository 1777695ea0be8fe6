from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

from sandwich_scanner.app.domain.models import (
    EnrichedSandwich,
    ExchangeKind,
    LogMeta,
    Pair,
    PairMetadata,
    ScanRange,
    StoredSandwich,
    Token,
)


class BlockchainClient(Protocol):
    """
    Port for reading one chain through its RPC provider.

    Implementations raise:
      - NotFoundError when a transaction / receipt does not resolve,
      - ProviderError for any failed remote call,
      - ParseError for malformed addresses or undecodable events.

    Timeouts and retries are the implementation's business.
    """

    async def get_latest_block_number(self) -> int: ...

    async def get_logs(
        self,
        *,
        contract_address: str,
        event_schema: ExchangeKind,
        from_block: int,
        to_block: int,
    ) -> list[tuple[dict[str, Any], LogMeta]]:
        """Decoded Swap events of the given schema, in chain order."""
        ...

    async def get_transaction(self, tx_hash: str) -> Mapping[str, Any]: ...

    async def get_transaction_receipt(self, tx_hash: str) -> Mapping[str, Any]: ...

    async def get_pair_metadata(self, pair_address: str) -> PairMetadata: ...


class EvmEventDecoder(Protocol):
    def decode(
        self,
        *,
        topic0: bytes | None,
        topic1: bytes | None,
        topic2: bytes | None,
        topic3: bytes | None,
        data: bytes,
    ) -> dict[str, Any] | None:
        """
        Decode an EVM log (topics + data) into a dict of typed fields.

        Return:
          - dict[str, Any] for decoded event fields
          - None if the log is not the expected event
        """
        ...


class TokensRepository(Protocol):
    """Token registry; lookups by (chain, address) are case-insensitive."""

    async def get_by_address(self, *, chain: str, address: str) -> Token | None: ...

    async def get_by_id(self, token_id: int) -> Token | None: ...

    async def insert(
        self,
        *,
        chain: str,
        address: str,
        name: str,
        symbol: str,
        decimals: int,
    ) -> Token: ...


class PairsRepository(Protocol):
    async def get_by_address(self, *, chain: str, address: str) -> Pair | None: ...

    async def insert(
        self,
        *,
        chain: str,
        factory_address: str,
        pair_address: str,
        base_token_id: int,
        quote_token_id: int,
    ) -> Pair: ...


class ScanRangesRepository(Protocol):
    """
    Storage behind the scan range ledger.

    Ranges are never deleted; a status update only applies to a range that
    is still neither complete nor failed.
    """

    async def find_covering(self, *, pair_id: int, block_number: int) -> ScanRange | None: ...

    async def find_preceding_upper_bound(self, *, pair_id: int, block_number: int) -> int | None: ...

    async def insert(self, *, pair_id: int, lower_bound: int, upper_bound: int) -> ScanRange: ...

    async def set_status(self, *, range_id: int, complete: bool, failed: bool) -> None: ...


class SandwichesRepository(Protocol):
    async def insert_sandwich(self, *, pair_id: int, sandwich: EnrichedSandwich) -> int:
        """Insert the sandwich row, then its legs. Returns the new sandwich id."""
        ...

    async def list_for_pair(
        self,
        *,
        pair_id: int,
        min_block: int | None = None,
        max_block: int | None = None,
    ) -> Sequence[StoredSandwich]: ...
