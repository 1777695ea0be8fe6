from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ExchangeKind(str, Enum):
    """On-chain Swap event encoding used by an exchange."""

    V2 = "v2"  # amount0In, amount1In, amount0Out, amount1Out
    V3 = "v3"  # signed amount0, amount1


class LegRole(str, Enum):
    FRONTRUN = "frontrun"
    LUNCHMEAT = "lunchmeat"
    BACKRUN = "backrun"


@dataclass(frozen=True)
class Token:
    token_id: int
    name: str
    symbol: str
    decimals: int
    chain: str
    address: str


@dataclass(frozen=True)
class Pair:
    pair_id: int
    chain: str
    factory_address: str
    pair_address: str
    base_token_id: int
    quote_token_id: int


@dataclass(frozen=True)
class ScanRange:
    """
    Block interval [lower_bound, upper_bound] of one pair's history.

    A range starts incomplete and not failed; its owning job flips
    exactly one of the two flags once.
    """

    range_id: int
    pair_id: int
    lower_bound: int
    upper_bound: int
    scan_complete: bool = False
    scan_failed: bool = False

    def contains(self, block_number: int) -> bool:
        return self.lower_bound <= block_number <= self.upper_bound


@dataclass(frozen=True)
class LogMeta:
    block_number: int
    tx_hash: str
    tx_index: int


@dataclass(frozen=True)
class SwapEvent:
    """Canonical swap: all four amounts non-negative, in base units."""

    block_number: int
    tx_hash: str
    tx_index: int
    in0: int
    in1: int
    out0: int
    out1: int


@dataclass(frozen=True)
class TokenRef:
    """Minimal token fields a swap needs for matching and conversion."""

    token_id: int
    decimals: int


def to_decimal_units(value: int, decimals: int) -> float:
    # int / int is correctly rounded even for uint256-sized values
    return value / 10**decimals


@dataclass(frozen=True)
class Swap:
    event: SwapEvent
    base: TokenRef
    quote: TokenRef

    @property
    def block_number(self) -> int:
        return self.event.block_number

    @property
    def tx_hash(self) -> str:
        return self.event.tx_hash

    @property
    def tx_index(self) -> int:
        return self.event.tx_index

    @property
    def base_in(self) -> float:
        return to_decimal_units(self.event.in0, self.base.decimals)

    @property
    def quote_in(self) -> float:
        return to_decimal_units(self.event.in1, self.quote.decimals)

    @property
    def base_out(self) -> float:
        return to_decimal_units(self.event.out0, self.base.decimals)

    @property
    def quote_out(self) -> float:
        return to_decimal_units(self.event.out1, self.quote.decimals)


@dataclass(frozen=True)
class DetectedSandwich:
    block_number: int
    frontrun: Swap
    lunchmeat: tuple[Swap, ...]
    backrun: Swap

    @property
    def swaps(self) -> tuple[Swap, ...]:
        """All legs in block order."""
        return (self.frontrun, *self.lunchmeat, self.backrun)


@dataclass(frozen=True)
class TransactionLeg:
    role: LegRole
    position: int
    tx_hash: str
    tx_index: int
    base_in: float
    quote_in: float
    base_out: float
    quote_out: float
    gas: float


@dataclass(frozen=True)
class EnrichedSandwich:
    block_number: int
    legs: tuple[TransactionLeg, ...]


@dataclass(frozen=True)
class StoredSandwich:
    sandwich_id: int
    pair_id: int
    block_number: int
    # Legs are written after the parent row, so any of them may be missing.
    frontrun: TransactionLeg | None = None
    lunchmeat: list[TransactionLeg] = field(default_factory=list)
    backrun: TransactionLeg | None = None


@dataclass(frozen=True)
class PairMetadata:
    """On-chain metadata returned by the DataAggregator contract."""

    factory_address: str
    base_address: str
    base_name: str
    base_symbol: str
    base_decimals: int
    quote_address: str
    quote_name: str
    quote_symbol: str
    quote_decimals: int
