from __future__ import annotations

from typing import Any, Mapping

from sandwich_scanner.app.domain.errors import ParseError
from sandwich_scanner.app.domain.models import ExchangeKind, LogMeta, SwapEvent

INT256_MAX = 2**255 - 1


def saturating_neg(value: int) -> int:
    """Negate as int256 would, clamping -2**255 to INT256_MAX instead of wrapping."""
    return min(-value, INT256_MAX)


def split_signed_amount(amount: int) -> tuple[int, int]:
    """
    Split a signed net amount into (in, out).

    Positive (or zero) amounts flow into the pool, negative ones flow out.
    """
    if amount >= 0:
        return amount, 0
    return 0, saturating_neg(amount)


def _as_int(decoded: Mapping[str, Any], key: str) -> int:
    value = decoded.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParseError(f"Swap event field {key!r} missing or not an integer: {value!r}")
    return value


def _non_negative(decoded: Mapping[str, Any], key: str) -> int:
    value = _as_int(decoded, key)
    if value < 0:
        raise ParseError(f"Swap event field {key!r} must be non-negative, got {value}")
    return value


def normalize_v2(decoded: Mapping[str, Any], meta: LogMeta) -> SwapEvent:
    return SwapEvent(
        block_number=meta.block_number,
        tx_hash=meta.tx_hash,
        tx_index=meta.tx_index,
        in0=_non_negative(decoded, "amount0In"),
        in1=_non_negative(decoded, "amount1In"),
        out0=_non_negative(decoded, "amount0Out"),
        out1=_non_negative(decoded, "amount1Out"),
    )


def normalize_v3(decoded: Mapping[str, Any], meta: LogMeta) -> SwapEvent:
    in0, out0 = split_signed_amount(_as_int(decoded, "amount0"))
    in1, out1 = split_signed_amount(_as_int(decoded, "amount1"))
    return SwapEvent(
        block_number=meta.block_number,
        tx_hash=meta.tx_hash,
        tx_index=meta.tx_index,
        in0=in0,
        in1=in1,
        out0=out0,
        out1=out1,
    )


def normalize_swap(kind: ExchangeKind, decoded: Mapping[str, Any], meta: LogMeta) -> SwapEvent:
    if kind is ExchangeKind.V2:
        return normalize_v2(decoded, meta)
    if kind is ExchangeKind.V3:
        return normalize_v3(decoded, meta)
    raise ParseError(f"Unsupported swap event schema: {kind!r}")
