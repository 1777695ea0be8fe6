"""
Tests for swap event normalization.
"""

import pytest

from sandwich_scanner.app.domain.errors import ParseError
from sandwich_scanner.app.domain.models import ExchangeKind, LogMeta
from sandwich_scanner.app.domain.swap_normalizer import (
    INT256_MAX,
    normalize_swap,
    saturating_neg,
    split_signed_amount,
)

META = LogMeta(block_number=17_000_000, tx_hash="0x" + "ab" * 32, tx_index=4)


def test_v2_amounts_pass_through():
    decoded = {"amount0In": 5, "amount1In": 0, "amount0Out": 0, "amount1Out": 9}
    event = normalize_swap(ExchangeKind.V2, decoded, META)

    assert (event.in0, event.in1, event.out0, event.out1) == (5, 0, 0, 9)
    assert event.block_number == 17_000_000
    assert event.tx_index == 4
    assert event.tx_hash == META.tx_hash


def test_v3_positive_amount_is_input_negative_is_output():
    event = normalize_swap(ExchangeKind.V3, {"amount0": 1_000, "amount1": -250}, META)

    assert (event.in0, event.out0) == (1_000, 0)
    assert (event.in1, event.out1) == (0, 250)


def test_v3_zero_amount_is_neither_in_nor_out():
    event = normalize_swap(ExchangeKind.V3, {"amount0": 0, "amount1": 0}, META)
    assert (event.in0, event.in1, event.out0, event.out1) == (0, 0, 0, 0)


def test_v3_int256_min_saturates():
    event = normalize_swap(ExchangeKind.V3, {"amount0": -(2**255), "amount1": 7}, META)

    assert event.out0 == INT256_MAX
    assert event.in0 == 0
    assert event.in1 == 7


@pytest.mark.parametrize("amount", [0, 1, -1, 2**255 - 1, -(2**255) + 1, -(2**255)])
def test_split_signed_amount_never_negative(amount):
    amount_in, amount_out = split_signed_amount(amount)
    assert amount_in >= 0 and amount_out >= 0
    assert amount_in == 0 or amount_out == 0


def test_saturating_neg():
    assert saturating_neg(-5) == 5
    assert saturating_neg(-(2**255)) == 2**255 - 1


def test_v2_negative_amount_rejected():
    decoded = {"amount0In": -1, "amount1In": 0, "amount0Out": 0, "amount1Out": 0}
    with pytest.raises(ParseError):
        normalize_swap(ExchangeKind.V2, decoded, META)


def test_missing_field_rejected():
    with pytest.raises(ParseError):
        normalize_swap(ExchangeKind.V2, {"amount0In": 1}, META)
    with pytest.raises(ParseError):
        normalize_swap(ExchangeKind.V3, {"amount0": 1}, META)


def test_non_integer_field_rejected():
    with pytest.raises(ParseError):
        normalize_swap(ExchangeKind.V3, {"amount0": "12", "amount1": 0}, META)
    with pytest.raises(ParseError):
        normalize_swap(ExchangeKind.V3, {"amount0": True, "amount1": 0}, META)
