"""
Tests for in-block sandwich detection.
"""

import pytest

from fakes import make_swap
from sandwich_scanner.app.domain.models import TokenRef
from sandwich_scanner.app.domain.sandwich_detector import detect_sandwiches, is_match

# Zero-decimal tokens keep the ratios exact
UNIT_BASE = TokenRef(token_id=1, decimals=0)
UNIT_QUOTE = TokenRef(token_id=2, decimals=0)


def unit_swap(tx_index, **amounts):
    return make_swap(tx_index, base=UNIT_BASE, quote=UNIT_QUOTE, **amounts)


def test_frontrun_and_backrun_around_two_victims():
    a = make_swap(0, in0=10 * 10**18, out1=20_000 * 10**6)
    b = make_swap(1, in0=1 * 10**18, out1=1_900 * 10**6)
    c = make_swap(2, in0=2 * 10**18, out1=3_700 * 10**6)
    d = make_swap(3, in1=21_000 * 10**6, out0=10 * 10**18)

    sandwiches = detect_sandwiches([a, b, c, d])

    assert len(sandwiches) == 1
    s = sandwiches[0]
    assert s.frontrun is a
    assert s.lunchmeat == (b, c)
    assert s.backrun is d
    assert s.block_number == 100


def test_unmatched_trailing_swap_is_ignored():
    a = unit_swap(0, in0=1_000, out1=500)
    b = unit_swap(1, in0=300, out1=140)
    c = unit_swap(2, in1=510, out0=1_000)
    d = unit_swap(3, in0=77, out1=33)

    sandwiches = detect_sandwiches([a, b, c, d])

    assert len(sandwiches) == 1
    assert sandwiches[0].frontrun is a
    assert sandwiches[0].lunchmeat == (b,)
    assert sandwiches[0].backrun is c


def test_tolerance_boundary():
    backrun = unit_swap(2, in1=1, out0=10_000)

    assert is_match(unit_swap(0, in0=10_049), backrun)
    assert not is_match(unit_swap(0, in0=10_051), backrun)


def test_tolerance_is_symmetric():
    backrun = unit_swap(2, in1=1, out0=10_049)
    assert is_match(unit_swap(0, in0=10_000), backrun)


def test_match_on_quote_token_only():
    frontrun = unit_swap(0, in1=2_000, out0=5)
    backrun = unit_swap(2, in0=7, out1=2_003)
    assert is_match(frontrun, backrun)


def test_zero_amounts_never_match():
    assert not is_match(unit_swap(0, in0=100), unit_swap(2, out0=0))
    assert not is_match(unit_swap(0, in0=0), unit_swap(2, out0=100))
    assert not is_match(unit_swap(0), unit_swap(2))


def test_different_tokens_never_match():
    other = TokenRef(token_id=99, decimals=0)
    frontrun = unit_swap(0, in0=1_000)
    backrun = make_swap(2, out0=1_000, base=other, quote=UNIT_QUOTE)
    assert not is_match(frontrun, backrun)


def test_adjacent_swaps_are_not_a_sandwich():
    a = unit_swap(0, in0=1_000)
    b = unit_swap(1, out0=1_000)
    c = unit_swap(2, in0=3)
    assert detect_sandwiches([a, b, c]) == []


def test_two_disjoint_sandwiches_in_one_block():
    swaps = [
        unit_swap(0, in0=1_000),
        unit_swap(1, in0=42),
        unit_swap(2, out0=1_000),
        unit_swap(3, in1=5_000),
        unit_swap(4, in0=17),
        unit_swap(5, out1=5_010),
    ]

    sandwiches = detect_sandwiches(swaps)

    assert [(s.frontrun.tx_index, s.backrun.tx_index) for s in sandwiches] == [(0, 2), (3, 5)]
    used = [swap.tx_index for s in sandwiches for swap in s.swaps]
    assert len(used) == len(set(used))


def test_backrun_is_not_reused_as_next_frontrun():
    swaps = [
        unit_swap(0, in0=1_000),
        unit_swap(1, in0=3),
        unit_swap(2, in0=1_000, out0=1_000),
        unit_swap(3, in0=4),
        unit_swap(4, out0=1_000),
    ]

    sandwiches = detect_sandwiches(swaps)

    assert len(sandwiches) == 1
    assert sandwiches[0].backrun.tx_index == 2


def test_fewer_than_three_swaps_rejected():
    with pytest.raises(ValueError):
        detect_sandwiches([unit_swap(0), unit_swap(1)])
