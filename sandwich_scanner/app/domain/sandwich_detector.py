from __future__ import annotations

import math
from typing import Sequence

from sandwich_scanner.app.domain.models import DetectedSandwich, Swap

MATCH_TOLERANCE = 1.005
MIN_SWAPS_PER_SANDWICH = 3


def _ratio(numerator: float, denominator: float) -> float | None:
    if denominator == 0:
        return None
    ratio = numerator / denominator
    if not math.isfinite(ratio) or ratio == 0:
        return None
    return ratio


def _within_tolerance(ratio: float | None, tol: float = MATCH_TOLERANCE) -> bool:
    if ratio is None:
        return False
    return 1.0 / tol < ratio < tol


def is_match(frontrun: Swap, backrun: Swap) -> bool:
    """
    True when `backrun` approximately reverses the deposit of `frontrun`.

    Both swaps must belong to the same base / quote tokens, and the frontrun's
    input must match the backrun's output within MATCH_TOLERANCE in at least
    one of the two tokens.
    """
    if frontrun.base.token_id != backrun.base.token_id:
        return False
    if frontrun.quote.token_id != backrun.quote.token_id:
        return False

    base_ratio = _ratio(frontrun.base_in, backrun.base_out)
    if _within_tolerance(base_ratio):
        return True

    quote_ratio = _ratio(frontrun.quote_in, backrun.quote_out)
    return _within_tolerance(quote_ratio)


def detect_sandwiches(swaps: Sequence[Swap]) -> list[DetectedSandwich]:
    """
    Find frontrun / lunchmeat / backrun brackets in one block.

    `swaps` must belong to a single block, sorted by transaction index, and
    hold at least MIN_SWAPS_PER_SANDWICH entries. Once a bracket matches, both
    pointers jump past its backrun, so no swap ends up in two sandwiches.
    """
    n = len(swaps)
    if n < MIN_SWAPS_PER_SANDWICH:
        raise ValueError(f"At least {MIN_SWAPS_PER_SANDWICH} swaps are required, got {n}")

    sandwiches: list[DetectedSandwich] = []

    i = 0
    while i <= n - MIN_SWAPS_PER_SANDWICH:
        j = i + 2
        matched = False
        while j < n:
            if is_match(swaps[i], swaps[j]):
                sandwiches.append(
                    DetectedSandwich(
                        block_number=swaps[i].block_number,
                        frontrun=swaps[i],
                        lunchmeat=tuple(swaps[i + 1 : j]),
                        backrun=swaps[j],
                    )
                )
                i = j + 1
                matched = True
                break
            j += 1

        if not matched:
            i += 1

    return sandwiches
