"""Dynamic support / resistance from swing points."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from ..core.smoothing import check_period


@dataclass(frozen=True)
class PriceLevel:
    price: float
    touches: int
    strength: float
    is_support: bool  # origin: swing low (True) or swing high (False)


def swing_points(values: np.ndarray, window: int, highs: bool) -> list[float]:
    """Strict local extremes with ``window`` bars on each side, oldest first."""
    out = []
    for i in range(window, len(values) - window):
        left = values[i - window : i]
        right = values[i + 1 : i + window + 1]
        if highs and values[i] > left.max() and values[i] > right.max():
            out.append(float(values[i]))
        elif not highs and values[i] < left.min() and values[i] < right.min():
            out.append(float(values[i]))
    return out


def _cluster(levels: Sequence[PriceLevel], tolerance: float) -> list[PriceLevel]:
    merged: list[PriceLevel] = []
    group: list[PriceLevel] = []
    for level in sorted(levels, key=lambda lv: lv.price):
        if group and abs(level.price - group[0].price) / group[0].price > tolerance:
            merged.append(_merge(group))
            group = []
        group.append(level)
    if group:
        merged.append(_merge(group))
    return merged


def _merge(group: Sequence[PriceLevel]) -> PriceLevel:
    return PriceLevel(
        price=float(np.mean([lv.price for lv in group])),
        touches=sum(lv.touches for lv in group),
        strength=float(np.mean([lv.strength for lv in group])),
        is_support=group[0].is_support,
    )


def find_levels(
    high: pd.Series,
    low: pd.Series,
    close: pd.Series,
    lookback: int = 50,
    tolerance: float = 0.02,
    swing_window: int = 2,
    min_touches: int = 2,
) -> list[PriceLevel]:
    """Support / resistance levels over the last ``lookback`` bars.

    A swing high (low) beats ``swing_window`` bars on each side.  Each
    candidate counts the closes within ``price * tolerance``; candidates
    with fewer than ``min_touches`` are dropped.  Survivors of the same
    origin within ``tolerance`` of each other are merged.  Strongest first.
    """
    check_period(lookback, "lookback")
    check_period(swing_window, "swing_window")
    if len(close) < lookback:
        return []

    h = high.to_numpy(dtype=np.float64)[-lookback:]
    l = low.to_numpy(dtype=np.float64)[-lookback:]
    c = close.to_numpy(dtype=np.float64)[-lookback:]

    def _qualify(prices: Iterable[float], is_support: bool) -> list[PriceLevel]:
        out = []
        for price in prices:
            if price <= 0:
                continue
            touches = int(np.sum(np.abs(c - price) <= price * tolerance))
            if touches >= min_touches:
                out.append(PriceLevel(price, touches, min(touches / 5.0, 1.0), is_support))
        return out

    supports = _cluster(_qualify(swing_points(l, swing_window, highs=False), True), tolerance)
    resistances = _cluster(_qualify(swing_points(h, swing_window, highs=True), False), tolerance)
    return sorted(supports + resistances, key=lambda lv: (-lv.strength, lv.price))


def nearest_support(levels: Iterable[PriceLevel], price: float) -> Optional[PriceLevel]:
    """Closest swing-low level strictly below *price*."""
    below = [lv for lv in levels if lv.is_support and lv.price < price]
    return max(below, key=lambda lv: lv.price) if below else None


def nearest_resistance(levels: Iterable[PriceLevel], price: float) -> Optional[PriceLevel]:
    """Closest swing-high level strictly above *price*."""
    above = [lv for lv in levels if not lv.is_support and lv.price > price]
    return min(above, key=lambda lv: lv.price) if above else None
