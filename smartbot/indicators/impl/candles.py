"""Candlestick pattern flags.

``candle_flags`` marks every bar vectorised; ``recognize_patterns`` reads
the flags at one bar and attaches a direction and strength to each hit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from ..core.interfaces import validate_ohlcv

# name -> (bullish, strength); None marks an indecision pattern
PATTERNS: dict[str, tuple[Optional[bool], float]] = {
    "hammer": (True, 0.7),
    "hanging_man": (False, 0.7),
    "bullish_engulfing": (True, 0.8),
    "bearish_engulfing": (False, 0.8),
    "doji": (None, 0.6),
    "morning_star": (True, 0.85),
    "evening_star": (False, 0.85),
}


@dataclass(frozen=True)
class CandlePattern:
    name: str
    bullish: Optional[bool]
    strength: float


def candle_flags(
    open_: pd.Series,
    high: pd.Series,
    low: pd.Series,
    close: pd.Series,
    trend_bars: int = 5,
) -> pd.DataFrame:
    """Boolean pattern columns aligned with the bars."""
    o = open_.astype(np.float64)
    h = high.astype(np.float64)
    l = low.astype(np.float64)
    c = close.astype(np.float64)

    body = (c - o).abs()
    rng = h - l
    upper_shadow = h - np.maximum(o, c)
    lower_shadow = np.minimum(o, c) - l

    prior_close = c.shift(1)
    prior_open = o.shift(1)
    prior_body = body.shift(1)
    prior_bull = prior_close > prior_open
    prior_bear = prior_close < prior_open
    bull = c > o
    bear = c < o

    after_decline = prior_close < c.shift(trend_bars)
    after_advance = prior_close > c.shift(trend_bars)
    long_lower = (body > 0) & (lower_shadow > 2.0 * body) & (upper_shadow < 0.3 * body)

    engulf_size = body > 1.5 * prior_body
    bullish_engulfing = prior_bear & bull & (o <= prior_close) & (c >= prior_open) & engulf_size
    bearish_engulfing = prior_bull & bear & (o >= prior_close) & (c <= prior_open) & engulf_size

    # Three-bar stars: large body, small body, close beyond the first body's midpoint
    first_body = body.shift(2)
    first_mid = (o.shift(2) + c.shift(2)) / 2.0
    first_large = first_body > 0.6 * rng.shift(2)
    middle_small = body.shift(1) < 0.3 * first_body
    first_bear = c.shift(2) < o.shift(2)
    first_bull = c.shift(2) > o.shift(2)
    morning_star = first_bear & first_large & middle_small & bull & (c > first_mid)
    evening_star = first_bull & first_large & middle_small & bear & (c < first_mid)

    flags = pd.DataFrame(
        {
            "hammer": long_lower & after_decline,
            "hanging_man": long_lower & after_advance,
            "bullish_engulfing": bullish_engulfing,
            "bearish_engulfing": bearish_engulfing,
            "doji": (rng > 0) & (body < 0.1 * rng),
            "morning_star": morning_star,
            "evening_star": evening_star,
        },
        index=close.index,
    )
    return flags.astype(bool)


def recognize_patterns(bars: pd.DataFrame, idx: int = -1) -> list[CandlePattern]:
    """Patterns present on bar *idx*, strongest first."""
    validate_ohlcv(bars, ["open", "high", "low", "close"])
    if len(bars) < 3:
        return []
    flags = candle_flags(bars["open"], bars["high"], bars["low"], bars["close"])
    row = flags.iloc[idx]
    found = [
        CandlePattern(name, *PATTERNS[name]) for name in flags.columns if bool(row[name])
    ]
    return sorted(found, key=lambda p: p.strength, reverse=True)


@dataclass(frozen=True)
class CandleFlags:
    trend_bars: int = 5

    @property
    def name(self) -> str:
        return "candle"

    @property
    def lookback(self) -> int:
        return self.trend_bars + 1

    @property
    def columns(self) -> Sequence[str]:
        return [f"candle_{name}" for name in PATTERNS]

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv, ["open", "high", "low", "close"])
        out = candle_flags(
            ohlcv["open"], ohlcv["high"], ohlcv["low"], ohlcv["close"], self.trend_bars
        ).astype(np.float64)
        out.columns = list(self.columns)
        return out
