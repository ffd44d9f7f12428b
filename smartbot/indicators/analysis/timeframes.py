"""Multi-timeframe trend agreement.

The higher timeframe is approximated by sampling every ``factor``-th close,
anchored on the latest bar so the newest price is always part of it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

import pandas as pd

from ..core.smoothing import check_period
from ..impl.ema import ema


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class TimeframeAlignment:
    current: TrendDirection
    higher: TrendDirection
    aligned: bool
    confidence: float
    current_separation: float = 0.0
    higher_separation: float = 0.0


def trend_direction(close: pd.Series, fast: int = 20, slow: int = 50) -> tuple[TrendDirection, float]:
    """Fast vs slow EMA on the last bar, with their relative separation."""
    f = ema(close, fast)
    s = ema(close, slow)
    if not len(close):
        return TrendDirection.NEUTRAL, 0.0
    fv, sv = float(f.iloc[-1]), float(s.iloc[-1])
    if math.isnan(fv) or math.isnan(sv) or sv <= 0:
        return TrendDirection.NEUTRAL, 0.0
    separation = abs(fv - sv) / sv
    if fv > sv:
        return TrendDirection.UP, separation
    if fv < sv:
        return TrendDirection.DOWN, separation
    return TrendDirection.NEUTRAL, 0.0


def downsample(close: pd.Series, factor: int) -> pd.Series:
    """Every ``factor``-th close, ending on the latest one."""
    check_period(factor, "factor")
    return close.iloc[::-1].iloc[::factor].iloc[::-1].reset_index(drop=True)


def analyze_timeframes(
    close: pd.Series,
    factor: int = 5,
    fast: int = 20,
    slow: int = 50,
    min_bars: int = 100,
) -> TimeframeAlignment:
    """Compare the current trend with the sampled higher-timeframe trend."""
    check_period(factor, "factor")
    if len(close) < min_bars:
        return TimeframeAlignment(TrendDirection.NEUTRAL, TrendDirection.NEUTRAL, False, 0.0)

    current, cur_sep = trend_direction(close, fast, slow)
    higher_close = downsample(close, factor)
    if len(higher_close) < slow:
        higher, htf_sep = TrendDirection.NEUTRAL, 0.0
    else:
        higher, htf_sep = trend_direction(higher_close, fast, slow)

    aligned = current == higher and current is not TrendDirection.NEUTRAL
    confidence = min((cur_sep + htf_sep) * 50.0, 1.0) if aligned else 0.3
    return TimeframeAlignment(current, higher, aligned, confidence, cur_sep, htf_sep)
