"""Compact market context at one bar index."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
import pandas as pd

from smartbot.indicators.impl.ema import ema

MIN_CONTEXT_BARS = 50


@dataclass(frozen=True)
class MarketContext:
    """Value snapshot consumed by strategies and the quality score.

    Attributes
    ----------
    recent_volatility, medium_volatility : float
        Standard deviation of close-to-close returns over 10 / 30 bars.
    volatility_ratio : float
        recent / medium; 1.0 when the medium window is flat.
    recent_range : float
        (max - min) of the last 10 closes over the current close.
    trend_strength : float
        |EMA20 - EMA50| / EMA50.
    """

    recent_volatility: float
    medium_volatility: float
    volatility_ratio: float
    recent_range: float
    is_uptrend: bool
    is_downtrend: bool
    is_sideways: bool
    trend_strength: float

    @classmethod
    def neutral(cls) -> MarketContext:
        return cls(0.0, 0.0, 1.0, 0.0, False, False, True, 0.0)


def _std(values: np.ndarray) -> float:
    return float(np.std(values)) if len(values) > 1 else 0.0


def analyze_market_context(close: pd.Series, idx: int = -1) -> MarketContext:
    """Build the context for bar *idx* from closes up to and including it."""
    if idx < 0:
        idx += len(close)
    if idx < 0 or idx + 1 < MIN_CONTEXT_BARS:
        return MarketContext.neutral()

    window = close.iloc[: idx + 1]
    values = window.to_numpy(dtype=np.float64)
    price = values[-1]
    returns = np.diff(values) / values[:-1]

    recent_vol = _std(returns[-10:])
    medium_vol = _std(returns[-30:])
    ratio = recent_vol / medium_vol if medium_vol > 0 else 1.0

    last10 = values[-10:]
    recent_range = (last10.max() - last10.min()) / price if price > 0 else 0.0

    fast = float(ema(window, 20).iloc[-1])
    slow = float(ema(window, 50).iloc[-1])
    if math.isnan(fast) or math.isnan(slow) or slow <= 0:
        return MarketContext(recent_vol, medium_vol, ratio, recent_range, False, False, True, 0.0)

    up = bool(price > fast > slow)
    down = bool(price < fast < slow)
    return MarketContext(
        recent_volatility=recent_vol,
        medium_volatility=medium_vol,
        volatility_ratio=ratio,
        recent_range=float(recent_range),
        is_uptrend=up,
        is_downtrend=down,
        is_sideways=not (up or down),
        trend_strength=abs(fast - slow) / slow,
    )
