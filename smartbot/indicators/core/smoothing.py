"""Canonical smoothing recursions shared by every indicator.

All exponential-family smoothers seed with the simple average of the first
``period`` valid values and recurse from there, so EMA, Wilder RSI, ATR and
ADX agree bar-for-bar with their textbook definitions.
"""

from __future__ import annotations

from enum import Enum
from numbers import Integral

import numpy as np
import pandas as pd

from smartbot.errors import ConfigurationError


class SmoothingMode(str, Enum):
    """Smoothing variant selector."""

    SMA = "sma"
    EMA = "ema"        # alpha = 2 / (p + 1)
    WILDER = "wilder"  # alpha = 1 / p


def check_period(period: int, what: str = "period") -> None:
    """Raise ``ConfigurationError`` unless *period* is a positive integer."""
    if isinstance(period, bool) or not isinstance(period, Integral) or period <= 0:
        raise ConfigurationError(f"{what} must be a positive integer, got {period!r}")


def alpha_for(period: int, mode: SmoothingMode) -> float:
    if mode is SmoothingMode.EMA:
        return 2.0 / (period + 1)
    if mode is SmoothingMode.WILDER:
        return 1.0 / period
    raise ConfigurationError(f"{mode} has no recursion factor")


def seeded_recursion(values: np.ndarray, period: int, alpha: float) -> np.ndarray:
    """Average-seeded exponential recursion over a float array.

    Leading NaNs are skipped.  The seed (mean of the first ``period`` valid
    values) lands on the last of them; every earlier position stays NaN.
    A NaN inside the recursion repeats the previous smoothed value.
    """
    values = np.asarray(values, dtype=np.float64)
    n = len(values)
    out = np.full(n, np.nan, dtype=np.float64)

    valid = np.flatnonzero(~np.isnan(values))
    if len(valid) == 0:
        return out
    start = int(valid[0])
    seed_idx = start + period - 1
    if seed_idx >= n:
        return out

    window = values[start : seed_idx + 1]
    if np.isnan(window).any():
        return out

    prev = float(window.mean())
    out[seed_idx] = prev
    for i in range(seed_idx + 1, n):
        v = values[i]
        if not np.isnan(v):
            prev = prev + alpha * (v - prev)
        out[i] = prev
    return out


def smooth(values: pd.Series, period: int, mode: SmoothingMode = SmoothingMode.EMA) -> pd.Series:
    """Smooth *values* with the selected mode, returning a Series on the same index."""
    check_period(period)
    mode = SmoothingMode(mode)
    if mode is SmoothingMode.SMA:
        return values.astype(np.float64).rolling(window=period, min_periods=period).mean()
    out = seeded_recursion(values.to_numpy(dtype=np.float64), period, alpha_for(period, mode))
    return pd.Series(out, index=values.index)
