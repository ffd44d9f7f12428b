from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from ..core.interfaces import validate_ohlcv
from ..core.smoothing import SmoothingMode, alpha_for, check_period, seeded_recursion


def true_range(high: pd.Series, low: pd.Series, close: pd.Series) -> pd.Series:
    """True range; NaN on the first bar, which has no previous close."""
    prev_close = close.shift(1)
    tr = pd.concat(
        [high - low, (high - prev_close).abs(), (low - prev_close).abs()], axis=1
    ).max(axis=1, skipna=False)
    return tr.astype(np.float64)


def atr(
    high: pd.Series,
    low: pd.Series,
    close: pd.Series,
    period: int = 14,
    mode: SmoothingMode = SmoothingMode.WILDER,
) -> pd.Series:
    """Average true range.

    The first value sits at index ``period`` and is the mean of the first
    ``period`` true ranges; Wilder's recursion follows.
    """
    check_period(period)
    tr = true_range(high, low, close)
    mode = SmoothingMode(mode)
    if mode is SmoothingMode.SMA:
        return tr.rolling(window=period, min_periods=period).mean()
    out = seeded_recursion(tr.to_numpy(), period, alpha_for(period, mode))
    return pd.Series(out, index=close.index)


@dataclass(frozen=True)
class ATR:
    period: int = 14
    mode: SmoothingMode = SmoothingMode.WILDER

    def __post_init__(self) -> None:
        check_period(self.period)

    @property
    def name(self) -> str:
        return f"atr_{self.period}"

    @property
    def lookback(self) -> int:
        return self.period + 1

    @property
    def columns(self) -> Sequence[str]:
        return [self.name]

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv, ["high", "low", "close"])
        out = atr(ohlcv["high"], ohlcv["low"], ohlcv["close"], self.period, self.mode)
        return out.to_frame(name=self.name)
