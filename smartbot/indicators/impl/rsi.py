from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from ..core.interfaces import validate_ohlcv
from ..core.smoothing import check_period


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0.0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi(close: pd.Series, period: int = 14) -> pd.Series:
    """Wilder RSI.

    The first value sits at index ``period`` and uses the plain average of
    the first ``period`` gains / losses; later values use Wilder's recursion.
    A zero average loss yields 100, so the result is always within [0, 100].
    """
    check_period(period)
    values = close.to_numpy(dtype=np.float64)
    n = len(values)
    out = np.full(n, np.nan, dtype=np.float64)
    if n <= period:
        return pd.Series(out, index=close.index)

    change = np.diff(values)
    gains = np.where(change > 0, change, 0.0)
    losses = np.where(change < 0, -change, 0.0)

    avg_gain = float(gains[:period].mean())
    avg_loss = float(losses[:period].mean())
    out[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period + 1, n):
        avg_gain = (avg_gain * (period - 1) + gains[i - 1]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i - 1]) / period
        out[i] = _rsi_value(avg_gain, avg_loss)

    return pd.Series(out, index=close.index)


@dataclass(frozen=True)
class RSI:
    period: int = 14
    src: str = "close"

    def __post_init__(self) -> None:
        check_period(self.period)

    @property
    def name(self) -> str:
        return f"rsi_{self.period}"

    @property
    def lookback(self) -> int:
        return self.period + 1

    @property
    def columns(self) -> Sequence[str]:
        return [self.name]

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv, [self.src])
        return rsi(ohlcv[self.src], self.period).to_frame(name=self.name)
