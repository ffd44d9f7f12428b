from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from ..core.interfaces import validate_ohlcv
from ..core.smoothing import check_period


def adx(high: pd.Series, low: pd.Series, close: pd.Series, period: int = 14) -> pd.DataFrame:
    """ADX with its directional components.

    Returns a frame with ``adx``, ``di_plus`` and ``di_minus``.  DI values
    start at index ``period``; the first ADX (mean of the first ``period``
    DX values) sits at index ``2 * period - 1``.
    """
    check_period(period)
    h = high.to_numpy(dtype=np.float64)
    l = low.to_numpy(dtype=np.float64)
    c = close.to_numpy(dtype=np.float64)
    n = len(c)
    p = period

    # True Range, +DM, -DM
    tr = np.full(n, np.nan, dtype=np.float64)
    plus_dm = np.full(n, np.nan, dtype=np.float64)
    minus_dm = np.full(n, np.nan, dtype=np.float64)

    for i in range(1, n):
        up_move = h[i] - h[i - 1]
        down_move = l[i - 1] - l[i]
        tr[i] = max(h[i] - l[i], abs(h[i] - c[i - 1]), abs(l[i] - c[i - 1]))
        plus_dm[i] = up_move if (up_move > down_move and up_move > 0) else 0.0
        minus_dm[i] = down_move if (down_move > up_move and down_move > 0) else 0.0

    # Wilder running sums of TR, +DM, -DM (first = sum over indices 1..p)
    smoothed_tr = np.full(n, np.nan, dtype=np.float64)
    smoothed_plus = np.full(n, np.nan, dtype=np.float64)
    smoothed_minus = np.full(n, np.nan, dtype=np.float64)

    if n > p:
        smoothed_tr[p] = np.sum(tr[1 : p + 1])
        smoothed_plus[p] = np.sum(plus_dm[1 : p + 1])
        smoothed_minus[p] = np.sum(minus_dm[1 : p + 1])

        for i in range(p + 1, n):
            smoothed_tr[i] = smoothed_tr[i - 1] - smoothed_tr[i - 1] / p + tr[i]
            smoothed_plus[i] = smoothed_plus[i - 1] - smoothed_plus[i - 1] / p + plus_dm[i]
            smoothed_minus[i] = smoothed_minus[i - 1] - smoothed_minus[i - 1] / p + minus_dm[i]

    # +DI, -DI, DX
    plus_di = np.full(n, np.nan, dtype=np.float64)
    minus_di = np.full(n, np.nan, dtype=np.float64)
    dx = np.full(n, np.nan, dtype=np.float64)

    for i in range(p, n):
        if smoothed_tr[i] == 0:
            # Flat market: no directional movement at all
            plus_di[i] = 0.0
            minus_di[i] = 0.0
            dx[i] = 0.0
            continue
        plus_di[i] = 100.0 * smoothed_plus[i] / smoothed_tr[i]
        minus_di[i] = 100.0 * smoothed_minus[i] / smoothed_tr[i]
        di_sum = plus_di[i] + minus_di[i]
        dx[i] = 100.0 * abs(plus_di[i] - minus_di[i]) / di_sum if di_sum != 0 else 0.0

    # Wilder's smoothed ADX
    out = np.full(n, np.nan, dtype=np.float64)
    first_adx_idx = 2 * p - 1

    if n > first_adx_idx:
        out[first_adx_idx] = np.mean(dx[p : 2 * p])
        for i in range(first_adx_idx + 1, n):
            out[i] = (out[i - 1] * (p - 1) + dx[i]) / p

    return pd.DataFrame(
        {"adx": out, "di_plus": plus_di, "di_minus": minus_di}, index=close.index
    )


@dataclass(frozen=True)
class ADX:
    period: int = 14

    def __post_init__(self) -> None:
        check_period(self.period)

    @property
    def name(self) -> str:
        return f"adx_{self.period}"

    @property
    def lookback(self) -> int:
        return 2 * self.period

    @property
    def columns(self) -> Sequence[str]:
        return [self.name, f"di_plus_{self.period}", f"di_minus_{self.period}"]

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv, ["high", "low", "close"])
        out = adx(ohlcv["high"], ohlcv["low"], ohlcv["close"], self.period)
        out.columns = list(self.columns)
        return out
