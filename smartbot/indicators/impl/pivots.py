from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from ..core.interfaces import validate_ohlcv


def pivot_points(high: pd.Series, low: pd.Series, close: pd.Series) -> pd.DataFrame:
    """Classic floor pivots for each bar, built from the previous bar.

    ``P = (H + L + C) / 3``, ``R1 = 2P - L``, ``S1 = 2P - H``,
    ``R2 = P + (H - L)``, ``S2 = P - (H - L)``.  The first row is NaN.
    """
    h = high.shift(1).astype(np.float64)
    l = low.shift(1).astype(np.float64)
    c = close.shift(1).astype(np.float64)
    pivot = (h + l + c) / 3.0
    return pd.DataFrame(
        {
            "pivot": pivot,
            "r1": 2.0 * pivot - l,
            "s1": 2.0 * pivot - h,
            "r2": pivot + (h - l),
            "s2": pivot - (h - l),
        },
        index=close.index,
    )


@dataclass(frozen=True)
class PivotPoints:
    @property
    def name(self) -> str:
        return "pivot"

    @property
    def lookback(self) -> int:
        return 2

    @property
    def columns(self) -> Sequence[str]:
        return ["pivot", "pivot_r1", "pivot_s1", "pivot_r2", "pivot_s2"]

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv, ["high", "low", "close"])
        out = pivot_points(ohlcv["high"], ohlcv["low"], ohlcv["close"])
        out.columns = list(self.columns)
        return out
