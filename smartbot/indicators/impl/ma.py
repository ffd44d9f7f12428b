from dataclasses import dataclass
from typing import Sequence

import pandas as pd

from ..core.interfaces import validate_ohlcv
from ..core.smoothing import SmoothingMode, check_period, smooth


def sma(values: pd.Series, period: int) -> pd.Series:
    """Rolling simple average; NaN until ``period`` values are available."""
    return smooth(values, period, SmoothingMode.SMA)


@dataclass(frozen=True)
class SMA:
    period: int
    src: str = "close"

    def __post_init__(self) -> None:
        check_period(self.period)

    @property
    def name(self) -> str:
        return f"sma_{self.period}_{self.src}"

    @property
    def lookback(self) -> int:
        return self.period

    @property
    def columns(self) -> Sequence[str]:
        return [self.name]

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        """
        Computes the Simple Moving Average (SMA).

        Args:
            ohlcv: A DataFrame containing OHLCV data.

        Returns:
            A DataFrame with the computed SMA values.
        """
        validate_ohlcv(ohlcv, [self.src])
        return sma(ohlcv[self.src], self.period).to_frame(name=self.name)
