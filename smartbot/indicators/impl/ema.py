from dataclasses import dataclass
from typing import Sequence

import pandas as pd

from ..core.interfaces import validate_ohlcv
from ..core.smoothing import SmoothingMode, check_period, smooth


def ema(values: pd.Series, period: int, mode: SmoothingMode = SmoothingMode.EMA) -> pd.Series:
    """Exponential average seeded with the SMA of the first ``period`` values.

    ``mode`` selects the recursion factor: ``EMA`` (2 / (p + 1)) or
    ``WILDER`` (1 / p).
    """
    return smooth(values, period, mode)


@dataclass(frozen=True)
class EMA:
    period: int
    src: str = "close"
    mode: SmoothingMode = SmoothingMode.EMA

    def __post_init__(self) -> None:
        check_period(self.period)

    @property
    def name(self) -> str:
        if self.mode is SmoothingMode.EMA:
            return f"ema_{self.period}_{self.src}"
        return f"ema_{self.period}_{self.src}_{self.mode.value}"

    @property
    def lookback(self) -> int:
        return self.period

    @property
    def columns(self) -> Sequence[str]:
        return [self.name]

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv, [self.src])
        return ema(ohlcv[self.src], self.period, self.mode).to_frame(name=self.name)
