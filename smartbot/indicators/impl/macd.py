from dataclasses import dataclass
from typing import Sequence

import pandas as pd

from smartbot.errors import ConfigurationError

from ..core.interfaces import validate_ohlcv
from ..core.smoothing import check_period
from .ema import ema


def macd(close: pd.Series, fast: int = 12, slow: int = 26, signal: int = 9) -> pd.DataFrame:
    """MACD line, signal line and histogram.

    The signal EMA starts at the first defined MACD value, so the signal
    and histogram are available from index ``slow + signal - 2``.
    """
    for what, period in (("fast", fast), ("slow", slow), ("signal", signal)):
        check_period(period, what)
    if fast >= slow:
        raise ConfigurationError(f"fast period ({fast}) must be below slow period ({slow})")

    line = ema(close, fast) - ema(close, slow)
    sig = ema(line, signal)
    return pd.DataFrame({"macd": line, "signal": sig, "hist": line - sig}, index=close.index)


@dataclass(frozen=True)
class MACD:
    fast: int = 12
    slow: int = 26
    signal: int = 9

    def __post_init__(self) -> None:
        for what, period in (("fast", self.fast), ("slow", self.slow), ("signal", self.signal)):
            check_period(period, what)
        if self.fast >= self.slow:
            raise ConfigurationError(
                f"fast period ({self.fast}) must be below slow period ({self.slow})"
            )

    @property
    def name(self) -> str:
        return f"macd_{self.fast}_{self.slow}_{self.signal}"

    @property
    def lookback(self) -> int:
        return self.slow + self.signal - 1

    @property
    def columns(self) -> Sequence[str]:
        return [self.name, f"{self.name}_signal", f"{self.name}_hist"]

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv, ["close"])
        out = macd(ohlcv["close"], self.fast, self.slow, self.signal)
        out.columns = list(self.columns)
        return out
