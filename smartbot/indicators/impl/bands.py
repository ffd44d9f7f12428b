"""Envelope indicators: Bollinger, Keltner and Donchian channels."""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from ..core.interfaces import validate_ohlcv
from ..core.smoothing import check_period
from .atr import atr
from .ema import ema


def _bands(upper: pd.Series, middle: pd.Series, lower: pd.Series) -> pd.DataFrame:
    return pd.DataFrame({"upper": upper, "middle": middle, "lower": lower})


def bollinger(close: pd.Series, period: int = 20, k: float = 2.0) -> pd.DataFrame:
    """Rolling mean ± k population standard deviations."""
    check_period(period)
    values = close.astype(np.float64)
    middle = values.rolling(window=period, min_periods=period).mean()
    std = values.rolling(window=period, min_periods=period).std(ddof=0)
    return _bands(middle + k * std, middle, middle - k * std)


def keltner(
    high: pd.Series,
    low: pd.Series,
    close: pd.Series,
    period: int = 20,
    k: float = 1.5,
    atr_period: int = 10,
) -> pd.DataFrame:
    """EMA of close ± k ATR."""
    check_period(period)
    middle = ema(close, period)
    width = k * atr(high, low, close, atr_period)
    return _bands(middle + width, middle, middle - width)


def donchian(high: pd.Series, low: pd.Series, period: int = 20) -> pd.DataFrame:
    """Highest high / lowest low over ``period`` bars, current bar included."""
    check_period(period)
    upper = high.astype(np.float64).rolling(window=period, min_periods=period).max()
    lower = low.astype(np.float64).rolling(window=period, min_periods=period).min()
    return _bands(upper, (upper + lower) / 2.0, lower)


def _band_columns(prefix: str) -> list[str]:
    return [f"{prefix}_upper", f"{prefix}_middle", f"{prefix}_lower"]


@dataclass(frozen=True)
class BollingerBands:
    period: int = 20
    k: float = 2.0

    def __post_init__(self) -> None:
        check_period(self.period)

    @property
    def name(self) -> str:
        return f"bb_{self.period}_{self.k:g}"

    @property
    def lookback(self) -> int:
        return self.period

    @property
    def columns(self) -> Sequence[str]:
        return _band_columns(self.name)

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv, ["close"])
        out = bollinger(ohlcv["close"], self.period, self.k)
        out.columns = list(self.columns)
        return out


@dataclass(frozen=True)
class KeltnerChannel:
    period: int = 20
    k: float = 1.5
    atr_period: int = 10

    def __post_init__(self) -> None:
        check_period(self.period)
        check_period(self.atr_period, "atr_period")

    @property
    def name(self) -> str:
        return f"kc_{self.period}_{self.k:g}"

    @property
    def lookback(self) -> int:
        return max(self.period, self.atr_period + 1)

    @property
    def columns(self) -> Sequence[str]:
        return _band_columns(self.name)

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv, ["high", "low", "close"])
        out = keltner(
            ohlcv["high"], ohlcv["low"], ohlcv["close"], self.period, self.k, self.atr_period
        )
        out.columns = list(self.columns)
        return out


@dataclass(frozen=True)
class DonchianChannel:
    period: int = 20

    def __post_init__(self) -> None:
        check_period(self.period)

    @property
    def name(self) -> str:
        return f"donchian_{self.period}"

    @property
    def lookback(self) -> int:
        return self.period

    @property
    def columns(self) -> Sequence[str]:
        return _band_columns(self.name)

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv, ["high", "low"])
        out = donchian(ohlcv["high"], ohlcv["low"], self.period)
        out.columns = list(self.columns)
        return out
