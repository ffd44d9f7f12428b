"""Volume-based series: OBV, rolling VWAP and relative volume."""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from ..core.interfaces import validate_ohlcv
from ..core.smoothing import check_period
from .oscillators import typical_price


def obv(close: pd.Series, volume: pd.Series) -> pd.Series:
    """On-balance volume, starting from 0 on the first bar."""
    direction = np.sign(close.astype(np.float64).diff().fillna(0.0))
    return (direction * volume.astype(np.float64)).cumsum()


def vwap(
    high: pd.Series,
    low: pd.Series,
    close: pd.Series,
    volume: pd.Series,
    period: int = 20,
) -> pd.Series:
    """Rolling volume-weighted typical price over ``period`` bars.

    A window with no traded volume falls back to the plain typical price.
    """
    check_period(period)
    tp = typical_price(high, low, close)
    vol = volume.astype(np.float64)
    pv = (tp * vol).rolling(window=period, min_periods=period).sum()
    vv = vol.rolling(window=period, min_periods=period).sum()
    out = pv / vv.where(vv > 0)
    return out.where(vv > 0, tp).where(vv.notna())


def volume_ratio(volume: pd.Series, lookback: int = 20) -> pd.Series:
    """Current volume over the mean of the ``lookback`` bars before it.

    A zero baseline reads 1.0 (no information either way).
    """
    check_period(lookback, "lookback")
    vol = volume.astype(np.float64)
    baseline = vol.shift(1).rolling(window=lookback, min_periods=lookback).mean()
    out = vol / baseline.where(baseline > 0)
    return out.where(baseline > 0, 1.0).where(baseline.notna())


@dataclass(frozen=True)
class OBV:
    @property
    def name(self) -> str:
        return "obv"

    @property
    def lookback(self) -> int:
        return 1

    @property
    def columns(self) -> Sequence[str]:
        return [self.name]

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv, ["close", "volume"])
        return obv(ohlcv["close"], ohlcv["volume"]).to_frame(self.name)


@dataclass(frozen=True)
class VWAP:
    period: int = 20

    def __post_init__(self) -> None:
        check_period(self.period)

    @property
    def name(self) -> str:
        return f"vwap_{self.period}"

    @property
    def lookback(self) -> int:
        return self.period

    @property
    def columns(self) -> Sequence[str]:
        return [self.name]

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv)
        out = vwap(ohlcv["high"], ohlcv["low"], ohlcv["close"], ohlcv["volume"], self.period)
        return out.to_frame(self.name)


@dataclass(frozen=True)
class VolumeRatio:
    lookback_bars: int = 20

    def __post_init__(self) -> None:
        check_period(self.lookback_bars, "lookback_bars")

    @property
    def name(self) -> str:
        return f"volume_ratio_{self.lookback_bars}"

    @property
    def lookback(self) -> int:
        return self.lookback_bars + 1

    @property
    def columns(self) -> Sequence[str]:
        return [self.name]

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv, ["volume"])
        return volume_ratio(ohlcv["volume"], self.lookback_bars).to_frame(self.name)
