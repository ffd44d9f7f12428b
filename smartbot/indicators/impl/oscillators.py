"""Bounded oscillators: CCI, Stochastic RSI and Money Flow Index."""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from ..core.interfaces import validate_ohlcv
from ..core.smoothing import check_period
from .rsi import rsi

_EPS = 1e-8


def typical_price(high: pd.Series, low: pd.Series, close: pd.Series) -> pd.Series:
    return (high + low + close).astype(np.float64) / 3.0


def cci(high: pd.Series, low: pd.Series, close: pd.Series, period: int = 20) -> pd.Series:
    """Commodity Channel Index.

    A window with (near) zero mean deviation reads 0 rather than ±inf.
    """
    check_period(period)
    tp = typical_price(high, low, close)
    mean = tp.rolling(window=period, min_periods=period).mean()
    mean_dev = tp.rolling(window=period, min_periods=period).apply(
        lambda w: np.mean(np.abs(w - w.mean())), raw=True
    )
    out = (tp - mean) / (0.015 * mean_dev)
    out = out.where(mean_dev > _EPS, 0.0)
    return out.where(mean.notna())


def stoch_rsi(
    close: pd.Series,
    rsi_period: int = 14,
    stoch_period: int = 14,
    smooth_k: int = 3,
    smooth_d: int = 3,
) -> pd.DataFrame:
    """Stochastic RSI rescaled into [0, 1], smoothed twice (K then D).

    A window whose RSI never moves has no defined position; it reads 0.5.
    """
    for what, period in (
        ("rsi_period", rsi_period), ("stoch_period", stoch_period),
        ("smooth_k", smooth_k), ("smooth_d", smooth_d),
    ):
        check_period(period, what)

    r = rsi(close, rsi_period)
    lo = r.rolling(window=stoch_period, min_periods=stoch_period).min()
    hi = r.rolling(window=stoch_period, min_periods=stoch_period).max()
    span = hi - lo
    raw = ((r - lo) / span.where(span > _EPS)).clip(0.0, 1.0)
    raw = raw.where(span > _EPS, 0.5).where(lo.notna())

    k = raw.rolling(window=smooth_k, min_periods=smooth_k).mean()
    d = k.rolling(window=smooth_d, min_periods=smooth_d).mean()
    return pd.DataFrame({"k": k, "d": d}, index=close.index)


def mfi(
    high: pd.Series,
    low: pd.Series,
    close: pd.Series,
    volume: pd.Series,
    period: int = 14,
) -> pd.Series:
    """Money Flow Index; zero negative flow over the window reads 100."""
    check_period(period)
    tp = typical_price(high, low, close)
    flow = tp * volume.astype(np.float64)
    change = tp.diff()
    positive = flow.where(change > 0, 0.0).where(change.notna())
    negative = flow.where(change < 0, 0.0).where(change.notna())
    pos_sum = positive.rolling(window=period, min_periods=period).sum()
    neg_sum = negative.rolling(window=period, min_periods=period).sum()
    ratio = pos_sum / neg_sum.where(neg_sum > 0)
    out = 100.0 - 100.0 / (1.0 + ratio)
    return out.where(neg_sum > 0, 100.0).where(pos_sum.notna())


@dataclass(frozen=True)
class CCI:
    period: int = 20

    def __post_init__(self) -> None:
        check_period(self.period)

    @property
    def name(self) -> str:
        return f"cci_{self.period}"

    @property
    def lookback(self) -> int:
        return self.period

    @property
    def columns(self) -> Sequence[str]:
        return [self.name]

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv, ["high", "low", "close"])
        return cci(ohlcv["high"], ohlcv["low"], ohlcv["close"], self.period).to_frame(self.name)


@dataclass(frozen=True)
class StochRSI:
    rsi_period: int = 14
    stoch_period: int = 14
    smooth_k: int = 3
    smooth_d: int = 3

    def __post_init__(self) -> None:
        for what, period in (
            ("rsi_period", self.rsi_period), ("stoch_period", self.stoch_period),
            ("smooth_k", self.smooth_k), ("smooth_d", self.smooth_d),
        ):
            check_period(period, what)

    @property
    def name(self) -> str:
        return f"stoch_rsi_{self.rsi_period}_{self.stoch_period}"

    @property
    def lookback(self) -> int:
        return self.rsi_period + self.stoch_period + self.smooth_k + self.smooth_d - 2

    @property
    def columns(self) -> Sequence[str]:
        return [f"{self.name}_k", f"{self.name}_d"]

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv, ["close"])
        out = stoch_rsi(
            ohlcv["close"], self.rsi_period, self.stoch_period, self.smooth_k, self.smooth_d
        )
        out.columns = list(self.columns)
        return out


@dataclass(frozen=True)
class MFI:
    period: int = 14

    def __post_init__(self) -> None:
        check_period(self.period)

    @property
    def name(self) -> str:
        return f"mfi_{self.period}"

    @property
    def lookback(self) -> int:
        return self.period + 1

    @property
    def columns(self) -> Sequence[str]:
        return [self.name]

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv)
        out = mfi(ohlcv["high"], ohlcv["low"], ohlcv["close"], ohlcv["volume"], self.period)
        return out.to_frame(self.name)
