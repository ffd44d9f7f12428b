"""Trend-following overlays: Parabolic SAR and Ichimoku lines."""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from smartbot.errors import ConfigurationError

from ..core.interfaces import validate_ohlcv
from ..core.smoothing import check_period


def parabolic_sar(
    high: pd.Series,
    low: pd.Series,
    step: float = 0.02,
    max_step: float = 0.2,
) -> pd.DataFrame:
    """Wilder's Parabolic SAR.

    Returns ``sar`` and ``trend`` (+1 rising, -1 falling).  The first bar is
    NaN; the series starts in an uptrend anchored on the first low.
    """
    if not 0 < step <= max_step:
        raise ConfigurationError(f"SAR step must satisfy 0 < step <= max_step, got {step}")
    h = high.to_numpy(dtype=np.float64)
    l = low.to_numpy(dtype=np.float64)
    n = len(h)
    sar = np.full(n, np.nan, dtype=np.float64)
    trend = np.full(n, np.nan, dtype=np.float64)
    if n < 2:
        return pd.DataFrame({"sar": sar, "trend": trend}, index=high.index)

    rising = True
    value = l[0]
    extreme = h[0]
    af = step

    for i in range(1, n):
        value = value + af * (extreme - value)
        if rising:
            value = min(value, l[i - 1], l[i - 2] if i >= 2 else l[i - 1])
            if l[i] < value:
                rising = False
                value = extreme
                extreme = l[i]
                af = step
            elif h[i] > extreme:
                extreme = h[i]
                af = min(af + step, max_step)
        else:
            value = max(value, h[i - 1], h[i - 2] if i >= 2 else h[i - 1])
            if h[i] > value:
                rising = True
                value = extreme
                extreme = h[i]
                af = step
            elif l[i] < extreme:
                extreme = l[i]
                af = min(af + step, max_step)
        sar[i] = value
        trend[i] = 1.0 if rising else -1.0

    return pd.DataFrame({"sar": sar, "trend": trend}, index=high.index)


def _midpoint(high: pd.Series, low: pd.Series, period: int) -> pd.Series:
    hh = high.astype(np.float64).rolling(window=period, min_periods=period).max()
    ll = low.astype(np.float64).rolling(window=period, min_periods=period).min()
    return (hh + ll) / 2.0


def ichimoku(
    high: pd.Series,
    low: pd.Series,
    tenkan: int = 9,
    kijun: int = 26,
    span_b: int = 52,
) -> pd.DataFrame:
    """Ichimoku conversion / base lines and cloud spans.

    Spans are reported on the bar they are computed from, without the usual
    forward displacement, so the cloud reads as "current" support.
    """
    for what, period in (("tenkan", tenkan), ("kijun", kijun), ("span_b", span_b)):
        check_period(period, what)
    conversion = _midpoint(high, low, tenkan)
    base = _midpoint(high, low, kijun)
    return pd.DataFrame(
        {
            "tenkan": conversion,
            "kijun": base,
            "span_a": (conversion + base) / 2.0,
            "span_b": _midpoint(high, low, span_b),
        },
        index=high.index,
    )


@dataclass(frozen=True)
class ParabolicSAR:
    step: float = 0.02
    max_step: float = 0.2

    def __post_init__(self) -> None:
        if not 0 < self.step <= self.max_step:
            raise ConfigurationError(
                f"SAR step must satisfy 0 < step <= max_step, got {self.step}"
            )

    @property
    def name(self) -> str:
        return f"sar_{self.step:g}_{self.max_step:g}"

    @property
    def lookback(self) -> int:
        return 2

    @property
    def columns(self) -> Sequence[str]:
        return [self.name, f"{self.name}_trend"]

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv, ["high", "low"])
        out = parabolic_sar(ohlcv["high"], ohlcv["low"], self.step, self.max_step)
        out.columns = list(self.columns)
        return out


@dataclass(frozen=True)
class Ichimoku:
    tenkan: int = 9
    kijun: int = 26
    span_b: int = 52

    def __post_init__(self) -> None:
        for what, period in (("tenkan", self.tenkan), ("kijun", self.kijun), ("span_b", self.span_b)):
            check_period(period, what)

    @property
    def name(self) -> str:
        return f"ichimoku_{self.tenkan}_{self.kijun}_{self.span_b}"

    @property
    def lookback(self) -> int:
        return max(self.tenkan, self.kijun, self.span_b)

    @property
    def columns(self) -> Sequence[str]:
        return [f"{self.name}_{part}" for part in ("tenkan", "kijun", "span_a", "span_b")]

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        validate_ohlcv(ohlcv, ["high", "low"])
        out = ichimoku(ohlcv["high"], ohlcv["low"], self.tenkan, self.kijun, self.span_b)
        out.columns = list(self.columns)
        return out
