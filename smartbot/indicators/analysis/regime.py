"""Market-regime classification from ADX level, slope and volatility."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np
import pandas as pd

from ..core.smoothing import check_period
from ..impl.adx import adx
from ..impl.atr import atr
from ..impl.ema import ema

log = logging.getLogger(__name__)


class MarketRegime(str, Enum):
    STRONG_TRENDING = "strong_trending"
    WEAK_TRENDING = "weak_trending"
    RANGING = "ranging"
    VOLATILE = "volatile"
    QUIET = "quiet"

    @property
    def is_trending(self) -> bool:
        return self in (MarketRegime.STRONG_TRENDING, MarketRegime.WEAK_TRENDING)


@dataclass(frozen=True)
class RegimeAnalysis:
    """Regime label plus the measurements it was derived from.

    Attributes
    ----------
    confidence : float
        0–1, how far the deciding measurement sits past its threshold.
    volatility_level : float
        ATR as a fraction of the latest close.
    trend_slope : float
        Absolute least-squares slope of recent closes, in percent of their
        mean per bar.
    range_pct : float
        (max - min) / mean of recent closes.
    """

    regime: MarketRegime
    confidence: float
    adx: float
    volatility_level: float
    trend_slope: float
    range_pct: float
    is_trending_up: bool
    is_trending_down: bool
    description: str


def _last(series: pd.Series) -> float:
    value = series.iloc[-1] if len(series) else np.nan
    return float(value) if pd.notna(value) else math.nan


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def slope_percent(close: np.ndarray) -> float:
    """|least-squares slope| / mean, in percent per bar."""
    mean = float(np.mean(close))
    if len(close) < 2 or mean <= 0:
        return 0.0
    x = np.arange(len(close), dtype=np.float64)
    slope = np.polyfit(x, close, 1)[0]
    return abs(float(slope)) / mean * 100.0


def detect_regime(
    high: pd.Series,
    low: pd.Series,
    close: pd.Series,
    lookback: int = 50,
    adx_period: int = 14,
    strong_adx: float = 30.0,
    weak_adx: float = 20.0,
    strong_slope: float = 0.15,
    weak_slope: float = 0.05,
    ranging_width: float = 0.05,
    volatile_atr: float = 0.03,
) -> RegimeAnalysis:
    """Classify the latest bar's regime.

    Checks run in a fixed order: strong trend, weak trend, ranging,
    volatile, quiet.  Fewer than ``lookback + 50`` bars yields QUIET with
    zero confidence.
    """
    check_period(lookback, "lookback")
    check_period(adx_period, "adx_period")

    directional = adx(high, low, close, adx_period)
    adx_now = _last(directional["adx"])
    di_plus = _last(directional["di_plus"])
    di_minus = _last(directional["di_minus"])

    last_close = float(close.iloc[-1]) if len(close) else math.nan
    atr_now = _last(atr(high, low, close, adx_period))
    volatility = atr_now / last_close if last_close > 0 and not math.isnan(atr_now) else 0.0

    if len(close) < lookback + 50:
        return RegimeAnalysis(
            MarketRegime.QUIET, 0.0, 0.0 if math.isnan(adx_now) else adx_now, volatility,
            0.0, 0.0, False, False, "Insufficient data",
        )

    recent = close.to_numpy(dtype=np.float64)[-lookback:]
    slope = slope_percent(recent)
    mean = float(recent.mean())
    range_pct = (float(recent.max()) - float(recent.min())) / mean if mean > 0 else 0.0

    ema20 = _last(ema(close, 20))
    ema50 = _last(ema(close, 50))
    ema200 = _last(ema(close, 200))
    if math.isnan(ema200):
        stacked_up = ema20 > ema50
        stacked_down = ema20 < ema50
    else:
        stacked_up = ema20 > ema50 > ema200
        stacked_down = ema20 < ema50 < ema200
    trending_up = bool(stacked_up and di_plus > di_minus)
    trending_down = bool(stacked_down and di_minus > di_plus)

    if math.isnan(adx_now):
        adx_now = 0.0

    if adx_now > strong_adx and slope > strong_slope:
        regime = MarketRegime.STRONG_TRENDING
        confidence = _clamp01((adx_now - strong_adx) / 20.0)
        description = f"Strong trend: ADX {adx_now:.1f}, slope {slope:.2f}%/bar"
    elif adx_now > weak_adx and slope > weak_slope:
        regime = MarketRegime.WEAK_TRENDING
        confidence = _clamp01((adx_now - weak_adx) / 10.0)
        description = f"Weak trend: ADX {adx_now:.1f}, slope {slope:.2f}%/bar"
    elif adx_now < weak_adx and range_pct < ranging_width:
        regime = MarketRegime.RANGING
        confidence = _clamp01((weak_adx - adx_now) / weak_adx)
        description = f"Ranging: ADX {adx_now:.1f}, range {range_pct:.1%}"
    elif volatility > volatile_atr:
        regime = MarketRegime.VOLATILE
        confidence = _clamp01(volatility / 0.05)
        description = f"Volatile: ATR {volatility:.2%} of price"
    else:
        regime = MarketRegime.QUIET
        confidence = 0.5
        description = "Quiet: no dominant behaviour"

    log.debug("Regime %s (confidence %.2f): %s", regime.value, confidence, description)
    return RegimeAnalysis(
        regime, confidence, adx_now, volatility, slope, range_pct,
        trending_up, trending_down, description,
    )
