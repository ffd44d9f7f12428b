"""Per-cycle bundle of every market read the strategies share."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

from smartbot.config import AnalysisConfig
from smartbot.indicators.analysis.levels import (
    PriceLevel,
    find_levels,
    nearest_resistance,
    nearest_support,
)
from smartbot.indicators.analysis.regime import RegimeAnalysis, detect_regime
from smartbot.indicators.analysis.timeframes import TimeframeAlignment, analyze_timeframes
from smartbot.indicators.analysis.volume import VolumeAnalysis, analyze_volume
from smartbot.indicators.impl.atr import atr
from smartbot.indicators.impl.candles import CandlePattern, recognize_patterns

from .context import MarketContext, analyze_market_context

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarketSnapshot:
    """Read-only market state for the latest bar of one symbol."""

    close: float
    atr: float
    context: MarketContext
    regime: RegimeAnalysis
    timeframes: TimeframeAlignment
    volume: VolumeAnalysis
    levels: tuple[PriceLevel, ...] = ()
    patterns: tuple[CandlePattern, ...] = field(default_factory=tuple)

    @property
    def volatility_level(self) -> float:
        """ATR as a fraction of the close; 0.0 while ATR is warming up."""
        if math.isnan(self.atr) or self.close <= 0:
            return 0.0
        return self.atr / self.close

    def support_below(self) -> Optional[PriceLevel]:
        return nearest_support(self.levels, self.close)

    def resistance_above(self) -> Optional[PriceLevel]:
        return nearest_resistance(self.levels, self.close)


def build_snapshot(bars: pd.DataFrame, cfg: Optional[AnalysisConfig] = None) -> MarketSnapshot:
    """Run every composite analysis once on *bars* (oldest to newest)."""
    cfg = cfg or AnalysisConfig()
    high, low, close = bars["high"], bars["low"], bars["close"]

    atr_series = atr(high, low, close, cfg.atr_period)
    snapshot = MarketSnapshot(
        close=float(close.iloc[-1]),
        atr=float(atr_series.iloc[-1]),
        context=analyze_market_context(close),
        regime=detect_regime(high, low, close, lookback=cfg.regime_lookback, adx_period=cfg.atr_period),
        timeframes=analyze_timeframes(close, factor=cfg.timeframe_factor),
        volume=analyze_volume(close, bars["volume"], lookback=cfg.volume_lookback),
        levels=tuple(find_levels(high, low, close, cfg.level_lookback, cfg.level_tolerance)),
        patterns=tuple(recognize_patterns(bars)),
    )
    log.debug(
        "Snapshot: regime=%s mtf_aligned=%s levels=%d patterns=%s",
        snapshot.regime.regime.value, snapshot.timeframes.aligned,
        len(snapshot.levels), [p.name for p in snapshot.patterns],
    )
    return snapshot
