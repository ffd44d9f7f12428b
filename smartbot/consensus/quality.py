"""Seven-factor setup quality score.

Each factor awards zero points unless its condition holds for the candidate
direction, then scales toward its full allotment:

========== ====== ==================================================
factor     points qualifies when
========== ====== ==================================================
trend      20     context trend agrees; scaled by strength / 1.5%
momentum   15     last bar moved the right way; scaled by move / 1.5%
volume     15     last bar agrees and ratio > 1.2; full at 2.0
volatility 15     ATR / close strictly inside (0.5%, 4%)
oscillator 12     RSI strictly inside the direction's band
level      12     support (Buy) or resistance (Sell) within 2%
streak     11     3 points per consecutive bar in the direction
========== ====== ==================================================
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd

from smartbot.config import QualityConfig
from smartbot.indicators.impl.rsi import rsi
from smartbot.market.snapshot import MarketSnapshot
from smartbot.strategy.base import consecutive_moves
from smartbot.strategy.signal import Direction

from .models import QualityScore

log = logging.getLogger(__name__)

_LABELS = {
    "trend": "Trend",
    "momentum": "Momentum",
    "volume": "Volume",
    "volatility": "Volatility",
    "oscillator": "Oscillator",
    "level": "Level",
    "streak": "Streak",
}


def _last_rsi(bars: pd.DataFrame, features: Optional[pd.DataFrame], period: int) -> float:
    col = f"rsi_{period}"
    if features is not None and col in features.columns:
        return float(features[col].iloc[-1])
    return float(rsi(bars["close"], period).iloc[-1])


def score_quality(
    bars: pd.DataFrame,
    features: Optional[pd.DataFrame],
    snapshot: MarketSnapshot,
    direction: Optional[Direction],
    config: Optional[QualityConfig] = None,
) -> QualityScore:
    """
    Score how clean the setup is for ``direction`` on the last bar.

    Parameters
    ----------
    bars : pd.DataFrame
        OHLCV history, oldest first.
    features : pd.DataFrame or None
        Feature frame; its ``rsi_<period>`` column is reused when present.
    snapshot : MarketSnapshot
        Market analyses for the last bar.
    direction : Direction or None
        Candidate direction; Hold or None scores zero.
    config : QualityConfig, optional

    Returns
    -------
    QualityScore
    """
    cfg = config or QualityConfig()
    if direction is None or direction is Direction.HOLD:
        return QualityScore.zero(Direction.HOLD, "No candidate direction")
    if len(bars) < cfg.min_bars:
        return QualityScore.zero(direction, f"Insufficient data: need {cfg.min_bars} bars")

    sign = direction.sign
    close = bars["close"].to_numpy(dtype=np.float64)
    volume = bars["volume"].to_numpy(dtype=np.float64)
    price, prev = close[-1], close[-2]
    move = sign * (price - prev) / prev

    factors: dict[str, float] = {}

    # ── trend alignment ──
    context = snapshot.context
    agrees = context.is_uptrend if sign > 0 else context.is_downtrend
    factors["trend"] = (
        cfg.trend_points * min(context.trend_strength / cfg.trend_full_strength, 1.0)
        if agrees else 0.0
    )

    # ── momentum ──
    factors["momentum"] = (
        cfg.momentum_points * min(move / cfg.momentum_full_move, 1.0) if move > 0 else 0.0
    )

    # ── volume ──
    baseline = float(volume[-cfg.volume_lookback - 1 : -1].mean())
    ratio = volume[-1] / baseline if baseline > 0 else 1.0
    if move > 0 and ratio > cfg.volume_min_ratio:
        factors["volume"] = cfg.volume_points * min(ratio / cfg.volume_full_ratio, 1.0)
    else:
        factors["volume"] = 0.0

    # ── volatility ──
    vol_level = snapshot.volatility_level
    factors["volatility"] = (
        cfg.volatility_points if cfg.volatility_low < vol_level < cfg.volatility_high else 0.0
    )

    # ── oscillator ──
    rsi_now = _last_rsi(bars, features, cfg.rsi_period)
    low, high = (
        (cfg.buy_rsi_low, cfg.buy_rsi_high) if sign > 0 else (cfg.sell_rsi_low, cfg.sell_rsi_high)
    )
    factors["oscillator"] = (
        cfg.oscillator_points if not math.isnan(rsi_now) and low < rsi_now < high else 0.0
    )

    # ── level proximity ──
    level = snapshot.support_below() if sign > 0 else snapshot.resistance_above()
    if level is not None and abs(price - level.price) / price <= cfg.level_proximity:
        factors["level"] = cfg.level_points * level.strength
    else:
        factors["level"] = 0.0

    # ── streak ──
    run = consecutive_moves(close[-cfg.streak_lookback - 1 :], sign, cfg.streak_lookback)
    factors["streak"] = min(run * cfg.streak_points_per_bar, cfg.streak_points)

    total = sum(factors.values())
    score = max(0.0, min(1.0, total / cfg.max_points))
    breakdown = " | ".join(f"{_LABELS[k]}:{v:.1f}" for k, v in factors.items())
    breakdown += f" | TOTAL:{total:.1f}/{cfg.max_points:g}"
    log.debug("Quality %s %.3f  %s", direction.value, score, breakdown)
    return QualityScore(direction, score, factors, breakdown)
