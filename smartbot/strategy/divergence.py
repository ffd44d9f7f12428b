"""Divergence and regime evaluators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from smartbot.indicators.analysis.timeframes import TrendDirection
from smartbot.indicators.core.interfaces import Indicator
from smartbot.indicators.impl.macd import MACD
from smartbot.indicators.impl.rsi import RSI

from .base import BaseStrategy, StrategyContext
from .signal import Direction, Opinion
from .validators import ValidationResult, validate_divergence


def _first_divergence(close, indicator, **params) -> tuple[Direction, ValidationResult]:
    """Try the bullish then the bearish case; return the accepted one or the last reject."""
    idx = len(close) - 1
    result = ValidationResult.reject("No divergence")
    for direction in (Direction.BUY, Direction.SELL):
        result = validate_divergence(close, indicator, idx, direction, **params)
        if result.accepted:
            return direction, result
    return Direction.HOLD, result


@dataclass(frozen=True)
class MacdDivergenceStrategy(BaseStrategy):
    """New price extreme not confirmed by the MACD histogram."""

    fast: int = 12
    slow: int = 26
    signal: int = 9
    lookback: int = 20
    recent_bars: int = 3
    normalizer: float = 0.002
    _name: str = "macd_divergence"
    _min_bars: int = 50

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (MACD(self.fast, self.slow, self.signal),)

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        hist_col = self.indicators[0].columns[2]
        n = self.lookback + self.recent_bars + 1
        close = ctx.window("close", n)
        # histogram relative to price so the gap is comparable across symbols
        hist = ctx.window(hist_col, n) / close
        direction, result = _first_divergence(
            close, hist, lookback=self.lookback, recent_bars=self.recent_bars,
            normalizer=self.normalizer,
        )
        if not result.accepted:
            return Opinion.hold(result.reason)
        return Opinion(direction, result.confidence, f"MACD histogram: {result.reason}")


@dataclass(frozen=True)
class MomentumDivergenceStrategy(BaseStrategy):
    """RSI divergence from an RSI extreme with the MACD histogram turning.

    A bullish divergence needs RSI below ``buy_rsi_max`` and a rising
    histogram; bearish mirrors with ``sell_rsi_min``.  A histogram
    divergence over the same window adds ``histogram_bonus``.
    """

    rsi_period: int = 14
    lookback: int = 20
    recent_bars: int = 3
    min_rsi_gap: float = 2.0
    rsi_normalizer: float = 20.0
    buy_rsi_max: float = 40.0
    sell_rsi_min: float = 60.0
    histogram_bonus: float = 0.15
    _name: str = "momentum_divergence"
    _min_bars: int = 100

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (RSI(self.rsi_period), MACD())

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        rsi, macd = self.indicators
        n = self.lookback + self.recent_bars + 1
        close = ctx.window("close", n)
        direction, result = _first_divergence(
            close, ctx.window(rsi.name, n), lookback=self.lookback,
            recent_bars=self.recent_bars, min_gap=self.min_rsi_gap,
            normalizer=self.rsi_normalizer,
        )
        if not result.accepted:
            return Opinion.hold(result.reason)

        rsi_now = ctx.value(rsi.name)
        if direction is Direction.BUY and rsi_now >= self.buy_rsi_max:
            return Opinion.hold(f"RSI {rsi_now:.1f} not below {self.buy_rsi_max:g}")
        if direction is Direction.SELL and rsi_now <= self.sell_rsi_min:
            return Opinion.hold(f"RSI {rsi_now:.1f} not above {self.sell_rsi_min:g}")
        hist = ctx.window(macd.columns[2], n)
        if direction.sign * (hist[-1] - hist[-2]) <= 0:
            return Opinion.hold(f"Histogram not turning {'up' if direction is Direction.BUY else 'down'}")

        strength = result.confidence
        reason = f"RSI: {result.reason}"
        confirm = validate_divergence(
            close, hist, len(close) - 1, direction,
            lookback=self.lookback, recent_bars=self.recent_bars,
        )
        if confirm.accepted:
            strength += self.histogram_bonus
            reason += ", histogram confirms"
        return Opinion(direction, strength, reason)


@dataclass(frozen=True)
class MtfAlignmentStrategy(BaseStrategy):
    """Current and higher timeframe trends agree and price is moving with them."""

    momentum_bars: int = 5
    _name: str = "mtf_alignment"
    _min_bars: int = 100

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        tf = ctx.market.timeframes
        if not tf.aligned:
            return Opinion.hold(f"Timeframes disagree ({tf.current.value} vs {tf.higher.value})")
        direction = Direction.BUY if tf.current is TrendDirection.UP else Direction.SELL
        move = ctx.value("close") - ctx.value("close", self.momentum_bars)
        if direction.sign * move <= 0:
            return Opinion.hold("Momentum disagrees with timeframes")
        return Opinion(
            direction, 0.45 + 0.5 * tf.confidence,
            f"Timeframes aligned {tf.current.value}",
        )


@dataclass(frozen=True)
class RegimeMomentumStrategy(BaseStrategy):
    """Follow the regime direction once its confidence clears a floor."""

    min_confidence: float = 0.3
    momentum_bars: int = 5
    _name: str = "regime_momentum"
    _min_bars: int = 100

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        regime = ctx.market.regime
        if not regime.regime.is_trending:
            return Opinion.hold(f"Regime {regime.regime.value} is not trending")
        if regime.confidence <= self.min_confidence:
            return Opinion.hold(f"Regime confidence {regime.confidence:.2f} too low")

        if regime.is_trending_up:
            direction = Direction.BUY
        elif regime.is_trending_down:
            direction = Direction.SELL
        else:
            return Opinion.hold("DI and EMA stack disagree")
        move = ctx.value("close") - ctx.value("close", self.momentum_bars)
        if direction.sign * move <= 0:
            return Opinion.hold("Momentum disagrees with regime")
        return Opinion(
            direction, 0.5 + 0.5 * regime.confidence,
            f"{regime.description}, following {direction.value}",
        )
