"""Crossover and trend-following evaluators."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from smartbot.errors import ConfigurationError
from smartbot.indicators.analysis.levels import swing_points
from smartbot.indicators.analysis.timeframes import TrendDirection
from smartbot.indicators.core.interfaces import Indicator
from smartbot.indicators.impl.adx import ADX
from smartbot.indicators.impl.ema import EMA
from smartbot.indicators.impl.rsi import RSI
from smartbot.indicators.impl.trend import Ichimoku, ParabolicSAR

from .base import BaseStrategy, StrategyContext, rsi_in_band
from .signal import Direction, Opinion
from .validators import validate_adx_trend, validate_crossover


def _check_order(fast: int, slow: int, what: str = "period") -> None:
    if fast >= slow:
        raise ConfigurationError(f"fast {what} ({fast}) must be below slow {what} ({slow})")


@dataclass(frozen=True)
class EmaRsiStrategy(BaseStrategy):
    """EMA crossover on this bar, with RSI outside the exhausted zone."""

    fast_period: int = 9
    slow_period: int = 21
    rsi_period: int = 14
    rsi_floor: float = 40.0
    rsi_ceiling: float = 70.0
    min_separation: float = 0.001
    momentum_bars: int = 3
    _name: str = "ema_rsi"
    _min_bars: int = 30

    def __post_init__(self) -> None:
        _check_order(self.fast_period, self.slow_period)

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (EMA(self.fast_period), EMA(self.slow_period), RSI(self.rsi_period))

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        fast, slow, rsi = self.indicators
        n = self.momentum_bars + 2
        f, s, c = ctx.window(fast.name, n), ctx.window(slow.name, n), ctx.window("close", n)
        rsi_now = ctx.value(rsi.name)

        for direction in (Direction.BUY, Direction.SELL):
            result = validate_crossover(
                f, s, c, len(c) - 1, direction, self.min_separation, self.momentum_bars
            )
            if not result.accepted:
                continue
            if not rsi_in_band(rsi_now, direction, self.rsi_floor, self.rsi_ceiling):
                return Opinion.hold(f"RSI {rsi_now:.1f} outside {direction.value} band")
            return result.to_opinion(direction)
        return Opinion.hold("No confirmed EMA crossover")


@dataclass(frozen=True)
class AdxTrendStrategy(BaseStrategy):
    """Strong, rising ADX with the leading DI line also rising."""

    adx_period: int = 14
    threshold: float = 25.0
    min_di_gap: float = 10.0
    min_range: float = 0.01
    range_bars: int = 10
    momentum_bars: int = 3
    _name: str = "adx_trend"
    _min_bars: int = 50

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (ADX(self.adx_period),)

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        adx_col, plus_col, minus_col = self.indicators[0].columns
        n = self.momentum_bars + 2
        adx = ctx.window(adx_col, n)
        plus, minus = ctx.window(plus_col, n), ctx.window(minus_col, n)
        close = ctx.window("close", n)
        idx = len(close) - 1

        if plus[idx] > minus[idx]:
            direction, leading = Direction.BUY, plus
        elif minus[idx] > plus[idx]:
            direction, leading = Direction.SELL, minus
        else:
            return Opinion.hold("DI lines level")

        result = validate_adx_trend(
            adx, plus, minus, close, idx, direction,
            self.threshold, self.min_di_gap, self.momentum_bars,
        )
        if not result.accepted:
            return Opinion.hold(result.reason)
        if leading[idx] <= leading[idx - 1]:
            return Opinion.hold("Leading DI not rising")

        recent = ctx.window("close", self.range_bars)
        price_range = (recent.max() - recent.min()) / recent[-1]
        if price_range < self.min_range:
            return Opinion.hold(f"Recent range {price_range:.2%} too narrow")
        return result.to_opinion(direction)


@dataclass(frozen=True)
class TripleEmaStrategy(BaseStrategy):
    """Fast > mid > slow EMA stack (or the mirror) with minimum gaps.

    A stack that formed on this bar scores higher than one that was
    already in place.
    """

    fast_period: int = 8
    mid_period: int = 21
    slow_period: int = 50
    min_gap: float = 0.002
    momentum_bars: int = 3
    normalizer: float = 0.02
    _name: str = "triple_ema"
    _min_bars: int = 55

    def __post_init__(self) -> None:
        _check_order(self.fast_period, self.mid_period)
        _check_order(self.mid_period, self.slow_period)

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (EMA(self.fast_period), EMA(self.mid_period), EMA(self.slow_period))

    def _aligned(self, f: float, m: float, s: float, sign: int) -> bool:
        return sign * (f - m) / m > self.min_gap and sign * (m - s) / s > self.min_gap

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        fast, mid, slow = (ind.name for ind in self.indicators)
        f = (ctx.value(fast), ctx.value(fast, 1))
        m = (ctx.value(mid), ctx.value(mid, 1))
        s = (ctx.value(slow), ctx.value(slow, 1))
        move = ctx.value("close") - ctx.value("close", self.momentum_bars)

        for direction in (Direction.BUY, Direction.SELL):
            sign = direction.sign
            if not self._aligned(f[0], m[0], s[0], sign):
                continue
            if sign * move <= 0:
                return Opinion.hold("Momentum disagrees with EMA stack")
            separation = sign * (f[0] - s[0]) / s[0]
            fresh = not self._aligned(f[1], m[1], s[1], sign)
            base = 0.6 if fresh else 0.45
            kind = "Fresh" if fresh else "Sustained"
            return Opinion(
                direction, base + separation / self.normalizer,
                f"{kind} EMA stack, spread {separation:.2%}",
            )
        return Opinion.hold("EMAs not aligned")


@dataclass(frozen=True)
class Ema200RegimeStrategy(BaseStrategy):
    """Close clearly on the trending side of a sloping long EMA."""

    period: int = 200
    slope_bars: int = 5
    min_distance: float = 0.01
    _name: str = "ema200_regime"
    _min_bars: int = 210

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (EMA(self.period),)

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        col = self.indicators[0].name
        now, then = ctx.value(col), ctx.value(col, self.slope_bars)
        distance = (ctx.value("close") - now) / now

        if distance > self.min_distance and now > then:
            direction = Direction.BUY
        elif distance < -self.min_distance and now < then:
            direction = Direction.SELL
        else:
            return Opinion.hold(f"Close {distance:+.2%} from EMA{self.period}, no regime")
        excess = abs(distance) - self.min_distance
        return Opinion(
            direction, 0.6 + excess * 10.0,
            f"Close {distance:+.2%} from {'rising' if now > then else 'falling'} EMA{self.period}",
        )


@dataclass(frozen=True)
class TrendFollowingMtfStrategy(BaseStrategy):
    """Trending regime confirmed on the higher timeframe and by the EMA stack.

    A pullback to the fast EMA earns a bonus.
    """

    fast_period: int = 20
    slow_period: int = 50
    rsi_period: int = 14
    rsi_floor: float = 40.0
    rsi_ceiling: float = 70.0
    pullback: float = 0.01
    pullback_bonus: float = 0.1
    _name: str = "trend_following_mtf"
    _min_bars: int = 200

    def __post_init__(self) -> None:
        _check_order(self.fast_period, self.slow_period)

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (EMA(self.fast_period), EMA(self.slow_period), RSI(self.rsi_period))

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        regime, tf = ctx.market.regime, ctx.market.timeframes
        if not regime.regime.is_trending:
            return Opinion.hold(f"Regime {regime.regime.value} is not trending")
        if not tf.aligned:
            return Opinion.hold("Timeframes not aligned")

        direction = Direction.BUY if tf.current is TrendDirection.UP else Direction.SELL
        sign = direction.sign
        fast, slow, rsi = (ind.name for ind in self.indicators)
        close, f, s = ctx.value("close"), ctx.value(fast), ctx.value(slow)
        if not (sign * (close - f) > 0 and sign * (f - s) > 0):
            return Opinion.hold("Price and EMAs not stacked with the trend")

        rsi_now = ctx.value(rsi)
        if not rsi_in_band(rsi_now, direction, self.rsi_floor, self.rsi_ceiling):
            return Opinion.hold(f"RSI {rsi_now:.1f} outside {direction.value} band")

        strength = 0.5 + 0.25 * regime.confidence + 0.25 * tf.confidence
        reason = f"{regime.regime.value} trend aligned across timeframes"
        if abs(close - f) / f <= self.pullback:
            strength += self.pullback_bonus
            reason += ", pullback to EMA"
        return Opinion(direction, strength, reason)


@dataclass(frozen=True)
class IchimokuStrategy(BaseStrategy):
    """Close outside the cloud with Tenkan/Kijun ordered the same way."""

    tenkan: int = 9
    kijun: int = 26
    span_b: int = 52
    normalizer: float = 0.04
    _name: str = "ichimoku"
    _min_bars: int = 60

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (Ichimoku(self.tenkan, self.kijun, self.span_b),)

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        tenkan, kijun, span_a, span_b = (ctx.value(c) for c in self.indicators[0].columns)
        close = ctx.value("close")
        top, bottom = max(span_a, span_b), min(span_a, span_b)

        if close > top:
            direction, distance = Direction.BUY, (close - top) / close
        elif close < bottom:
            direction, distance = Direction.SELL, (bottom - close) / close
        else:
            return Opinion.hold("Price inside the cloud")
        if direction.sign * (tenkan - kijun) <= 0:
            return Opinion.hold("Tenkan/Kijun disagree with cloud break")
        return Opinion(
            direction, 0.5 + distance / self.normalizer,
            f"Close {distance:.2%} {'above' if direction is Direction.BUY else 'below'} cloud",
        )


@dataclass(frozen=True)
class ParabolicSarStrategy(BaseStrategy):
    """SAR flipping sides on this bar, with the close moving the same way."""

    step: float = 0.02
    max_step: float = 0.2
    normalizer: float = 0.02
    _name: str = "parabolic_sar"
    _min_bars: int = 20

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (ParabolicSAR(self.step, self.max_step),)

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        sar_col, trend_col = self.indicators[0].columns
        trend_now, trend_prev = ctx.value(trend_col), ctx.value(trend_col, 1)
        if math.isnan(trend_prev):
            return Opinion.hold("SAR not ready on the prior bar")
        if trend_now == trend_prev:
            return Opinion.hold("No SAR flip")

        direction = Direction.BUY if trend_now > 0 else Direction.SELL
        close = ctx.value("close")
        if direction.sign * (close - ctx.value("close", 1)) <= 0:
            return Opinion.hold("SAR flip without momentum")
        gap = abs(close - ctx.value(sar_col)) / close
        return Opinion(direction, 0.55 + gap / self.normalizer, f"SAR flipped {direction.value}")


@dataclass(frozen=True)
class PriceActionStrategy(BaseStrategy):
    """Higher highs and higher lows from swing points (or the mirror)."""

    lookback: int = 40
    swing_window: int = 2
    normalizer: float = 0.02
    _name: str = "price_action"
    _min_bars: int = 60

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        highs = swing_points(ctx.window("high", self.lookback), self.swing_window, highs=True)
        lows = swing_points(ctx.window("low", self.lookback), self.swing_window, highs=False)
        if len(highs) < 2 or len(lows) < 2:
            return Opinion.hold("Not enough swing points")

        high_step = (highs[-1] - highs[-2]) / highs[-2]
        low_step = (lows[-1] - lows[-2]) / lows[-2]
        close = ctx.value("close")
        if high_step > 0 and low_step > 0 and close > lows[-1]:
            return Opinion.buy(
                0.5 + min(high_step, low_step) / self.normalizer, "Higher highs and higher lows"
            )
        if high_step < 0 and low_step < 0 and close < highs[-1]:
            return Opinion.sell(
                0.5 + min(-high_step, -low_step) / self.normalizer, "Lower highs and lower lows"
            )
        return Opinion.hold("No clear swing structure")
