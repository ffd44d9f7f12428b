"""Mean-reversion evaluators: fading extremes back toward the mean."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from smartbot.errors import ConfigurationError
from smartbot.indicators.analysis.regime import MarketRegime
from smartbot.indicators.core.interfaces import Indicator
from smartbot.indicators.impl.bands import BollingerBands
from smartbot.indicators.impl.oscillators import CCI, MFI, StochRSI
from smartbot.indicators.impl.pivots import PivotPoints
from smartbot.indicators.impl.rsi import RSI

from .base import BaseStrategy, StrategyContext
from .signal import Direction, Opinion
from .validators import validate_band_touch, validate_cci_reversal, validate_stoch_rsi


def _strong_trend(ctx: StrategyContext) -> bool:
    return ctx.market.regime.regime is MarketRegime.STRONG_TRENDING


def _volume_opposes(ctx: StrategyContext, direction: Direction) -> bool:
    vol = ctx.market.volume
    return vol.is_distribution if direction is Direction.BUY else vol.is_accumulation


def _volume_agrees(ctx: StrategyContext, direction: Direction) -> bool:
    vol = ctx.market.volume
    return vol.is_accumulation if direction is Direction.BUY else vol.is_distribution


@dataclass(frozen=True)
class BollingerReversionStrategy(BaseStrategy):
    """Outer-band touch with an RSI extreme; stands aside in strong trends."""

    period: int = 20
    k: float = 2.0
    rsi_period: int = 14
    oversold: float = 30.0
    overbought: float = 70.0
    tolerance: float = 0.005
    volume_bonus: float = 0.1
    _name: str = "bollinger_reversion"
    _min_bars: int = 30

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (BollingerBands(self.period, self.k), RSI(self.rsi_period))

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        if _strong_trend(ctx):
            return Opinion.hold("Suppressed in strong trend")
        bands, rsi = self.indicators
        upper_col, middle_col, lower_col = bands.columns
        close = ctx.window("close", 2)
        upper, lower = ctx.window(upper_col, 2), ctx.window(lower_col, 2)
        rsi_w = ctx.window(rsi.name, 2)
        idx = len(close) - 1

        # fade whichever half of the band the close sits in
        direction = Direction.BUY if close[idx] < ctx.value(middle_col) else Direction.SELL
        result = validate_band_touch(
            close, upper, lower, rsi_w, idx, direction,
            self.oversold, self.overbought, self.tolerance,
        )
        if not result.accepted:
            return Opinion.hold(result.reason)
        if _volume_opposes(ctx, direction):
            return Opinion.hold("Volume disagrees with reversal")
        strength = result.confidence
        if _volume_agrees(ctx, direction):
            strength += self.volume_bonus
        return Opinion(direction, strength, result.reason)


@dataclass(frozen=True)
class MeanReversionSrStrategy(BaseStrategy):
    """Bounce off a support/resistance level with RSI and band agreement."""

    period: int = 20
    k: float = 2.0
    rsi_period: int = 14
    oversold: float = 35.0
    overbought: float = 65.0
    proximity: float = 0.015
    volume_bonus: float = 0.1
    _name: str = "mean_reversion_sr"
    _min_bars: int = 100

    def __post_init__(self) -> None:
        if not 0 < self.proximity < 1:
            raise ConfigurationError(f"proximity must be in (0, 1), got {self.proximity}")

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (BollingerBands(self.period, self.k), RSI(self.rsi_period))

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        if _strong_trend(ctx):
            return Opinion.hold("Suppressed in strong trend")
        bands, rsi = self.indicators
        middle = ctx.value(bands.columns[1])
        close, prev = ctx.value("close"), ctx.value("close", 1)
        rsi_now = ctx.value(rsi.name)

        support = ctx.market.support_below()
        resistance = ctx.market.resistance_above()
        if support is not None and (close - support.price) / close <= self.proximity:
            direction, level, extreme = Direction.BUY, support, self.oversold - rsi_now
            limit = self.oversold
        elif resistance is not None and (resistance.price - close) / close <= self.proximity:
            direction, level, extreme = Direction.SELL, resistance, rsi_now - self.overbought
            limit = 100.0 - self.overbought
        else:
            return Opinion.hold("No nearby support or resistance")

        sign = direction.sign
        if extreme <= 0:
            return Opinion.hold(f"RSI {rsi_now:.1f} not at extreme")
        if sign * (middle - close) <= 0:
            return Opinion.hold("Price on the wrong side of the band middle")
        if sign * (close - prev) <= 0:
            return Opinion.hold(f"No bounce off {'support' if sign > 0 else 'resistance'}")
        if _volume_opposes(ctx, direction):
            return Opinion.hold("Volume disagrees with reversal")

        strength = 0.5 + 0.2 * level.strength + 0.3 * extreme / limit
        if _volume_agrees(ctx, direction):
            strength += self.volume_bonus
        return Opinion(
            direction, strength,
            f"Bounce off {level.price:.2f} ({level.touches} touches), RSI {rsi_now:.1f}",
        )


@dataclass(frozen=True)
class CciReversionStrategy(BaseStrategy):
    """CCI coming back inside +/-100."""

    period: int = 20
    level: float = 100.0
    min_change: float = 10.0
    _name: str = "cci_reversion"
    _min_bars: int = 25

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (CCI(self.period),)

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        cci = ctx.window(self.indicators[0].name, 3)
        close = ctx.window("close", 3)
        idx = len(close) - 1
        direction = Direction.BUY if cci[idx] < 0 else Direction.SELL
        result = validate_cci_reversal(cci, close, idx, direction, self.level, self.min_change)
        return result.to_opinion(direction)


@dataclass(frozen=True)
class PivotReversalStrategy(BaseStrategy):
    """Rejection of the S1 / R1 pivot, skipped against a strong trend."""

    tolerance: float = 0.002
    max_trend: float = 0.02
    normalizer: float = 0.02
    _name: str = "pivot_reversal"
    _min_bars: int = 50

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (PivotPoints(),)

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        s1, r1 = ctx.value("pivot_s1"), ctx.value("pivot_r1")
        close, prev = ctx.value("close"), ctx.value("close", 1)
        low, high = ctx.value("low"), ctx.value("high")

        if low <= s1 * (1 + self.tolerance) and close > s1 and close > prev:
            direction, bounce = Direction.BUY, (close - s1) / close
        elif high >= r1 * (1 - self.tolerance) and close < r1 and close < prev:
            direction, bounce = Direction.SELL, (r1 - close) / close
        else:
            return Opinion.hold("No pivot rejection")

        context = ctx.market.context
        against = context.is_downtrend if direction is Direction.BUY else context.is_uptrend
        if against and context.trend_strength > self.max_trend:
            return Opinion.hold("Pivot reversal against a strong trend")
        pivot = "S1" if direction is Direction.BUY else "R1"
        return Opinion(direction, 0.55 + bounce / self.normalizer, f"Rejected {pivot} pivot")


@dataclass(frozen=True)
class StochRsiReversalStrategy(BaseStrategy):
    """Stoch RSI %K/%D cross out of an extreme zone."""

    rsi_period: int = 14
    stoch_period: int = 14
    smooth_k: int = 3
    smooth_d: int = 3
    oversold: float = 0.2
    overbought: float = 0.8
    recent_bars: int = 5
    _name: str = "stoch_rsi_reversal"
    _min_bars: int = 40

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (
            StochRSI(self.rsi_period, self.stoch_period, self.smooth_k, self.smooth_d),
            RSI(self.rsi_period),
        )

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        stoch, rsi = self.indicators
        k_col, d_col = stoch.columns
        n = self.recent_bars + 1
        k, d = ctx.window(k_col, n), ctx.window(d_col, n)
        rsi_w, close = ctx.window(rsi.name, n), ctx.window("close", n)
        idx = len(close) - 1
        direction = Direction.BUY if k[idx] - d[idx] > 0 else Direction.SELL
        result = validate_stoch_rsi(
            k, d, rsi_w, close, idx, direction,
            self.oversold, self.overbought, self.recent_bars,
        )
        return result.to_opinion(direction)


@dataclass(frozen=True)
class MfiReversalStrategy(BaseStrategy):
    """Money Flow Index leaving the 20 / 80 zone, with price following."""

    period: int = 14
    oversold: float = 20.0
    overbought: float = 80.0
    normalizer: float = 40.0
    _name: str = "mfi_reversal"
    _min_bars: int = 30

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (MFI(self.period),)

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        col = self.indicators[0].name
        now, prev = ctx.value(col), ctx.value(col, 1)
        move = ctx.value("close") - ctx.value("close", 1)

        if prev <= self.oversold < now:
            direction, excess = Direction.BUY, now - self.oversold
        elif prev >= self.overbought > now:
            direction, excess = Direction.SELL, self.overbought - now
        else:
            return Opinion.hold(f"MFI {now:.1f} not leaving an extreme")
        if direction.sign * move <= 0:
            return Opinion.hold("Price did not follow MFI")
        zone = "oversold" if direction is Direction.BUY else "overbought"
        return Opinion(direction, 0.55 + excess / self.normalizer, f"MFI left {zone} at {now:.1f}")
