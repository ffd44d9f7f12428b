"""Breakout and volume evaluators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from smartbot.indicators.core.interfaces import Indicator
from smartbot.indicators.impl.adx import ADX
from smartbot.indicators.impl.atr import ATR
from smartbot.indicators.impl.bands import BollingerBands, DonchianChannel, KeltnerChannel
from smartbot.indicators.impl.rsi import RSI
from smartbot.indicators.impl.volume import VWAP, VolumeRatio

from .base import BaseStrategy, StrategyContext, consecutive_moves
from .signal import Direction, Opinion
from .validators import validate_channel_breakout, validate_volume_spike


def _bar_direction(ctx: StrategyContext) -> Direction:
    move = ctx.value("close") - ctx.value("close", 1)
    if move > 0:
        return Direction.BUY
    if move < 0:
        return Direction.SELL
    return Direction.HOLD


def _prior(values: np.ndarray) -> np.ndarray:
    """Drop the last element: aligned one bar later, it is the prior-bar value."""
    return values[:-1]


@dataclass(frozen=True)
class DonchianBreakoutStrategy(BaseStrategy):
    """Close through the prior bar's Donchian channel, unless RSI is exhausted."""

    period: int = 20
    atr_period: int = 14
    rsi_period: int = 14
    min_volatility: float = 0.005
    min_atr_multiple: float = 0.1
    min_consecutive: int = 2
    exhausted: float = 80.0
    _name: str = "donchian_breakout"
    _min_bars: int = 30

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (DonchianChannel(self.period), ATR(self.atr_period), RSI(self.rsi_period))

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        channel, atr, rsi = self.indicators
        upper_col, _, lower_col = channel.columns
        n = self.min_consecutive + 1
        close = ctx.window("close", n)
        upper = _prior(ctx.window(upper_col, n + 1))
        lower = _prior(ctx.window(lower_col, n + 1))
        atr_w = ctx.window(atr.name, n)
        idx = len(close) - 1

        direction = _bar_direction(ctx)
        if direction is Direction.HOLD:
            return Opinion.hold("Flat bar")
        result = validate_channel_breakout(
            close, upper, lower, atr_w, idx, direction,
            self.min_volatility, self.min_atr_multiple, self.min_consecutive,
        )
        if not result.accepted:
            return Opinion.hold(result.reason)

        rsi_now = ctx.value(rsi.name)
        if (direction is Direction.BUY and rsi_now > self.exhausted) or (
            direction is Direction.SELL and rsi_now < 100.0 - self.exhausted
        ):
            return Opinion.hold(f"RSI {rsi_now:.1f} exhausted")
        return result.to_opinion(direction)


@dataclass(frozen=True)
class AtrBreakoutStrategy(BaseStrategy):
    """A close-to-close move larger than ``multiple`` x ATR after a quiet bar."""

    atr_period: int = 14
    multiple: float = 1.0
    min_consecutive: int = 2
    normalizer: float = 2.0
    _name: str = "atr_breakout"
    _min_bars: int = 30

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (ATR(self.atr_period),)

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        atr_prev = ctx.value(self.indicators[0].name, 1)
        close = ctx.window("close", self.min_consecutive + 2)
        change = close[-1] - close[-2]
        prior_change = close[-2] - close[-3]

        if atr_prev <= 0:
            return Opinion.hold("ATR is zero")
        if abs(change) <= self.multiple * atr_prev:
            return Opinion.hold(f"Move {abs(change) / atr_prev:.2f} ATR below {self.multiple:g}")
        if abs(prior_change) > self.multiple * atr_prev:
            return Opinion.hold("Prior bar already broke out")

        direction = Direction.BUY if change > 0 else Direction.SELL
        run = consecutive_moves(close, direction.sign, self.min_consecutive)
        if run < self.min_consecutive:
            return Opinion.hold(f"Only {run} consecutive bars in breakout direction")
        excess = abs(change) / atr_prev - self.multiple
        return Opinion(
            direction, 0.5 + excess / self.normalizer,
            f"ATR breakout {abs(change) / atr_prev:.2f}x",
        )


@dataclass(frozen=True)
class BreakoutVolumeStrategy(BaseStrategy):
    """Channel break out of a low-ADX consolidation on heavy, accumulating volume.

    The break must clear the prior-bar channel the same way
    ``donchian_breakout`` requires; a Buy needs accumulation and a Sell
    distribution.  A matching candle pattern adds to the strength.
    """

    adx_period: int = 14
    channel_period: int = 20
    atr_period: int = 14
    consolidation_adx: float = 20.0
    consolidation_bars: int = 5
    min_volatility: float = 0.005
    min_atr_multiple: float = 0.1
    min_consecutive: int = 2
    min_volume_ratio: float = 1.5
    normalizer: float = 2.0
    pattern_bonus: float = 0.1
    _name: str = "breakout_volume"
    _min_bars: int = 60

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (ADX(self.adx_period), DonchianChannel(self.channel_period), ATR(self.atr_period))

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        adx_ind, channel, atr = self.indicators
        adx_col, plus_col, minus_col = adx_ind.columns
        upper_col, _, lower_col = channel.columns

        adx_then = ctx.value(adx_col, self.consolidation_bars)
        adx_now = ctx.value(adx_col)
        if adx_then >= self.consolidation_adx:
            return Opinion.hold(f"No consolidation (ADX {adx_then:.1f})")
        if adx_now <= adx_then:
            return Opinion.hold("ADX not rising out of consolidation")

        direction = _bar_direction(ctx)
        if direction is Direction.HOLD:
            return Opinion.hold("Flat bar")
        n = self.min_consecutive + 1
        close = ctx.window("close", n)
        result = validate_channel_breakout(
            close,
            _prior(ctx.window(upper_col, n + 1)),
            _prior(ctx.window(lower_col, n + 1)),
            ctx.window(atr.name, n),
            len(close) - 1, direction,
            self.min_volatility, self.min_atr_multiple, self.min_consecutive,
        )
        if not result.accepted:
            return Opinion.hold(result.reason)

        if direction.sign * (ctx.value(plus_col) - ctx.value(minus_col)) <= 0:
            return Opinion.hold("DI disagrees with break")
        vol = ctx.market.volume
        if vol.volume_ratio <= self.min_volume_ratio:
            return Opinion.hold(f"Volume ratio {vol.volume_ratio:.2f} too low")
        if direction is Direction.BUY and not vol.is_accumulation:
            return Opinion.hold("Break without accumulation")
        if direction is Direction.SELL and not vol.is_distribution:
            return Opinion.hold("Break without distribution")

        strength = 0.5 + (vol.volume_ratio - self.min_volume_ratio) / self.normalizer
        reason = f"{result.reason} on {vol.volume_ratio:.2f}x volume"
        bullish = direction is Direction.BUY
        pattern = next((p for p in ctx.market.patterns if p.bullish is bullish), None)
        if pattern is not None:
            strength += self.pattern_bonus
            reason += f", {pattern.name}"
        return Opinion(direction, strength, reason)


@dataclass(frozen=True)
class VolumeConfirmStrategy(BaseStrategy):
    """Volume spike on a directional bar."""

    lookback: int = 20
    spike_multiple: float = 1.5
    min_move: float = 0.001
    _name: str = "volume_confirm"
    _min_bars: int = 25

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        direction = _bar_direction(ctx)
        if direction is Direction.HOLD:
            return Opinion.hold("Flat bar")
        n = self.lookback + 1
        result = validate_volume_spike(
            ctx.window("volume", n), ctx.window("close", n), n - 1, direction,
            self.spike_multiple, self.lookback, self.min_move,
        )
        return result.to_opinion(direction)


@dataclass(frozen=True)
class VwapCrossStrategy(BaseStrategy):
    """Close crossing the rolling VWAP with above-average volume."""

    period: int = 20
    volume_lookback: int = 20
    min_volume_ratio: float = 1.0
    normalizer: float = 0.01
    _name: str = "vwap_cross"
    _min_bars: int = 25

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (VWAP(self.period), VolumeRatio(self.volume_lookback))

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        vwap, ratio = (ind.name for ind in self.indicators)
        close, prev = ctx.value("close"), ctx.value("close", 1)
        now_gap = close - ctx.value(vwap)
        prev_gap = prev - ctx.value(vwap, 1)

        if prev_gap <= 0 < now_gap:
            direction = Direction.BUY
        elif prev_gap >= 0 > now_gap:
            direction = Direction.SELL
        else:
            return Opinion.hold("No VWAP cross")
        volume_ratio = ctx.value(ratio)
        if volume_ratio <= self.min_volume_ratio:
            return Opinion.hold(f"Volume ratio {volume_ratio:.2f} too low for VWAP cross")
        distance = abs(now_gap) / close
        return Opinion(
            direction, 0.5 + distance / self.normalizer,
            f"VWAP cross {direction.value} on {volume_ratio:.2f}x volume",
        )


@dataclass(frozen=True)
class SqueezeMomentumStrategy(BaseStrategy):
    """Bollinger bands leaving the Keltner channel after a squeeze."""

    period: int = 20
    bb_k: float = 2.0
    kc_k: float = 1.5
    momentum_bars: int = 12
    normalizer: float = 0.02
    _name: str = "squeeze_momentum"
    _min_bars: int = 40

    @property
    def indicators(self) -> Sequence[Indicator]:
        return (BollingerBands(self.period, self.bb_k), KeltnerChannel(self.period, self.kc_k))

    def _squeezed(self, ctx: StrategyContext, back: int) -> bool:
        bb, kc = self.indicators
        return (
            ctx.value(bb.columns[0], back) < ctx.value(kc.columns[0], back)
            and ctx.value(bb.columns[2], back) > ctx.value(kc.columns[2], back)
        )

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        if not self._squeezed(ctx, 1):
            return Opinion.hold("No squeeze on the prior bar")
        if self._squeezed(ctx, 0):
            return Opinion.hold("Squeeze still on")

        close = ctx.value("close")
        momentum = (close - ctx.value("close", self.momentum_bars)) / close
        if momentum == 0:
            return Opinion.hold("Squeeze released without momentum")
        direction = Direction.BUY if momentum > 0 else Direction.SELL
        return Opinion(
            direction, 0.5 + abs(momentum) / self.normalizer,
            f"Squeeze released, momentum {momentum:+.2%}",
        )
