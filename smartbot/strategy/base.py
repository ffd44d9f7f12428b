from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol, Sequence, runtime_checkable

import numpy as np
import pandas as pd

from smartbot.indicators.core.interfaces import Indicator
from smartbot.market.snapshot import MarketSnapshot

from .signal import Direction, Opinion


@dataclass(frozen=True)
class StrategyContext:
    """
    Everything a strategy may read for the bar being evaluated.
    Bars and features run oldest to newest and are never mutated.
    """
    ts: pd.Timestamp
    bars: pd.DataFrame        # OHLCV frame, one row per bar
    features: pd.DataFrame    # indicator columns aligned with ``bars``
    market: MarketSnapshot    # context + composite analyses for ``bar_index``
    bar_index: int            # position of the bar being evaluated

    @property
    def n_bars(self) -> int:
        return self.bar_index + 1

    def value(self, column: str, back: int = 0) -> float:
        """Feature or bar value ``back`` bars before the current one (NaN if out of range)."""
        i = self.bar_index - back
        if i < 0:
            return math.nan
        frame = self.features if column in self.features.columns else self.bars
        return float(frame[column].iloc[i])

    def window(self, column: str, length: int) -> np.ndarray:
        """The last ``length`` values of a column, ending at the current bar."""
        frame = self.features if column in self.features.columns else self.bars
        start = max(0, self.bar_index + 1 - length)
        return frame[column].iloc[start : self.bar_index + 1].to_numpy(dtype=np.float64)


@runtime_checkable
class Strategy(Protocol):
    """
    Protocol for a strategy evaluator.
    """
    @property
    def name(self) -> str: ...

    @property
    def min_bars(self) -> int: ...

    @property
    def indicators(self) -> Sequence[Indicator]: ...

    @property
    def required_features(self) -> Sequence[str]: ...

    def can_trade(self, ctx: StrategyContext) -> bool:
        """
        Gating logic for short history / missing features / NaNs.
        """
        ...

    def on_bar(self, ctx: StrategyContext) -> Opinion:
        """
        Produces the Opinion for the current bar.
        """
        ...


def validate_features(features: pd.Series, required: Sequence[str]) -> bool:
    """
    Helper function to validate required features exist and are not NaN.
    """
    for feature in required:
        if feature not in features:
            return False
        if pd.isna(features[feature]):
            return False
    return True


def rsi_in_band(rsi: float, direction: Direction, floor: float, ceiling: float) -> bool:
    """RSI strictly inside the Buy band, or inside its mirror image for Sell."""
    if direction is Direction.SELL:
        floor, ceiling = 100.0 - ceiling, 100.0 - floor
    return floor < rsi < ceiling


def consecutive_moves(close: np.ndarray, sign: int, limit: int) -> int:
    """Count of consecutive closes moving in ``sign`` direction, ending at the last bar."""
    count = 0
    for i in range(len(close) - 1, 0, -1):
        if count >= limit:
            break
        step = close[i] - close[i - 1]
        if (sign > 0 and step > 0) or (sign < 0 and step < 0):
            count += 1
        else:
            break
    return count


@dataclass(frozen=True)
class BaseStrategy:
    """Shared history / feature guards.

    Subclasses declare their parameters as dataclass fields, list their
    indicators and implement ``evaluate``; ``on_bar`` only reaches
    ``evaluate`` once the bar count and every required feature are present.
    """

    _name: str = "base"
    _min_bars: int = 1

    @property
    def name(self) -> str:
        return self._name

    @property
    def min_bars(self) -> int:
        return self._min_bars

    @property
    def indicators(self) -> Sequence[Indicator]:
        return ()

    @property
    def required_features(self) -> Sequence[str]:
        return [col for ind in self.indicators for col in ind.columns]

    def can_trade(self, ctx: StrategyContext) -> bool:
        if ctx.n_bars < self.min_bars:
            return False
        if not validate_features(ctx.features.iloc[ctx.bar_index], self.required_features):
            return False
        return True

    def on_bar(self, ctx: StrategyContext) -> Opinion:
        if ctx.n_bars < self.min_bars:
            return Opinion.hold(f"Insufficient data: need {self.min_bars} bars, have {ctx.n_bars}")
        if not self.can_trade(ctx):
            return Opinion.hold("Indicators not ready")
        return self.evaluate(ctx)

    def evaluate(self, ctx: StrategyContext) -> Opinion:
        raise NotImplementedError
