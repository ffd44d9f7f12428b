"""Opinion: the output of one strategy evaluator."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class Direction(str, Enum):
    BUY = "Buy"
    SELL = "Sell"
    HOLD = "Hold"

    @property
    def sign(self) -> int:
        return {Direction.BUY: 1, Direction.SELL: -1, Direction.HOLD: 0}[self]

    @property
    def opposite(self) -> Direction:
        return {Direction.BUY: Direction.SELL, Direction.SELL: Direction.BUY}.get(self, Direction.HOLD)


def clamp01(x: float) -> float:
    if math.isnan(x):
        return 0.0
    return max(0.0, min(1.0, float(x)))


@dataclass(frozen=True)
class Opinion:
    """What one strategy believes, not an execution instruction.

    The consensus engine turns a set of Opinions into one Decision.

    Attributes
    ----------
    direction : Direction
        Buy, Sell or Hold.
    strength : float
        0.0–1.0; always 0.0 for Hold.
    reason : str
        Human-readable audit trail.
    """

    direction: Direction
    strength: float = 0.0
    reason: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", Direction(self.direction))
        if self.direction is Direction.HOLD:
            object.__setattr__(self, "strength", 0.0)
        else:
            object.__setattr__(self, "strength", clamp01(self.strength))

    @classmethod
    def hold(cls, reason: str) -> Opinion:
        return cls(Direction.HOLD, 0.0, reason)

    @classmethod
    def buy(cls, strength: float, reason: str) -> Opinion:
        return cls(Direction.BUY, strength, reason)

    @classmethod
    def sell(cls, strength: float, reason: str) -> Opinion:
        return cls(Direction.SELL, strength, reason)

    @property
    def is_hold(self) -> bool:
        return self.direction is Direction.HOLD
