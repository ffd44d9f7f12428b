"""Value objects passed between the consensus phases."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

import pandas as pd

from smartbot.execution.models import SizedOrderIntent
from smartbot.market.snapshot import MarketSnapshot
from smartbot.strategy.signal import Direction, Opinion


class CyclePhase(str, Enum):
    COLLECTING = "collecting"
    VOTING = "voting"
    SCORING = "scoring"
    DECIDING = "deciding"
    DONE = "done"


@dataclass(frozen=True)
class VoteTally:
    """Votes above the strategy floor, split by side."""

    buy_votes: int = 0
    sell_votes: int = 0
    buy_confidence: float = 0.0   # weighted mean strength of the buy voters
    sell_confidence: float = 0.0
    candidate: Optional[Direction] = None
    buy_voters: tuple[str, ...] = ()
    sell_voters: tuple[str, ...] = ()

    def votes_for(self, direction: Direction) -> int:
        if direction is Direction.BUY:
            return self.buy_votes
        if direction is Direction.SELL:
            return self.sell_votes
        return 0

    def confidence_for(self, direction: Direction) -> float:
        if direction is Direction.BUY:
            return self.buy_confidence
        if direction is Direction.SELL:
            return self.sell_confidence
        return 0.0


@dataclass(frozen=True)
class QualityScore:
    """Seven-factor setup quality for one direction.

    ``factors`` maps factor name to awarded points; ``score`` is their sum
    over the configured maximum, so it always lies in [0, 1].
    """

    direction: Direction
    score: float
    factors: Mapping[str, float] = field(default_factory=dict)
    breakdown: str = ""

    @property
    def total_points(self) -> float:
        return sum(self.factors.values())

    @classmethod
    def zero(cls, direction: Direction, reason: str) -> QualityScore:
        return cls(direction, 0.0, {}, reason)


@dataclass(frozen=True)
class Decision:
    """The engine's verdict for one symbol on one bar."""

    direction: Direction
    final_confidence: float
    quality_score: float
    supporting_votes: int
    reason: str
    opposing_votes: int = 0
    rejected_by: Optional[str] = None

    @property
    def is_hold(self) -> bool:
        return self.direction is Direction.HOLD

    def to_dict(self) -> dict:
        return {
            "direction": self.direction.value,
            "final_confidence": self.final_confidence,
            "quality_score": self.quality_score,
            "supporting_votes": self.supporting_votes,
            "opposing_votes": self.opposing_votes,
            "reason": self.reason,
            "rejected_by": self.rejected_by,
        }


@dataclass(frozen=True)
class CycleResult:
    timestamp: pd.Timestamp
    opinions: Mapping[str, Opinion]
    decision: Decision
    intent: Optional[SizedOrderIntent] = None
    quality: Optional[QualityScore] = None
    snapshot: Optional[MarketSnapshot] = None
