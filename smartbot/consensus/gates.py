"""Vote tally and the ordered decision gates.

Gates run in a fixed order and the first one that fails names the Hold.
Every gate is a plain function of the same inputs so each can be tested
with the others passing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from smartbot.config import ConsensusConfig
from smartbot.indicators.analysis.timeframes import TimeframeAlignment, TrendDirection
from smartbot.strategy.signal import Direction, Opinion

from .models import Decision, VoteTally

log = logging.getLogger(__name__)


def tally_votes(opinions: Mapping[str, Opinion], config: Optional[ConsensusConfig] = None) -> VoteTally:
    """Count non-Hold opinions at or above the strategy floor, per side.

    Enhanced strategies weigh more in the per-side confidence average; each
    still counts as one vote.
    """
    cfg = config or ConsensusConfig()
    sides: dict[Direction, list[tuple[str, float, float]]] = {
        Direction.BUY: [],
        Direction.SELL: [],
    }
    for name, opinion in opinions.items():
        if opinion.is_hold or opinion.strength < cfg.strategy_floor:
            continue
        weight = cfg.enhanced_weight if name in cfg.enhanced_strategies else cfg.base_weight
        sides[opinion.direction].append((name, opinion.strength, weight))

    def _weighted(entries: list[tuple[str, float, float]]) -> float:
        total = sum(w for _, _, w in entries)
        return sum(s * w for _, s, w in entries) / total if total > 0 else 0.0

    buys, sells = sides[Direction.BUY], sides[Direction.SELL]
    buy_conf, sell_conf = _weighted(buys), _weighted(sells)

    candidate: Optional[Direction] = None
    if len(buys) != len(sells):
        candidate = Direction.BUY if len(buys) > len(sells) else Direction.SELL
    elif buys and buy_conf != sell_conf:
        candidate = Direction.BUY if buy_conf > sell_conf else Direction.SELL

    return VoteTally(
        buy_votes=len(buys),
        sell_votes=len(sells),
        buy_confidence=buy_conf,
        sell_confidence=sell_conf,
        candidate=candidate,
        buy_voters=tuple(n for n, _, _ in buys),
        sell_voters=tuple(n for n, _, _ in sells),
    )


@dataclass(frozen=True)
class GateInput:
    tally: VoteTally
    quality: float
    volatility_level: float
    n_bars: int
    config: ConsensusConfig

    @property
    def candidate(self) -> Optional[Direction]:
        return self.tally.candidate

    @property
    def votes(self) -> int:
        return self.tally.votes_for(self.candidate) if self.candidate else 0

    @property
    def opposing(self) -> int:
        return self.tally.votes_for(self.candidate.opposite) if self.candidate else 0

    @property
    def confidence(self) -> float:
        return self.tally.confidence_for(self.candidate) if self.candidate else 0.0


# A gate returns None to pass, or the reason it rejects.
Gate = Callable[[GateInput], Optional[str]]


def _history_gate(g: GateInput) -> Optional[str]:
    if g.n_bars < g.config.min_history:
        return f"Insufficient data: {g.n_bars} bars, need {g.config.min_history}"
    return None


def _volatility_gate(g: GateInput) -> Optional[str]:
    if g.volatility_level > g.config.extreme_volatility:
        return (
            f"Extreme volatility: ATR {g.volatility_level:.2%} of price "
            f"above {g.config.extreme_volatility:.2%}"
        )
    return None


def _lead_gate(g: GateInput) -> Optional[str]:
    if g.candidate is None:
        if g.tally.buy_votes == g.tally.sell_votes == 0:
            return "No qualifying votes"
        return "No side leads the vote"
    return None


def _quality_gate(g: GateInput) -> Optional[str]:
    if g.quality < g.config.quality_floor:
        return f"Quality {g.quality:.2f} below {g.config.quality_floor:.2f}"
    return None


def _confidence_gate(g: GateInput) -> Optional[str]:
    if g.confidence < g.config.confidence_floor:
        return f"Confidence {g.confidence:.2f} below {g.config.confidence_floor:.2f}"
    return None


def _votes_gate(g: GateInput) -> Optional[str]:
    if g.votes < g.config.min_votes:
        return f"Only {g.votes} {g.candidate.value} votes, need {g.config.min_votes}"
    return None


def _majority_gate(g: GateInput) -> Optional[str]:
    if g.votes <= g.opposing:
        return f"No majority: {g.votes} {g.candidate.value} vs {g.opposing} opposing"
    return None


GATES: tuple[tuple[str, Gate], ...] = (
    ("history", _history_gate),
    ("volatility", _volatility_gate),
    ("lead", _lead_gate),
    ("quality", _quality_gate),
    ("confidence", _confidence_gate),
    ("votes", _votes_gate),
    ("majority", _majority_gate),
)


def _timeframes_agree(timeframes: Optional[TimeframeAlignment], direction: Direction) -> bool:
    if timeframes is None or not timeframes.aligned:
        return False
    wanted = TrendDirection.UP if direction is Direction.BUY else TrendDirection.DOWN
    return timeframes.current is wanted


def decide(
    tally: VoteTally,
    quality: float,
    volatility_level: float,
    n_bars: int,
    config: Optional[ConsensusConfig] = None,
    timeframes: Optional[TimeframeAlignment] = None,
) -> Decision:
    """Run the gates in order; the first failure decides a Hold.

    Args:
        tally: Output of ``tally_votes``.
        quality: Quality score of the candidate direction, in [0, 1].
        volatility_level: ATR / close on the last bar.
        n_bars: Bars of history available.
        config: Consensus thresholds.
        timeframes: Multi-timeframe read; an agreeing alignment adds the
            timeframe bonus after approval.

    Returns:
        Decision
    """
    cfg = config or ConsensusConfig()
    g = GateInput(tally, quality, volatility_level, n_bars, cfg)

    for name, gate in GATES:
        reason = gate(g)
        if reason is not None:
            log.debug("Gate %s rejected: %s", name, reason)
            return Decision(
                direction=Direction.HOLD,
                final_confidence=0.0,
                quality_score=quality,
                supporting_votes=g.votes,
                reason=reason,
                opposing_votes=g.opposing,
                rejected_by=name,
            )

    direction = g.candidate
    confidence = g.confidence
    reason = (
        f"{g.votes} {direction.value} vs {g.opposing} opposing, "
        f"confidence {confidence:.2f}, quality {quality:.2f}"
    )
    if _timeframes_agree(timeframes, direction):
        confidence = min(confidence + cfg.timeframe_bonus, 1.0)
        reason += ", timeframes aligned"
    return Decision(
        direction=direction,
        final_confidence=confidence,
        quality_score=quality,
        supporting_votes=g.votes,
        reason=reason,
        opposing_votes=g.opposing,
    )
