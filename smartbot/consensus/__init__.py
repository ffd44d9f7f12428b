"""Consensus: turn strategy opinions into one gated, sized decision."""

from .models import CyclePhase, CycleResult, Decision, QualityScore, VoteTally
from .gates import GATES, decide, tally_votes
from .quality import score_quality
from .engine import ConsensusEngine

__all__ = [
    "CyclePhase",
    "CycleResult",
    "Decision",
    "QualityScore",
    "VoteTally",
    "GATES",
    "decide",
    "tally_votes",
    "score_quality",
    "ConsensusEngine",
]
