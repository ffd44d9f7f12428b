"""ConsensusEngine: one evaluation cycle per call.

Each cycle moves through the phases:
  collecting → voting → scoring → deciding → done

Collecting computes the shared feature frame and market snapshot, then asks
every strategy for its Opinion.  Voting tallies the opinions, scoring rates
the setup for the leading side and deciding runs the ordered gates.  An
approved decision is sized before the cycle completes.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import pandas as pd

from smartbot.config import EngineConfig
from smartbot.errors import ConfigurationError
from smartbot.indicators.core.interfaces import validate_ohlcv
from smartbot.indicators.core.pipeline import FeaturePipeline, FeatureSpec
from smartbot.indicators.impl.rsi import RSI
from smartbot.market.snapshot import build_snapshot
from smartbot.risk.sizing import PositionSizer
from smartbot.strategy.base import Strategy, StrategyContext
from smartbot.strategy.registry import build_strategy, default_roster
from smartbot.strategy.signal import Opinion

from .gates import decide, tally_votes
from .models import CyclePhase, CycleResult
from .quality import score_quality

log = logging.getLogger(__name__)


def _roster_from_config(config: EngineConfig) -> list[Strategy]:
    if config.strategies:
        return [build_strategy(block)[0] for block in config.strategies]
    return [strategy for strategy, _ in default_roster()]


def _bar_timestamp(bars: pd.DataFrame) -> pd.Timestamp:
    if "time" in bars.columns:
        return pd.Timestamp(bars["time"].iloc[-1])
    return pd.Timestamp(bars.index[-1])


class ConsensusEngine:
    """Combine many strategy opinions into one decision per symbol.

    Parameters
    ----------
    config : EngineConfig, optional
        Thresholds and the strategy roster; defaults throughout when omitted.
    strategies : sequence of Strategy, optional
        Explicit roster.  When omitted, ``config.strategies`` is built, or
        every registered strategy with defaults if that is empty too.

    The engine holds no per-symbol state; ``evaluate`` may be called for
    any number of symbols in turn.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        strategies: Optional[Sequence[Strategy]] = None,
    ) -> None:
        self.config = config or EngineConfig()
        roster = list(strategies) if strategies is not None else _roster_from_config(self.config)

        names = [s.name for s in roster]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ConfigurationError(f"Duplicate strategy names in roster: {dupes}")

        self.strategies: tuple[Strategy, ...] = tuple(roster)
        specs = [FeatureSpec(ind) for s in self.strategies for ind in s.indicators]
        specs.append(FeatureSpec(RSI(self.config.quality.rsi_period)))
        self._pipeline = FeaturePipeline(specs)
        self._sizer = PositionSizer(self.config.sizing)
        self.phase = CyclePhase.DONE

        log.info(
            "ConsensusEngine: %d strategies, max lookback %d bars",
            len(self.strategies), self._pipeline.max_lookback,
        )

    def _enter(self, phase: CyclePhase) -> None:
        log.debug("Phase %s -> %s", self.phase.value, phase.value)
        self.phase = phase

    def collect(self, bars: pd.DataFrame):
        """Features, snapshot and one Opinion per strategy, in roster order."""
        features = self._pipeline.transform(bars)
        snapshot = build_snapshot(bars, self.config.analysis)
        ctx = StrategyContext(
            ts=_bar_timestamp(bars),
            bars=bars,
            features=features,
            market=snapshot,
            bar_index=len(bars) - 1,
        )

        opinions: dict[str, Opinion] = {}
        for strategy in self.strategies:
            try:
                opinion = strategy.on_bar(ctx)
            except Exception as exc:
                log.exception("Strategy %s failed", strategy.name)
                opinion = Opinion.hold(f"Strategy error: {exc}")
            log.debug(
                "  %-22s %-4s %.2f  %s",
                strategy.name, opinion.direction.value, opinion.strength, opinion.reason,
            )
            opinions[strategy.name] = opinion
        return features, snapshot, opinions

    def evaluate(self, bars: pd.DataFrame) -> CycleResult:
        """Run one full cycle on *bars* (oldest first) and return its result."""
        validate_ohlcv(bars)
        if bars.empty:
            raise ValueError("No bars to evaluate")
        cfg = self.config

        self._enter(CyclePhase.COLLECTING)
        features, snapshot, opinions = self.collect(bars)

        self._enter(CyclePhase.VOTING)
        tally = tally_votes(opinions, cfg.consensus)
        log.debug(
            "Votes: buy=%d (%.2f) sell=%d (%.2f) candidate=%s",
            tally.buy_votes, tally.buy_confidence, tally.sell_votes, tally.sell_confidence,
            tally.candidate.value if tally.candidate else None,
        )

        self._enter(CyclePhase.SCORING)
        quality = score_quality(bars, features, snapshot, tally.candidate, cfg.quality)

        self._enter(CyclePhase.DECIDING)
        decision = decide(
            tally, quality.score, snapshot.volatility_level, len(bars),
            cfg.consensus, snapshot.timeframes,
        )

        self._enter(CyclePhase.DONE)
        intent = None
        if not decision.is_hold:
            intent = self._sizer.size_from_snapshot(decision, snapshot)

        ts = _bar_timestamp(bars)
        log.info(
            "%s  %s  confidence=%.2f quality=%.2f  %s",
            ts, decision.direction.value, decision.final_confidence,
            decision.quality_score, decision.reason,
        )
        return CycleResult(
            timestamp=ts,
            opinions=opinions,
            decision=decision,
            intent=intent,
            quality=quality,
            snapshot=snapshot,
        )
