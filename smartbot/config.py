"""Immutable engine configuration.

Every threshold, weight and period the pipeline reads lives here, in frozen
dataclasses built once per run and shared read-only across symbols::

    consensus:
      min_votes: 3
      quality_floor: 0.5
    sizing:
      equity: 100000
    strategies:
      - type: ema_rsi
        fast_period: 9

Unknown keys and out-of-range values raise ``ConfigurationError`` here,
before any indicator is computed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from smartbot.errors import ConfigurationError

log = logging.getLogger(__name__)


def _check_fraction(owner: object, *names: str) -> None:
    for name in names:
        value = getattr(owner, name)
        if not 0.0 <= value <= 1.0:
            raise ConfigurationError(f"{name} must be within [0, 1], got {value!r}")


def _check_positive(owner: object, *names: str) -> None:
    for name in names:
        value = getattr(owner, name)
        if value <= 0:
            raise ConfigurationError(f"{name} must be positive, got {value!r}")


# ── Consensus ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ConsensusConfig:
    """Vote, confidence and quality gates plus the forced-Hold guards."""

    min_votes: int = 3
    strategy_floor: float = 0.45
    confidence_floor: float = 0.50
    quality_floor: float = 0.50
    enhanced_weight: float = 1.5
    base_weight: float = 1.0
    enhanced_strategies: tuple[str, ...] = (
        "trend_following_mtf",
        "mean_reversion_sr",
        "breakout_volume",
        "momentum_divergence",
    )
    timeframe_bonus: float = 0.10
    extreme_volatility: float = 0.08
    min_history: int = 100

    def __post_init__(self) -> None:
        object.__setattr__(self, "enhanced_strategies", tuple(self.enhanced_strategies))
        _check_fraction(
            self, "strategy_floor", "confidence_floor", "quality_floor",
            "timeframe_bonus", "extreme_volatility",
        )
        _check_positive(self, "min_votes", "enhanced_weight", "base_weight", "min_history")
        if self.strategy_floor > self.confidence_floor:
            raise ConfigurationError(
                f"strategy_floor ({self.strategy_floor}) must not exceed "
                f"confidence_floor ({self.confidence_floor})"
            )


# ── Quality score ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class QualityConfig:
    """Point budget and qualifying thresholds of the seven quality factors."""

    trend_points: float = 20.0
    momentum_points: float = 15.0
    volume_points: float = 15.0
    volatility_points: float = 15.0
    oscillator_points: float = 12.0
    level_points: float = 12.0
    streak_points: float = 11.0

    trend_full_strength: float = 0.015
    momentum_full_move: float = 0.015
    volume_min_ratio: float = 1.2
    volume_full_ratio: float = 2.0
    volume_lookback: int = 20
    volatility_low: float = 0.005
    volatility_high: float = 0.04
    buy_rsi_low: float = 40.0
    buy_rsi_high: float = 70.0
    sell_rsi_low: float = 30.0
    sell_rsi_high: float = 60.0
    rsi_period: int = 14
    level_proximity: float = 0.02
    streak_lookback: int = 5
    streak_points_per_bar: float = 3.0
    min_bars: int = 50

    def __post_init__(self) -> None:
        for f in fields(self):
            if f.name.endswith("_points") and getattr(self, f.name) < 0:
                raise ConfigurationError(f"{f.name} must not be negative")
        if self.max_points <= 0:
            raise ConfigurationError("quality factors must carry some points")
        _check_fraction(
            self, "trend_full_strength", "momentum_full_move", "volatility_low",
            "volatility_high", "level_proximity",
        )
        _check_positive(
            self, "trend_full_strength", "momentum_full_move", "volume_lookback",
            "rsi_period", "streak_lookback", "min_bars",
        )
        if not self.volume_min_ratio < self.volume_full_ratio:
            raise ConfigurationError("volume_min_ratio must be below volume_full_ratio")
        if not self.volatility_low < self.volatility_high:
            raise ConfigurationError("volatility_low must be below volatility_high")
        for low, high in (
            (self.buy_rsi_low, self.buy_rsi_high), (self.sell_rsi_low, self.sell_rsi_high),
        ):
            if not 0.0 <= low < high <= 100.0:
                raise ConfigurationError(f"RSI band ({low}, {high}) must lie within [0, 100]")

    @property
    def max_points(self) -> float:
        return (
            self.trend_points + self.momentum_points + self.volume_points
            + self.volatility_points + self.oscillator_points + self.level_points
            + self.streak_points
        )


# ── Market analyses ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class AnalysisConfig:
    """Parameters of the per-cycle market snapshot."""

    atr_period: int = 14
    regime_lookback: int = 50
    timeframe_factor: int = 5
    level_lookback: int = 50
    level_tolerance: float = 0.02
    volume_lookback: int = 20

    def __post_init__(self) -> None:
        _check_positive(
            self, "atr_period", "regime_lookback", "timeframe_factor",
            "level_lookback", "volume_lookback",
        )
        _check_fraction(self, "level_tolerance")


# ── Position sizing ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class SizingConfig:
    """Fixed-fractional risk sizing."""

    equity: float = 100_000.0
    risk_fraction: float = 0.01
    entry_offset: float = 0.001
    atr_stop_multiple: float = 1.5
    fallback_stop_fraction: float = 0.02
    level_stop_min: float = 0.01
    level_stop_max: float = 0.05
    quality_multiplier: float = 1.2
    min_size_multiplier: float = 0.6
    max_size_multiplier: float = 1.2
    price_decimals: int = 2

    def __post_init__(self) -> None:
        _check_positive(
            self, "equity", "risk_fraction", "atr_stop_multiple",
            "fallback_stop_fraction", "quality_multiplier", "min_size_multiplier",
        )
        if self.risk_fraction > 0.5:
            raise ConfigurationError(f"risk_fraction must be within (0, 0.5], got {self.risk_fraction}")
        _check_fraction(self, "entry_offset", "fallback_stop_fraction", "level_stop_min", "level_stop_max")
        if not self.level_stop_min < self.level_stop_max:
            raise ConfigurationError("level_stop_min must be below level_stop_max")
        if not self.min_size_multiplier <= self.max_size_multiplier:
            raise ConfigurationError("min_size_multiplier must not exceed max_size_multiplier")
        if self.price_decimals < 0:
            raise ConfigurationError("price_decimals must not be negative")


# ── Engine ───────────────────────────────────────────────────────────────

_SECTIONS = {
    "consensus": ConsensusConfig,
    "quality": QualityConfig,
    "analysis": AnalysisConfig,
    "sizing": SizingConfig,
}


def _build_section(cls: type, section: str, values: Optional[Mapping[str, Any]]) -> Any:
    values = dict(values or {})
    known = {f.name for f in fields(cls)}
    unknown = set(values) - known
    if unknown:
        raise ConfigurationError(f"Unknown {section} keys: {sorted(unknown)}")
    try:
        return cls(**values)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid {section} config: {exc}") from exc


@dataclass(frozen=True)
class EngineConfig:
    """Everything one evaluation cycle reads.

    ``strategies`` holds strategy config blocks (``{"type": ..., **params}``);
    empty means the full default roster.
    """

    consensus: ConsensusConfig = field(default_factory=ConsensusConfig)
    quality: QualityConfig = field(default_factory=QualityConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    sizing: SizingConfig = field(default_factory=SizingConfig)
    strategies: tuple[dict, ...] = ()

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> EngineConfig:
        """Build from a parsed YAML mapping; keys outside the engine sections are ignored."""
        raw = raw or {}
        sections = {
            name: _build_section(section_cls, name, raw.get(name))
            for name, section_cls in _SECTIONS.items()
        }
        strategies = raw.get("strategies") or ()
        if not isinstance(strategies, (list, tuple)):
            raise ConfigurationError("strategies must be a list of strategy blocks")
        for block in strategies:
            if not isinstance(block, Mapping):
                raise ConfigurationError(f"strategy block must be a mapping, got {block!r}")
        return cls(strategies=tuple(dict(b) for b in strategies), **sections)


def read_config(path: str | Path) -> dict:
    """Load a YAML config file into a plain dict."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path} must contain a mapping at top level")
    log.debug("Loaded config %s (%d keys)", path, len(raw))
    return raw


def load_engine_config(path: str | Path) -> EngineConfig:
    return EngineConfig.from_dict(read_config(path))
