"""Strategy registry: maps type strings to builder functions."""

from __future__ import annotations

import dataclasses
from typing import Callable

from smartbot.errors import ConfigurationError
from smartbot.indicators.core.pipeline import FeatureSpec
from .base import BaseStrategy, Strategy

StrategyBuilder = Callable[[dict], tuple[Strategy, list[FeatureSpec]]]

_REGISTRY: dict[str, StrategyBuilder] = {}


def register(name: str, builder: StrategyBuilder) -> None:
    """Register a strategy builder under the given name."""
    _REGISTRY[name] = builder


def registered() -> list[str]:
    """Registered type strings, in registration order."""
    return list(_REGISTRY)


def build_strategy(strategy_cfg: dict) -> tuple[Strategy, list[FeatureSpec]]:
    """Build a strategy + feature specs from a strategy config block.

    Parameters
    ----------
    strategy_cfg : dict
        Must contain a ``type`` key that maps to a registered builder.
        Remaining keys are passed as ``params`` to the builder.

    Returns
    -------
    tuple of (Strategy, list[FeatureSpec])
    """
    cfg = dict(strategy_cfg)  # shallow copy so we don't mutate caller's dict
    strategy_type = cfg.pop("type", None)
    if strategy_type is None:
        raise ConfigurationError("strategy config must contain a 'type' key")
    if strategy_type not in _REGISTRY:
        raise ConfigurationError(
            f"Unknown strategy type '{strategy_type}'. "
            f"Registered: {sorted(_REGISTRY)}"
        )
    return _REGISTRY[strategy_type](cfg)


def default_roster() -> list[tuple[Strategy, list[FeatureSpec]]]:
    """Every registered strategy with its default parameters."""
    return [build_strategy({"type": name}) for name in _REGISTRY]


def dataclass_builder(cls: type[BaseStrategy]) -> StrategyBuilder:
    """Builder for a strategy dataclass: config keys map onto its public fields.

    An optional ``name`` key renames the instance so the same type can run
    twice with different parameters.
    """
    public = {f.name for f in dataclasses.fields(cls) if not f.name.startswith("_")}

    def build(params: dict) -> tuple[Strategy, list[FeatureSpec]]:
        params = dict(params)
        name = params.pop("name", None)
        unknown = sorted(set(params) - public)
        if unknown:
            raise ConfigurationError(
                f"Unknown parameters for {cls.__name__}: {unknown}. Allowed: {sorted(public)}"
            )
        if name is not None:
            params["_name"] = str(name)
        strategy = cls(**params)
        specs = [FeatureSpec(indicator) for indicator in strategy.indicators]
        return strategy, specs

    return build


# Auto-register built-in strategies
from .trend import (  # noqa: E402
    AdxTrendStrategy,
    Ema200RegimeStrategy,
    EmaRsiStrategy,
    IchimokuStrategy,
    ParabolicSarStrategy,
    PriceActionStrategy,
    TrendFollowingMtfStrategy,
    TripleEmaStrategy,
)
from .mean_reversion import (  # noqa: E402
    BollingerReversionStrategy,
    CciReversionStrategy,
    MeanReversionSrStrategy,
    MfiReversalStrategy,
    PivotReversalStrategy,
    StochRsiReversalStrategy,
)
from .breakout import (  # noqa: E402
    AtrBreakoutStrategy,
    BreakoutVolumeStrategy,
    DonchianBreakoutStrategy,
    SqueezeMomentumStrategy,
    VolumeConfirmStrategy,
    VwapCrossStrategy,
)
from .divergence import (  # noqa: E402
    MacdDivergenceStrategy,
    MomentumDivergenceStrategy,
    MtfAlignmentStrategy,
    RegimeMomentumStrategy,
)

for _cls in (
    EmaRsiStrategy,
    AdxTrendStrategy,
    TripleEmaStrategy,
    Ema200RegimeStrategy,
    TrendFollowingMtfStrategy,
    IchimokuStrategy,
    ParabolicSarStrategy,
    PriceActionStrategy,
    BollingerReversionStrategy,
    MeanReversionSrStrategy,
    CciReversionStrategy,
    PivotReversalStrategy,
    StochRsiReversalStrategy,
    MfiReversalStrategy,
    DonchianBreakoutStrategy,
    AtrBreakoutStrategy,
    BreakoutVolumeStrategy,
    VolumeConfirmStrategy,
    VwapCrossStrategy,
    SqueezeMomentumStrategy,
    MacdDivergenceStrategy,
    MomentumDivergenceStrategy,
    MtfAlignmentStrategy,
    RegimeMomentumStrategy,
):
    register(_cls._name, dataclass_builder(_cls))
