from .signal import Direction, Opinion, clamp01
from .base import BaseStrategy, StrategyContext, Strategy, validate_features
from .validators import ValidationResult
from .registry import build_strategy, default_roster, register, registered

__all__ = [
    "Direction",
    "Opinion",
    "clamp01",
    "BaseStrategy",
    "StrategyContext",
    "Strategy",
    "validate_features",
    "ValidationResult",
    "build_strategy",
    "default_roster",
    "register",
    "registered",
]
