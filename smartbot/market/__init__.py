"""Market context: per-bar snapshot shared by strategies and scoring."""

from .context import MarketContext, analyze_market_context
from .snapshot import MarketSnapshot, build_snapshot

__all__ = [
    "MarketContext",
    "analyze_market_context",
    "MarketSnapshot",
    "build_snapshot",
]
