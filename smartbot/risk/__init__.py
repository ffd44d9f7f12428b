"""Risk package: position sizing for approved decisions."""

from smartbot.risk.sizing import PositionSizer

__all__ = ["PositionSizer"]
