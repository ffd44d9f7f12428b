"""Fixed-fractional position sizing for approved decisions."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Optional

from smartbot.config import SizingConfig
from smartbot.execution.models import SizedOrderIntent
from smartbot.strategy.signal import Direction

if TYPE_CHECKING:
    # consensus.engine imports this module
    from smartbot.consensus.models import Decision
    from smartbot.market.snapshot import MarketSnapshot

log = logging.getLogger(__name__)


class PositionSizer:
    """Turn a Buy/Sell decision into an entry, a stop distance and a quantity.

    The stop defaults to an ATR multiple (a fixed fraction of price while ATR
    is missing) and snaps to the nearest support/resistance when that level
    sits a reasonable distance away.  The risk budget scales with the
    decision's quality score within fixed bounds.
    """

    def __init__(self, config: Optional[SizingConfig] = None) -> None:
        self.config = config or SizingConfig()

    def size(
        self,
        decision: Decision,
        close: float,
        atr: float,
        level_price: Optional[float] = None,
    ) -> SizedOrderIntent:
        """
        Args:
            decision: An approved Buy or Sell decision.
            close: Last close.
            atr: Last ATR; NaN or zero selects the fallback stop.
            level_price: Nearest support below (Buy) or resistance above (Sell).

        Returns:
            SizedOrderIntent

        Raises:
            ValueError: For a Hold decision or a non-positive close.
        """
        if decision.direction is Direction.HOLD:
            raise ValueError("Cannot size a Hold decision")
        if not close > 0:
            raise ValueError(f"close must be positive, got {close}")

        cfg = self.config
        sign = decision.direction.sign
        entry = round(close * (1 + sign * cfg.entry_offset), cfg.price_decimals)

        if atr is None or math.isnan(atr) or atr <= 0:
            stop, source = close * cfg.fallback_stop_fraction, "fallback"
        else:
            stop, source = cfg.atr_stop_multiple * atr, "atr"

        if level_price is not None and sign * (close - level_price) > 0:
            distance = abs(close - level_price)
            if cfg.level_stop_min <= distance / close <= cfg.level_stop_max:
                stop, source = distance, "level"

        multiplier = min(
            max(decision.quality_score * cfg.quality_multiplier, cfg.min_size_multiplier),
            cfg.max_size_multiplier,
        )
        budget = cfg.equity * cfg.risk_fraction * multiplier
        quantity = max(1, int(math.floor(budget / stop)))

        log.debug(
            "Sized %s: entry=%.2f stop=%.4f (%s) budget=%.2f qty=%d",
            decision.direction.value, entry, stop, source, budget, quantity,
        )
        return SizedOrderIntent(decision.direction, entry, stop, quantity, source)

    def size_from_snapshot(self, decision: Decision, snapshot: MarketSnapshot) -> SizedOrderIntent:
        level = (
            snapshot.support_below()
            if decision.direction is Direction.BUY
            else snapshot.resistance_above()
        )
        return self.size(
            decision, snapshot.close, snapshot.atr, None if level is None else level.price
        )
