"""Execution-layer value objects: the sized order intent."""

from __future__ import annotations

from dataclasses import dataclass

from smartbot.strategy.signal import Direction


@dataclass(frozen=True)
class SizedOrderIntent:
    """What the engine would send for an approved decision.

    Nothing here is submitted anywhere; the intent is recorded with the
    decision and handed to the sinks.
    """

    direction: Direction
    entry_price: float
    stop_distance: float
    quantity: int
    stop_source: str = "atr"  # "atr", "fallback" or "level"

    @property
    def stop_price(self) -> float:
        return self.entry_price - self.direction.sign * self.stop_distance

    @property
    def risk_amount(self) -> float:
        return self.quantity * self.stop_distance

    def to_dict(self) -> dict:
        return {
            "direction": self.direction.value,
            "entry_price": self.entry_price,
            "stop_distance": self.stop_distance,
            "stop_price": self.stop_price,
            "quantity": self.quantity,
            "stop_source": self.stop_source,
        }
