"""Signal persistence and alert notification.

Every cycle leaves one ``SignalRecord`` per strategy, one for the consensus
decision and, when the decision was sized, one for the entry.  Notifiers
receive the approved Buy decisions above a confidence cutoff.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterable, Protocol, Sequence, runtime_checkable

import pandas as pd

from smartbot.consensus.models import CycleResult
from smartbot.strategy.signal import Direction

log = logging.getLogger(__name__)

RECORD_FIELDS = ["symbol", "timestamp", "category", "direction", "detail"]


@dataclass(frozen=True)
class SignalRecord:
    symbol: str
    timestamp: str
    category: str   # strategy name, "Consensus" or "Entry"
    direction: str
    detail: str     # "strength|reason"


def records_from_cycle(symbol: str, result: CycleResult) -> list[SignalRecord]:
    """Flatten one cycle into records: strategies, then consensus, then entry."""
    ts = result.timestamp.isoformat()
    records = [
        SignalRecord(symbol, ts, name, op.direction.value, f"{op.strength:.4f}|{op.reason}")
        for name, op in result.opinions.items()
    ]
    d = result.decision
    records.append(
        SignalRecord(
            symbol, ts, "Consensus", d.direction.value,
            f"{d.final_confidence:.4f}|{d.reason}",
        )
    )
    if result.intent is not None:
        i = result.intent
        records.append(
            SignalRecord(
                symbol, ts, "Entry", i.direction.value,
                f"{d.final_confidence:.4f}|entry={i.entry_price:.2f} "
                f"stop={i.stop_distance:.4f} ({i.stop_source}) qty={i.quantity}",
            )
        )
    return records


@runtime_checkable
class SignalSink(Protocol):
    def write(self, records: Sequence[SignalRecord]) -> None:
        ...


class CsvSignalSink:
    """Append records to a CSV file, writing the header once."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def write(self, records: Sequence[SignalRecord]) -> None:
        if not records:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        new_file = not self.path.exists() or self.path.stat().st_size == 0
        df = pd.DataFrame([asdict(r) for r in records], columns=RECORD_FIELDS)
        df.to_csv(self.path, mode="a", header=new_file, index=False)
        log.debug("Appended %d records to %s", len(records), self.path)


@dataclass(frozen=True)
class Alert:
    symbol: str
    timestamp: str
    direction: str
    confidence: float
    quality: float
    entry_price: float
    quantity: int
    reason: str


@runtime_checkable
class Notifier(Protocol):
    def send(self, alerts: Sequence[Alert]) -> bool:
        """Deliver alerts; False on failure.  No retries."""
        ...


def select_alerts(results: Iterable[tuple[str, CycleResult]], cutoff: float) -> list[Alert]:
    """Sized Buy decisions with confidence at or above ``cutoff``, best first."""
    alerts = []
    for symbol, result in results:
        d = result.decision
        if d.direction is not Direction.BUY or d.final_confidence < cutoff:
            continue
        if result.intent is None:
            continue
        alerts.append(
            Alert(
                symbol=symbol,
                timestamp=result.timestamp.isoformat(),
                direction=d.direction.value,
                confidence=d.final_confidence,
                quality=d.quality_score,
                entry_price=result.intent.entry_price,
                quantity=result.intent.quantity,
                reason=d.reason,
            )
        )
    return sorted(alerts, key=lambda a: (-a.confidence, a.symbol))


class DigestNotifier:
    """Write alerts as a plain-text digest file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def send(self, alerts: Sequence[Alert]) -> bool:
        lines = [f"{len(alerts)} alert(s)"]
        for a in alerts:
            lines.append(
                f"{a.symbol}  {a.direction}  confidence {a.confidence:.2f}  "
                f"quality {a.quality:.2f}  entry {a.entry_price:.2f} x {a.quantity}  "
                f"({a.timestamp})  {a.reason}"
            )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        except OSError as exc:
            log.error("Could not write alert digest %s: %s", self.path, exc)
            return False
        log.info("Wrote %d alert(s) → %s", len(alerts), self.path)
        return True
