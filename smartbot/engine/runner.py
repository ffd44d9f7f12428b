"""Evaluation runner: orchestrates load → validate → evaluate → artifact generation."""

from __future__ import annotations

import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pandas as pd

from smartbot.config import EngineConfig, read_config
from smartbot.consensus.engine import ConsensusEngine
from smartbot.consensus.models import CycleResult
from smartbot.replay.bars import prepare_bars
from smartbot.replay.validation import validate_bars
from smartbot.reporting.plots import plot_evaluation
from smartbot.reporting.sinks import (
    CsvSignalSink,
    DigestNotifier,
    records_from_cycle,
    select_alerts,
)

log = logging.getLogger(__name__)

# Repo root (two levels up from smartbot/engine/runner.py)
_REPO_ROOT = Path(__file__).resolve().parent.parent.parent


def _resolve(path: str | Path) -> Path:
    path = Path(path)
    return path if path.is_absolute() else _REPO_ROOT / path


def load_symbol_bars(snapshot_dir: Path, symbol: str) -> pd.DataFrame:
    """Read ``<snapshot_dir>/<symbol>.csv``, validate it and prepare OHLCV."""
    csv_file = snapshot_dir / f"{symbol}.csv"
    if not csv_file.exists():
        raise FileNotFoundError(f"No bar file for {symbol}: {csv_file}")
    df = pd.read_csv(csv_file)
    log.info("  Loaded %s  (%s rows)", csv_file.name, f"{len(df):,}")
    validate_bars(df)
    return prepare_bars(df)


def _result_to_dict(result: CycleResult, n_bars: int) -> dict:
    out = {
        "timestamp": result.timestamp.isoformat(),
        "n_bars": n_bars,
        "decision": result.decision.to_dict(),
        "intent": result.intent.to_dict() if result.intent is not None else None,
        "quality": None,
        "opinions": {
            name: {"direction": op.direction.value, "strength": op.strength, "reason": op.reason}
            for name, op in result.opinions.items()
        },
    }
    if result.quality is not None:
        out["quality"] = {
            "score": result.quality.score,
            "factors": dict(result.quality.factors),
            "breakdown": result.quality.breakdown,
        }
    return out


def run_evaluation(config_path: str, run_id: Optional[str] = None) -> str:
    """Evaluate every configured symbol once and write all run artifacts.

    Parameters
    ----------
    config_path : str
        Path to a YAML config file (relative to repo root or absolute).
    run_id : str, optional
        Overrides the generated UTC-timestamp run id.

    Returns
    -------
    str
        The ``run_id``; artifacts live in ``<output_dir>/<run_id>/``.
    """
    cfg_path = _resolve(config_path)
    raw = read_config(cfg_path)
    engine_cfg = EngineConfig.from_dict(raw)

    symbols: list[str] = list(raw.get("symbols") or [])
    if not symbols:
        raise ValueError("config must list at least one symbol under 'symbols'")
    snapshot_dir = _resolve(raw.get("snapshot_dir", "data/snapshots"))
    output_dir = _resolve(raw.get("output_dir", "runs"))
    make_plots = bool(raw.get("plots", True))
    cutoff = float((raw.get("notify") or {}).get("confidence_cutoff", 0.7))

    # ── Generate run_id ──────────────────────────────────────────────
    run_id = run_id or datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    run_dir = output_dir / run_id
    run_dir.mkdir(parents=True, exist_ok=True)

    log.info("Run ID   : %s", run_id)
    log.info("Output   : %s", run_dir)
    log.info("Symbols  : %s", ", ".join(symbols))

    engine = ConsensusEngine(engine_cfg)
    sink = CsvSignalSink(run_dir / "signals.csv")

    results: list[tuple[str, CycleResult]] = []
    decisions: dict[str, dict] = {}
    for symbol in symbols:
        try:
            bars = load_symbol_bars(snapshot_dir, symbol)
        except (FileNotFoundError, ValueError) as exc:
            log.error("Skipping %s: %s", symbol, exc)
            decisions[symbol] = {"error": str(exc)}
            continue

        result = engine.evaluate(bars)
        results.append((symbol, result))
        sink.write(records_from_cycle(symbol, result))
        decisions[symbol] = _result_to_dict(result, len(bars))

        if make_plots and result.snapshot is not None:
            plot_evaluation(
                bars, result.snapshot.levels, result.decision,
                run_dir / "plots" / f"{symbol}.png", title=f"{symbol}  {result.decision.direction.value}",
            )

    # ── Write artifacts ──────────────────────────────────────────────
    shutil.copy2(cfg_path, run_dir / "config.yaml")

    (run_dir / "decisions.json").write_text(
        json.dumps({"run_id": run_id, "symbols": decisions}, indent=2), encoding="utf-8",
    )
    log.info("Wrote decisions.json  (%d symbols)", len(decisions))

    alerts = select_alerts(results, cutoff)
    if not DigestNotifier(run_dir / "alerts.txt").send(alerts):
        log.warning("Alert digest was not delivered")

    log.info("✓ Run complete: %s", run_dir)
    return run_id
