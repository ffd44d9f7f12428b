"""Plotting utilities for evaluation reporting."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402

from smartbot.consensus.models import Decision  # noqa: E402
from smartbot.indicators.analysis.levels import PriceLevel  # noqa: E402
from smartbot.indicators.impl.bands import bollinger  # noqa: E402
from smartbot.strategy.signal import Direction  # noqa: E402

log = logging.getLogger(__name__)

_MARKERS = {
    Direction.BUY: ("^", "#2e7d32"),
    Direction.SELL: ("v", "#c62828"),
    Direction.HOLD: ("o", "#757575"),
}


def plot_evaluation(
    bars: pd.DataFrame,
    levels: Iterable[PriceLevel],
    decision: Decision,
    out_path: str | Path,
    title: Optional[str] = None,
    window: int = 200,
) -> None:
    """Plot close, Bollinger bands, S/R levels and the decision marker; save as PNG.

    Parameters
    ----------
    bars : pd.DataFrame
        Must contain ``time`` and ``close`` columns.
    levels : iterable of PriceLevel
        Support/resistance levels from the snapshot.
    decision : Decision
        Marked on the last bar.
    out_path : str | Path
        Destination file path (e.g. ``plots/EURUSD.png``).
    window : int
        Only the last ``window`` bars are drawn.
    """
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    bands = bollinger(bars["close"], 20, 2.0)
    df = bars.iloc[-window:]
    bands = bands.iloc[-window:]
    x = df["time"] if "time" in df.columns else pd.Series(df.index, index=df.index)

    fig, ax = plt.subplots(figsize=(14, 5))
    ax.plot(x, df["close"], linewidth=0.8, color="#d4af37", label="close")
    ax.plot(x, bands["upper"], linewidth=0.5, color="#5c6bc0", alpha=0.7, label="bb upper")
    ax.plot(x, bands["lower"], linewidth=0.5, color="#5c6bc0", alpha=0.7, label="bb lower")
    for level in levels:
        ax.axhline(
            level.price,
            color="#2e7d32" if level.is_support else "#c62828",
            linewidth=0.6 + level.strength,
            linestyle="--",
            alpha=0.6,
        )

    marker, color = _MARKERS[decision.direction]
    ax.scatter([x.iloc[-1]], [df["close"].iloc[-1]], marker=marker, s=120, color=color, zorder=5)
    ax.set_title(
        title
        or f"{decision.direction.value}  confidence {decision.final_confidence:.2f}"
        f"  quality {decision.quality_score:.2f}"
    )
    ax.set_xlabel("Time")
    ax.set_ylabel("Price")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="upper left", fontsize=8)
    fig.tight_layout()
    fig.savefig(out_path, dpi=100)
    plt.close(fig)

    log.info("Saved evaluation plot → %s", out_path)
