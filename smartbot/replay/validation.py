"""Fail-fast data-integrity checks for bar DataFrames."""

from __future__ import annotations

import pandas as pd


def validate_bars(df: pd.DataFrame) -> None:
    """Validate a raw bar DataFrame *before* any processing.

    Raises ``ValueError`` immediately on the first problem found so that
    corrupt / malformed data never silently reaches the indicators.
    """

    # 1. Timestamp column exists with no nulls ──────────────────────────
    if "time" not in df.columns:
        raise ValueError("Missing 'time' column")
    if df["time"].isna().any():
        n = int(df["time"].isna().sum())
        raise ValueError(f"Null timestamps found: {n} rows")

    # 2. Strictly increasing time ───────────────────────────────────────
    times = pd.to_datetime(df["time"], utc=True)

    n_dupes = int(times.duplicated().sum())
    if n_dupes > 0:
        raise ValueError(f"Duplicate timestamps found: {n_dupes}")

    if not times.is_monotonic_increasing:
        raise ValueError("Timestamps not monotonic increasing")

    # 3. Price columns present, no NaNs ────────────────────────────────
    missing = [c for c in ("high", "low", "close") if c not in df.columns]
    if missing:
        raise ValueError(f"Missing price columns: {missing}")
    ohlc = [c for c in ("open", "high", "low", "close") if c in df.columns]
    na_cols = [c for c in ohlc if df[c].isna().any()]
    if na_cols:
        raise ValueError(f"NaN values in {na_cols}")

    # 4. Price sanity ──────────────────────────────────────────────────
    non_positive = [c for c in ohlc if (df[c] <= 0).any()]
    if non_positive:
        raise ValueError(f"Non-positive prices in {non_positive}")

    inverted = int((df["high"] < df["low"]).sum())
    if inverted > 0:
        raise ValueError(f"High below low: {inverted} rows")

    # 5. Volume sanity ─────────────────────────────────────────────────
    for col in ("volume", "tick_volume", "real_volume"):
        if col in df.columns:
            neg = int((df[col] < 0).sum())
            if neg > 0:
                raise ValueError(f"Negative {col} found: {neg} rows")
