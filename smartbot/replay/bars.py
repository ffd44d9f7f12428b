"""Bar preparation: normalize a validated frame into OHLCV the engine reads."""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from smartbot.indicators.impl.atr import true_range

log = logging.getLogger(__name__)

VOLUME_ALIASES = ("tick_volume", "real_volume")
VOLUME_PROXY_SCALE = 1_000_000.0


def volume_proxy(df: pd.DataFrame, lookback: int = 20) -> pd.Series:
    """Synthetic volume from true range relative to its rolling mean.

    Bars moving more than usual get proportionally more "volume"; the
    first bar and the warm-up use the expanding mean.
    """
    tr = true_range(df["high"], df["low"], df["close"])
    tr = tr.fillna(df["high"] - df["low"])
    baseline = tr.rolling(window=lookback, min_periods=1).mean()
    ratio = (tr / baseline.replace(0.0, np.nan)).fillna(1.0)
    return VOLUME_PROXY_SCALE * ratio


def prepare_bars(df: pd.DataFrame, volume_lookback: int = 20) -> pd.DataFrame:
    """Return a sorted OHLCV frame with a UTC ``time`` column.

    - timestamps are parsed to UTC and sorted ascending
    - ``tick_volume`` / ``real_volume`` stand in for a missing ``volume``
    - a missing ``open`` is filled from the prior close
    - with no volume column at all, a true-range proxy is synthesized
    """
    if "time" not in df.columns:
        raise ValueError("DataFrame must contain a 'time' column")

    df = df.copy()
    df["time"] = pd.to_datetime(df["time"], utc=True)
    df = df.sort_values("time").reset_index(drop=True)

    if "volume" not in df.columns:
        alias = next((c for c in VOLUME_ALIASES if c in df.columns), None)
        if alias is not None:
            log.info("Using %s as volume", alias)
            df["volume"] = df[alias].astype(np.float64)
        else:
            log.warning("No volume column; synthesizing a true-range volume proxy")
            df["volume"] = volume_proxy(df, volume_lookback)

    if "open" not in df.columns:
        log.warning("No open column; filling open from the prior close")
        df["open"] = df["close"].shift(1).fillna(df["close"])

    if len(df):
        log.info(
            "Prepared %s bars, %s → %s",
            f"{len(df):,}",
            df["time"].iloc[0].isoformat(),
            df["time"].iloc[-1].isoformat(),
        )
    return df[["time", "open", "high", "low", "close", "volume"]]
