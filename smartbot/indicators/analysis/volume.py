"""Accumulation / distribution read of the latest bars."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from ..core.smoothing import check_period
from ..impl.volume import obv


@dataclass(frozen=True)
class VolumeAnalysis:
    volume_ratio: float
    obv_rising: bool
    obv_falling: bool
    is_accumulation: bool
    is_distribution: bool
    strength: float  # min(ratio, 3) / 3

    @classmethod
    def neutral(cls) -> VolumeAnalysis:
        return cls(1.0, False, False, False, False, 0.0)


def analyze_volume(
    close: pd.Series,
    volume: pd.Series,
    lookback: int = 20,
    ratio_threshold: float = 1.2,
) -> VolumeAnalysis:
    """Relative volume and OBV direction on the last bar.

    Accumulation: close up, OBV rising over the last three bars and
    relative volume above ``ratio_threshold``.  Distribution mirrors it.
    """
    check_period(lookback, "lookback")
    if len(close) < max(lookback + 1, 4):
        return VolumeAnalysis.neutral()

    vol = volume.to_numpy(dtype=np.float64)
    baseline = float(vol[-lookback - 1 : -1].mean())
    ratio = float(vol[-1]) / baseline if baseline > 0 else 1.0

    o = obv(close, volume).to_numpy()
    obv_rising = bool(o[-1] > o[-2] > o[-3])
    obv_falling = bool(o[-1] < o[-2] < o[-3])

    c = close.to_numpy(dtype=np.float64)
    price_up = c[-1] > c[-2]
    price_down = c[-1] < c[-2]

    return VolumeAnalysis(
        volume_ratio=ratio,
        obv_rising=obv_rising,
        obv_falling=obv_falling,
        is_accumulation=bool(price_up and obv_rising and ratio > ratio_threshold),
        is_distribution=bool(price_down and obv_falling and ratio > ratio_threshold),
        strength=min(ratio, 3.0) / 3.0,
    )
