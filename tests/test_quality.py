import numpy as np
import pandas as pd
import pytest

from smartbot.config import QualityConfig
from smartbot.consensus import score_quality
from smartbot.market.snapshot import build_snapshot
from smartbot.strategy.signal import Direction


def _make_uptrend(n_extra=0):
    """Two up steps and one pullback, finishing on a high-volume push."""
    steps = np.r_[np.tile([1.0, 1.0, -0.6], 82)[:244], np.full(5, 1.5)]
    close = 100 + np.cumsum(np.r_[0.0, steps])
    n = len(close)
    volume = np.full(n, 1000.0)
    volume[-5:] = 3000.0
    return pd.DataFrame({
        "time": pd.date_range("2024-01-01", periods=n, freq="h", tz="UTC"),
        "open": np.r_[close[0], close[:-1]],
        "high": close + 0.5,
        "low": close - 0.5,
        "close": close,
        "volume": volume,
    })


def _score(bars, direction, config=None):
    return score_quality(bars, None, build_snapshot(bars), direction, config)


def test_score_is_total_over_max_points():
    q = _score(_make_uptrend(), Direction.BUY)
    assert 0.0 <= q.score <= 1.0
    assert set(q.factors) == {
        "trend", "momentum", "volume", "volatility", "oscillator", "level", "streak",
    }
    assert q.score == pytest.approx(q.total_points / 100.0)
    assert "TOTAL:" in q.breakdown


def test_uptrend_buy_factors():
    q = _score(_make_uptrend(), Direction.BUY)
    # five closes up 1.5 each: the streak caps at its full allotment
    assert q.factors["streak"] == pytest.approx(11.0)
    # 3000 against a 1400 baseline clears the 2.0 full ratio
    assert q.factors["volume"] == pytest.approx(15.0)
    assert q.factors["volatility"] == pytest.approx(15.0)
    assert q.factors["trend"] > 0
    assert q.score >= 0.5


def test_sell_scores_below_buy_in_uptrend():
    bars = _make_uptrend()
    buy = _score(bars, Direction.BUY)
    sell = _score(bars, Direction.SELL)
    assert sell.score < buy.score
    assert sell.factors["momentum"] == 0.0
    assert sell.factors["streak"] == 0.0
    assert sell.factors["trend"] == 0.0


@pytest.mark.parametrize("direction", [None, Direction.HOLD])
def test_no_candidate_scores_zero(direction):
    q = _score(_make_uptrend(), direction)
    assert q.score == 0.0
    assert q.direction is Direction.HOLD
    assert q.breakdown == "No candidate direction"


def test_short_history_scores_zero():
    bars = _make_uptrend().iloc[:40].reset_index(drop=True)
    q = _score(bars, Direction.BUY)
    assert q.score == 0.0
    assert q.breakdown.startswith("Insufficient data")


def test_zero_weighted_factors_drop_out():
    cfg = QualityConfig(volume_points=0.0, streak_points=0.0)
    q = _score(_make_uptrend(), Direction.BUY, cfg)
    assert q.factors["volume"] == 0.0
    assert q.factors["streak"] == 0.0
    assert cfg.max_points == pytest.approx(74.0)
    assert q.score == pytest.approx(q.total_points / 74.0)


def test_features_rsi_column_reused():
    bars = _make_uptrend()
    # an RSI outside the buy band removes the oscillator points
    features = pd.DataFrame({"rsi_14": np.full(len(bars), 90.0)}, index=bars.index)
    q = score_quality(bars, features, build_snapshot(bars), Direction.BUY)
    assert q.factors["oscillator"] == 0.0
