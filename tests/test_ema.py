import numpy as np
import pandas as pd
import pytest

from smartbot.errors import ConfigurationError
from smartbot.indicators.core.smoothing import SmoothingMode
from smartbot.indicators.impl.ema import EMA, ema
from smartbot.indicators.impl.ma import SMA


@pytest.fixture
def ohlcv():
    n = 50
    close = np.linspace(100, 150, n)
    return pd.DataFrame({
        "open": close - 0.5,
        "high": close + 1,
        "low": close - 1,
        "close": close,
        "volume": np.ones(n) * 1000,
    })


def test_ema_basic_computation(ohlcv):
    ema_ind = EMA(period=10)
    result = ema_ind.compute(ohlcv)

    assert result.shape == (len(ohlcv), 1)
    assert result.columns[0] == "ema_10_close"

    # First 9 rows are warm-up
    assert result.iloc[:9].isna().all().all()
    assert result.iloc[9:].notna().all().all()


def test_ema_seeded_with_sma(ohlcv):
    result = ema(ohlcv["close"], 10)
    assert result.iloc[9] == pytest.approx(ohlcv["close"].iloc[:10].mean())

    alpha = 2.0 / 11
    expected = alpha * ohlcv["close"].iloc[10] + (1 - alpha) * result.iloc[9]
    assert result.iloc[10] == pytest.approx(expected)


def test_wilder_mode_uses_one_over_period(ohlcv):
    result = ema(ohlcv["close"], 10, SmoothingMode.WILDER)
    expected = 0.1 * ohlcv["close"].iloc[10] + 0.9 * result.iloc[9]
    assert result.iloc[10] == pytest.approx(expected)
    assert EMA(10, mode=SmoothingMode.WILDER).name == "ema_10_close_wilder"


def test_ema_length_matches_input(ohlcv):
    for period in (1, 5, 20, 49, 60):
        assert len(ema(ohlcv["close"], period)) == len(ohlcv)
    assert ema(ohlcv["close"], 60).isna().all()


def test_ema_determinism(ohlcv):
    ema_ind = EMA(period=10)
    r1 = ema_ind.compute(ohlcv)
    r2 = ema_ind.compute(ohlcv)
    pd.testing.assert_frame_equal(r1, r2)


def test_ema_name():
    assert EMA(period=10).name == "ema_10_close"
    assert EMA(period=50, src="high").name == "ema_50_high"


def test_ema_lookback():
    assert EMA(period=10).lookback == 10
    assert EMA(period=50).lookback == 50


def test_ema_missing_column():
    df = pd.DataFrame({"open": [1, 2, 3]})
    with pytest.raises(ValueError, match="missing required columns"):
        EMA(period=2).compute(df)


@pytest.mark.parametrize("period", [0, -3, 2.5])
def test_invalid_period_raises(period):
    with pytest.raises(ConfigurationError, match="period must be a positive integer"):
        EMA(period=period)
    with pytest.raises(ConfigurationError):
        SMA(period=period)


def test_sma_warmup(ohlcv):
    out = SMA(10).compute(ohlcv)
    assert out.columns[0] == "sma_10_close"
    assert out.iloc[:9].isna().all().all()
    assert out.iloc[9, 0] == pytest.approx(ohlcv["close"].iloc[:10].mean())
