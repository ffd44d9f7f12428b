import numpy as np
import pytest

from smartbot.strategy.signal import Direction, Opinion
from smartbot.strategy.validators import (
    ValidationResult,
    validate_adx_trend,
    validate_band_touch,
    validate_cci_reversal,
    validate_channel_breakout,
    validate_crossover,
    validate_divergence,
    validate_stoch_rsi,
    validate_volume_spike,
)

BUY, SELL = Direction.BUY, Direction.SELL


# ── ValidationResult ─────────────────────────────────────────────────────

def test_validation_result_to_opinion():
    ok = ValidationResult.accept(1.7, "fine")
    assert ok.confidence == 1.0
    assert ok.to_opinion(BUY) == Opinion(BUY, 1.0, "fine")

    bad = ValidationResult.reject("nope")
    op = bad.to_opinion(SELL)
    assert op.is_hold
    assert op.strength == 0.0
    assert op.reason == "nope"


def test_hold_direction_is_rejected():
    with pytest.raises(ValueError, match="Buy or Sell"):
        validate_crossover([1, 2], [1, 2], [1, 2], 1, Direction.HOLD)


# ── Crossover ────────────────────────────────────────────────────────────

_SLOW = [100.0] * 5
_RISING = [10.0, 10.5, 11.0, 11.5, 12.0]
_FALLING = _RISING[::-1]


def test_crossover_accepts_bullish_cross():
    result = validate_crossover([99, 99, 99, 99, 100.5], _SLOW, _RISING, 4, BUY)
    assert result.accepted
    assert result.confidence == pytest.approx(0.9)


def test_crossover_accepts_bearish_cross():
    result = validate_crossover([101, 101, 101, 101, 99.5], _SLOW, _FALLING, 4, SELL)
    assert result.accepted
    assert result.confidence == pytest.approx(0.9)


@pytest.mark.parametrize(
    "fast,close,idx,reason",
    [
        ([101] * 5, _RISING, 4, "No bullish crossover"),
        ([99, 99, 99, 99, 100.05], _RISING, 4, "not above"),
        ([99, 99, 99, 99, 100.5], _FALLING, 4, "Price momentum disagrees"),
        ([99, 99, 99, 99, 100.5], _RISING, 2, "Insufficient history"),
        ([99, np.nan, 99, 99, 100.5], _RISING, 4, "Insufficient history"),
    ],
)
def test_crossover_rejections(fast, close, idx, reason):
    result = validate_crossover(fast, _SLOW, close, idx, BUY)
    assert not result.accepted
    assert reason in result.reason
    assert result.confidence == 0.0


# ── ADX trend ────────────────────────────────────────────────────────────

def test_adx_trend_accepts_rising_adx():
    result = validate_adx_trend([20, 22, 24, 28, 30], [30] * 5, [15] * 5, _RISING, 4, BUY)
    assert result.accepted
    assert result.confidence == pytest.approx(0.6 + 5 / 30)


@pytest.mark.parametrize(
    "adx,direction,close,reason",
    [
        ([20, 22, 24, 23, 24], BUY, _RISING, "ADX too weak"),
        ([20, 22, 24, 30, 28], BUY, _RISING, "ADX not rising"),
        ([20, 22, 24, 28, 30], SELL, _FALLING, "DI gap"),
        ([20, 22, 24, 28, 30], BUY, _FALLING, "Price momentum disagrees"),
    ],
)
def test_adx_trend_rejections(adx, direction, close, reason):
    result = validate_adx_trend(adx, [30] * 5, [15] * 5, close, 4, direction)
    assert not result.accepted
    assert reason in result.reason


# ── CCI reversal ─────────────────────────────────────────────────────────

def test_cci_reversal_buy():
    result = validate_cci_reversal([-50, -120, -150, -80], [10, 9, 8, 8.5], 3, BUY)
    assert result.accepted
    assert result.confidence == pytest.approx(0.9)


def test_cci_reversal_bonus_when_already_turning():
    result = validate_cci_reversal([-50, -120, -110, -95], [10, 9, 8, 8.5], 3, BUY)
    assert result.accepted
    assert result.confidence == pytest.approx(0.6 + 5 / 200 + 0.15)


def test_cci_reversal_sell_and_rejections():
    sell = validate_cci_reversal([50, 120, 150, 80], [8, 9, 10, 9.5], 3, SELL)
    assert sell.accepted

    no_cross = validate_cci_reversal([-50, -60, -70, -80], [10, 9, 8, 8.5], 3, BUY)
    assert "No CCI re-cross of -100" in no_cross.reason

    no_turn = validate_cci_reversal([-50, -120, -150, -80], [10, 9, 8, 7.5], 3, BUY)
    assert "did not turn" in no_turn.reason


# ── Stochastic RSI ───────────────────────────────────────────────────────

_K = [0.3, 0.15, 0.1, 0.12, 0.15, 0.25]
_D = [0.3, 0.2, 0.15, 0.13, 0.17, 0.2]
_CLOSE6 = [10, 9.8, 9.6, 9.5, 9.4, 9.6]


def test_stoch_rsi_cross_from_oversold():
    result = validate_stoch_rsi(_K, _D, [50] * 6, _CLOSE6, 5, BUY)
    assert result.accepted
    assert result.confidence == pytest.approx(0.8 + 0.03)


def test_stoch_rsi_lower_base_outside_rsi_band():
    result = validate_stoch_rsi(_K, _D, [20] * 6, _CLOSE6, 5, BUY)
    assert result.confidence == pytest.approx(0.65 + 0.03)


def test_stoch_rsi_rejections():
    neutral = validate_stoch_rsi(_K[:-1] + [0.5], _D[:-1] + [0.45], [50] * 6, _CLOSE6, 5, BUY)
    assert "neutral zone" in neutral.reason

    no_visit = validate_stoch_rsi(
        [0.3, 0.3, 0.3, 0.3, 0.2, 0.3], [0.3, 0.3, 0.3, 0.3, 0.25, 0.25], [50] * 6, _CLOSE6, 5, BUY
    )
    assert "No %K/%D cross out of oversold" in no_visit.reason

    small_gap = validate_stoch_rsi(_K[:-1] + [0.18], _D[:-1] + [0.17], [50] * 6, _CLOSE6, 5, BUY)
    assert "gap" in small_gap.reason


# ── Channel breakout ─────────────────────────────────────────────────────

def _channel(close, atr=1.0):
    n = len(close)
    return close, [102.0] * n, [95.0] * n, [atr] * n


def test_channel_breakout_accepts():
    result = validate_channel_breakout(*_channel([100, 100.5, 101, 103]), 3, BUY)
    assert result.accepted
    assert result.confidence == pytest.approx(0.5 + 0.9 / 4)


@pytest.mark.parametrize(
    "close,atr,reason",
    [
        ([100, 100.5, 101, 101.5], 1.0, "No breakout above channel"),
        ([100, 100.5, 102.5, 103], 1.0, "Prior bar already outside channel"),
        ([100, 100.5, 101, 103], 0.1, "Volatility"),
        ([100, 101.5, 101, 103], 1.0, "Only 1 consecutive bars"),
    ],
)
def test_channel_breakout_rejections(close, atr, reason):
    result = validate_channel_breakout(*_channel(close, atr), 3, BUY)
    assert not result.accepted
    assert reason in result.reason


def test_channel_breakout_sell():
    result = validate_channel_breakout(*_channel([98, 97, 96, 94]), 3, SELL)
    assert result.accepted


# ── Volume spike ─────────────────────────────────────────────────────────

def test_volume_spike_accepts():
    result = validate_volume_spike([100.0] * 20 + [200.0], [100.0] * 20 + [101.0], 20, BUY)
    assert result.accepted
    assert result.confidence == pytest.approx((2.0 - 1.5) / 1.5 + 0.6)


def test_volume_spike_rejections():
    down_bar = validate_volume_spike([100.0] * 20 + [300.0], [100.0] * 20 + [99.0], 20, BUY)
    assert "Volume spike on a down bar" in down_bar.reason

    quiet = validate_volume_spike([100.0] * 20 + [140.0], [100.0] * 20 + [101.0], 20, BUY)
    assert "No volume spike" in quiet.reason

    flat = validate_volume_spike([100.0] * 20 + [300.0], [100.0] * 21, 20, BUY)
    assert "too small" in flat.reason

    short = validate_volume_spike([100.0] * 10, [100.0] * 10, 9, BUY)
    assert "Insufficient history" in short.reason


# ── Band touch ───────────────────────────────────────────────────────────

def test_band_touch_buy_and_sell():
    buy = validate_band_touch([96, 95.0, 95.4], [105] * 3, [95] * 3, [30, 26, 24], 2, BUY)
    assert buy.accepted
    assert buy.confidence == pytest.approx(0.5 + 6 / 30)

    sell = validate_band_touch([104, 105.5, 105.2], [105] * 3, [95] * 3, [70, 78, 80], 2, SELL)
    assert sell.accepted
    assert sell.confidence == pytest.approx(0.5 + 10 / 30)


@pytest.mark.parametrize(
    "close,rsi,reason",
    [
        ([96, 96.5, 97], 24, "Price not at lower band"),
        ([96, 95.0, 95.4], 35, "not at extreme"),
        ([96, 95.6, 95.4], 24, "No bounce off the band yet"),
    ],
)
def test_band_touch_rejections(close, rsi, reason):
    result = validate_band_touch(close, [105] * 3, [95] * 3, [rsi] * 3, 2, BUY)
    assert not result.accepted
    assert reason in result.reason


# ── Divergence ───────────────────────────────────────────────────────────

def _divergence_series(recent_low=89.0, recent_ind=30.0):
    close = np.full(19, 95.0)
    indicator = np.full(19, 50.0)
    close[8], indicator[8] = 90.0, 20.0
    close[17], indicator[17] = recent_low, recent_ind
    close[18] = 90.0
    return close, indicator


def test_bullish_divergence():
    close, ind = _divergence_series()
    result = validate_divergence(close, ind, 18, BUY, normalizer=40.0)
    assert result.accepted
    assert result.confidence == pytest.approx(0.55 + 10 / 40)
    assert result.reason.startswith("Bullish divergence")


def test_bearish_divergence():
    close, ind = _divergence_series()
    result = validate_divergence(200 - close, 100 - ind, 18, SELL, normalizer=40.0)
    assert result.accepted
    assert result.reason.startswith("Bearish divergence")


def test_divergence_rejections():
    close, ind = _divergence_series(recent_ind=15.0)
    assert "Indicator confirms" in validate_divergence(close, ind, 18, BUY).reason

    close, ind = _divergence_series(recent_low=91.0)
    assert "No new price low" in validate_divergence(close, ind, 18, BUY).reason

    close, ind = _divergence_series()
    close[18] = 88.5
    assert "not turned" in validate_divergence(close, ind, 18, BUY).reason

    close, ind = _divergence_series()
    assert "Insufficient history" in validate_divergence(close, ind, 17, BUY).reason
