"""Firing and rejecting cases for each evaluator on hand-built features.

Every context is ``N`` bars, flat at the first tail value and ending with
the given tail.  Features not named in a test sit at 50.0, and a short
feature list is right-aligned with its first value filling the history.
"""

import math

import numpy as np
import pandas as pd
import pytest

from smartbot.indicators import (
    CandlePattern,
    MarketRegime,
    PriceLevel,
    RegimeAnalysis,
    TimeframeAlignment,
    TrendDirection,
    VolumeAnalysis,
)
from smartbot.market import MarketContext, MarketSnapshot
from smartbot.strategy import Direction, StrategyContext
from smartbot.strategy.breakout import (
    BreakoutVolumeStrategy,
    SqueezeMomentumStrategy,
    VwapCrossStrategy,
)
from smartbot.strategy.divergence import (
    MacdDivergenceStrategy,
    MomentumDivergenceStrategy,
    MtfAlignmentStrategy,
    RegimeMomentumStrategy,
)
from smartbot.strategy.mean_reversion import (
    BollingerReversionStrategy,
    CciReversionStrategy,
    MeanReversionSrStrategy,
    MfiReversalStrategy,
    PivotReversalStrategy,
    StochRsiReversalStrategy,
)
from smartbot.strategy.trend import ParabolicSarStrategy, TrendFollowingMtfStrategy

N = 220

ACCUMULATION = VolumeAnalysis(2.0, True, False, True, False, 2.0 / 3.0)
DISTRIBUTION = VolumeAnalysis(2.0, False, True, False, True, 2.0 / 3.0)
STRONG_DOWNTREND = MarketContext(0.01, 0.01, 1.0, 0.02, False, True, False, 0.03)
ALIGNED_UP = TimeframeAlignment(TrendDirection.UP, TrendDirection.UP, True, 0.6)
ALIGNED_DOWN = TimeframeAlignment(TrendDirection.DOWN, TrendDirection.DOWN, True, 0.6)
RISING = [100.0, 100.5, 101.0, 101.5, 102.0, 102.5]
FALLING = RISING[::-1]


def _series(values):
    values = np.atleast_1d(np.asarray(values, dtype=float))
    return np.r_[np.full(N - len(values), values[0]), values]


def _regime(kind, confidence=0.6, up=False, down=False, description="test regime"):
    return RegimeAnalysis(kind, confidence, 25.0, 0.01, 0.1, 0.04, up, down, description)


def _market(close, atr=1.0, context=None, regime=None, timeframes=None, volume=None,
            levels=(), patterns=()):
    return MarketSnapshot(
        close=close,
        atr=atr,
        context=context or MarketContext.neutral(),
        regime=regime or _regime(MarketRegime.RANGING),
        timeframes=timeframes or TimeframeAlignment(
            TrendDirection.NEUTRAL, TrendDirection.NEUTRAL, False, 0.0
        ),
        volume=volume or VolumeAnalysis.neutral(),
        levels=tuple(levels),
        patterns=tuple(patterns),
    )


def _evaluate(strategy, tail=(100.0,), features=None, spread=0.5, **market):
    close = _series(tail)
    bars = pd.DataFrame({
        "time": pd.date_range("2024-01-01", periods=N, freq="h", tz="UTC"),
        "open": np.r_[close[0], close[:-1]],
        "high": close + spread,
        "low": close - spread,
        "close": close,
        "volume": np.full(N, 1000.0),
    })
    given = features or {}
    frame = pd.DataFrame(
        {col: _series(given.get(col, 50.0)) for col in strategy.required_features},
        index=bars.index,
    )
    ctx = StrategyContext(
        ts=bars["time"].iloc[-1],
        bars=bars,
        features=frame,
        market=_market(float(close[-1]), **market),
        bar_index=N - 1,
    )
    return strategy.on_bar(ctx)


def _assert_opinion(op, direction, strength=None, reason=None):
    assert op.direction is direction, op.reason
    if strength is not None:
        assert op.strength == pytest.approx(strength)
    if reason is not None:
        assert op.reason == reason


# ── bollinger_reversion ──────────────────────────────────────────────────

def _bollinger(lower=96.2, rsi=25.0):
    strategy = BollingerReversionStrategy()
    upper_col, middle_col, lower_col = strategy.indicators[0].columns
    features = {upper_col: 104.0, middle_col: 100.0, lower_col: lower, strategy.indicators[1].name: rsi}
    return strategy, features


def test_bollinger_lower_band_touch_buys():
    strategy, features = _bollinger()
    op = _evaluate(strategy, [95.0, 96.0], features)
    _assert_opinion(op, Direction.BUY, 0.5 + 5 / 30, "Band touch with RSI 25.0")


def test_bollinger_accumulation_adds_bonus():
    strategy, features = _bollinger()
    op = _evaluate(strategy, [95.0, 96.0], features, volume=ACCUMULATION)
    _assert_opinion(op, Direction.BUY, 0.6 + 5 / 30)


def test_bollinger_suppressed_in_strong_trend():
    strategy, features = _bollinger()
    op = _evaluate(
        strategy, [95.0, 96.0], features, regime=_regime(MarketRegime.STRONG_TRENDING, down=True)
    )
    _assert_opinion(op, Direction.HOLD, reason="Suppressed in strong trend")


def test_bollinger_distribution_vetoes_buy():
    strategy, features = _bollinger()
    op = _evaluate(strategy, [95.0, 96.0], features, volume=DISTRIBUTION)
    _assert_opinion(op, Direction.HOLD, reason="Volume disagrees with reversal")


def test_bollinger_rsi_not_oversold_holds():
    strategy, features = _bollinger(rsi=35.0)
    op = _evaluate(strategy, [95.0, 96.0], features)
    _assert_opinion(op, Direction.HOLD, reason="RSI 35.0 not at extreme")


# ── mean_reversion_sr ────────────────────────────────────────────────────

def _sr(rsi=30.0):
    strategy = MeanReversionSrStrategy()
    upper_col, middle_col, lower_col = strategy.indicators[0].columns
    features = {upper_col: 104.0, middle_col: 100.0, lower_col: 96.0, strategy.indicators[1].name: rsi}
    return strategy, features


SUPPORT_97 = PriceLevel(97.0, 3, 0.6, is_support=True)


def test_sr_bounce_off_support_buys():
    strategy, features = _sr()
    op = _evaluate(strategy, [97.5, 98.0], features, levels=[SUPPORT_97])
    _assert_opinion(
        op, Direction.BUY, 0.5 + 0.2 * 0.6 + 0.3 * 5 / 35,
        "Bounce off 97.00 (3 touches), RSI 30.0",
    )


def test_sr_ignores_swing_high_below_price():
    strategy, features = _sr()
    level = PriceLevel(97.0, 3, 0.6, is_support=False)
    op = _evaluate(strategy, [97.5, 98.0], features, levels=[level])
    _assert_opinion(op, Direction.HOLD, reason="No nearby support or resistance")


def test_sr_suppressed_in_strong_trend():
    strategy, features = _sr()
    op = _evaluate(
        strategy, [97.5, 98.0], features, levels=[SUPPORT_97],
        regime=_regime(MarketRegime.STRONG_TRENDING, down=True),
    )
    _assert_opinion(op, Direction.HOLD, reason="Suppressed in strong trend")


def test_sr_distribution_vetoes_bounce():
    strategy, features = _sr()
    op = _evaluate(strategy, [97.5, 98.0], features, levels=[SUPPORT_97], volume=DISTRIBUTION)
    _assert_opinion(op, Direction.HOLD, reason="Volume disagrees with reversal")


def test_sr_rsi_not_extreme_holds():
    strategy, features = _sr(rsi=50.0)
    op = _evaluate(strategy, [97.5, 98.0], features, levels=[SUPPORT_97])
    _assert_opinion(op, Direction.HOLD, reason="RSI 50.0 not at extreme")


def test_sr_without_bounce_holds():
    strategy, features = _sr()
    op = _evaluate(strategy, [98.5, 98.0], features, levels=[SUPPORT_97])
    _assert_opinion(op, Direction.HOLD, reason="No bounce off support")


# ── cci_reversion ────────────────────────────────────────────────────────

def _cci(values):
    strategy = CciReversionStrategy()
    return strategy, {strategy.indicators[0].name: values}


def test_cci_recross_from_below_buys():
    strategy, features = _cci([-150.0, -120.0, -80.0])
    op = _evaluate(strategy, [99.0, 98.0, 99.0], features)
    _assert_opinion(op, Direction.BUY, 0.9, "CCI re-crossed -80.0")


def test_cci_recross_from_above_sells():
    strategy, features = _cci([150.0, 120.0, 80.0])
    op = _evaluate(strategy, [101.0, 102.0, 101.0], features)
    _assert_opinion(op, Direction.SELL, 0.9, "CCI re-crossed 80.0")


def test_cci_still_extreme_holds():
    strategy, features = _cci([-150.0, -120.0, -110.0])
    op = _evaluate(strategy, [99.0, 98.0, 99.0], features)
    _assert_opinion(op, Direction.HOLD, reason="No CCI re-cross of -100")


def test_cci_price_not_turning_holds():
    strategy, features = _cci([-150.0, -120.0, -80.0])
    op = _evaluate(strategy, [99.0, 98.0, 97.5], features)
    _assert_opinion(op, Direction.HOLD, reason="Price did not turn with CCI")


# ── pivot_reversal ───────────────────────────────────────────────────────

PIVOTS = {"pivot": 100.0, "pivot_s1": 98.0, "pivot_r1": 102.0, "pivot_s2": 96.0, "pivot_r2": 104.0}


def test_pivot_s1_rejection_buys():
    op = _evaluate(PivotReversalStrategy(), [98.2, 98.8], PIVOTS, spread=0.9)
    _assert_opinion(op, Direction.BUY, 0.55 + (0.8 / 98.8) / 0.02, "Rejected S1 pivot")


def test_pivot_r1_rejection_sells():
    op = _evaluate(PivotReversalStrategy(), [101.8, 101.2], PIVOTS, spread=0.9)
    _assert_opinion(op, Direction.SELL, reason="Rejected R1 pivot")


def test_pivot_against_strong_trend_holds():
    op = _evaluate(PivotReversalStrategy(), [98.2, 98.8], PIVOTS, spread=0.9, context=STRONG_DOWNTREND)
    _assert_opinion(op, Direction.HOLD, reason="Pivot reversal against a strong trend")


def test_pivot_far_from_levels_holds():
    op = _evaluate(PivotReversalStrategy(), [100.0, 100.5], PIVOTS)
    _assert_opinion(op, Direction.HOLD, reason="No pivot rejection")


# ── stoch_rsi_reversal ───────────────────────────────────────────────────

def _stoch(k_last=0.3, d_last=0.22):
    strategy = StochRsiReversalStrategy()
    k_col, d_col = strategy.indicators[0].columns
    return strategy, {
        k_col: [0.3, 0.15, 0.1, 0.12, 0.15, k_last],
        d_col: [0.3, 0.2, 0.15, 0.13, 0.2, d_last],
        strategy.indicators[1].name: 45.0,
    }


def test_stoch_rsi_cross_out_of_oversold_buys():
    strategy, features = _stoch()
    op = _evaluate(strategy, [99.0, 99.5], features)
    _assert_opinion(op, Direction.BUY, 0.8 + 0.08, "Stoch RSI cross out of oversold")


def test_stoch_rsi_back_in_neutral_zone_holds():
    strategy, features = _stoch(k_last=0.5, d_last=0.4)
    op = _evaluate(strategy, [99.0, 99.5], features)
    _assert_opinion(op, Direction.HOLD, reason="Stoch RSI already back in the neutral zone")


def test_stoch_rsi_price_not_turning_holds():
    strategy, features = _stoch()
    op = _evaluate(strategy, [99.5, 99.0], features)
    _assert_opinion(op, Direction.HOLD, reason="Price did not turn with Stoch RSI")


# ── mfi_reversal ─────────────────────────────────────────────────────────

def _mfi(values):
    strategy = MfiReversalStrategy()
    return strategy, {strategy.indicators[0].name: values}


def test_mfi_leaving_oversold_buys():
    strategy, features = _mfi([15.0, 28.0])
    op = _evaluate(strategy, [99.0, 99.5], features)
    _assert_opinion(op, Direction.BUY, 0.75, "MFI left oversold at 28.0")


def test_mfi_leaving_overbought_sells():
    strategy, features = _mfi([85.0, 75.0])
    op = _evaluate(strategy, [101.0, 100.5], features)
    _assert_opinion(op, Direction.SELL, 0.675, "MFI left overbought at 75.0")


def test_mfi_price_not_following_holds():
    strategy, features = _mfi([15.0, 28.0])
    op = _evaluate(strategy, [99.5, 99.0], features)
    _assert_opinion(op, Direction.HOLD, reason="Price did not follow MFI")


def test_mfi_mid_range_holds():
    strategy, features = _mfi([50.0, 50.0])
    op = _evaluate(strategy, [99.0, 99.5], features)
    _assert_opinion(op, Direction.HOLD, reason="MFI 50.0 not leaving an extreme")


# ── breakout_volume ──────────────────────────────────────────────────────

def _breakout(adx=(15.0, 15.0, 16.0, 17.0, 20.0, 25.0), plus=30.0, minus=15.0):
    strategy = BreakoutVolumeStrategy()
    adx_ind, channel, atr = strategy.indicators
    adx_col, plus_col, minus_col = adx_ind.columns
    upper_col, middle_col, lower_col = channel.columns
    return strategy, {
        adx_col: list(adx), plus_col: plus, minus_col: minus,
        upper_col: 101.0, middle_col: 100.0, lower_col: 99.0,
        atr.name: 1.0,
    }


def test_breakout_volume_fires_on_accumulating_break():
    strategy, features = _breakout()
    op = _evaluate(strategy, [100.0, 100.5, 101.2], features, volume=ACCUMULATION)
    _assert_opinion(op, Direction.BUY, 0.75, "Channel breakout 0.20 ATR on 2.00x volume")


def test_breakout_volume_sells_on_distributing_break():
    strategy, features = _breakout(plus=15.0, minus=30.0)
    op = _evaluate(strategy, [100.0, 99.5, 98.8], features, volume=DISTRIBUTION)
    _assert_opinion(op, Direction.SELL, 0.75)


def test_breakout_volume_prior_bar_outside_channel_holds():
    # Previous close already above the channel; the last bar only inches higher
    strategy, features = _breakout()
    heavy = VolumeAnalysis(3.0, True, False, True, False, 1.0)
    op = _evaluate(strategy, [100.0, 105.0, 105.01], features, volume=heavy)
    _assert_opinion(op, Direction.HOLD, reason="Prior bar already outside channel")


def test_breakout_volume_small_break_holds():
    strategy, features = _breakout()
    op = _evaluate(strategy, [100.0, 100.5, 101.05], features, volume=ACCUMULATION)
    assert op.is_hold
    assert op.reason.startswith("Breakout 0.05 ATR below")


def test_breakout_volume_needs_consecutive_bars():
    strategy, features = _breakout()
    op = _evaluate(strategy, [100.0, 99.8, 101.2], features, volume=ACCUMULATION)
    _assert_opinion(op, Direction.HOLD, reason="Only 1 consecutive bars in breakout direction")


def test_breakout_volume_requires_accumulation():
    strategy, features = _breakout()
    loud = VolumeAnalysis(2.0, False, False, False, False, 2.0 / 3.0)
    op = _evaluate(strategy, [100.0, 100.5, 101.2], features, volume=loud)
    _assert_opinion(op, Direction.HOLD, reason="Break without accumulation")


def test_breakout_volume_sell_requires_distribution():
    strategy, features = _breakout(plus=15.0, minus=30.0)
    op = _evaluate(strategy, [100.0, 99.5, 98.8], features, volume=ACCUMULATION)
    _assert_opinion(op, Direction.HOLD, reason="Break without distribution")


def test_breakout_volume_without_consolidation_holds():
    strategy, features = _breakout(adx=(25.0,))
    op = _evaluate(strategy, [100.0, 100.5, 101.2], features, volume=ACCUMULATION)
    _assert_opinion(op, Direction.HOLD, reason="No consolidation (ADX 25.0)")


def test_breakout_volume_pattern_bonus():
    strategy, features = _breakout()
    op = _evaluate(
        strategy, [100.0, 100.5, 101.2], features, volume=ACCUMULATION,
        patterns=[CandlePattern("hammer", True, 0.7)],
    )
    _assert_opinion(op, Direction.BUY, 0.85)
    assert op.reason.endswith(", hammer")


# ── vwap_cross ───────────────────────────────────────────────────────────

def _vwap(ratio=1.5):
    strategy = VwapCrossStrategy()
    vwap, volume_ratio = strategy.indicators
    return strategy, {vwap.name: 100.0, volume_ratio.name: ratio}


def test_vwap_cross_up_buys():
    strategy, features = _vwap()
    op = _evaluate(strategy, [99.5, 100.5], features)
    _assert_opinion(op, Direction.BUY, 0.5 + (0.5 / 100.5) / 0.01, "VWAP cross Buy on 1.50x volume")


def test_vwap_cross_down_sells():
    strategy, features = _vwap()
    op = _evaluate(strategy, [100.5, 99.5], features)
    _assert_opinion(op, Direction.SELL, reason="VWAP cross Sell on 1.50x volume")


def test_vwap_cross_on_thin_volume_holds():
    strategy, features = _vwap(ratio=0.8)
    op = _evaluate(strategy, [99.5, 100.5], features)
    _assert_opinion(op, Direction.HOLD, reason="Volume ratio 0.80 too low for VWAP cross")


def test_vwap_no_cross_holds():
    strategy, features = _vwap()
    op = _evaluate(strategy, [100.5, 100.6], features)
    _assert_opinion(op, Direction.HOLD, reason="No VWAP cross")


# ── squeeze_momentum ─────────────────────────────────────────────────────

def _squeeze(bb_upper, bb_lower):
    strategy = SqueezeMomentumStrategy()
    bb, kc = strategy.indicators
    return strategy, {
        bb.columns[0]: bb_upper, bb.columns[1]: 100.0, bb.columns[2]: bb_lower,
        kc.columns[0]: 102.0, kc.columns[1]: 100.0, kc.columns[2]: 98.0,
    }


def test_squeeze_release_with_upward_momentum_buys():
    strategy, features = _squeeze([101.0, 103.0], [99.0, 97.0])
    op = _evaluate(strategy, [100.0, 101.0], features)
    _assert_opinion(op, Direction.BUY, 0.5 + (1 / 101) / 0.02, "Squeeze released, momentum +0.99%")


def test_squeeze_release_with_downward_momentum_sells():
    strategy, features = _squeeze([101.0, 103.0], [99.0, 97.0])
    op = _evaluate(strategy, [100.0, 99.0], features)
    _assert_opinion(op, Direction.SELL)


def test_squeeze_still_on_holds():
    strategy, features = _squeeze(101.0, 99.0)
    op = _evaluate(strategy, [100.0, 101.0], features)
    _assert_opinion(op, Direction.HOLD, reason="Squeeze still on")


def test_no_prior_squeeze_holds():
    strategy, features = _squeeze(103.0, 97.0)
    op = _evaluate(strategy, [100.0, 101.0], features)
    _assert_opinion(op, Direction.HOLD, reason="No squeeze on the prior bar")


# ── macd_divergence / momentum_divergence ────────────────────────────────

def _lower_low_tail():
    """Older low of 95, a lower low of 94 two bars ago, then a turn up."""
    close = np.full(24, 100.0)
    close[10] = 95.0
    close[21:] = [94.0, 94.2, 94.6]
    return close


def _histogram(old=0.0, new=0.0, last_two=(0.0, 0.0)):
    hist = np.zeros(24)
    hist[10], hist[21] = old, new
    hist[22:] = last_two
    return hist


def test_macd_bullish_divergence_buys():
    strategy = MacdDivergenceStrategy()
    hist_col = strategy.indicators[0].columns[2]
    op = _evaluate(strategy, _lower_low_tail(), {hist_col: _histogram(-0.5, -0.1)})
    assert op.direction is Direction.BUY
    assert op.reason.startswith("MACD histogram: Bullish divergence")


def test_macd_confirming_histogram_holds():
    strategy = MacdDivergenceStrategy()
    hist_col = strategy.indicators[0].columns[2]
    op = _evaluate(strategy, _lower_low_tail(), {hist_col: _histogram(-0.5, -0.8)})
    assert op.is_hold


def _momentum(rsi_last=36.0, hist=None):
    strategy = MomentumDivergenceStrategy()
    rsi, macd = strategy.indicators
    rsi_values = np.full(24, 45.0)
    rsi_values[10], rsi_values[21] = 25.0, 32.0
    rsi_values[22:] = [34.0, rsi_last]
    if hist is None:
        hist = _histogram(last_two=(-0.3, -0.2))
    return strategy, {rsi.name: rsi_values, macd.columns[2]: hist}


def test_momentum_divergence_from_oversold_buys():
    strategy, features = _momentum()
    op = _evaluate(strategy, _lower_low_tail(), features)
    _assert_opinion(op, Direction.BUY, 0.8, "RSI: Bullish divergence, indicator gap 7.000")


def test_momentum_divergence_histogram_confirmation_bonus():
    strategy, features = _momentum(hist=_histogram(-0.5, -0.1, (-0.3, -0.2)))
    op = _evaluate(strategy, _lower_low_tail(), features)
    _assert_opinion(op, Direction.BUY, 0.95)
    assert op.reason.endswith(", histogram confirms")


def test_momentum_divergence_mid_range_rsi_holds():
    strategy, features = _momentum(rsi_last=45.0)
    op = _evaluate(strategy, _lower_low_tail(), features)
    _assert_opinion(op, Direction.HOLD, reason="RSI 45.0 not below 40")


def test_momentum_divergence_needs_histogram_turn():
    strategy, features = _momentum(hist=_histogram(last_two=(-0.2, -0.3)))
    op = _evaluate(strategy, _lower_low_tail(), features)
    _assert_opinion(op, Direction.HOLD, reason="Histogram not turning up")


def test_momentum_divergence_zones_are_configurable():
    strategy = MomentumDivergenceStrategy(buy_rsi_max=50.0)
    _, features = _momentum(rsi_last=45.0)
    op = _evaluate(strategy, _lower_low_tail(), features)
    assert op.direction is Direction.BUY


# ── mtf_alignment / regime_momentum ──────────────────────────────────────

def test_mtf_alignment_buys_with_momentum():
    op = _evaluate(MtfAlignmentStrategy(), RISING, timeframes=ALIGNED_UP)
    _assert_opinion(op, Direction.BUY, 0.75, "Timeframes aligned up")


def test_mtf_alignment_sells_with_momentum():
    op = _evaluate(MtfAlignmentStrategy(), FALLING, timeframes=ALIGNED_DOWN)
    _assert_opinion(op, Direction.SELL, 0.75, "Timeframes aligned down")


def test_mtf_disagreement_holds():
    split = TimeframeAlignment(TrendDirection.UP, TrendDirection.DOWN, False, 0.3)
    op = _evaluate(MtfAlignmentStrategy(), RISING, timeframes=split)
    _assert_opinion(op, Direction.HOLD, reason="Timeframes disagree (up vs down)")


def test_mtf_momentum_against_timeframes_holds():
    op = _evaluate(MtfAlignmentStrategy(), FALLING, timeframes=ALIGNED_UP)
    _assert_opinion(op, Direction.HOLD, reason="Momentum disagrees with timeframes")


def test_regime_momentum_follows_uptrend():
    regime = _regime(MarketRegime.WEAK_TRENDING, 0.6, up=True, description="Weak uptrend")
    op = _evaluate(RegimeMomentumStrategy(), RISING, regime=regime)
    _assert_opinion(op, Direction.BUY, 0.8, "Weak uptrend, following Buy")


@pytest.mark.parametrize("regime, reason", [
    (_regime(MarketRegime.RANGING), "Regime ranging is not trending"),
    (_regime(MarketRegime.STRONG_TRENDING, 0.2, up=True), "Regime confidence 0.20 too low"),
    (_regime(MarketRegime.WEAK_TRENDING, 0.6), "DI and EMA stack disagree"),
])
def test_regime_momentum_gates(regime, reason):
    op = _evaluate(RegimeMomentumStrategy(), RISING, regime=regime)
    _assert_opinion(op, Direction.HOLD, reason=reason)


def test_regime_momentum_against_price_holds():
    regime = _regime(MarketRegime.WEAK_TRENDING, 0.6, up=True)
    op = _evaluate(RegimeMomentumStrategy(), FALLING, regime=regime)
    _assert_opinion(op, Direction.HOLD, reason="Momentum disagrees with regime")


# ── trend_following_mtf ──────────────────────────────────────────────────

def _trend_mtf(fast=101.5, slow=100.0, rsi=55.0):
    strategy = TrendFollowingMtfStrategy()
    fast_ind, slow_ind, rsi_ind = strategy.indicators
    return strategy, {fast_ind.name: fast, slow_ind.name: slow, rsi_ind.name: rsi}


STRONG_UP = _regime(MarketRegime.STRONG_TRENDING, 0.8, up=True)


def test_trend_mtf_pullback_buys():
    strategy, features = _trend_mtf()
    op = _evaluate(strategy, [101.5, 102.0], features, regime=STRONG_UP, timeframes=ALIGNED_UP)
    _assert_opinion(
        op, Direction.BUY, 0.95,
        "strong_trending trend aligned across timeframes, pullback to EMA",
    )


def test_trend_mtf_without_pullback():
    strategy, features = _trend_mtf(fast=100.5)
    op = _evaluate(strategy, [101.5, 102.0], features, regime=STRONG_UP, timeframes=ALIGNED_UP)
    _assert_opinion(op, Direction.BUY, 0.85, "strong_trending trend aligned across timeframes")


def test_trend_mtf_sells_in_downtrend():
    strategy, features = _trend_mtf(fast=98.5, slow=100.0, rsi=45.0)
    regime = _regime(MarketRegime.WEAK_TRENDING, 0.8, down=True)
    op = _evaluate(strategy, [98.5, 98.0], features, regime=regime, timeframes=ALIGNED_DOWN)
    assert op.direction is Direction.SELL


def test_trend_mtf_rsi_outside_band_holds():
    strategy, features = _trend_mtf(rsi=75.0)
    op = _evaluate(strategy, [101.5, 102.0], features, regime=STRONG_UP, timeframes=ALIGNED_UP)
    _assert_opinion(op, Direction.HOLD, reason="RSI 75.0 outside Buy band")


def test_trend_mtf_emas_not_stacked_holds():
    strategy, features = _trend_mtf(fast=103.0)
    op = _evaluate(strategy, [101.5, 102.0], features, regime=STRONG_UP, timeframes=ALIGNED_UP)
    _assert_opinion(op, Direction.HOLD, reason="Price and EMAs not stacked with the trend")


def test_trend_mtf_needs_trending_regime_and_alignment():
    strategy, features = _trend_mtf()
    ranging = _evaluate(
        strategy, [101.5, 102.0], features,
        regime=_regime(MarketRegime.RANGING), timeframes=ALIGNED_UP,
    )
    _assert_opinion(ranging, Direction.HOLD, reason="Regime ranging is not trending")
    split = _evaluate(strategy, [101.5, 102.0], features, regime=STRONG_UP)
    _assert_opinion(split, Direction.HOLD, reason="Timeframes not aligned")


# ── parabolic_sar ────────────────────────────────────────────────────────

def _sar(sar, trend):
    strategy = ParabolicSarStrategy()
    sar_col, trend_col = strategy.indicators[0].columns
    return strategy, {sar_col: sar, trend_col: trend}


def test_sar_first_defined_bar_is_not_a_flip():
    strategy, features = _sar(99.0, [math.nan, 1.0])
    op = _evaluate(strategy, [100.0, 101.0], features)
    _assert_opinion(op, Direction.HOLD, reason="SAR not ready on the prior bar")


def test_sar_flip_buys():
    strategy, features = _sar(100.5, [-1.0, 1.0])
    op = _evaluate(strategy, [100.0, 101.0], features)
    _assert_opinion(op, Direction.BUY, 0.55 + (0.5 / 101) / 0.02, "SAR flipped Buy")
