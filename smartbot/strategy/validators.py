"""Reusable signal validators.

Each validator looks at plain arrays ending at ``idx`` and checks, in order,
that there is enough history, that the qualifying event happened, that it
clears a minimum magnitude and that short-horizon price action agrees with
the requested direction.  The first failing check decides the reason.

On acceptance the confidence is ``clamp01(base + excess / normalizer)``,
sometimes boosted by a secondary confirmation, so confidence grows with
how far the event clears its threshold.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .signal import Direction, Opinion, clamp01


@dataclass(frozen=True)
class ValidationResult:
    accepted: bool
    confidence: float = 0.0
    reason: str = ""

    @classmethod
    def accept(cls, confidence: float, reason: str) -> ValidationResult:
        return cls(True, clamp01(confidence), reason)

    @classmethod
    def reject(cls, reason: str) -> ValidationResult:
        return cls(False, 0.0, reason)

    def to_opinion(self, direction: Direction) -> Opinion:
        if not self.accepted:
            return Opinion.hold(self.reason)
        return Opinion(direction, self.confidence, self.reason)


def _as_array(values) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def _has_history(idx: int, needed: int, *series: np.ndarray) -> bool:
    if idx < needed:
        return False
    for s in series:
        if idx >= len(s):
            return False
        window = s[idx - needed : idx + 1]
        if np.isnan(window).any():
            return False
    return True


def _moved(close: np.ndarray, idx: int, bars: int, direction: Direction) -> bool:
    change = close[idx] - close[idx - bars]
    return change > 0 if direction is Direction.BUY else change < 0


def _check_direction(direction: Direction) -> None:
    if direction is Direction.HOLD:
        raise ValueError("validators need a Buy or Sell direction")


def validate_crossover(
    fast,
    slow,
    close,
    idx: int,
    direction: Direction,
    min_separation: float = 0.001,
    momentum_bars: int = 3,
    normalizer: float = 0.01,
) -> ValidationResult:
    """Fast line crossing the slow line on this bar."""
    _check_direction(direction)
    fast, slow, close = _as_array(fast), _as_array(slow), _as_array(close)
    if not _has_history(idx, max(1, momentum_bars), fast, slow, close):
        return ValidationResult.reject("Insufficient history for crossover")

    sign = direction.sign
    before = sign * (fast[idx - 1] - slow[idx - 1])
    now = sign * (fast[idx] - slow[idx])
    if not (before <= 0 < now):
        return ValidationResult.reject(f"No {'bullish' if sign > 0 else 'bearish'} crossover")

    separation = now / slow[idx]
    if separation <= min_separation:
        return ValidationResult.reject(
            f"Crossover separation {separation:.4f} not above {min_separation:.4f}"
        )

    if not _moved(close, idx, momentum_bars, direction):
        return ValidationResult.reject("Price momentum disagrees with crossover")

    confidence = 0.5 + (separation - min_separation) / normalizer
    return ValidationResult.accept(confidence, f"Crossover confirmed, separation {separation:.2%}")


def validate_adx_trend(
    adx,
    di_plus,
    di_minus,
    close,
    idx: int,
    direction: Direction,
    threshold: float = 25.0,
    min_di_gap: float = 5.0,
    momentum_bars: int = 3,
    normalizer: float = 30.0,
) -> ValidationResult:
    """Strong and strengthening trend with the directional index on the right side."""
    _check_direction(direction)
    adx, di_plus, di_minus, close = (_as_array(s) for s in (adx, di_plus, di_minus, close))
    if not _has_history(idx, max(1, momentum_bars), adx, di_plus, di_minus, close):
        return ValidationResult.reject("Insufficient history for ADX")

    if adx[idx] <= threshold:
        return ValidationResult.reject(f"ADX too weak ({adx[idx]:.1f} <= {threshold:g})")
    if adx[idx] <= adx[idx - 1]:
        return ValidationResult.reject("ADX not rising")

    gap = (di_plus[idx] - di_minus[idx]) * direction.sign
    if gap <= min_di_gap:
        return ValidationResult.reject(f"DI gap {gap:.1f} not above {min_di_gap:g}")

    if not _moved(close, idx, momentum_bars, direction):
        return ValidationResult.reject("Price momentum disagrees with DI")

    confidence = 0.6 + (adx[idx] - threshold) / normalizer
    return ValidationResult.accept(confidence, f"ADX {adx[idx]:.1f} rising, DI gap {gap:.1f}")


def validate_cci_reversal(
    cci,
    close,
    idx: int,
    direction: Direction,
    level: float = 100.0,
    min_change: float = 10.0,
    normalizer: float = 200.0,
) -> ValidationResult:
    """CCI re-crossing back inside +/-level from the extreme zone."""
    _check_direction(direction)
    cci, close = _as_array(cci), _as_array(close)
    if not _has_history(idx, 2, cci, close):
        return ValidationResult.reject("Insufficient history for CCI")

    sign = direction.sign
    # Buy: was at or below -level, now above it.  Sell mirrors.
    prev, now = sign * cci[idx - 1], sign * cci[idx]
    if not (prev <= -level < now):
        side = "-" if sign > 0 else "+"
        return ValidationResult.reject(f"No CCI re-cross of {side}{level:g}")

    change = now - prev
    if change < min_change:
        return ValidationResult.reject(f"CCI change {change:.1f} below {min_change:g}")

    if not _moved(close, idx, 1, direction):
        return ValidationResult.reject("Price did not turn with CCI")

    confidence = 0.6 + (change - min_change) / normalizer
    if sign * (cci[idx - 1] - cci[idx - 2]) > 0:
        confidence += 0.15
    return ValidationResult.accept(confidence, f"CCI re-crossed {cci[idx]:.1f}")


def validate_stoch_rsi(
    k,
    d,
    rsi,
    close,
    idx: int,
    direction: Direction,
    oversold: float = 0.2,
    overbought: float = 0.8,
    recent_bars: int = 5,
    min_gap: float = 0.02,
    neutral_low: float = 0.4,
    neutral_high: float = 0.6,
) -> ValidationResult:
    """%K crossing %D after a recent visit to the extreme zone."""
    _check_direction(direction)
    k, d, rsi, close = (_as_array(s) for s in (k, d, rsi, close))
    if not _has_history(idx, recent_bars, k, d, rsi, close):
        return ValidationResult.reject("Insufficient history for Stoch RSI")

    recent = k[idx - recent_bars : idx + 1]
    sign = direction.sign
    crossed = sign * (k[idx - 1] - d[idx - 1]) <= 0 < sign * (k[idx] - d[idx])
    if sign > 0:
        visited = recent.min() < oversold
        zone = "oversold"
    else:
        visited = recent.max() > overbought
        zone = "overbought"
    if not (crossed and visited):
        return ValidationResult.reject(f"No %K/%D cross out of {zone}")

    gap = sign * (k[idx] - d[idx])
    if gap < min_gap:
        return ValidationResult.reject(f"%K/%D gap {gap:.3f} below {min_gap:g}")
    if neutral_low < k[idx] < neutral_high:
        return ValidationResult.reject("Stoch RSI already back in the neutral zone")

    if not _moved(close, idx, 1, direction):
        return ValidationResult.reject("Price did not turn with Stoch RSI")

    base = 0.65
    band = (40.0, 70.0) if sign > 0 else (30.0, 60.0)
    if band[0] < rsi[idx] < band[1]:
        base = 0.8
    return ValidationResult.accept(base + (gap - min_gap), f"Stoch RSI cross out of {zone}")


def validate_channel_breakout(
    close,
    upper,
    lower,
    atr,
    idx: int,
    direction: Direction,
    min_volatility: float = 0.005,
    min_atr_multiple: float = 0.1,
    min_consecutive: int = 2,
    normalizer: float = 4.0,
) -> ValidationResult:
    """Close breaking out of a channel that was set before this bar.

    ``upper`` and ``lower`` must already be the prior-bar channel so the
    breakout bar is not part of its own boundary.
    """
    _check_direction(direction)
    close, upper, lower, atr = (_as_array(s) for s in (close, upper, lower, atr))
    if not _has_history(idx, max(1, min_consecutive), close, upper, lower, atr):
        return ValidationResult.reject("Insufficient history for channel")

    sign = direction.sign
    edge = upper if sign > 0 else lower
    if sign * (close[idx] - edge[idx]) <= 0:
        return ValidationResult.reject(f"No breakout {'above' if sign > 0 else 'below'} channel")
    if sign * (close[idx - 1] - edge[idx - 1]) > 0:
        return ValidationResult.reject("Prior bar already outside channel")

    price = close[idx]
    if atr[idx] / price < min_volatility:
        return ValidationResult.reject(f"Volatility {atr[idx] / price:.4f} below {min_volatility:g}")
    excess = sign * (close[idx] - edge[idx]) / atr[idx]
    if excess < min_atr_multiple:
        return ValidationResult.reject(f"Breakout {excess:.2f} ATR below {min_atr_multiple:g}")

    run = 0
    for i in range(idx, idx - min_consecutive, -1):
        if sign * (close[i] - close[i - 1]) > 0:
            run += 1
        else:
            break
    if run < min_consecutive:
        return ValidationResult.reject(f"Only {run} consecutive bars in breakout direction")

    confidence = 0.5 + (excess - min_atr_multiple) / normalizer
    return ValidationResult.accept(confidence, f"Channel breakout {excess:.2f} ATR")


def validate_volume_spike(
    volume,
    close,
    idx: int,
    direction: Direction,
    spike_multiple: float = 1.5,
    lookback: int = 20,
    min_move: float = 0.001,
) -> ValidationResult:
    """Volume spike against the prior ``lookback`` bars on a directional bar."""
    _check_direction(direction)
    volume, close = _as_array(volume), _as_array(close)
    if not _has_history(idx, lookback, volume, close):
        return ValidationResult.reject("Insufficient history for volume")

    baseline = float(volume[idx - lookback : idx].mean())
    if baseline <= 0:
        return ValidationResult.reject("No baseline volume")
    multiple = volume[idx] / baseline
    if multiple <= spike_multiple:
        return ValidationResult.reject(f"No volume spike ({multiple:.2f}x)")

    move = (close[idx] - close[idx - 1]) / close[idx - 1]
    if abs(move) < min_move:
        return ValidationResult.reject(f"Price move {move:.4f} too small for spike")

    if not _moved(close, idx, 1, direction):
        return ValidationResult.reject(
            f"Volume spike on a {'down' if direction is Direction.BUY else 'up'} bar"
        )

    confidence = (multiple - spike_multiple) / spike_multiple + 0.6
    return ValidationResult.accept(confidence, f"Volume spike {multiple:.2f}x")


def validate_band_touch(
    close,
    upper,
    lower,
    rsi,
    idx: int,
    direction: Direction,
    oversold: float = 30.0,
    overbought: float = 70.0,
    tolerance: float = 0.005,
) -> ValidationResult:
    """Close at an outer band with RSI at the matching extreme, then turning."""
    _check_direction(direction)
    close, upper, lower, rsi = (_as_array(s) for s in (close, upper, lower, rsi))
    if not _has_history(idx, 1, close, upper, lower, rsi):
        return ValidationResult.reject("Insufficient history for bands")

    price = close[idx]
    if direction is Direction.BUY:
        if price > lower[idx] * (1 + tolerance):
            return ValidationResult.reject("Price not at lower band")
        extreme = oversold - rsi[idx]
        limit = oversold
    else:
        if price < upper[idx] * (1 - tolerance):
            return ValidationResult.reject("Price not at upper band")
        extreme = rsi[idx] - overbought
        limit = 100.0 - overbought
    if extreme <= 0:
        return ValidationResult.reject(f"RSI {rsi[idx]:.1f} not at extreme")

    if not _moved(close, idx, 1, direction):
        return ValidationResult.reject("No bounce off the band yet")

    return ValidationResult.accept(0.5 + extreme / limit, f"Band touch with RSI {rsi[idx]:.1f}")


def validate_divergence(
    close,
    indicator,
    idx: int,
    direction: Direction,
    lookback: int = 15,
    recent_bars: int = 3,
    min_gap: float = 0.0,
    normalizer: float = 1.0,
) -> ValidationResult:
    """Price making a new extreme that the indicator fails to confirm.

    Buy looks for a lower price low with a higher indicator low over the
    last ``recent_bars`` bars against the earlier ``lookback`` window.
    """
    _check_direction(direction)
    close, indicator = _as_array(close), _as_array(indicator)
    if not _has_history(idx, lookback + recent_bars, close, indicator):
        return ValidationResult.reject("Insufficient history for divergence")

    sign = direction.sign
    start = idx - lookback - recent_bars + 1
    earlier = np.arange(start, idx - recent_bars + 1)
    recent = np.arange(idx - recent_bars + 1, idx + 1)
    # Work on sign-flipped copies so lows and highs share one code path.
    p = -sign * close
    ind = -sign * indicator
    old = earlier[np.argmax(p[earlier])]
    new = recent[np.argmax(p[recent])]

    if p[new] <= p[old]:
        return ValidationResult.reject(f"No new price {'low' if sign > 0 else 'high'}")
    gap = ind[old] - ind[new]
    if gap <= min_gap or math.isnan(gap):
        return ValidationResult.reject("Indicator confirms the price extreme")

    if not _moved(close, idx, 1, direction):
        return ValidationResult.reject("Price has not turned yet")

    confidence = 0.55 + (gap - min_gap) / normalizer
    kind = "Bullish" if sign > 0 else "Bearish"
    return ValidationResult.accept(confidence, f"{kind} divergence, indicator gap {gap:.3f}")
