from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Literal

from .models import Candle, RsiAccumulation, Trend

CrossSignal = Literal["bullish_cross", "bearish_cross", "none"]
WaveTrendSignal = Literal["buy", "sell", "neutral"]

NAN = math.nan

ACCUMULATION_OVERBOUGHT = 80.0
ACCUMULATION_OVERSOLD = 20.0
WT_OVERSOLD = -40.0
WT_OVERBOUGHT = 40.0


@dataclass(frozen=True)
class StochRsiResult:
    k: list[float]
    d: list[float]
    cross: CrossSignal


@dataclass(frozen=True)
class WaveTrendResult:
    wt1: list[float]
    wt2: list[float]
    signal: list[WaveTrendSignal]


def _is_valid(value: float) -> bool:
    return not math.isnan(value)


def _all_valid(values: list[float]) -> bool:
    return all(_is_valid(v) for v in values)


def sma(values: list[float], period: int) -> list[float]:
    if period <= 0:
        raise ValueError("period must be positive")
    result: list[float] = []
    for i in range(len(values)):
        if i < period - 1:
            result.append(NAN)
            continue
        window = values[i - period + 1 : i + 1]
        result.append(sum(window) / period if _all_valid(window) else NAN)
    return result


def ema(values: list[float], period: int) -> list[float]:
    """Exponential moving average seeded with the SMA of the first complete window."""
    if period <= 0:
        raise ValueError("period must be positive")
    k = 2 / (period + 1)
    result: list[float] = []
    seeded = False
    for i, value in enumerate(values):
        if not _is_valid(value):
            result.append(NAN)
            continue
        if not seeded:
            if i < period - 1:
                result.append(NAN)
                continue
            window = values[i - period + 1 : i + 1]
            if not _all_valid(window):
                result.append(NAN)
                continue
            result.append(sum(window) / period)
            seeded = True
            continue
        prev = result[i - 1]
        result.append(NAN if not _is_valid(prev) else (value - prev) * k + prev)
    return result


def last_valid(values: list[float]) -> float:
    for value in reversed(values):
        if _is_valid(value):
            return value
    return NAN


def rsi(candles: list[Candle], period: int = 14) -> list[float]:
    """RSI over a simple rolling average of gains and losses.

    The series is aligned with ``candles``: index 0 has no prior close and the
    first defined value sits at index ``period``.
    """
    result: list[float] = [NAN] * min(len(candles), period)
    if len(candles) <= period:
        return result

    gains: list[float] = []
    losses: list[float] = []
    for prev, curr in zip(candles, candles[1:]):
        change = curr.close - prev.close
        gains.append(change if change > 0 else 0.0)
        losses.append(-change if change < 0 else 0.0)

    for end in range(period, len(gains) + 1):
        avg_gain = sum(gains[end - period : end]) / period
        avg_loss = sum(losses[end - period : end]) / period
        if avg_loss == 0:
            result.append(100.0)
        else:
            result.append(100 - 100 / (1 + avg_gain / avg_loss))
    return result


def _crossed_up(now_a: float, now_b: float, prev_a: float, prev_b: float) -> bool:
    return now_a > now_b and prev_a <= prev_b


def _crossed_down(now_a: float, now_b: float, prev_a: float, prev_b: float) -> bool:
    return now_a < now_b and prev_a >= prev_b


def stochastic_rsi(
    candles: list[Candle],
    rsi_period: int = 14,
    stoch_period: int = 14,
    k_smooth: int = 3,
    d_smooth: int = 3,
    oversold: float = 25.0,
    overbought: float = 75.0,
) -> StochRsiResult:
    rsi_values = rsi(candles, rsi_period)

    stoch: list[float] = []
    for i in range(len(rsi_values)):
        if i < stoch_period - 1:
            stoch.append(NAN)
            continue
        window = rsi_values[i - stoch_period + 1 : i + 1]
        if not _all_valid(window):
            stoch.append(NAN)
            continue
        hi, lo = max(window), min(window)
        span = hi - lo
        stoch.append(50.0 if span == 0 else (rsi_values[i] - lo) / span * 100)

    k = sma(stoch, k_smooth)
    d = sma(k, d_smooth)

    cross: CrossSignal = "none"
    if len(k) >= 2:
        k_now, d_now, k_prev, d_prev = k[-1], d[-1], k[-2], d[-2]
        if _all_valid([k_now, d_now, k_prev, d_prev]):
            if _crossed_up(k_now, d_now, k_prev, d_prev) and k_now <= oversold:
                cross = "bullish_cross"
            elif _crossed_down(k_now, d_now, k_prev, d_prev) and k_now >= overbought:
                cross = "bearish_cross"

    return StochRsiResult(k=k, d=d, cross=cross)


def wavetrend_cross(
    candles: list[Candle],
    channel_len: int = 10,
    avg_len: int = 21,
    ma_len: int = 4,
) -> WaveTrendResult:
    """LazyBear WaveTrend oscillator with crossover signals in the extreme zones."""
    hlc3 = [(c.high + c.low + c.close) / 3 for c in candles]
    esa = ema(hlc3, channel_len)
    deviation = [abs(tp - (e if _is_valid(e) else tp)) for tp, e in zip(hlc3, esa)]
    d = ema(deviation, channel_len)

    ci: list[float] = []
    for tp, e, dev in zip(hlc3, esa, d):
        if not _is_valid(e) or not _is_valid(dev) or dev == 0:
            ci.append(0.0)
        else:
            ci.append((tp - e) / (0.015 * dev))

    wt1 = ema(ci, avg_len)
    wt2 = sma(wt1, ma_len)

    signal: list[WaveTrendSignal] = []
    for i in range(len(candles)):
        if i == 0 or not _all_valid([wt1[i], wt2[i], wt1[i - 1], wt2[i - 1]]):
            signal.append("neutral")
        elif _crossed_up(wt1[i], wt2[i], wt1[i - 1], wt2[i - 1]) and wt1[i] < WT_OVERSOLD:
            signal.append("buy")
        elif _crossed_down(wt1[i], wt2[i], wt1[i - 1], wt2[i - 1]) and wt1[i] > WT_OVERBOUGHT:
            signal.append("sell")
        else:
            signal.append("neutral")

    return WaveTrendResult(wt1=wt1, wt2=wt2, signal=signal)


def rsi_signal_cross(
    rsi_values: list[float],
    signal_period: int = 14,
    oversold: float = 30.0,
    overbought: float = 70.0,
) -> CrossSignal:
    if len(rsi_values) < 2:
        return "none"
    signal_line = sma(rsi_values, signal_period)
    rsi_now, sig_now = rsi_values[-1], signal_line[-1]
    rsi_prev, sig_prev = rsi_values[-2], signal_line[-2]
    if not _all_valid([rsi_now, sig_now, rsi_prev, sig_prev]):
        return "none"
    if _crossed_up(rsi_now, sig_now, rsi_prev, sig_prev) and rsi_now <= oversold:
        return "bullish_cross"
    if _crossed_down(rsi_now, sig_now, rsi_prev, sig_prev) and rsi_now >= overbought:
        return "bearish_cross"
    return "none"


def rsi_accumulation(
    rsi_values: list[float],
    stoch_k: list[float],
    stoch_d: list[float],
) -> RsiAccumulation:
    """Count the run of newest candles whose RSI stays in one extreme zone.

    The scan walks backward from the latest value and stops at the first value
    that is undefined, outside the zone, or in the opposite zone. Within the run
    a K/D cross against the zone (K dropping under D while overbought, K rising
    over D while oversold) sets ``stoch_cross_in_zone``.
    """
    count = 0
    zone = "NONE"
    peak = 0.0
    stoch_cross = False

    for i in range(len(rsi_values) - 1, -1, -1):
        value = rsi_values[i]
        if not _is_valid(value):
            break
        if value >= ACCUMULATION_OVERBOUGHT:
            if zone == "NONE":
                zone = "OVERBOUGHT"
            if zone != "OVERBOUGHT":
                break
            count += 1
            peak = max(peak, value)
        elif value <= ACCUMULATION_OVERSOLD:
            if zone == "NONE":
                zone = "OVERSOLD"
                peak = value
            if zone != "OVERSOLD":
                break
            count += 1
            peak = min(peak, value)
        else:
            break

        if i > 0 and i < len(stoch_k) and i < len(stoch_d):
            window = [stoch_k[i], stoch_d[i], stoch_k[i - 1], stoch_d[i - 1]]
            if _all_valid(window):
                if zone == "OVERBOUGHT" and _crossed_down(*window):
                    stoch_cross = True
                if zone == "OVERSOLD" and _crossed_up(*window):
                    stoch_cross = True

    return RsiAccumulation(count=count, zone=zone, peak_rsi=peak, stoch_cross_in_zone=stoch_cross)


def trend_from_moving_averages(ma50: float, ma200: float, rsi_value: float) -> Trend:
    if ma50 > ma200 and rsi_value > 50:
        return "BULLISH"
    if ma50 < ma200 and rsi_value < 50:
        return "BEARISH"
    return "NEUTRAL"


def trend_from_rsi_only(rsi_value: float, bullish_above: float = 55.0, bearish_below: float = 45.0) -> Trend:
    if rsi_value > bullish_above:
        return "BULLISH"
    if rsi_value < bearish_below:
        return "BEARISH"
    return "NEUTRAL"
