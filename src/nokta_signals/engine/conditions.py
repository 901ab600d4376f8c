from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from nokta_signals.models import Direction, MultiTimeframeBundle

DIRECTION_PREFERENCE: tuple[Direction, ...] = ("LONG", "SHORT")
MIN_ENTRY_REASONS = 3
MIN_TREND_AGREEMENT = 2


@dataclass(frozen=True)
class ConditionThresholds:
    rsi_long: float = 20.0
    rsi_short: float = 80.0
    srsi_long: float = 0.0
    srsi_short: float = 100.0
    srsi_tolerance: float = 5.0


@dataclass(frozen=True)
class ConditionResult:
    direction: Direction
    met: bool
    entry_reasons: list[str] = field(default_factory=list)
    trend_reasons: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def reasons(self) -> list[str]:
        return self.entry_reasons + self.trend_reasons

    @property
    def entry_count(self) -> int:
        return len(self.entry_reasons)

    @property
    def trend_agreement(self) -> int:
        return len(self.trend_reasons)


def evaluate_conditions(
    bundle: MultiTimeframeBundle,
    direction: Direction,
    thresholds: ConditionThresholds | None = None,
) -> ConditionResult:
    t = thresholds or ConditionThresholds()
    entry_reasons: list[str] = []

    for tf in bundle.entry_snapshots():
        if direction == "LONG":
            if tf.rsi <= t.rsi_long:
                entry_reasons.append(f"{tf.timeframe} RSI {tf.rsi:.0f} <= {t.rsi_long:g}")
            if tf.wt_cross_signal == "buy":
                entry_reasons.append(f"{tf.timeframe} WT buy")
            if tf.srsi_k <= t.srsi_long + t.srsi_tolerance:
                entry_reasons.append(f"{tf.timeframe} SRSI K {tf.srsi_k:.0f} ~ {t.srsi_long:g}")
            if tf.rsi_cross == "bullish_cross":
                entry_reasons.append(f"{tf.timeframe} RSI signal cross up")
            if tf.srsi_cross == "bullish_cross":
                entry_reasons.append(f"{tf.timeframe} SRSI K/D cross up")
        else:
            if tf.rsi >= t.rsi_short:
                entry_reasons.append(f"{tf.timeframe} RSI {tf.rsi:.0f} >= {t.rsi_short:g}")
            if tf.wt_cross_signal == "sell":
                entry_reasons.append(f"{tf.timeframe} WT sell")
            if tf.srsi_k >= t.srsi_short - t.srsi_tolerance:
                entry_reasons.append(f"{tf.timeframe} SRSI K {tf.srsi_k:.0f} ~ {t.srsi_short:g}")
            if tf.rsi_cross == "bearish_cross":
                entry_reasons.append(f"{tf.timeframe} RSI signal cross down")
            if tf.srsi_cross == "bearish_cross":
                entry_reasons.append(f"{tf.timeframe} SRSI K/D cross down")

    expected = "BULLISH" if direction == "LONG" else "BEARISH"
    trend_reasons: list[str] = []
    warnings: list[str] = []
    for tf in bundle.direction_snapshots():
        if tf.trend == expected:
            trend_reasons.append(f"{tf.timeframe} {tf.trend}")
        else:
            warnings.append(f"{tf.timeframe} {tf.trend}")

    met = len(entry_reasons) >= MIN_ENTRY_REASONS and len(trend_reasons) >= MIN_TREND_AGREEMENT
    return ConditionResult(
        direction=direction,
        met=met,
        entry_reasons=entry_reasons,
        trend_reasons=trend_reasons,
        warnings=warnings,
    )


def choose_direction(
    results: dict[Direction, ConditionResult],
    on_cooldown: Callable[[Direction], bool],
    preference: tuple[Direction, ...] = DIRECTION_PREFERENCE,
) -> ConditionResult | None:
    """First direction in ``preference`` that qualifies and is not cooling down."""
    for direction in preference:
        result = results.get(direction)
        if result is not None and result.met and not on_cooldown(direction):
            return result
    return None
