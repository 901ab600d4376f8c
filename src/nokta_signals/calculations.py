from __future__ import annotations

from .models import Direction, ProfitCalc


def calculate_target_price(entry: float, direction: Direction, leverage: float, target_profit_pct: float) -> float:
    if entry <= 0:
        raise ValueError("Entry price must be positive")
    if leverage <= 0:
        raise ValueError("Leverage must be positive")
    move = target_profit_pct / 100 / leverage
    return entry * (1 + move) if direction == "LONG" else entry * (1 - move)


def calculate_profit(
    entry: float,
    direction: Direction,
    *,
    leverage: float,
    entry_amount: float,
    target_profit_pct: float,
) -> ProfitCalc:
    target = calculate_target_price(entry, direction, leverage, target_profit_pct)
    profit_pct = abs(target - entry) / entry * leverage * 100
    return ProfitCalc(
        entry_price=entry,
        target_price=target,
        entry_usd=entry_amount,
        leveraged_usd=entry_amount * leverage,
        profit_usd=entry_amount * (profit_pct / 100),
        profit_pct=profit_pct,
    )


def volume_change_pct(previous: float, current: float) -> float:
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100
