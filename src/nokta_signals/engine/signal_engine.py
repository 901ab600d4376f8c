from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Protocol

from nokta_signals.calculations import calculate_profit
from nokta_signals.data.datastore import CooldownStore
from nokta_signals.engine.conditions import (
    DIRECTION_PREFERENCE,
    ConditionThresholds,
    choose_direction,
    evaluate_conditions,
)
from nokta_signals.models import Direction, FundingAssessment, MultiTimeframeBundle, TradeSignal
from nokta_signals.risk_engine import resolve_status

PRICE_TIMEFRAME = "15m"


class BundleSource(Protocol):
    def fetch_bundle(self, symbol: str) -> MultiTimeframeBundle | None: ...


class FundingAssessor(Protocol):
    def assess(self, symbol: str) -> FundingAssessment: ...


class SignalEngine:
    def __init__(
        self,
        *,
        market_data: BundleSource,
        funding_gate: FundingAssessor,
        cooldowns: CooldownStore,
        thresholds: ConditionThresholds,
        leverage: float,
        entry_amount: float,
        target_profit_pct: float,
        direction_preference: tuple[Direction, ...] = DIRECTION_PREFERENCE,
    ) -> None:
        self.market_data = market_data
        self.funding_gate = funding_gate
        self.cooldowns = cooldowns
        self.thresholds = thresholds
        self.leverage = leverage
        self.entry_amount = entry_amount
        self.target_profit_pct = target_profit_pct
        self.direction_preference = direction_preference

    def analyze_symbol(self, symbol: str, now: datetime | None = None) -> TradeSignal | None:
        now = now or datetime.now(tz=timezone.utc)

        def on_cooldown(direction: Direction) -> bool:
            return self.cooldowns.is_active(symbol, direction, now)

        if on_cooldown("LONG") and on_cooldown("SHORT"):
            logging.debug("event=signal_decision symbol=%s decision=skip reason=cooldown_both", symbol)
            return None

        bundle = self.market_data.fetch_bundle(symbol)
        if bundle is None:
            logging.debug("event=signal_decision symbol=%s decision=skip reason=data_unavailable", symbol)
            return None

        results = {
            direction: evaluate_conditions(bundle, direction, self.thresholds)
            for direction in self.direction_preference
        }
        chosen = choose_direction(results, on_cooldown, self.direction_preference)
        if chosen is None:
            return None

        direction = chosen.direction
        fr = self.funding_gate.assess(symbol)
        status = resolve_status(direction, fr)
        if status == "BLOCKED":
            logging.info(
                "event=signal_decision symbol=%s direction=%s decision=blocked reason=funding_rate rate=%.6f",
                symbol,
                direction,
                fr.rate,
            )
            return None

        price = bundle.entry[PRICE_TIMEFRAME].close
        profit = calculate_profit(
            price,
            direction,
            leverage=self.leverage,
            entry_amount=self.entry_amount,
            target_profit_pct=self.target_profit_pct,
        )
        signal = TradeSignal(
            timestamp=now,
            symbol=symbol,
            direction=direction,
            status=status,
            entry_price=price,
            target_price=profit.target_price,
            profit=profit,
            multi_tf=bundle,
            fr=fr,
            strength=len(chosen.reasons),
            reasons=chosen.reasons,
            warnings=chosen.warnings,
        )
        self.cooldowns.record(symbol, direction, now)
        logging.info(
            "event=signal_decision symbol=%s direction=%s decision=emit status=%s strength=%d entry_reasons=%d trend_agreement=%d",
            symbol,
            direction,
            status,
            signal.strength,
            chosen.entry_count,
            chosen.trend_agreement,
        )
        return signal
