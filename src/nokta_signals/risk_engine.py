from __future__ import annotations

import logging
from typing import Protocol

from .models import Direction, FundingAssessment, RiskLevel, SignalStatus

MEDIUM_RISK_RATE = 0.0005


class FundingDataProtocol(Protocol):
    def fetch_funding_rate(self, symbol: str) -> float: ...

    def fetch_long_short_ratio(self, symbol: str) -> float: ...


def classify_funding_rate(rate: float, ls_ratio: float, danger_1: float, danger_2: float) -> FundingAssessment:
    risk_level: RiskLevel = "LOW"
    allow_long = True
    allow_short = True

    if rate >= danger_2:
        risk_level, allow_long = "BLOCKED", False
    elif rate >= danger_1:
        risk_level, allow_long = "HIGH", False
    elif rate <= -danger_2:
        risk_level, allow_short = "BLOCKED", False
    elif rate <= -danger_1:
        risk_level, allow_short = "HIGH", False
    elif abs(rate) > MEDIUM_RISK_RATE:
        risk_level = "MEDIUM"

    return FundingAssessment(
        rate=rate,
        rate_pct=rate * 100,
        risk_level=risk_level,
        allow_long=allow_long,
        allow_short=allow_short,
        ls_ratio=ls_ratio,
    )


def resolve_status(direction: Direction, assessment: FundingAssessment) -> SignalStatus:
    if assessment.allows(direction):
        return "ACTIVE"
    return "BLOCKED" if assessment.risk_level == "BLOCKED" else "WARNING"


class FundingRiskGate:
    def __init__(self, exchange: FundingDataProtocol, *, danger_1: float, danger_2: float) -> None:
        self.exchange = exchange
        self.danger_1 = danger_1
        self.danger_2 = danger_2

    def classify(self, rate: float, ls_ratio: float) -> FundingAssessment:
        return classify_funding_rate(rate, ls_ratio, self.danger_1, self.danger_2)

    def assess(self, symbol: str) -> FundingAssessment:
        rate = self.exchange.fetch_funding_rate(symbol)
        ls_ratio = self.exchange.fetch_long_short_ratio(symbol)
        assessment = self.classify(rate, ls_ratio)
        logging.debug(
            "event=funding_assessed symbol=%s rate=%.6f risk=%s allow_long=%s allow_short=%s ls_ratio=%.3f",
            symbol,
            rate,
            assessment.risk_level,
            str(assessment.allow_long).lower(),
            str(assessment.allow_short).lower(),
            ls_ratio,
        )
        return assessment
