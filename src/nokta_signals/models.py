from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Literal

Direction = Literal["LONG", "SHORT"]
SignalStatus = Literal["ACTIVE", "WARNING", "BLOCKED"]
RiskLevel = Literal["LOW", "MEDIUM", "HIGH", "BLOCKED"]
Trend = Literal["BULLISH", "BEARISH", "NEUTRAL"]
Zone = Literal["OVERBOUGHT", "OVERSOLD", "NONE"]

ENTRY_TIMEFRAMES: tuple[str, ...] = ("5m", "15m")
DIRECTION_TIMEFRAMES: tuple[str, ...] = ("1h", "4h", "1d")


@dataclass(frozen=True)
class Candle:
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class RsiAccumulation:
    count: int
    zone: Zone
    peak_rsi: float
    stoch_cross_in_zone: bool


@dataclass(frozen=True)
class TimeframeSnapshot:
    timeframe: str
    rsi: float
    srsi_k: float
    srsi_d: float
    wt1: float
    wt2: float
    wt_cross_signal: str
    trend: Trend
    close: float
    volume_change_pct: float
    rsi_cross: str
    srsi_cross: str
    accumulation: RsiAccumulation


@dataclass(frozen=True)
class MultiTimeframeBundle:
    entry: dict[str, TimeframeSnapshot]
    direction: dict[str, TimeframeSnapshot]

    def entry_snapshots(self) -> list[TimeframeSnapshot]:
        return [self.entry[tf] for tf in ENTRY_TIMEFRAMES]

    def direction_snapshots(self) -> list[TimeframeSnapshot]:
        return [self.direction[tf] for tf in DIRECTION_TIMEFRAMES]


@dataclass(frozen=True)
class FundingAssessment:
    rate: float
    rate_pct: float
    risk_level: RiskLevel
    allow_long: bool
    allow_short: bool
    ls_ratio: float

    def allows(self, direction: Direction) -> bool:
        return self.allow_long if direction == "LONG" else self.allow_short


@dataclass(frozen=True)
class ProfitCalc:
    entry_price: float
    target_price: float
    entry_usd: float
    leveraged_usd: float
    profit_usd: float
    profit_pct: float


@dataclass(frozen=True)
class TradeSignal:
    timestamp: datetime
    symbol: str
    direction: Direction
    status: SignalStatus
    entry_price: float
    target_price: float
    profit: ProfitCalc
    multi_tf: MultiTimeframeBundle
    fr: FundingAssessment
    strength: int
    reasons: list[str]
    warnings: list[str]

    @property
    def key(self) -> str:
        return signal_key(self.symbol, self.direction)

    def to_dict(self) -> dict[str, object]:
        payload = asdict(self)
        payload["timestamp"] = self.timestamp.isoformat()
        return payload


@dataclass(frozen=True)
class TrackedSignal:
    signal: TradeSignal
    last_fr: float
    last_ls_ratio: float
    update_count: int
    created_at: datetime


def signal_key(symbol: str, direction: Direction) -> str:
    return f"{symbol}_{direction}"
