from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from factories import FakeExchange, long_setup_bundle, neutral_bundle
from nokta_signals.data.datastore import CooldownStore
from nokta_signals.engine.conditions import ConditionThresholds
from nokta_signals.engine.signal_engine import SignalEngine
from nokta_signals.models import MultiTimeframeBundle
from nokta_signals.risk_engine import FundingRiskGate

T0 = datetime(2026, 2, 25, 12, 0, tzinfo=timezone.utc)


class _StaticMarketData:
    def __init__(self, bundle: MultiTimeframeBundle | None) -> None:
        self.bundle = bundle
        self.calls = 0

    def fetch_bundle(self, symbol: str) -> MultiTimeframeBundle | None:
        self.calls += 1
        return self.bundle


def _engine(
    bundle: MultiTimeframeBundle | None,
    *,
    funding_rate: float = 0.0001,
) -> tuple[SignalEngine, _StaticMarketData, FakeExchange, CooldownStore]:
    market = _StaticMarketData(bundle)
    exchange = FakeExchange(funding_rate=funding_rate, ls_ratio=1.2)
    cooldowns = CooldownStore(timedelta(minutes=240))
    engine = SignalEngine(
        market_data=market,
        funding_gate=FundingRiskGate(exchange, danger_1=0.005, danger_2=0.015),
        cooldowns=cooldowns,
        thresholds=ConditionThresholds(),
        leverage=20,
        entry_amount=10,
        target_profit_pct=100,
    )
    return engine, market, exchange, cooldowns


def test_long_setup_emits_active_signal() -> None:
    engine, _market, _exchange, cooldowns = _engine(long_setup_bundle(close=100.0))

    signal = engine.analyze_symbol("BTCUSDT", now=T0)

    assert signal is not None
    assert signal.direction == "LONG"
    assert signal.status == "ACTIVE"
    assert signal.entry_price == 100.0
    assert signal.target_price == pytest.approx(105.0)
    assert signal.profit.profit_pct == pytest.approx(100.0)
    assert signal.strength == 7
    assert signal.strength == len(signal.reasons)
    assert signal.fr.risk_level == "LOW"
    assert signal.timestamp == T0
    assert cooldowns.is_active("BTCUSDT", "LONG", T0)


@pytest.mark.parametrize(
    ("funding_rate", "expected_status"),
    [(0.0001, "ACTIVE"), (0.008, "WARNING"), (0.02, None)],
)
def test_funding_rate_decides_status(funding_rate: float, expected_status: str | None) -> None:
    engine, _market, _exchange, cooldowns = _engine(long_setup_bundle(), funding_rate=funding_rate)

    signal = engine.analyze_symbol("BTCUSDT", now=T0)

    if expected_status is None:
        assert signal is None
        assert len(cooldowns) == 0
    else:
        assert signal is not None
        assert signal.status == expected_status


def test_cooldown_deduplicates_until_window_expires() -> None:
    engine, market, _exchange, _cooldowns = _engine(long_setup_bundle())

    first = engine.analyze_symbol("BTCUSDT", now=T0)
    second = engine.analyze_symbol("BTCUSDT", now=T0 + timedelta(minutes=5))
    third = engine.analyze_symbol("BTCUSDT", now=T0 + timedelta(minutes=241))

    assert first is not None
    assert second is None
    assert third is not None and third.direction == "LONG"
    assert market.calls == 3


def test_both_directions_on_cooldown_skips_fetch() -> None:
    engine, market, exchange, cooldowns = _engine(long_setup_bundle())
    cooldowns.record("BTCUSDT", "LONG", T0)
    cooldowns.record("BTCUSDT", "SHORT", T0)

    assert engine.analyze_symbol("BTCUSDT", now=T0 + timedelta(minutes=1)) is None
    assert market.calls == 0
    assert exchange.funding_calls == []


def test_no_qualifying_direction_skips_funding_lookup() -> None:
    engine, _market, exchange, _cooldowns = _engine(neutral_bundle())

    assert engine.analyze_symbol("BTCUSDT", now=T0) is None
    assert exchange.funding_calls == []


def test_missing_market_data_yields_no_signal() -> None:
    engine, market, _exchange, cooldowns = _engine(None)

    assert engine.analyze_symbol("BTCUSDT", now=T0) is None
    assert market.calls == 1
    assert len(cooldowns) == 0


def test_signal_serializes_to_plain_dict() -> None:
    engine, _market, _exchange, _cooldowns = _engine(long_setup_bundle())

    payload = engine.analyze_symbol("BTCUSDT", now=T0).to_dict()

    assert payload["timestamp"] == T0.isoformat()
    assert payload["symbol"] == "BTCUSDT"
    assert payload["profit"]["target_price"] == pytest.approx(105.0)
    assert payload["multi_tf"]["entry"]["15m"]["rsi"] == 18.0
