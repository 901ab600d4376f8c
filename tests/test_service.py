from __future__ import annotations

import logging

import pytest

from factories import FakeExchange, RecordingNotifier, long_setup_bundle, make_signal
from nokta_signals.models import MultiTimeframeBundle, TradeSignal
from nokta_signals.service import SignalService, batched


class _StubEngine:
    def __init__(self, results: dict[str, object]) -> None:
        self.results = results
        self.calls: list[str] = []

    def analyze_symbol(self, symbol: str) -> TradeSignal | None:
        self.calls.append(symbol)
        result = self.results.get(symbol)
        if isinstance(result, Exception):
            raise result
        return result


class _StaticMarketData:
    def __init__(self, bundle: MultiTimeframeBundle) -> None:
        self.bundle = bundle

    def fetch_bundle(self, symbol: str) -> MultiTimeframeBundle:
        return self.bundle


def _service(settings, pairs: list[str], *, funding_rate: float = 0.0001):
    sleeps: list[float] = []
    notifier = RecordingNotifier()
    service = SignalService(
        settings,
        exchange=FakeExchange(pairs=pairs, funding_rate=funding_rate),
        notifier=notifier,
        sleep=sleeps.append,
    )
    return service, notifier, sleeps


def test_batched_splits_preserving_order() -> None:
    assert batched(["A", "B", "C", "D", "E"], 2) == [["A", "B"], ["C", "D"], ["E"]]
    assert batched([], 3) == []


def test_scan_all_sleeps_between_batches_only(settings) -> None:
    pairs = ["AUSDT", "BUSDT", "CUSDT", "DUSDT", "EUSDT"]
    service, _notifier, sleeps = _service(settings, pairs)
    service.engine = _StubEngine({"BUSDT": make_signal(symbol="BUSDT")})

    signals = service.scan_all()

    assert [s.symbol for s in signals] == ["BUSDT"]
    assert sorted(service.engine.calls) == sorted(pairs)
    assert sleeps == [1.5, 1.5]


def test_empty_universe_produces_no_signals(settings) -> None:
    service, notifier, sleeps = _service(settings, [])
    service.engine = _StubEngine({})

    assert service.run_scan_cycle() == []
    assert sleeps == []
    assert notifier.messages == []
    assert service.total_scans == 1


def test_failing_symbol_is_isolated(settings) -> None:
    service, _notifier, _sleeps = _service(settings, ["BADUSDT", "ETHUSDT"])
    service.engine = _StubEngine(
        {
            "BADUSDT": RuntimeError("boom"),
            "ETHUSDT": make_signal(symbol="ETHUSDT"),
        }
    )

    signals = service.scan_all()

    assert [s.symbol for s in signals] == ["ETHUSDT"]


def test_scan_cycle_dispatches_and_tracks_signals(settings) -> None:
    service, notifier, _sleeps = _service(settings, ["BTCUSDT", "ETHUSDT"])
    service.engine = _StubEngine(
        {
            "BTCUSDT": make_signal(symbol="BTCUSDT"),
            "ETHUSDT": make_signal(symbol="ETHUSDT", direction="SHORT"),
        }
    )

    signals = service.run_scan_cycle()

    assert len(signals) == 2
    assert len(notifier.messages) == 2
    assert service.tracker.tracked_count() == 2
    assert service.total_signals == 2


def test_blocked_setup_is_never_notified_or_tracked(settings) -> None:
    service, notifier, _sleeps = _service(settings, ["BTCUSDT"], funding_rate=0.02)
    service.engine.market_data = _StaticMarketData(long_setup_bundle())

    assert service.run_scan_cycle() == []
    assert notifier.messages == []
    assert service.tracker.tracked_count() == 0


def test_warning_setup_is_sent_with_risk_banner(settings) -> None:
    service, notifier, _sleeps = _service(settings, ["BTCUSDT"], funding_rate=0.008)
    service.engine.market_data = _StaticMarketData(long_setup_bundle())

    signals = service.run_scan_cycle()

    assert [s.status for s in signals] == ["WARNING"]
    assert "FUNDING RATE RISKY" in notifier.messages[0]
    assert service.tracker.tracked_count() == 1


def test_run_once_analyzes_without_dispatching(settings) -> None:
    service, notifier, _sleeps = _service(settings, [])
    service.engine.market_data = _StaticMarketData(long_setup_bundle())

    signal = service.run_once("BTCUSDT")

    assert signal is not None and signal.symbol == "BTCUSDT"
    assert notifier.messages == []


def test_run_forever_survives_failing_cycle_and_stops_tracker(settings) -> None:
    service, _notifier, _sleeps = _service(settings, [])
    cycles: list[int] = []
    sleeps: list[float] = []

    def _failing_cycle() -> list[TradeSignal]:
        cycles.append(1)
        raise RuntimeError("exchange down")

    def _sleep(seconds: float) -> None:
        sleeps.append(seconds)
        if len(sleeps) == 2:
            raise KeyboardInterrupt

    service.run_scan_cycle = _failing_cycle
    service.sleep = _sleep

    with pytest.raises(KeyboardInterrupt):
        service.run_forever()

    assert len(cycles) == 2
    assert all(0 < s <= settings.scan_interval_minutes * 60 for s in sleeps)
    assert service.tracker._thread is None


def test_dispatch_logs_full_payload(settings, caplog) -> None:
    service, notifier, _sleeps = _service(settings, [])
    caplog.set_level(logging.DEBUG)

    assert service.dispatch(make_signal(symbol="ETHUSDT")) is True

    assert len(notifier.messages) == 1
    assert "event=signal_payload" in caplog.text
    assert '"symbol": "ETHUSDT"' in caplog.text
    assert '"timestamp": "2026-02-25T12:00:00+00:00"' in caplog.text
