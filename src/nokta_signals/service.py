from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
import json
import logging
import time
from typing import Callable
from uuid import uuid4

from .binance_client import BinanceFuturesClient
from .config import Settings
from .data.binance_rest import BinanceRestDataClient
from .data.datastore import CooldownStore, TrackedSignalStore
from .data.market_data import ExchangeDataProtocol, MultiTimeframeAggregator
from .engine.conditions import ConditionThresholds
from .engine.signal_engine import SignalEngine
from .fr_tracker import FundingRateTracker, MessageSender
from .message_formatter import format_signal_message
from .models import TradeSignal
from .risk_engine import FundingRiskGate
from .telegram_client import TelegramNotifier


def batched(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class SignalService:
    def __init__(
        self,
        settings: Settings,
        *,
        exchange: ExchangeDataProtocol | None = None,
        notifier: MessageSender | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.run_id = uuid4().hex
        self.sleep = sleep
        self.total_scans = 0
        self.total_signals = 0

        self.exchange = exchange or BinanceRestDataClient(
            BinanceFuturesClient(settings.binance_base_url, timeout=settings.http_timeout_seconds)
        )
        self.notifier = notifier or TelegramNotifier(
            bot_token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
            timeout=settings.http_timeout_seconds,
        )
        self.cooldowns = CooldownStore(timedelta(minutes=settings.signal_cooldown_minutes))
        self.tracked = TrackedSignalStore(
            max_age=timedelta(hours=settings.fr_max_track_hours),
            max_updates=settings.fr_max_updates,
        )
        self.funding_gate = FundingRiskGate(
            self.exchange,
            danger_1=settings.fr_danger_1,
            danger_2=settings.fr_danger_2,
        )
        self.engine = SignalEngine(
            market_data=MultiTimeframeAggregator(
                self.exchange,
                candle_count=settings.candle_count,
                srsi_cross_oversold=settings.srsi_cross_oversold,
                srsi_cross_overbought=settings.srsi_cross_overbought,
            ),
            funding_gate=self.funding_gate,
            cooldowns=self.cooldowns,
            thresholds=ConditionThresholds(
                rsi_long=settings.rsi_long,
                rsi_short=settings.rsi_short,
                srsi_long=settings.srsi_long,
                srsi_short=settings.srsi_short,
                srsi_tolerance=settings.srsi_tolerance,
            ),
            leverage=settings.leverage,
            entry_amount=settings.entry_amount,
            target_profit_pct=settings.target_profit_pct,
            direction_preference=settings.direction_preference,
        )
        self.tracker = FundingRateTracker(
            exchange=self.exchange,
            store=self.tracked,
            notifier=self.notifier,
            change_threshold=settings.fr_change_threshold,
            danger_1=settings.fr_danger_1,
            danger_2=settings.fr_danger_2,
            interval_seconds=settings.fr_check_interval_minutes * 60,
        )

    def _analyze_batch(self, batch: list[str]) -> list[TradeSignal]:
        signals: list[TradeSignal] = []
        with ThreadPoolExecutor(max_workers=len(batch)) as pool:
            futures = {symbol: pool.submit(self.engine.analyze_symbol, symbol) for symbol in batch}
            for symbol, future in futures.items():
                try:
                    signal = future.result()
                except Exception:  # noqa: BLE001
                    logging.exception("event=symbol_failed run_id=%s symbol=%s", self.run_id, symbol)
                    continue
                if signal is not None:
                    signals.append(signal)
        return signals

    def scan_all(self) -> list[TradeSignal]:
        pairs = self.exchange.list_active_perpetual_pairs()
        logging.info("event=scan_start run_id=%s pairs=%d", self.run_id, len(pairs))

        signals: list[TradeSignal] = []
        batches = batched(pairs, self.settings.batch_size)
        for index, batch in enumerate(batches):
            signals.extend(self._analyze_batch(batch))
            if index < len(batches) - 1:
                self.sleep(self.settings.batch_delay_seconds)

        logging.info("event=scan_done run_id=%s pairs=%d signals=%d", self.run_id, len(pairs), len(signals))
        return signals

    def dispatch(self, signal: TradeSignal) -> bool:
        message = format_signal_message(signal)
        sent = self.notifier.send_message(message)
        logging.info(
            "event=signal_dispatched run_id=%s symbol=%s direction=%s status=%s sent=%s",
            self.run_id,
            signal.symbol,
            signal.direction,
            signal.status,
            str(sent).lower(),
        )
        logging.debug("event=signal_payload run_id=%s payload=%s", self.run_id, json.dumps(signal.to_dict(), ensure_ascii=False))
        return sent

    def run_scan_cycle(self) -> list[TradeSignal]:
        self.total_scans += 1
        started = time.perf_counter()
        signals = self.scan_all()

        for signal in signals:
            self.total_signals += 1
            self.dispatch(signal)
            self.tracker.track(signal)

        swept = self.cooldowns.sweep_expired()
        logging.info(
            "event=cycle_done run_id=%s scan=%d signals=%d total_signals=%d tracked=%d cooldown_swept=%d total_ms=%d",
            self.run_id,
            self.total_scans,
            len(signals),
            self.total_signals,
            self.tracker.tracked_count(),
            swept,
            int((time.perf_counter() - started) * 1000),
        )
        return signals

    def run_once(self, symbol: str) -> TradeSignal | None:
        return self.engine.analyze_symbol(symbol)

    def run_forever(self) -> None:
        logging.info(
            "Starting signal service leverage=%sx entry_usd=%s target_pct=%s scan_interval_min=%s",
            self.settings.leverage,
            self.settings.entry_amount,
            self.settings.target_profit_pct,
            self.settings.scan_interval_minutes,
        )
        self.tracker.start()
        interval = self.settings.scan_interval_minutes * 60
        try:
            while True:
                started = time.monotonic()
                try:
                    self.run_scan_cycle()
                except Exception as exc:  # noqa: BLE001
                    logging.exception("Scan cycle error (service continues): %s", exc)
                self.sleep(max(0.0, interval - (time.monotonic() - started)))
        finally:
            self.tracker.stop()
