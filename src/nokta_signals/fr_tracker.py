from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
import logging
from threading import Event, Thread
from typing import Protocol

from .data.datastore import TrackedSignalStore
from .message_formatter import format_funding_update_message
from .models import FundingAssessment, TrackedSignal, TradeSignal
from .risk_engine import FundingDataProtocol, classify_funding_rate

ARROW_UP = "📈 UP"
ARROW_DOWN = "📉 DOWN"


class MessageSender(Protocol):
    def send_message(self, text: str) -> bool: ...


@dataclass(frozen=True)
class FundingUpdate:
    entry: TrackedSignal
    assessment: FundingAssessment
    old_rate_pct: float
    update_no: int
    direction_arrow: str
    message: str


class FundingRateTracker:
    """Re-polls funding rate for emitted signals and reports significant moves.

    Each tracked entry goes ACTIVE -> UPDATED (repeatable) and leaves the store
    once it is older than the store's ``max_age`` or has used up ``max_updates``.
    """

    def __init__(
        self,
        *,
        exchange: FundingDataProtocol,
        store: TrackedSignalStore,
        notifier: MessageSender,
        change_threshold: float,
        danger_1: float,
        danger_2: float,
        interval_seconds: float,
    ) -> None:
        self.exchange = exchange
        self.store = store
        self.notifier = notifier
        self.change_threshold = change_threshold
        self.danger_1 = danger_1
        self.danger_2 = danger_2
        self.interval_seconds = interval_seconds
        self._stop = Event()
        self._thread: Thread | None = None

    def track(self, signal: TradeSignal, now: datetime | None = None) -> TrackedSignal:
        entry = self.store.add(signal, now)
        logging.info(
            "event=fr_track_start symbol=%s direction=%s fr_pct=%.4f",
            signal.symbol,
            signal.direction,
            signal.fr.rate_pct,
        )
        return entry

    def tracked_count(self) -> int:
        return len(self.store)

    def check_updates(self, now: datetime | None = None) -> list[FundingUpdate]:
        now = now or datetime.now(tz=timezone.utc)
        updates: list[FundingUpdate] = []

        removed = self.store.sweep_expired(now)
        if removed:
            logging.info("event=fr_track_removed count=%d remaining=%d", removed, len(self.store))

        for key, entry in self.store.items():
            try:
                update = self._poll_entry(key, entry)
            except Exception:  # noqa: BLE001
                logging.exception("event=fr_track_error symbol=%s", entry.signal.symbol)
                continue
            if update is not None:
                updates.append(update)

        return updates

    def _poll_entry(self, key: str, entry: TrackedSignal) -> FundingUpdate | None:
        symbol = entry.signal.symbol
        new_rate = self.exchange.fetch_funding_rate(symbol)
        new_ratio = self.exchange.fetch_long_short_ratio(symbol)
        if abs(new_rate - entry.last_fr) < self.change_threshold:
            return None

        old_rate = entry.last_fr
        updated = replace(
            entry,
            last_fr=new_rate,
            last_ls_ratio=new_ratio,
            update_count=entry.update_count + 1,
        )
        if not self.store.compare_and_set(key, entry, updated):
            logging.debug("event=fr_track_superseded symbol=%s", symbol)
            return None

        assessment = classify_funding_rate(new_rate, new_ratio, self.danger_1, self.danger_2)
        arrow = ARROW_UP if new_rate > old_rate else ARROW_DOWN
        message = format_funding_update_message(updated, assessment, old_rate * 100, updated.update_count, arrow)
        logging.info(
            "event=fr_update symbol=%s direction=%s update_no=%d old_pct=%.4f new_pct=%.4f risk=%s",
            symbol,
            entry.signal.direction,
            updated.update_count,
            old_rate * 100,
            new_rate * 100,
            assessment.risk_level,
        )
        self.notifier.send_message(message)
        return FundingUpdate(
            entry=updated,
            assessment=assessment,
            old_rate_pct=old_rate * 100,
            update_no=updated.update_count,
            direction_arrow=arrow,
            message=message,
        )

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            try:
                self.check_updates()
            except Exception:  # noqa: BLE001
                logging.exception("event=fr_track_loop_error")

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = Thread(target=self._run, name="fr-tracker", daemon=True)
        self._thread.start()
        logging.info("event=fr_tracker_started interval_seconds=%.0f", self.interval_seconds)

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        self.store.clear()
