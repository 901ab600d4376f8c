from __future__ import annotations

from datetime import datetime, timedelta, timezone
from threading import RLock

from nokta_signals.models import Direction, TrackedSignal, TradeSignal, signal_key


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class CooldownStore:
    """Last emission time per ``SYMBOL_DIRECTION`` key."""

    def __init__(self, cooldown: timedelta) -> None:
        self.cooldown = cooldown
        self._lock = RLock()
        self._last_emitted: dict[str, datetime] = {}

    def get(self, key: str) -> datetime | None:
        with self._lock:
            return self._last_emitted.get(key)

    def set(self, key: str, ts: datetime) -> None:
        with self._lock:
            self._last_emitted[key] = ts

    def delete(self, key: str) -> None:
        with self._lock:
            self._last_emitted.pop(key, None)

    def is_active(self, symbol: str, direction: Direction, now: datetime | None = None) -> bool:
        now = now or _utcnow()
        last = self.get(signal_key(symbol, direction))
        return last is not None and now - last < self.cooldown

    def record(self, symbol: str, direction: Direction, now: datetime | None = None) -> None:
        self.set(signal_key(symbol, direction), now or _utcnow())

    def sweep_expired(self, now: datetime | None = None) -> int:
        now = now or _utcnow()
        horizon = self.cooldown * 2
        with self._lock:
            stale = [key for key, ts in self._last_emitted.items() if now - ts > horizon]
            for key in stale:
                del self._last_emitted[key]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_emitted)


class TrackedSignalStore:
    """Signals under funding-rate watch, keyed like the cooldown store."""

    def __init__(self, max_age: timedelta, max_updates: int) -> None:
        self.max_age = max_age
        self.max_updates = max_updates
        self._lock = RLock()
        self._entries: dict[str, TrackedSignal] = {}

    def get(self, key: str) -> TrackedSignal | None:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, entry: TrackedSignal) -> None:
        with self._lock:
            self._entries[key] = entry

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def compare_and_set(self, key: str, expected: TrackedSignal, entry: TrackedSignal) -> bool:
        with self._lock:
            if self._entries.get(key) is not expected:
                return False
            self._entries[key] = entry
            return True

    def add(self, signal: TradeSignal, now: datetime | None = None) -> TrackedSignal:
        entry = TrackedSignal(
            signal=signal,
            last_fr=signal.fr.rate,
            last_ls_ratio=signal.fr.ls_ratio,
            update_count=0,
            created_at=now or _utcnow(),
        )
        self.set(signal.key, entry)
        return entry

    def items(self) -> list[tuple[str, TrackedSignal]]:
        with self._lock:
            return list(self._entries.items())

    def is_expired(self, entry: TrackedSignal, now: datetime) -> bool:
        return now - entry.created_at > self.max_age

    def sweep_expired(self, now: datetime | None = None) -> int:
        now = now or _utcnow()
        with self._lock:
            stale = [
                key
                for key, entry in self._entries.items()
                if self.is_expired(entry, now) or entry.update_count >= self.max_updates
            ]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
