from __future__ import annotations

from dataclasses import dataclass
import os

from dotenv import load_dotenv

DIRECTIONS = ("LONG", "SHORT")


@dataclass(frozen=True)
class Settings:
    telegram_bot_token: str
    telegram_chat_id: str
    binance_base_url: str
    http_timeout_seconds: float
    leverage: float
    entry_amount: float
    target_profit_pct: float
    rsi_long: float
    rsi_short: float
    srsi_long: float
    srsi_short: float
    srsi_tolerance: float
    srsi_cross_oversold: float
    srsi_cross_overbought: float
    fr_danger_1: float
    fr_danger_2: float
    signal_cooldown_minutes: float
    scan_interval_minutes: float
    batch_size: int
    batch_delay_seconds: float
    candle_count: int
    direction_preference: tuple[str, ...]
    fr_check_interval_minutes: float
    fr_change_threshold: float
    fr_max_track_hours: float
    fr_max_updates: int


def _parse_direction_preference(raw: str) -> tuple[str, ...]:
    order = tuple(part.strip().upper() for part in raw.split(",") if part.strip())
    if sorted(order) != sorted(DIRECTIONS):
        raise ValueError(f"DIRECTION_PREFERENCE must list LONG and SHORT once each, got {raw!r}")
    return order


def load_settings() -> Settings:
    load_dotenv()

    settings = Settings(
        telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID", ""),
        binance_base_url=os.getenv("BINANCE_BASE_URL", "https://fapi.binance.com"),
        http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "10")),
        leverage=float(os.getenv("LEVERAGE", "20")),
        entry_amount=float(os.getenv("ENTRY_AMOUNT", "10")),
        target_profit_pct=float(os.getenv("TARGET_PROFIT_PCT", "100")),
        rsi_long=float(os.getenv("RSI_LONG", "20")),
        rsi_short=float(os.getenv("RSI_SHORT", "80")),
        srsi_long=float(os.getenv("SRSI_LONG", "0")),
        srsi_short=float(os.getenv("SRSI_SHORT", "100")),
        srsi_tolerance=float(os.getenv("SRSI_TOLERANCE", "5")),
        srsi_cross_oversold=float(os.getenv("SRSI_CROSS_OVERSOLD", "25")),
        srsi_cross_overbought=float(os.getenv("SRSI_CROSS_OVERBOUGHT", "75")),
        fr_danger_1=float(os.getenv("FR_DANGER_1", "0.005")),
        fr_danger_2=float(os.getenv("FR_DANGER_2", "0.015")),
        signal_cooldown_minutes=float(os.getenv("SIGNAL_COOLDOWN_MINUTES", "240")),
        scan_interval_minutes=float(os.getenv("SCAN_INTERVAL_MINUTES", "15")),
        batch_size=int(os.getenv("BATCH_SIZE", "10")),
        batch_delay_seconds=float(os.getenv("BATCH_DELAY_SECONDS", "1")),
        candle_count=int(os.getenv("CANDLE_COUNT", "100")),
        direction_preference=_parse_direction_preference(os.getenv("DIRECTION_PREFERENCE", "LONG,SHORT")),
        fr_check_interval_minutes=float(os.getenv("FR_CHECK_INTERVAL_MINUTES", "5")),
        fr_change_threshold=float(os.getenv("FR_CHANGE_THRESHOLD", "0.00005")),
        fr_max_track_hours=float(os.getenv("FR_MAX_TRACK_HOURS", "4")),
        fr_max_updates=int(os.getenv("FR_MAX_UPDATES", "10")),
    )

    if settings.leverage <= 0:
        raise ValueError("LEVERAGE must be positive")
    if settings.batch_size <= 0:
        raise ValueError("BATCH_SIZE must be positive")
    if settings.fr_danger_1 >= settings.fr_danger_2:
        raise ValueError("FR_DANGER_1 must be below FR_DANGER_2")
    return settings
