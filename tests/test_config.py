from __future__ import annotations

import pytest

from nokta_signals import config
from nokta_signals.config import load_settings

_ENV_KEYS = (
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_CHAT_ID",
    "BINANCE_BASE_URL",
    "HTTP_TIMEOUT_SECONDS",
    "LEVERAGE",
    "ENTRY_AMOUNT",
    "TARGET_PROFIT_PCT",
    "RSI_LONG",
    "RSI_SHORT",
    "SRSI_LONG",
    "SRSI_SHORT",
    "SRSI_TOLERANCE",
    "SRSI_CROSS_OVERSOLD",
    "SRSI_CROSS_OVERBOUGHT",
    "FR_DANGER_1",
    "FR_DANGER_2",
    "SIGNAL_COOLDOWN_MINUTES",
    "SCAN_INTERVAL_MINUTES",
    "BATCH_SIZE",
    "BATCH_DELAY_SECONDS",
    "CANDLE_COUNT",
    "DIRECTION_PREFERENCE",
    "FR_CHECK_INTERVAL_MINUTES",
    "FR_CHANGE_THRESHOLD",
    "FR_MAX_TRACK_HOURS",
    "FR_MAX_UPDATES",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    monkeypatch.setattr(config, "load_dotenv", lambda: False)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_load_settings_defaults() -> None:
    settings = load_settings()

    assert settings.leverage == 20
    assert settings.entry_amount == 10
    assert settings.target_profit_pct == 100
    assert settings.rsi_long == 20 and settings.rsi_short == 80
    assert settings.fr_danger_1 == 0.005 and settings.fr_danger_2 == 0.015
    assert settings.signal_cooldown_minutes == 240
    assert settings.batch_size == 10
    assert settings.direction_preference == ("LONG", "SHORT")
    assert settings.fr_change_threshold == 0.00005
    assert settings.fr_max_updates == 10
    assert settings.telegram_bot_token == ""


def test_load_settings_reads_overrides(monkeypatch) -> None:
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "token")
    monkeypatch.setenv("TELEGRAM_CHAT_ID", "chat")
    monkeypatch.setenv("LEVERAGE", "10")
    monkeypatch.setenv("SIGNAL_COOLDOWN_MINUTES", "60")
    monkeypatch.setenv("SRSI_CROSS_OVERSOLD", "20")
    monkeypatch.setenv("DIRECTION_PREFERENCE", "short, long")

    settings = load_settings()

    assert settings.telegram_bot_token == "token"
    assert settings.leverage == 10
    assert settings.signal_cooldown_minutes == 60
    assert settings.srsi_cross_oversold == 20
    assert settings.direction_preference == ("SHORT", "LONG")


@pytest.mark.parametrize("raw", ["LONG", "LONG,LONG", "LONG,SHORT,FLAT"])
def test_invalid_direction_preference_is_rejected(monkeypatch, raw: str) -> None:
    monkeypatch.setenv("DIRECTION_PREFERENCE", raw)

    with pytest.raises(ValueError):
        load_settings()


def test_danger_thresholds_must_be_ordered(monkeypatch) -> None:
    monkeypatch.setenv("FR_DANGER_1", "0.02")
    monkeypatch.setenv("FR_DANGER_2", "0.01")

    with pytest.raises(ValueError):
        load_settings()


def test_non_positive_batch_size_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("BATCH_SIZE", "0")

    with pytest.raises(ValueError):
        load_settings()
