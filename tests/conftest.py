from __future__ import annotations

import pytest

from nokta_signals.config import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        telegram_bot_token="",
        telegram_chat_id="",
        binance_base_url="https://fapi.binance.com",
        http_timeout_seconds=10,
        leverage=20,
        entry_amount=10,
        target_profit_pct=100,
        rsi_long=20,
        rsi_short=80,
        srsi_long=0,
        srsi_short=100,
        srsi_tolerance=5,
        srsi_cross_oversold=25,
        srsi_cross_overbought=75,
        fr_danger_1=0.005,
        fr_danger_2=0.015,
        signal_cooldown_minutes=240,
        scan_interval_minutes=15,
        batch_size=2,
        batch_delay_seconds=1.5,
        candle_count=100,
        direction_preference=("LONG", "SHORT"),
        fr_check_interval_minutes=5,
        fr_change_threshold=0.00005,
        fr_max_track_hours=4,
        fr_max_updates=10,
    )
