from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
import math
from typing import Protocol

import requests

from nokta_signals.calculations import volume_change_pct
from nokta_signals.indicators import (
    last_valid,
    rsi,
    rsi_accumulation,
    rsi_signal_cross,
    stochastic_rsi,
    trend_from_rsi_only,
    wavetrend_cross,
)
from nokta_signals.models import (
    DIRECTION_TIMEFRAMES,
    ENTRY_TIMEFRAMES,
    Candle,
    MultiTimeframeBundle,
    TimeframeSnapshot,
)

MIN_CANDLES = 50
RSI_PERIOD = 14
STOCH_PERIOD = 14
STOCH_K_SMOOTH = 3
STOCH_D_SMOOTH = 3
RSI_SIGNAL_PERIOD = 14
WT_CHANNEL_LEN = 10
WT_AVG_LEN = 21
WT_MA_LEN = 4


class ExchangeDataProtocol(Protocol):
    def fetch_ohlcv(self, symbol: str, timeframe: str, limit: int) -> list[Candle]: ...

    def fetch_funding_rate(self, symbol: str) -> float: ...

    def fetch_long_short_ratio(self, symbol: str) -> float: ...

    def list_active_perpetual_pairs(self) -> list[str]: ...


def build_snapshot(
    timeframe: str,
    candles: list[Candle],
    *,
    srsi_cross_oversold: float = 25.0,
    srsi_cross_overbought: float = 75.0,
) -> TimeframeSnapshot | None:
    if len(candles) < MIN_CANDLES:
        return None

    rsi_values = rsi(candles, RSI_PERIOD)
    srsi = stochastic_rsi(
        candles,
        RSI_PERIOD,
        STOCH_PERIOD,
        STOCH_K_SMOOTH,
        STOCH_D_SMOOTH,
        oversold=srsi_cross_oversold,
        overbought=srsi_cross_overbought,
    )
    wt = wavetrend_cross(candles, WT_CHANNEL_LEN, WT_AVG_LEN, WT_MA_LEN)

    rsi_now = last_valid(rsi_values)
    srsi_k = last_valid(srsi.k)
    srsi_d = last_valid(srsi.d)
    wt1 = last_valid(wt.wt1)
    wt2 = last_valid(wt.wt2)
    if any(math.isnan(v) for v in (rsi_now, srsi_k, srsi_d, wt1, wt2)):
        return None

    latest = candles[-1]
    previous = candles[-2]
    return TimeframeSnapshot(
        timeframe=timeframe,
        rsi=rsi_now,
        srsi_k=srsi_k,
        srsi_d=srsi_d,
        wt1=wt1,
        wt2=wt2,
        wt_cross_signal=wt.signal[-1],
        trend=trend_from_rsi_only(rsi_now),
        close=latest.close,
        volume_change_pct=volume_change_pct(previous.volume, latest.volume),
        rsi_cross=rsi_signal_cross(rsi_values, RSI_SIGNAL_PERIOD),
        srsi_cross=srsi.cross,
        accumulation=rsi_accumulation(rsi_values, srsi.k, srsi.d),
    )


class MultiTimeframeAggregator:
    def __init__(
        self,
        exchange: ExchangeDataProtocol,
        *,
        candle_count: int = 100,
        srsi_cross_oversold: float = 25.0,
        srsi_cross_overbought: float = 75.0,
    ) -> None:
        self.exchange = exchange
        self.candle_count = candle_count
        self.srsi_cross_oversold = srsi_cross_oversold
        self.srsi_cross_overbought = srsi_cross_overbought

    def analyze_timeframe(self, symbol: str, timeframe: str) -> TimeframeSnapshot | None:
        try:
            candles = self.exchange.fetch_ohlcv(symbol, timeframe, self.candle_count)
        except (requests.RequestException, ValueError) as exc:
            logging.warning("event=ohlcv_fetch_failed symbol=%s tf=%s err=%s", symbol, timeframe, exc)
            return None

        snapshot = build_snapshot(
            timeframe,
            candles,
            srsi_cross_oversold=self.srsi_cross_oversold,
            srsi_cross_overbought=self.srsi_cross_overbought,
        )
        if snapshot is None:
            logging.debug(
                "event=insufficient_history symbol=%s tf=%s have=%d need=%d",
                symbol,
                timeframe,
                len(candles),
                MIN_CANDLES,
            )
        return snapshot

    def fetch_bundle(self, symbol: str) -> MultiTimeframeBundle | None:
        timeframes = ENTRY_TIMEFRAMES + DIRECTION_TIMEFRAMES
        with ThreadPoolExecutor(max_workers=len(timeframes)) as pool:
            snapshots = dict(zip(timeframes, pool.map(lambda tf: self.analyze_timeframe(symbol, tf), timeframes)))

        if any(snapshot is None for snapshot in snapshots.values()):
            return None
        return MultiTimeframeBundle(
            entry={tf: snapshots[tf] for tf in ENTRY_TIMEFRAMES},
            direction={tf: snapshots[tf] for tf in DIRECTION_TIMEFRAMES},
        )
