from __future__ import annotations

import logging
from typing import Any

import requests

from nokta_signals.binance_client import BinanceFuturesClient
from nokta_signals.models import Candle

DEFAULT_FUNDING_RATE = 0.0
DEFAULT_LONG_SHORT_RATIO = 1.0


def _to_float(value: Any, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def parse_kline(raw: list[Any]) -> Candle:
    if len(raw) < 6:
        raise ValueError(f"Malformed kline row: {raw!r}")
    return Candle(
        timestamp=int(raw[0]),
        open=float(raw[1]),
        high=float(raw[2]),
        low=float(raw[3]),
        close=float(raw[4]),
        volume=float(raw[5]),
    )


def parse_funding_rate(payload: dict[str, Any]) -> float:
    return _to_float(payload.get("lastFundingRate"), DEFAULT_FUNDING_RATE)


def parse_long_short_ratio(payload: list[dict[str, Any]]) -> float:
    if not payload:
        return DEFAULT_LONG_SHORT_RATIO
    ratio = _to_float(payload[0].get("longShortRatio"), DEFAULT_LONG_SHORT_RATIO)
    return ratio if ratio > 0 else DEFAULT_LONG_SHORT_RATIO


def parse_active_perpetual_pairs(payload: dict[str, Any]) -> list[str]:
    return [
        str(item["symbol"])
        for item in payload.get("symbols", [])
        if item.get("status") == "TRADING"
        and item.get("quoteAsset") == "USDT"
        and item.get("contractType") == "PERPETUAL"
    ]


class BinanceRestDataClient:
    """Exchange boundary: typed candles and explicit fallbacks for derivatives data.

    OHLCV failures propagate since no fallback series is safe to invent. Funding
    rate, long/short ratio and the pair universe degrade to 0, 1 and an empty
    list respectively.
    """

    def __init__(self, client: BinanceFuturesClient | None = None) -> None:
        self._client = client or BinanceFuturesClient()

    def fetch_ohlcv(self, symbol: str, timeframe: str, limit: int) -> list[Candle]:
        raw = self._client.get_klines(symbol, timeframe, limit=limit)
        return [parse_kline(row) for row in raw]

    def fetch_funding_rate(self, symbol: str) -> float:
        try:
            return parse_funding_rate(self._client.get_premium_index(symbol))
        except (requests.RequestException, ValueError, KeyError, AttributeError) as exc:
            logging.warning("event=funding_rate_fallback symbol=%s default=%s err=%s", symbol, DEFAULT_FUNDING_RATE, exc)
            return DEFAULT_FUNDING_RATE

    def fetch_long_short_ratio(self, symbol: str) -> float:
        try:
            return parse_long_short_ratio(self._client.get_long_short_account_ratio(symbol))
        except (requests.RequestException, ValueError, KeyError, AttributeError, IndexError) as exc:
            logging.warning("event=ls_ratio_fallback symbol=%s default=%s err=%s", symbol, DEFAULT_LONG_SHORT_RATIO, exc)
            return DEFAULT_LONG_SHORT_RATIO

    def list_active_perpetual_pairs(self) -> list[str]:
        try:
            return parse_active_perpetual_pairs(self._client.get_exchange_info())
        except (requests.RequestException, ValueError, KeyError, AttributeError) as exc:
            logging.error("event=pair_listing_failed err=%s", exc)
            return []
