from __future__ import annotations

import logging
from typing import Any

import requests


class BinanceFuturesClient:
    def __init__(self, base_url: str = "https://fapi.binance.com", timeout: float = 10) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    def _get(self, path: str, params: dict[str, object] | None = None) -> Any:
        resp = self.session.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def get_klines(self, symbol: str, interval: str, limit: int = 100) -> list[list[Any]]:
        raw = self._get("/fapi/v1/klines", {"symbol": symbol, "interval": interval, "limit": limit})
        logging.debug("Fetched %d %s klines for %s", len(raw), interval, symbol)
        return raw

    def get_premium_index(self, symbol: str) -> dict[str, Any]:
        return self._get("/fapi/v1/premiumIndex", {"symbol": symbol})

    def get_long_short_account_ratio(self, symbol: str, period: str = "1h", limit: int = 1) -> list[dict[str, Any]]:
        return self._get(
            "/futures/data/globalLongShortAccountRatio",
            {"symbol": symbol, "period": period, "limit": limit},
        )

    def get_exchange_info(self) -> dict[str, Any]:
        return self._get("/fapi/v1/exchangeInfo")
