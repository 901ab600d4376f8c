from __future__ import annotations

import logging
import time

import requests

from .message_formatter import strip_html

MAX_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 2.0
DEFAULT_RETRY_AFTER_SECONDS = 5.0


class TelegramNotifier:
    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        *,
        timeout: float = 10,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay_seconds: float = RETRY_DELAY_SECONDS,
    ) -> None:
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.enabled = bool(bot_token and chat_id)
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.retry_delay_seconds = retry_delay_seconds

    def _endpoint(self, method: str) -> str:
        return f"https://api.telegram.org/bot{self.bot_token}/{method}"

    def _post(self, method: str, body: dict[str, object]) -> requests.Response:
        return requests.post(self._endpoint(method), json=body, timeout=self.timeout)

    @staticmethod
    def _retry_after(resp: requests.Response) -> float:
        try:
            data = resp.json()
        except ValueError:
            return DEFAULT_RETRY_AFTER_SECONDS
        params = data.get("parameters") or {}
        return float(params.get("retry_after") or DEFAULT_RETRY_AFTER_SECONDS)

    def send_message(self, text: str) -> bool:
        if not self.enabled:
            logging.info("event=telegram_disabled message=\n%s", strip_html(text))
            return False

        body = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        for attempt in range(1, self.max_attempts + 1):
            start = time.perf_counter()
            try:
                resp = self._post("sendMessage", body)
            except requests.RequestException as exc:
                logging.warning("event=telegram_send_fail attempt=%d err=%s", attempt, exc)
                if attempt < self.max_attempts:
                    time.sleep(self.retry_delay_seconds)
                continue

            latency_ms = int((time.perf_counter() - start) * 1000)
            if 200 <= resp.status_code < 300:
                logging.info("event=telegram_send_success attempt=%d latency_ms=%d", attempt, latency_ms)
                return True

            if resp.status_code == 429:
                wait = self._retry_after(resp)
                logging.warning("event=telegram_rate_limited attempt=%d retry_after=%.1f", attempt, wait)
                if attempt < self.max_attempts:
                    time.sleep(wait)
                continue

            logging.warning("event=telegram_send_fail attempt=%d http_status=%d", attempt, resp.status_code)
            if attempt < self.max_attempts:
                time.sleep(self.retry_delay_seconds)

        logging.error("event=telegram_send_gave_up attempts=%d", self.max_attempts)
        return False
