"""Operator notifications over the Telegram Bot API."""

from __future__ import annotations

import requests
from tenacity import retry, stop_after_attempt, wait_exponential

from stockcheck.config import Settings
from stockcheck.logging_config import get_logger

LOGGER = get_logger(__name__)

TELEGRAM_API = "https://api.telegram.org"


class Notifier:
    """Send run outcomes to a Telegram chat when enabled and configured."""

    def __init__(
        self,
        token: str | None,
        chat_id: str | None,
        *,
        enabled: bool = True,
    ) -> None:
        self._token = token
        self._chat_id = chat_id
        self._enabled = enabled

    @classmethod
    def from_settings(cls, settings: Settings) -> "Notifier":
        return cls(settings.telegram_token, settings.telegram_chat_id, enabled=settings.notify_enabled)

    @property
    def configured(self) -> bool:
        return bool(self._enabled and self._token and self._chat_id)

    def send(self, message: str) -> bool:
        """Deliver *message*; return ``False`` instead of raising on failure."""

        if not self._enabled:
            LOGGER.info("Notification disabled: %s", message)
            return False
        if not (self._token and self._chat_id):
            LOGGER.warning("Notification skipped, Telegram credentials missing: %s", message)
            return False
        try:
            self._send_telegram(message)
        except Exception as exc:
            LOGGER.warning("Notification delivery failed: %s", exc)
            return False
        LOGGER.info("Notification sent")
        return True

    @retry(wait=wait_exponential(multiplier=0.5, max=5), stop=stop_after_attempt(3), reraise=True)
    def _send_telegram(self, message: str) -> None:
        url = f"{TELEGRAM_API}/bot{self._token}/sendMessage"
        payload = {
            "chat_id": self._chat_id,
            "text": message,
            "disable_web_page_preview": True,
        }
        response = requests.post(url, json=payload, timeout=8)
        if response.status_code >= 400:
            raise RuntimeError(f"HTTP {response.status_code}")
