"""Delivery channels — the last hop to the operator.

The gate calls ``deliver()`` only after every filter has passed.  A
channel raises ``DeliveryError`` on failure and never retries; callers
that want retries wrap delivery in the ``ResilientExecutor``.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from steward.core.config import Settings
from steward.core.errors import DeliveryError

_logger = logging.getLogger("steward.notifications")


class DeliveryChannel(Protocol):
    async def deliver(self, content: str) -> None: ...


class TelegramChannel:
    """Send messages through the Telegram Bot API ``sendMessage`` method.

    Args:
        token:   Bot token.
        chat_id: Target chat.
        api_url: Bot API origin (overridable for tests and proxies).
        timeout: Request timeout in seconds.
        client:  Optional pre-built ``httpx.AsyncClient`` (tests inject a
                 mock transport here).
    """

    name = "telegram"

    def __init__(
        self,
        token: str,
        chat_id: str,
        api_url: str = "https://api.telegram.org",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._token = token
        self.chat_id = chat_id
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def deliver(self, content: str) -> None:
        url = f"{self.api_url}/bot{self._token}/sendMessage"
        payload = {"chat_id": self.chat_id, "text": content, "parse_mode": "HTML"}
        try:
            response = await self._get_client().post(url, json=payload, timeout=self.timeout)
        except httpx.HTTPError as exc:
            raise DeliveryError(self.name, f"{type(exc).__name__}") from exc

        if response.status_code >= 400:
            raise DeliveryError(self.name, f"HTTP {response.status_code}")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class LogChannel:
    """Logs what would have been sent.  Used when Telegram is not configured."""

    name = "log"

    def __init__(self) -> None:
        self.delivered: list[str] = []

    async def deliver(self, content: str) -> None:
        _logger.info("Would send: %s", content[:50])
        self.delivered.append(content)


def build_channel(settings: Settings) -> DeliveryChannel:
    if settings.telegram_configured:
        return TelegramChannel(
            token=settings.TELEGRAM_BOT_TOKEN,
            chat_id=settings.TELEGRAM_CHAT_ID,
            api_url=settings.TELEGRAM_API_URL,
            timeout=settings.TELEGRAM_TIMEOUT_SECONDS,
        )
    _logger.warning("Telegram not configured — notifications will only be logged")
    return LogChannel()
