"""Telegram notification service."""
from __future__ import annotations

import logging
import ssl
import time

import aiohttp
import certifi

from ..config import TelegramConfig

logger = logging.getLogger(__name__)

# Identical alerts inside this window are dropped.
ALERT_COOLDOWN_SECONDS = 300


class TelegramNotifier:
    """Send liquidation alerts and cycle logs via Telegram bots."""

    def __init__(
        self, config: TelegramConfig, cooldown_seconds: float = ALERT_COOLDOWN_SECONDS
    ) -> None:
        self.alert_bot_token = config.alert_bot_token
        self.log_bot_token = config.log_bot_token
        self.chat_id = config.chat_id
        self.cooldown_seconds = cooldown_seconds
        self._last_sent: dict[str, float] = {}

    def _is_duplicate(self, message: str) -> bool:
        key = message[:100]
        now = time.monotonic()
        last = self._last_sent.get(key)
        if last is not None and now - last < self.cooldown_seconds:
            return True
        self._last_sent[key] = now
        return False

    async def _send_message(
        self, message: str, bot_token: str, silent: bool = False
    ) -> bool:
        """Send Telegram message using specified bot."""
        if not bot_token or not self.chat_id:
            logger.warning("Telegram credentials not configured")
            return False

        url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
        payload = {
            "chat_id": self.chat_id,
            "text": message,
            "parse_mode": "HTML",
            "disable_notification": silent,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(url, json=payload) as response:
                if response.status == 200:
                    return True
                logger.error("Failed to send Telegram message: %s", response.status)
                return False

    async def send_alert(self, message: str, subject: str = "") -> bool:
        """Send an alert on the unmuted bot; repeats within the cooldown are dropped."""
        text = f"<b>{subject}</b>\n\n{message}" if subject else message
        if self._is_duplicate(text):
            logger.debug("Suppressing duplicate Telegram alert")
            return False
        if await self._send_message(text, self.alert_bot_token, silent=False):
            logger.info("Telegram alert sent")
            return True
        return False

    async def send_log(self, message: str, silent: bool = True) -> bool:
        """Send a cycle log on the log bot."""
        if await self._send_message(message, self.log_bot_token, silent=silent):
            logger.debug("Telegram log sent")
            return True
        return False
