"""Telegram notification adapter."""

import logging
from typing import Optional

import httpx

from knowledge_capture.core.interfaces import Notifier

logger = logging.getLogger(__name__)


class TelegramNotifier(Notifier):
    """Send chat messages through the Telegram Bot API."""

    def __init__(self, bot_token: Optional[str] = None, timeout: float = 30.0) -> None:
        """Initialize Telegram notifier.

        Args:
            bot_token: Bot API token. If None, notifications are skipped.
            timeout: Request timeout in seconds.
        """
        self.bot_token = bot_token
        self.timeout = timeout
        self.api_base = "https://api.telegram.org"

    async def send_message(self, chat_id: int, text: str) -> bool:
        """Send text to a chat.

        Args:
            chat_id: Telegram chat id
            text: Message text

        Returns:
            True when Telegram accepted the message.
        """
        if not self.bot_token:
            logger.warning("TELEGRAM_BOT_TOKEN not configured, message to %s dropped", chat_id)
            return False

        payload = {
            "chat_id": chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(
                    f"{self.api_base}/bot{self.bot_token}/sendMessage", json=payload
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.warning("Failed to send Telegram message: %s", e)
                return False

        return True
