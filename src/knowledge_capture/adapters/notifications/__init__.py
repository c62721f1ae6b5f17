"""Notification adapters."""

from knowledge_capture.adapters.notifications.telegram_notifier import TelegramNotifier

__all__ = ["TelegramNotifier"]
