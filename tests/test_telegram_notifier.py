"""Tests for Telegram notifier adapter."""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from knowledge_capture.adapters.notifications import TelegramNotifier


@pytest.mark.asyncio
async def test_send_message_success() -> None:
    """Test successful Telegram notification."""
    notifier = TelegramNotifier("123:abc")

    with patch("httpx.AsyncClient") as mock_client:
        mock_response = Mock()
        mock_response.raise_for_status = Mock()

        mock_post = AsyncMock(return_value=mock_response)
        mock_client.return_value.__aenter__.return_value.post = mock_post

        delivered = await notifier.send_message(42, "✓ Saved: Ink")

        assert delivered is True
        call_args = mock_post.call_args
        assert call_args.args[0] == "https://api.telegram.org/bot123:abc/sendMessage"

        payload = call_args.kwargs["json"]
        assert payload["chat_id"] == 42
        assert payload["text"] == "✓ Saved: Ink"
        assert payload["disable_web_page_preview"] is True


@pytest.mark.asyncio
async def test_send_message_no_token() -> None:
    """Test that notification is skipped when no token is configured."""
    notifier = TelegramNotifier(None)

    with patch("httpx.AsyncClient") as mock_client:
        assert await notifier.send_message(42, "hello") is False

    mock_client.assert_not_called()


@pytest.mark.asyncio
async def test_send_message_api_error() -> None:
    """Test handling of Telegram API errors."""
    notifier = TelegramNotifier("123:abc")

    with patch("httpx.AsyncClient") as mock_client:
        mock_response = Mock()
        mock_response.raise_for_status = Mock(side_effect=httpx.HTTPError("API Error"))

        mock_post = AsyncMock(return_value=mock_response)
        mock_client.return_value.__aenter__.return_value.post = mock_post

        # Should handle error gracefully (log a warning but not raise)
        assert await notifier.send_message(42, "hello") is False


@pytest.mark.asyncio
async def test_send_message_network_error() -> None:
    notifier = TelegramNotifier("123:abc")

    with patch("httpx.AsyncClient") as mock_client:
        mock_client.return_value.__aenter__.return_value.post = AsyncMock(
            side_effect=httpx.ConnectError("unreachable")
        )

        assert await notifier.send_message(42, "hello") is False
