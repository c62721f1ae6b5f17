"""Tests for Claude client."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from knowledge_capture.adapters.llm import ClaudeClient
from knowledge_capture.config import Settings
from knowledge_capture.core.errors import CompletionError
from knowledge_capture.prompts import CLASSIFICATION, render


@pytest.fixture
def mock_settings() -> Settings:
    """Create mock settings."""
    settings = Settings(anthropic_api_key="test-key")
    settings.claude.max_retries = 3
    settings.claude.initial_retry_delay = 0.01  # Faster for tests
    settings.claude.request_delay = 0.0
    return settings


def _ok_response(text: str, input_tokens: int = 1000, output_tokens: int = 100) -> MagicMock:
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = {
        "content": [{"type": "text", "text": text}],
        "usage": {"input_tokens": input_tokens, "output_tokens": output_tokens},
    }
    return response


def _messages() -> list[dict[str, str]]:
    return render(CLASSIFICATION, context="Source type: article", valid_domains="", domain_list="")


@pytest.mark.asyncio
async def test_complete_success(mock_settings: Settings) -> None:
    """Test a successful completion is priced from token usage."""
    client = ClaudeClient(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.post.return_value = _ok_response('  {"title": "Ink"}  ')
        mock_client_class.return_value = mock_client

        completion = await client.complete(_messages())

    assert completion.text == '{"title": "Ink"}'
    assert completion.input_tokens == 1000
    assert completion.output_tokens == 100
    # 1000 * 3 / 1M + 100 * 15 / 1M
    assert completion.cost == pytest.approx(0.0045)


@pytest.mark.asyncio
async def test_complete_splits_system_prompt(mock_settings: Settings) -> None:
    """Test system messages go to the top-level system field."""
    client = ClaudeClient(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.post.return_value = _ok_response("ok")
        mock_client_class.return_value = mock_client

        await client.complete(_messages(), temperature=0.0, max_tokens=10)

        payload = mock_client.post.call_args.kwargs["json"]

    assert payload["system"] == CLASSIFICATION["system"]
    assert [m["role"] for m in payload["messages"]] == ["user"]
    assert payload["temperature"] == 0.0
    assert payload["max_tokens"] == 10


@pytest.mark.asyncio
async def test_complete_retry_on_429(mock_settings: Settings) -> None:
    """Test retry logic on 429 error."""
    client = ClaudeClient(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_response_429 = MagicMock()
        mock_response_429.status_code = 429
        mock_response_429.headers = {}

        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.post.side_effect = [mock_response_429, _ok_response("yes")]
        mock_client_class.return_value = mock_client

        completion = await client.complete(_messages())

    assert completion.text == "yes"
    assert mock_client.post.call_count == 2


@pytest.mark.asyncio
async def test_complete_server_errors_exhaust_retries(mock_settings: Settings) -> None:
    """Test persistent 5xx responses end in CompletionError."""
    client = ClaudeClient(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_response_500 = MagicMock()
        mock_response_500.status_code = 503

        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.post.return_value = mock_response_500
        mock_client_class.return_value = mock_client

        with pytest.raises(CompletionError):
            await client.complete(_messages())

    assert mock_client.post.call_count == 3


@pytest.mark.asyncio
async def test_complete_client_error_not_retried(mock_settings: Settings) -> None:
    """Test a 400 response raises immediately."""
    client = ClaudeClient(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_response_400 = MagicMock()
        mock_response_400.status_code = 400
        mock_response_400.raise_for_status.side_effect = httpx.HTTPStatusError(
            "bad request", request=MagicMock(), response=mock_response_400
        )

        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.post.return_value = mock_response_400
        mock_client_class.return_value = mock_client

        with pytest.raises(CompletionError, match="400"):
            await client.complete(_messages())

    assert mock_client.post.call_count == 1


@pytest.mark.asyncio
async def test_complete_network_error_retried(mock_settings: Settings) -> None:
    client = ClaudeClient(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.post.side_effect = [httpx.ConnectError("boom"), _ok_response("no")]
        mock_client_class.return_value = mock_client

        completion = await client.complete(_messages())

    assert completion.text == "no"


@pytest.mark.asyncio
async def test_complete_without_api_key() -> None:
    """Test missing key fails before any request."""
    client = ClaudeClient(Settings())

    with patch("httpx.AsyncClient") as mock_client_class:
        with pytest.raises(CompletionError, match="ANTHROPIC_API_KEY"):
            await client.complete(_messages())

    mock_client_class.assert_not_called()
