"""Tests for OpenAI embedder."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from knowledge_capture.adapters.embeddings import OpenAIEmbedder
from knowledge_capture.adapters.embeddings.openai_embedder import build_embedding_text


def test_build_embedding_text() -> None:
    assert build_embedding_text("Ink", "React for CLIs", ["react", "cli"]) == (
        "Ink\n\nReact for CLIs\n\nTags: react, cli"
    )
    assert build_embedding_text("Ink", None, []) == "Ink"


@pytest.mark.asyncio
async def test_embed_success() -> None:
    """Test vector and cost come back from one call."""
    embedder = OpenAIEmbedder("sk-test")

    with patch("httpx.AsyncClient") as mock_client:
        response = MagicMock()
        response.status_code = 200
        response.json.return_value = {
            "data": [{"embedding": [0.1, 0.2, 0.3]}],
            "usage": {"total_tokens": 500},
        }
        mock_post = AsyncMock(return_value=response)
        mock_client.return_value.__aenter__.return_value.post = mock_post

        result = await embedder.embed("Ink\n\nReact for CLIs")

        payload = mock_post.call_args.kwargs["json"]

    assert payload == {"model": "text-embedding-3-small", "input": "Ink\n\nReact for CLIs"}
    assert result is not None
    assert result.vector == [0.1, 0.2, 0.3]
    assert result.cost == pytest.approx(500 * 0.02 / 1_000_000)


@pytest.mark.asyncio
async def test_embed_api_error() -> None:
    embedder = OpenAIEmbedder("sk-test")

    with patch("httpx.AsyncClient") as mock_client:
        response = MagicMock()
        response.status_code = 500
        response.text = "internal error"
        mock_client.return_value.__aenter__.return_value.post = AsyncMock(return_value=response)

        assert await embedder.embed("text") is None


@pytest.mark.asyncio
async def test_embed_without_key_or_text() -> None:
    with patch("httpx.AsyncClient") as mock_client:
        assert await OpenAIEmbedder("").embed("text") is None
        assert await OpenAIEmbedder("sk-test").embed("") is None

    mock_client.assert_not_called()
