"""Tests for GitHub client."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from knowledge_capture.adapters.codehost import GitHubClient


def _response(status_code: int, payload: dict) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


@pytest.mark.asyncio
async def test_search_repositories() -> None:
    """Test search hits are mapped without extra requests."""
    client = GitHubClient(token="gh-token")

    with patch("httpx.AsyncClient") as mock_client:
        mock_get = AsyncMock(
            return_value=_response(
                200,
                {
                    "items": [
                        {
                            "html_url": "https://github.com/vadimdemedes/ink",
                            "name": "ink",
                            "full_name": "vadimdemedes/ink",
                            "description": "React for interactive command-line apps",
                            "stargazers_count": 27000,
                            "topics": ["react", "cli"],
                        },
                        {"name": "broken"},
                    ]
                },
            )
        )
        mock_client.return_value.__aenter__.return_value.get = mock_get

        repos = await client.search_repositories("ink in:name", limit=5)

        params = mock_get.call_args.kwargs["params"]
        headers = mock_get.call_args.kwargs["headers"]

    assert params == {"q": "ink in:name", "sort": "stars", "order": "desc", "per_page": 5}
    assert headers["Authorization"] == "Bearer gh-token"
    assert len(repos) == 1
    assert repos[0].full_name == "vadimdemedes/ink"
    assert repos[0].stars == 27000


@pytest.mark.asyncio
async def test_search_repositories_rate_limited() -> None:
    """Test a 403 yields no hits instead of raising."""
    client = GitHubClient()

    with patch("httpx.AsyncClient") as mock_client:
        mock_client.return_value.__aenter__.return_value.get = AsyncMock(
            return_value=_response(403, {})
        )

        assert await client.search_repositories("zod") == []


@pytest.mark.asyncio
async def test_search_repositories_network_error() -> None:
    client = GitHubClient()

    with patch("httpx.AsyncClient") as mock_client:
        mock_client.return_value.__aenter__.return_value.get = AsyncMock(
            side_effect=httpx.ConnectError("down")
        )

        assert await client.search_repositories("zod") == []


def test_headers_without_token() -> None:
    assert "Authorization" not in GitHubClient()._get_headers()


@pytest.mark.asyncio
async def test_get_repository() -> None:
    """Test metadata fetch for a repository URL."""
    client = GitHubClient()

    with patch("httpx.AsyncClient") as mock_client:
        mock_get = AsyncMock(
            return_value=_response(
                200,
                {
                    "name": "sharp",
                    "html_url": "https://github.com/lovell/sharp",
                    "description": "High performance image processing",
                    "stargazers_count": "29000",
                    "language": "JavaScript",
                    "topics": None,
                },
            )
        )
        mock_client.return_value.__aenter__.return_value.get = mock_get

        metadata = await client.get_repository("https://github.com/lovell/sharp/tree/main")

        assert mock_get.call_args.args[0] == "https://api.github.com/repos/lovell/sharp"

    assert metadata is not None
    assert metadata.name == "sharp"
    assert metadata.owner == "lovell"
    assert metadata.stars == 29000
    assert metadata.topics == []


@pytest.mark.asyncio
async def test_get_repository_not_found() -> None:
    client = GitHubClient()

    with patch("httpx.AsyncClient") as mock_client:
        mock_client.return_value.__aenter__.return_value.get = AsyncMock(
            return_value=_response(404, {})
        )

        assert await client.get_repository("https://github.com/nobody/nothing") is None


@pytest.mark.asyncio
async def test_get_repository_rejects_non_repo_url() -> None:
    client = GitHubClient()

    with patch("httpx.AsyncClient") as mock_client:
        assert await client.get_repository("https://example.com/post") is None

    mock_client.assert_not_called()
