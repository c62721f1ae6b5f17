"""Shared fixtures."""

from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from knowledge_capture.adapters.storage import Database, SqliteItemStore
from knowledge_capture.core import CodeHostClient, Completion, CompletionClient, RepoMetadata, ResolvedRepo


@pytest.fixture
def completion_client() -> AsyncMock:
    """Completion client mock; set ``complete.return_value`` or ``side_effect``."""
    return AsyncMock(spec=CompletionClient)


@pytest.fixture
def code_host() -> AsyncMock:
    """Code host that knows no repositories until told otherwise."""
    host = AsyncMock(spec=CodeHostClient)
    host.search_repositories.return_value = []
    host.get_repository.return_value = None
    return host


@pytest.fixture
def make_completion() -> Callable[..., Completion]:
    def _make(text: str, cost: float = 0.001) -> Completion:
        return Completion(text=text, input_tokens=100, output_tokens=10, cost=cost)

    return _make


@pytest.fixture
def make_repo() -> Callable[..., ResolvedRepo]:
    def _make(full_name: str, stars: int = 100, description: str = "") -> ResolvedRepo:
        return ResolvedRepo(
            url=f"https://github.com/{full_name}",
            name=full_name.split("/")[1],
            full_name=full_name,
            description=description or None,
            stars=stars,
        )

    return _make


@pytest.fixture
def make_metadata() -> Callable[..., RepoMetadata]:
    def _make(url: str, description: str = "A repository") -> RepoMetadata:
        owner, repo = url.rstrip("/").split("/")[-2:]
        return RepoMetadata(
            name=repo,
            owner=owner,
            repo=repo,
            url=url,
            description=description,
            stars=1000,
            topics=["cli"],
        )

    return _make


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "test.db")
    await db.init_tables()
    return db


@pytest.fixture
def store(database: Database) -> SqliteItemStore:
    return SqliteItemStore(database)
