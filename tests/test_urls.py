"""Tests for URL helpers."""

import pytest

from knowledge_capture.core import SourceKind
from knowledge_capture.core.urls import (
    detect_source_kind,
    extract_repo_urls,
    parse_repo_url,
    repo_full_name,
)


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://www.tiktok.com/@user/video/123", SourceKind.VIDEO_SHORT),
        ("https://vm.tiktok.com/abc", SourceKind.VIDEO_SHORT),
        ("https://github.com/vadimdemedes/ink", SourceKind.REPOSITORY),
        ("https://www.youtube.com/watch?v=abc", SourceKind.LONG_VIDEO),
        ("https://youtu.be/abc", SourceKind.LONG_VIDEO),
        ("https://x.com/user/status/1", SourceKind.SOCIAL_POST),
        ("https://twitter.com/user/status/1", SourceKind.SOCIAL_POST),
        ("https://example.com/blog/post", SourceKind.ARTICLE),
        ("https://gist.github.com/user/1", SourceKind.ARTICLE),
    ],
)
def test_detect_source_kind(url: str, expected: SourceKind) -> None:
    assert detect_source_kind(url) == expected


def test_parse_repo_url() -> None:
    assert parse_repo_url("https://github.com/vadimdemedes/ink") == ("vadimdemedes", "ink")
    assert parse_repo_url("https://github.com/colinhacks/zod.git") == ("colinhacks", "zod")
    assert parse_repo_url("https://github.com/lovell/sharp/tree/main/docs") == ("lovell", "sharp")


def test_parse_repo_url_rejects_non_repo() -> None:
    assert parse_repo_url("https://example.com/a/b") is None
    assert parse_repo_url("https://github.com/onlyowner") is None


def test_extract_repo_urls_normalizes_and_dedupes() -> None:
    """Test references are normalized and keep first-seen order."""
    text = (
        "Try github.com/vadimdemedes/ink, and https://github.com/lovell/sharp. "
        "Also https://github.com/vadimdemedes/ink again."
    )
    assert extract_repo_urls(text) == [
        "https://github.com/vadimdemedes/ink",
        "https://github.com/lovell/sharp",
    ]


def test_extract_repo_urls_empty() -> None:
    assert extract_repo_urls("") == []
    assert extract_repo_urls("no links here") == []


def test_repo_full_name_lowercases() -> None:
    assert repo_full_name("https://github.com/Vercel/Next.js") == "vercel/next.js"
    assert repo_full_name("https://example.com") is None
