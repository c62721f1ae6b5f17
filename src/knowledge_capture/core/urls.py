"""URL helpers: source detection and repository references."""

import re
from typing import Optional
from urllib.parse import urlparse

from knowledge_capture.core.entities import SourceKind

_REPO_PATH_RE = re.compile(r"github\.com/([^/\s]+)/([^/?\s#]+)", re.IGNORECASE)
_REPO_REF_RE = re.compile(r"github\.com/[^\s\"'<>,]+", re.IGNORECASE)
_TRAILING_PUNCT_RE = re.compile(r"[.,;:!?)\]]+$")


def detect_source_kind(url: str) -> SourceKind:
    """Map a captured URL to the extractor that handles it."""
    hostname = (urlparse(url).hostname or "").lower()

    if "tiktok.com" in hostname:
        return SourceKind.VIDEO_SHORT
    if hostname == "github.com":
        return SourceKind.REPOSITORY
    if "youtube.com" in hostname or hostname == "youtu.be":
        return SourceKind.LONG_VIDEO
    if hostname in ("x.com", "twitter.com"):
        return SourceKind.SOCIAL_POST
    return SourceKind.ARTICLE


def parse_repo_url(url: str) -> Optional[tuple[str, str]]:
    """Extract (owner, repo) from a repository URL."""
    match = _REPO_PATH_RE.search(url)
    if not match:
        return None
    owner, repo = match.group(1), match.group(2)
    repo = _TRAILING_PUNCT_RE.sub("", repo)
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not owner or not repo:
        return None
    return owner, repo


def extract_repo_urls(text: str) -> list[str]:
    """Find repository URLs in free text, normalized and de-duplicated."""
    urls: list[str] = []
    for match in _REPO_REF_RE.findall(text or ""):
        cleaned = _TRAILING_PUNCT_RE.sub("", match)
        parsed = parse_repo_url(cleaned)
        if not parsed:
            continue
        url = f"https://github.com/{parsed[0]}/{parsed[1]}"
        if url not in urls:
            urls.append(url)
    return urls


def repo_full_name(url: str) -> Optional[str]:
    """Lower-cased owner/repo for comparisons."""
    parsed = parse_repo_url(url)
    if not parsed:
        return None
    return f"{parsed[0]}/{parsed[1]}".lower()
