"""GitHub client for repository search and metadata."""

import logging
from typing import Optional

import httpx

from knowledge_capture.core import CodeHostClient, RepoMetadata, ResolvedRepo
from knowledge_capture.core.urls import parse_repo_url

logger = logging.getLogger(__name__)


class GitHubClient(CodeHostClient):
    """Search repositories and fetch repository metadata."""

    def __init__(
        self,
        token: Optional[str] = None,
        api_base: str = "https://api.github.com",
        timeout: float = 30.0,
    ) -> None:
        self.token = token
        self.api_base = api_base
        self.timeout = timeout

    async def search_repositories(self, query: str, limit: int = 10) -> list[ResolvedRepo]:
        """Execute a search query, most-starred first."""
        repos: list[ResolvedRepo] = []

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.api_base}/search/repositories",
                    headers=self._get_headers(),
                    params={"q": query, "sort": "stars", "order": "desc", "per_page": limit},
                )
        except httpx.HTTPError as e:
            logger.warning("GitHub search failed for query '%s': %s", query, e)
            return repos

        if response.status_code != 200:
            logger.warning("GitHub API error %d for query: %s", response.status_code, query)
            if response.status_code == 403:
                logger.warning("Rate limit or authentication required")
            return repos

        data = response.json()
        for repo in data.get("items", []):
            try:
                repos.append(self._create_repo_from_search_result(repo))
            except KeyError as e:
                logger.debug("Skipping malformed search hit %s: %s", repo.get("full_name", "?"), e)

        return repos[:limit]

    async def get_repository(self, url: str) -> Optional[RepoMetadata]:
        """Fetch repository metadata; None when the URL is not a reachable repo."""
        parsed = parse_repo_url(url)
        if not parsed:
            return None
        owner, repo = parsed

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.api_base}/repos/{owner}/{repo}",
                    headers=self._get_headers(),
                )
        except httpx.HTTPError as e:
            logger.warning("GitHub metadata fetch failed for %s/%s: %s", owner, repo, e)
            return None

        if response.status_code != 200:
            logger.warning("GitHub API error %d for %s/%s", response.status_code, owner, repo)
            return None

        data = response.json()
        return RepoMetadata(
            name=data.get("name") or repo,
            owner=owner,
            repo=repo,
            url=data.get("html_url") or f"https://github.com/{owner}/{repo}",
            description=data.get("description"),
            stars=int(data.get("stargazers_count") or 0),
            language=data.get("language"),
            topics=list(data.get("topics") or []),
        )

    def _create_repo_from_search_result(self, repo: dict) -> ResolvedRepo:
        """Create a search hit from search API result (no additional requests)."""
        return ResolvedRepo(
            url=repo["html_url"],
            name=repo["name"],
            full_name=repo["full_name"],
            description=repo.get("description"),
            stars=int(repo.get("stargazers_count") or 0),
            topics=list(repo.get("topics") or []),
        )

    def _get_headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "knowledge-capture",
        }

        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        return headers
