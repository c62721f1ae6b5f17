"""Shared repository discovery for source extractors."""

import logging
from typing import Iterable, Optional

from knowledge_capture.core import CodeHostClient, ExtractionResult, SourceExtractor
from knowledge_capture.core.cost import REPO_EXTRACTION
from knowledge_capture.core.urls import parse_repo_url
from knowledge_capture.services.entity_resolution import EntityResolver

logger = logging.getLogger(__name__)


class RepoDiscoveringExtractor(SourceExtractor):
    """Base for extractors that look for repositories in their own output.

    Explicit repository URLs are checked first. Entity resolution runs only
    when none of them yielded a repository.
    """

    def __init__(
        self,
        code_host: CodeHostClient,
        resolver: Optional[EntityResolver] = None,
        max_repos: int = 3,
    ) -> None:
        self.code_host = code_host
        self.resolver = resolver
        self.max_repos = max_repos

    async def discover_repos(
        self,
        result: ExtractionResult,
        urls: Iterable[str],
        text: Optional[str],
        allow_resolution: bool = True,
    ) -> None:
        await self.collect_repos(result, urls)
        if result.entities.repos or not allow_resolution or not text or not self.resolver:
            return

        resolution = await self.resolver.resolve_from_text(text, result.entities.repos)
        result.costs.add(REPO_EXTRACTION, resolution.cost)
        await self.collect_repos(result, [repo.url for repo in resolution.repos])

    async def collect_repos(self, result: ExtractionResult, urls: Iterable[str]) -> None:
        """Fetch metadata for up to ``max_repos`` URLs; the first hit is primary."""
        candidates = [url for url in urls if parse_repo_url(url)]
        for url in candidates[: self.max_repos]:
            if url in result.entities.repos:
                continue
            metadata = await self.code_host.get_repository(url)
            if not metadata:
                logger.info("No repository metadata for %s", url)
                continue
            result.entities.repos.append(url)
            if result.repo_metadata is None:
                result.repo_metadata = metadata
