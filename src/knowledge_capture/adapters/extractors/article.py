"""Generic web page and PDF captures."""

import logging
from typing import Optional

from knowledge_capture.adapters.extractors.base import RepoDiscoveringExtractor
from knowledge_capture.core import ArticleSource, CodeHostClient, ExtractionResult, SourceKind
from knowledge_capture.core.urls import extract_repo_urls
from knowledge_capture.services.entity_resolution import EntityResolver

logger = logging.getLogger(__name__)


class ArticleExtractor(RepoDiscoveringExtractor):
    """Readable text of a page; an empty page is a degraded result, not an error."""

    kind = SourceKind.ARTICLE

    def __init__(
        self,
        source: ArticleSource,
        code_host: CodeHostClient,
        resolver: Optional[EntityResolver] = None,
        max_repos: int = 3,
    ) -> None:
        super().__init__(code_host, resolver, max_repos)
        self.source = source

    async def extract(self, url: str) -> ExtractionResult:
        article = await self.source.fetch(url)
        if not article or not article.content:
            logger.info("No readable content for %s", url)
            return ExtractionResult()

        result = ExtractionResult(transcript=article.content)
        await self.discover_repos(result, extract_repo_urls(article.content), article.content)
        return result
