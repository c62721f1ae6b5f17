"""Short-form and long-form video captures."""

import logging
from typing import Optional

from knowledge_capture.adapters.extractors.base import RepoDiscoveringExtractor
from knowledge_capture.core import (
    CodeHostClient,
    ExtractionResult,
    SourceKind,
    VideoContent,
    VideoSource,
)
from knowledge_capture.core.errors import ExtractionError
from knowledge_capture.core.urls import extract_repo_urls
from knowledge_capture.services.entity_resolution import EntityResolver

logger = logging.getLogger(__name__)


class _VideoExtractor(RepoDiscoveringExtractor):
    """Transcript first; a metadata-only fallback never triggers resolution."""

    label = "Video"

    def __init__(
        self,
        source: VideoSource,
        code_host: CodeHostClient,
        resolver: Optional[EntityResolver] = None,
        max_repos: int = 3,
    ) -> None:
        super().__init__(code_host, resolver, max_repos)
        self.source = source

    async def extract(self, url: str) -> ExtractionResult:
        content = await self.source.fetch(url)
        if content is None:
            raise ExtractionError(f"{self.label} processing failed - no transcript returned")

        if content.transcript:
            transcript = self.format_transcript(content)
            is_fallback = False
        else:
            transcript = self.format_fallback(content)
            is_fallback = True
            if transcript:
                logger.info("No transcript for %s, using metadata fallback", url)

        if not transcript:
            raise ExtractionError(f"{self.label} processing failed - no transcript or metadata")

        result = ExtractionResult(transcript=transcript)
        await self.discover_repos(
            result,
            extract_repo_urls(transcript),
            transcript,
            allow_resolution=not is_fallback,
        )
        return result

    def format_transcript(self, content: VideoContent) -> str:
        return content.transcript or ""

    def format_fallback(self, content: VideoContent) -> Optional[str]:
        return None


class ShortVideoExtractor(_VideoExtractor):
    kind = SourceKind.VIDEO_SHORT
    label = "Short video"

    def format_fallback(self, content: VideoContent) -> Optional[str]:
        if content.title:
            return f"[Caption]: {content.title}"
        return None


class LongVideoExtractor(_VideoExtractor):
    kind = SourceKind.LONG_VIDEO
    label = "Long video"

    def format_transcript(self, content: VideoContent) -> str:
        header = ""
        if content.title or content.author:
            header = f"{self._metadata_block(content)}\n\n"
        return f"{header}[Transcript]: {content.transcript}"

    def format_fallback(self, content: VideoContent) -> Optional[str]:
        if content.title or content.author:
            return self._metadata_block(content)
        return None

    @staticmethod
    def _metadata_block(content: VideoContent) -> str:
        return f"[Title]: {content.title or 'Untitled'}\n[Author]: {content.author or 'Unknown'}"
