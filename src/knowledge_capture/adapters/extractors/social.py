"""Social post captures."""

import logging
from typing import Optional

from knowledge_capture.adapters.extractors.base import RepoDiscoveringExtractor
from knowledge_capture.core import (
    CodeHostClient,
    ExtractionResult,
    GatedShare,
    SocialPost,
    SocialPostSource,
    SourceKind,
)
from knowledge_capture.core.cost import SOCIAL
from knowledge_capture.core.errors import ExtractionError
from knowledge_capture.core.urls import extract_repo_urls
from knowledge_capture.services.entity_resolution import EntityResolver

logger = logging.getLogger(__name__)


def build_post_transcript(post: SocialPost) -> Optional[str]:
    if post.video_transcript:
        return f"[Post]: {post.text}\n\n[Video Transcript]: {post.video_transcript}"
    return post.text or None


class SocialPostExtractor(RepoDiscoveringExtractor):
    """Rich provider first, read-only embed API as fallback."""

    kind = SourceKind.SOCIAL_POST

    def __init__(
        self,
        embed: SocialPostSource,
        code_host: CodeHostClient,
        rich: Optional[SocialPostSource] = None,
        resolver: Optional[EntityResolver] = None,
        max_repos: int = 3,
    ) -> None:
        super().__init__(code_host, resolver, max_repos)
        self.embed = embed
        self.rich = rich

    async def fetch_post(self, url: str) -> Optional[SocialPost]:
        if self.rich is not None:
            post = await self.rich.fetch(url)
            if post is not None:
                return post
            logger.info("Rich provider unavailable, falling back to embed API")
        return await self.embed.fetch(url)

    async def extract(self, url: str) -> ExtractionResult:
        post = await self.fetch_post(url)
        if post is None:
            raise ExtractionError("X/Twitter fetch failed")

        result = ExtractionResult(transcript=build_post_transcript(post))
        result.costs.add(SOCIAL, post.cost)

        # The rich provider reads gated articles itself
        if not post.rich and post.gated_url:
            result.gated = GatedShare(author_name=post.author_name, url=post.gated_url)
            return result

        if not post.rich and post.is_link_only and post.resolved_urls:
            result.transcript = f"Shared link: {post.resolved_urls[0]}"

        if not result.transcript:
            raise ExtractionError("X/Twitter post has no content")

        urls = list(post.resolved_urls)
        if not post.rich:
            urls += [u for u in extract_repo_urls(post.text) if u not in urls]

        await self.discover_repos(result, urls, result.transcript)
        return result
