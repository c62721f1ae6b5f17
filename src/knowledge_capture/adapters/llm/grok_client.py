"""Grok (xAI) client that reads full social post content."""

import logging
from typing import Optional

import httpx

from knowledge_capture.config import Settings
from knowledge_capture.core import PriceTable, SocialPost, SocialPostSource
from knowledge_capture.core.errors import ResponseError
from knowledge_capture.core.parsing import parse_payload
from knowledge_capture.core.schemas import SocialPostPayload
from knowledge_capture.core.urls import extract_repo_urls
from knowledge_capture.prompts import render

logger = logging.getLogger(__name__)


class GrokClient(SocialPostSource):
    """Rich social-content provider backed by Grok's x_search tool.

    Returns None whenever the provider is unavailable so the caller can fall
    back to the embed API.
    """

    def __init__(self, settings: Settings, price_table: Optional[PriceTable] = None) -> None:
        self.api_key = settings.xai_api_key
        self.model = settings.grok.model
        self.timeout = settings.grok.timeout
        self.prompt = settings.prompts.social_post
        self.price_table = price_table or settings.pricing.social
        self.base_url = "https://api.x.ai/v1"

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def fetch(self, url: str) -> Optional[SocialPost]:
        if not self.enabled:
            logger.info("XAI_API_KEY not configured, skipping rich provider")
            return None

        messages = render(self.prompt, url=url)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/responses",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": self.model,
                        "input": messages,
                        "tools": [
                            {
                                "type": "x_search",
                                "enable_image_understanding": True,
                                "enable_video_understanding": True,
                            }
                        ],
                    },
                )
        except httpx.HTTPError as e:
            logger.warning("Grok request failed: %s", e)
            return None

        if response.status_code != 200:
            logger.warning("Grok API error %d: %s", response.status_code, response.text[:200])
            return None

        try:
            data = response.json()
            content = self._extract_text(data)
            citations = [str(c) for c in data.get("citations") or []]
            usage = data.get("usage") or {}
            cost = self.price_table.cost(
                int(usage.get("input_tokens") or 0),
                int(usage.get("output_tokens") or 0),
            )
        except (ValueError, AttributeError, TypeError) as e:
            logger.warning("Grok returned an unreadable body: %s", e)
            return None

        try:
            payload = parse_payload(content, SocialPostPayload)
        except ResponseError as e:
            logger.info("Grok returned unstructured content: %s", e)
            return SocialPost(
                text=content,
                author_name="Unknown",
                summary=content[:200],
                citations=citations,
                resolved_urls=[c for c in citations if "github.com" in c],
                rich=True,
                cost=cost,
            )

        mentioned = [self._repo_reference(r) for r in payload.mentionedRepos]
        citations = citations + [r for r in mentioned if r]
        return SocialPost(
            text=payload.fullText or content,
            author_name=payload.authorName or "Unknown",
            video_transcript=payload.videoTranscript or None,
            summary=payload.summary,
            citations=citations,
            resolved_urls=[c for c in citations if "github.com" in c],
            rich=True,
            cost=cost,
        )

    def _extract_text(self, data: dict) -> str:
        """Pull the assistant text out of a responses-API payload."""
        parts: list[str] = []
        for entry in data.get("output") or []:
            if not isinstance(entry, dict) or entry.get("type") != "message":
                continue
            for block in entry.get("content") or []:
                if isinstance(block, dict) and block.get("text"):
                    parts.append(block["text"])
        if parts:
            return "\n".join(parts).strip()

        choices = data.get("choices") or []
        if choices:
            return (choices[0].get("message", {}).get("content") or "").strip()
        return str(data.get("output_text") or "").strip()

    def _repo_reference(self, value: str) -> Optional[str]:
        """Normalize a mentioned repo ("owner/repo" or URL) to a URL."""
        urls = extract_repo_urls(value)
        if urls:
            return urls[0]
        if value.count("/") == 1 and " " not in value.strip():
            return f"https://github.com/{value.strip()}"
        return None
