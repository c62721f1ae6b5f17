"""Read-only X/Twitter post content from the public oEmbed API."""

import logging
import re
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from knowledge_capture.core import SocialPost, SocialPostSource

logger = logging.getLogger(__name__)

_SHORT_LINK_RE = re.compile(r"https://t\.co/[a-zA-Z0-9]+")
_ANY_URL_RE = re.compile(r"https?://\S+")

GATED_ARTICLE_MARKER = "x.com/i/article/"
MIN_POST_TEXT = 10
MAX_SHORT_LINKS = 5


def is_link_only(text: str) -> bool:
    """True when the post is little more than a URL."""
    return len(_ANY_URL_RE.sub("", text).strip()) < MIN_POST_TEXT


def post_text_from_html(html: str) -> str:
    """Text of the first <p> of an embed blockquote, line breaks kept."""
    soup = BeautifulSoup(html, "html.parser")
    paragraph = soup.find("p")
    if not paragraph:
        return ""
    for br in paragraph.find_all("br"):
        br.replace_with("\n")
    return paragraph.get_text().replace("\xa0", " ").strip()


class XEmbedSource(SocialPostSource):
    """Fallback post provider: limited text, short links resolved by redirect."""

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout
        self.oembed_url = "https://publish.twitter.com/oembed"

    async def fetch(self, url: str) -> Optional[SocialPost]:
        normalized = url.replace("twitter.com", "x.com")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(
                    self.oembed_url, params={"url": normalized, "omit_script": "true"}
                )
            except httpx.HTTPError as e:
                logger.error("X oembed request failed: %s", e)
                return None

            if response.status_code != 200:
                logger.error("X oembed error %d", response.status_code)
                return None

            data = response.json()
            html = data.get("html") or ""
            resolved = await self._resolve_short_links(client, html)

        text = post_text_from_html(html)
        gated_url = next((u for u in resolved if GATED_ARTICLE_MARKER in u), None)

        return SocialPost(
            text=text,
            author_name=data.get("author_name") or "Unknown",
            resolved_urls=resolved,
            is_link_only=is_link_only(text),
            gated_url=gated_url,
        )

    async def _resolve_short_links(self, client: httpx.AsyncClient, html: str) -> list[str]:
        resolved: list[str] = []
        short_links = list(dict.fromkeys(_SHORT_LINK_RE.findall(html)))
        for short_link in short_links[:MAX_SHORT_LINKS]:
            try:
                response = await client.get(short_link, follow_redirects=False)
            except httpx.HTTPError as e:
                logger.debug("Could not resolve %s: %s", short_link, e)
                continue
            location = response.headers.get("location")
            if location and "t.co" not in location:
                resolved.append(location)
        return resolved
