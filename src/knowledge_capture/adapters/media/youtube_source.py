"""YouTube captions and metadata."""

import logging
import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

import httpx
from bs4 import BeautifulSoup

from knowledge_capture.core import VideoContent, VideoSource

logger = logging.getLogger(__name__)

_PATH_ID_RE = re.compile(r"^/(shorts|live|embed)/([^/?]+)")


def parse_video_id(url: str) -> Optional[str]:
    """Video id from watch, youtu.be, shorts, live and embed URLs."""
    parsed = urlparse(url)
    hostname = (parsed.hostname or "").lower()

    if hostname == "youtu.be":
        video_id = parsed.path.lstrip("/").split("/")[0]
        return video_id or None

    if "youtube.com" not in hostname:
        return None

    values = parse_qs(parsed.query).get("v")
    if values and values[0]:
        return values[0]

    match = _PATH_ID_RE.match(parsed.path)
    if match:
        return match.group(2)
    return None


def parse_caption_xml(xml: str) -> Optional[str]:
    """Join caption text from srv3 (<p>/<s>) or legacy (<text>) track XML."""
    soup = BeautifulSoup(xml, "html.parser")

    texts = []
    for paragraph in soup.find_all("p"):
        segments = paragraph.find_all("s")
        if segments:
            text = "".join(s.get_text() for s in segments)
        else:
            text = paragraph.get_text()
        text = text.strip()
        if text:
            texts.append(text)

    if not texts:
        texts = [t.get_text().strip() for t in soup.find_all("text") if t.get_text().strip()]

    return " ".join(texts) if texts else None


class YouTubeSource(VideoSource):
    """Captions via the InnerTube player endpoint plus oEmbed metadata."""

    def __init__(self, innertube_key: str = "", timeout: float = 30.0) -> None:
        self.innertube_key = innertube_key
        self.timeout = timeout
        self.player_url = "https://www.youtube.com/youtubei/v1/player"
        self.oembed_url = "https://www.youtube.com/oembed"

    async def fetch(self, url: str) -> Optional[VideoContent]:
        video_id = parse_video_id(url)
        if not video_id:
            logger.error("Could not parse YouTube video ID from URL: %s", url)
            return None

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            metadata = await self._fetch_metadata(client, url)
            transcript = await self._fetch_transcript(client, video_id)

        if not metadata and not transcript:
            logger.warning("No transcript or metadata available for video %s", video_id)
            return None

        return VideoContent(
            transcript=transcript,
            title=metadata.get("title") if metadata else None,
            author=metadata.get("author_name") if metadata else None,
        )

    async def _fetch_metadata(self, client: httpx.AsyncClient, url: str) -> Optional[dict]:
        try:
            response = await client.get(self.oembed_url, params={"url": url, "format": "json"})
        except httpx.HTTPError as e:
            logger.warning("YouTube oEmbed failed: %s", e)
            return None
        if response.status_code != 200:
            return None
        try:
            data = response.json()
        except ValueError:
            logger.warning("YouTube oEmbed returned a non-JSON body for %s", url)
            return None
        if not isinstance(data, dict):
            return None
        return {
            "title": data.get("title") or "Untitled",
            "author_name": data.get("author_name") or "Unknown",
        }

    async def _fetch_transcript(self, client: httpx.AsyncClient, video_id: str) -> Optional[str]:
        try:
            response = await client.post(
                self.player_url,
                params={"key": self.innertube_key},
                json={
                    "context": {
                        "client": {
                            "clientName": "ANDROID",
                            "clientVersion": "19.09.37",
                            "hl": "en",
                            "gl": "US",
                        }
                    },
                    "videoId": video_id,
                },
            )
            if response.status_code != 200:
                return None

            tracks = (
                response.json()
                .get("captions", {})
                .get("playerCaptionsTracklistRenderer", {})
                .get("captionTracks")
            ) or []
            if not tracks:
                return None

            # Prefer English track
            track = next((t for t in tracks if t.get("languageCode") == "en"), tracks[0])
            xml_response = await client.get(track["baseUrl"])
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.warning("Caption fetch failed for %s: %s", video_id, e)
            return None

        if xml_response.status_code != 200 or not xml_response.text:
            return None
        return parse_caption_xml(xml_response.text)
