"""TikTok videos transcribed with OpenAI."""

import logging
from typing import Optional

import httpx

from knowledge_capture.core import VideoContent, VideoSource

logger = logging.getLogger(__name__)


class TikTokSource(VideoSource):
    """Resolves the video file through tikwm and transcribes its audio.

    An empty transcript means no speech was detected; None means the
    download or transcription itself failed.
    """

    def __init__(
        self,
        openai_api_key: str,
        transcription_model: str = "gpt-4o-mini-transcribe",
        timeout: float = 120.0,
    ) -> None:
        self.openai_api_key = openai_api_key
        self.transcription_model = transcription_model
        self.timeout = timeout
        self.resolver_url = "https://www.tikwm.com/api/"
        self.transcription_url = "https://api.openai.com/v1/audio/transcriptions"

    async def fetch(self, url: str) -> Optional[VideoContent]:
        if not self.openai_api_key:
            logger.error("OPENAI_API_KEY not configured")
            return None

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            metadata = await self._resolve_video(client, url)
            if not metadata:
                return None

            transcript = await self._transcribe(client, metadata["video_url"])
            if transcript is None:
                logger.error("Transcription failed for %s", url)
                return None

        return VideoContent(
            transcript=transcript,
            title=metadata.get("title"),
            author=metadata.get("author"),
        )

    async def _resolve_video(self, client: httpx.AsyncClient, url: str) -> Optional[dict]:
        try:
            response = await client.post(self.resolver_url, data={"url": url})
        except httpx.HTTPError as e:
            logger.error("tikwm request failed: %s", e)
            return None

        if response.status_code != 200:
            logger.error("tikwm API error %d", response.status_code)
            return None

        data = response.json().get("data") or {}
        video_url = data.get("play") or data.get("hdplay") or data.get("wmplay")
        if not video_url:
            logger.error("No video URL in tikwm response for %s", url)
            return None

        return {
            "video_url": video_url,
            "title": data.get("title") or None,
            "author": (data.get("author") or {}).get("nickname") or None,
        }

    async def _transcribe(self, client: httpx.AsyncClient, video_url: str) -> Optional[str]:
        try:
            video = await client.get(video_url)
            if video.status_code != 200:
                logger.error("Failed to download video: %d", video.status_code)
                return None

            response = await client.post(
                self.transcription_url,
                headers={"Authorization": f"Bearer {self.openai_api_key}"},
                data={"model": self.transcription_model},
                files={"file": ("video.mp4", video.content, "video/mp4")},
            )
        except httpx.HTTPError as e:
            logger.error("Transcription request failed: %s", e)
            return None

        if response.status_code != 200:
            logger.error("OpenAI transcription error %d: %s", response.status_code, response.text[:200])
            return None

        return response.json().get("text") or ""
