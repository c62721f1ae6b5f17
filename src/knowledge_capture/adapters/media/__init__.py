"""Content providers for videos, social posts and articles."""

from knowledge_capture.adapters.media.article_fetcher import ArticleFetcher
from knowledge_capture.adapters.media.tiktok_source import TikTokSource
from knowledge_capture.adapters.media.x_embed_source import XEmbedSource
from knowledge_capture.adapters.media.youtube_source import YouTubeSource

__all__ = ["ArticleFetcher", "TikTokSource", "XEmbedSource", "YouTubeSource"]
