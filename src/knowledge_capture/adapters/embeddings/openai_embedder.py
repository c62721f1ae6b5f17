"""OpenAI text embeddings."""

import logging
from typing import Optional

import httpx

from knowledge_capture.core import Embedder, EmbeddingResult, PriceTable

logger = logging.getLogger(__name__)


def build_embedding_text(
    title: Optional[str], summary: Optional[str], tags: Optional[list[str]] = None
) -> str:
    """Title, summary and tags separated by blank lines."""
    parts = []
    if title:
        parts.append(title)
    if summary:
        parts.append(summary)
    if tags:
        parts.append(f"Tags: {', '.join(tags)}")
    return "\n\n".join(parts)


class OpenAIEmbedder(Embedder):
    """Embeddings endpoint client; failures return None."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        price_table: Optional[PriceTable] = None,
        timeout: float = 60.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.price_table = price_table or PriceTable(0.02)
        self.timeout = timeout
        self.base_url = "https://api.openai.com/v1"

    async def embed(self, text: str) -> Optional[EmbeddingResult]:
        if not self.api_key:
            logger.error("OPENAI_API_KEY not configured")
            return None
        if not text:
            return None

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/embeddings",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={"model": self.model, "input": text},
                )
        except httpx.HTTPError as e:
            logger.warning("Embedding request failed: %s", e)
            return None

        if response.status_code != 200:
            logger.error("OpenAI embeddings API error %d: %s", response.status_code, response.text[:200])
            return None

        data = response.json()
        entries = data.get("data") or []
        if not entries or not entries[0].get("embedding"):
            logger.error("No embedding returned from OpenAI")
            return None

        tokens = int((data.get("usage") or {}).get("total_tokens") or 0)
        return EmbeddingResult(vector=list(entries[0]["embedding"]), cost=self.price_table.cost(tokens))
