"""Claude API client for classification, filing and repository resolution."""

import asyncio
import logging
import time
from typing import Optional

import httpx

from knowledge_capture.config import Settings
from knowledge_capture.core import Completion, CompletionClient, PriceTable
from knowledge_capture.core.errors import CompletionError

logger = logging.getLogger(__name__)


class ClaudeClient(CompletionClient):
    """Claude Messages API client with retry, rate limiting and cost tracking."""

    def __init__(self, settings: Settings, price_table: Optional[PriceTable] = None) -> None:
        self.settings = settings
        self.api_key = settings.anthropic_api_key
        self.model = settings.claude.model
        self.max_tokens = settings.claude.max_tokens
        self.temperature = settings.claude.temperature
        self.timeout = settings.claude.timeout
        self.base_url = "https://api.anthropic.com/v1"
        self.max_retries = settings.claude.max_retries
        self.initial_retry_delay = settings.claude.initial_retry_delay
        self.request_delay = settings.claude.request_delay
        self.price_table = price_table or settings.pricing.classification
        self._last_request_time = 0.0

    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Completion:
        """Call Claude and price the call from its token usage."""
        if not self.api_key:
            raise CompletionError("ANTHROPIC_API_KEY not configured")

        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system" and m["content"])
        chat = [m for m in messages if m["role"] != "system"]

        payload = {
            "model": self.model,
            "max_tokens": max_tokens if max_tokens is not None else self.max_tokens,
            "temperature": temperature if temperature is not None else self.temperature,
            "messages": chat,
        }
        if system:
            payload["system"] = system

        data = await self._call_api(payload)

        content = data.get("content") or []
        text = "".join(block.get("text", "") for block in content if block.get("type", "text") == "text")
        usage = data.get("usage") or {}
        input_tokens = int(usage.get("input_tokens") or 0)
        output_tokens = int(usage.get("output_tokens") or 0)

        return Completion(
            text=text.strip(),
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost=self.price_table.cost(input_tokens, output_tokens),
        )

    async def _call_api(self, payload: dict) -> dict:
        """POST to the Messages API, retrying throttling, 5xx and transport failures."""
        await self._throttle()
        failure = "no attempts made"

        for attempt in range(self.max_retries):
            last_attempt = attempt == self.max_retries - 1
            try:
                response = await self._post(payload)
            except httpx.RequestError as e:
                if last_attempt:
                    raise CompletionError(f"Claude API unreachable: {e}") from e
                delay = self._backoff(attempt)
                logger.warning("Claude request failed (%s), retrying in %.1fs", e, delay)
                await asyncio.sleep(delay)
                continue

            status = response.status_code
            if status == 200:
                return response.json()

            if status == 429 or status >= 500:
                failure = f"status {status}"
                if last_attempt:
                    break
                delay = self._retry_after(response) if status == 429 else None
                delay = delay if delay is not None else self._backoff(attempt)
                logger.warning(
                    "Claude returned %d, retrying in %.1fs (attempt %d/%d)",
                    status, delay, attempt + 1, self.max_retries,
                )
                await asyncio.sleep(delay)
                continue

            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise CompletionError(f"Claude API error: {status}") from e
            raise CompletionError(f"Claude API error: unexpected status {status}")

        raise CompletionError(f"Claude API failed after {self.max_retries} attempts: {failure}")

    async def _post(self, payload: dict) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.base_url}/messages",
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": "2023-06-01",
                    "content-type": "application/json",
                },
                json=payload,
            )
        self._last_request_time = time.monotonic()
        return response

    async def _throttle(self) -> None:
        """Keep at least request_delay seconds between consecutive calls."""
        wait = self.request_delay - (time.monotonic() - self._last_request_time)
        if wait > 0:
            await asyncio.sleep(wait)

    def _backoff(self, attempt: int) -> float:
        return self.initial_retry_delay * (2 ** attempt)

    @staticmethod
    def _retry_after(response: httpx.Response) -> Optional[float]:
        header = response.headers.get("retry-after")
        if not header:
            return None
        try:
            return float(header)
        except ValueError:
            return None
