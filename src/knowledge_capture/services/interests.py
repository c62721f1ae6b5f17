"""Interest graph updates derived from processed items."""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from knowledge_capture import prompts
from knowledge_capture.core import (
    CompletionClient,
    Interest,
    InterestType,
    Item,
    ItemStore,
)
from knowledge_capture.core.errors import CompletionError, ResponseError
from knowledge_capture.core.parsing import parse_payload
from knowledge_capture.core.schemas import InterestPayload

logger = logging.getLogger(__name__)

BASE_WEIGHT = 0.5
HALF_LIFE_DAYS = 30


def calculate_weight(occurrence_count: int, last_seen: datetime, now: Optional[datetime] = None) -> float:
    """Recency-decayed, frequency-boosted weight capped at 1.0.

    Recency halves every 30 days; frequency grows with log10 of the count.
    """
    now = now or datetime.now(timezone.utc)
    days = max(0.0, (now - last_seen).total_seconds() / 86400)
    recency = 0.5 ** (days / HALF_LIFE_DAYS)
    frequency = 1 + math.log10(max(1, occurrence_count))
    return round(min(1.0, BASE_WEIGHT * recency * frequency), 2)


class InterestExtractor:
    """Extracts interests from an item and upserts them for its user."""

    def __init__(
        self,
        completion: CompletionClient,
        store: ItemStore,
        default_domain: str = "other",
        prompt: Optional[dict] = None,
    ) -> None:
        self.completion = completion
        self.store = store
        self.default_domain = default_domain
        self.prompt = prompt or prompts.INTERESTS

    async def extract(self, item: Item) -> tuple[list[Interest], float]:
        context = "\n".join(
            [
                f"Title: {item.title or 'Unknown'}",
                f"Summary: {item.summary or 'None'}",
                f"Tags: {', '.join(item.tags) or 'None'}",
                f"Domain: {item.domain or 'Unknown'}",
                f"GitHub: {item.repo_url or 'None'}",
            ]
        )

        try:
            completion = await self.completion.complete(
                prompts.render(self.prompt, context=context), max_tokens=300
            )
        except CompletionError as e:
            logger.warning("Interest extraction unavailable: %s", e)
            return [], 0.0

        try:
            payload = parse_payload(completion.text, InterestPayload)
        except ResponseError as e:
            logger.info("Interest payload rejected: %s", e)
            return [], completion.cost

        interests = [Interest(InterestType.TOPIC, v.lower()) for v in payload.topics if v]
        interests += [Interest(InterestType.TOOL, v.lower()) for v in payload.tools if v]
        interests += [Interest(InterestType.PERSON, v) for v in payload.people if v]
        interests += [Interest(InterestType.REPO, v.lower()) for v in payload.repos if v]

        if item.domain and item.domain != self.default_domain:
            interests.append(Interest(InterestType.DOMAIN, item.domain))

        return interests, completion.cost

    async def record(
        self, item_id: str, user_id: str, interests: list[Interest], now: Optional[datetime] = None
    ) -> None:
        """Upsert interests for the user, counting each at most once per item."""
        now = now or datetime.now(timezone.utc)
        for interest in interests:
            stored = await self.store.record_interest(item_id, user_id, interest.type, interest.value, now)
            weight = calculate_weight(stored.occurrence_count, now, now)
            if weight != stored.weight:
                stored.weight = weight
                await self.store.update_interest_weight(stored)

    async def process(self, item: Item) -> int:
        """Extract and store interests; returns how many were recorded."""
        if not item.title:
            logger.info("Skipping interest extraction, item has no title", extra={"item_id": item.id})
            return 0

        interests, cost = await self.extract(item)
        if not interests:
            logger.info("No interests extracted", extra={"item_id": item.id})
            return 0

        await self.record(item.id, item.user_id, interests)
        logger.info(
            "Extracted %d interests", len(interests), extra={"item_id": item.id, "cost": cost}
        )
        return len(interests)
