"""Cost accounting for metered calls."""

from dataclasses import dataclass, field
from typing import Optional

SOCIAL = "social"
REPO_EXTRACTION = "repo_extraction"


@dataclass(frozen=True)
class PriceTable:
    """Per-provider token prices in USD per million tokens."""

    input_per_million: float
    output_per_million: float = 0.0

    def cost(self, input_tokens: int, output_tokens: int = 0) -> float:
        """Price a call from its token usage."""
        return (
            input_tokens * self.input_per_million
            + output_tokens * self.output_per_million
        ) / 1_000_000


@dataclass
class CostLedger:
    """Accumulates cost fragments keyed by provider bucket."""

    fragments: dict[str, float] = field(default_factory=dict)

    def add(self, bucket: str, amount: float) -> None:
        if amount < 0:
            raise ValueError(f"Cost cannot be negative: {amount}")
        if amount == 0:
            return
        self.fragments[bucket] = self.fragments.get(bucket, 0.0) + amount

    def get(self, bucket: str) -> float:
        return self.fragments.get(bucket, 0.0)

    def or_none(self, bucket: str) -> Optional[float]:
        """Bucket total, or None when nothing was charged."""
        amount = self.get(bucket)
        return amount if amount else None
