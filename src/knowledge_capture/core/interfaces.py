"""Core interfaces for adapters."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from knowledge_capture.core.entities import (
    Article,
    Completion,
    Container,
    EmbeddingResult,
    ExtractionResult,
    InterestRecord,
    InterestType,
    Item,
    ProjectAnchor,
    RepoMetadata,
    ResolvedRepo,
    SocialPost,
    SourceKind,
    VideoContent,
)


class CompletionClient(ABC):
    """Metered text-completion service."""

    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Completion:
        """Run one completion and report its token usage and cost."""
        pass


class CodeHostClient(ABC):
    """Public code-hosting index."""

    @abstractmethod
    async def search_repositories(self, query: str, limit: int = 10) -> list[ResolvedRepo]:
        """Keyword search, most-starred first."""
        pass

    @abstractmethod
    async def get_repository(self, url: str) -> Optional[RepoMetadata]:
        """Fetch metadata for one repository URL."""
        pass


class SourceExtractor(ABC):
    """Turns a captured URL of one source kind into extraction output."""

    kind: SourceKind

    @abstractmethod
    async def extract(self, url: str) -> ExtractionResult:
        """Extract transcript, repository references and cost."""
        pass


class VideoSource(ABC):
    """Transcription/caption provider for videos."""

    @abstractmethod
    async def fetch(self, url: str) -> Optional[VideoContent]:
        pass


class SocialPostSource(ABC):
    """Provider of social post content."""

    @abstractmethod
    async def fetch(self, url: str) -> Optional[SocialPost]:
        pass


class ArticleSource(ABC):
    """Fetches readable article text."""

    @abstractmethod
    async def fetch(self, url: str) -> Optional[Article]:
        pass


class Embedder(ABC):
    """Text embedding service."""

    @abstractmethod
    async def embed(self, text: str) -> Optional[EmbeddingResult]:
        pass


class Notifier(ABC):
    """Best-effort chat notifications. Implementations never raise."""

    @abstractmethod
    async def send_message(self, chat_id: int, text: str) -> bool:
        """Send text to a chat, returning whether it was delivered."""
        pass


class StepCache(ABC):
    """Key-value store of serialized step results."""

    @abstractmethod
    async def get(self, run_id: str, step: str) -> Optional[str]:
        """Return the stored JSON payload, or None when the step never completed."""
        pass

    @abstractmethod
    async def put(self, run_id: str, step: str, payload: str) -> None:
        pass


class ItemStore(ABC):
    """Relational store for items, containers and interests.

    Every operation is scoped by item id and/or user id.
    """

    @abstractmethod
    async def create_item(self, user_id: str, source_url: str, source_kind: SourceKind) -> Item:
        pass

    @abstractmethod
    async def get_item(self, item_id: str) -> Optional[Item]:
        pass

    @abstractmethod
    async def update_item(self, item_id: str, **fields: Any) -> None:
        pass

    @abstractmethod
    async def set_embedding(self, item_id: str, vector: list[float]) -> None:
        pass

    @abstractmethod
    async def list_containers(self, user_id: str) -> list[Container]:
        """User's containers, most recently updated first."""
        pass

    @abstractmethod
    async def get_containers(self, user_id: str, container_ids: list[str]) -> list[Container]:
        pass

    @abstractmethod
    async def find_container_by_name(self, user_id: str, name: str) -> Optional[Container]:
        """Case-insensitive lookup by name."""
        pass

    @abstractmethod
    async def create_container(
        self, user_id: str, name: str, description: Optional[str]
    ) -> Container:
        """Create a container, returning the existing one on a name clash."""
        pass

    @abstractmethod
    async def add_item_to_container(self, container_id: str, item_id: str) -> bool:
        """Insert the pair; returns False when it already existed."""
        pass

    @abstractmethod
    async def list_project_anchors(self, user_id: str) -> list[ProjectAnchor]:
        pass

    @abstractmethod
    async def get_interest(
        self, user_id: str, interest_type: InterestType, value: str
    ) -> Optional[InterestRecord]:
        pass

    @abstractmethod
    async def record_interest(
        self, item_id: str, user_id: str, interest_type: InterestType, value: str, now: datetime
    ) -> InterestRecord:
        """Count the interest once for this item and return the stored row."""
        pass

    @abstractmethod
    async def update_interest_weight(self, record: InterestRecord) -> None:
        pass
