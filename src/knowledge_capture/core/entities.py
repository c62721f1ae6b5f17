"""Core domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from knowledge_capture.core.cost import CostLedger


class SourceKind(str, Enum):
    """Kind of captured source."""

    VIDEO_SHORT = "video_short"
    LONG_VIDEO = "long_video"
    REPOSITORY = "repository"
    SOCIAL_POST = "social_post"
    ARTICLE = "article"


class ItemStatus(str, Enum):
    """Lifecycle of a captured item."""

    PENDING = "pending"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


class ContentKind(str, Enum):
    """What the captured content turned out to be."""

    REPO = "repo"
    TECHNIQUE = "technique"
    TOOL = "tool"
    RESOURCE = "resource"
    PERSON = "person"


class InterestType(str, Enum):
    """Kind of interest derived from an item."""

    TOPIC = "topic"
    TOOL = "tool"
    DOMAIN = "domain"
    PERSON = "person"
    REPO = "repo"


@dataclass
class RepoMetadata:
    """Metadata of a single code repository."""

    name: str
    owner: str
    repo: str
    url: str
    description: Optional[str] = None
    stars: int = 0
    language: Optional[str] = None
    topics: list[str] = field(default_factory=list)


@dataclass
class ExtractedEntities:
    """Entities referenced by an item."""

    repos: list[str] = field(default_factory=list)
    tools: list[str] = field(default_factory=list)
    techniques: list[str] = field(default_factory=list)


@dataclass
class CandidateRepo:
    """Tool name surfaced from free text that may be a repository."""

    name: str
    context: str = ""


@dataclass
class ResolvedRepo:
    """Code-host search hit."""

    url: str
    name: str
    full_name: str
    description: Optional[str] = None
    stars: int = 0
    topics: list[str] = field(default_factory=list)


@dataclass
class ResolutionResult:
    """Repositories confidently matched by one resolution pass."""

    repos: list[ResolvedRepo] = field(default_factory=list)
    cost: float = 0.0


@dataclass
class Completion:
    """Result of one metered completion call."""

    text: str
    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0


@dataclass
class Classification:
    """Structured record produced by the classifier."""

    title: str
    summary: str
    domain: str
    content_kind: ContentKind
    tags: list[str] = field(default_factory=list)
    cost: float = 0.0


@dataclass
class VideoContent:
    """What a transcription/caption provider returned for a video."""

    transcript: Optional[str] = None
    title: Optional[str] = None
    author: Optional[str] = None


@dataclass
class SocialPost:
    """Social post as returned by a post provider."""

    text: str
    author_name: str
    video_transcript: Optional[str] = None
    resolved_urls: list[str] = field(default_factory=list)
    citations: list[str] = field(default_factory=list)
    summary: Optional[str] = None
    is_link_only: bool = False
    gated_url: Optional[str] = None
    rich: bool = False
    cost: float = 0.0


@dataclass
class Article:
    """Readable text extracted from a web page or PDF."""

    content: Optional[str]
    title: Optional[str] = None
    byline: Optional[str] = None
    site_name: Optional[str] = None
    is_pdf: bool = False


@dataclass
class GatedShare:
    """A shared link that requires login to view."""

    author_name: str
    url: str


@dataclass
class ExtractionResult:
    """Uniform output of every source extractor."""

    transcript: Optional[str] = None
    repo_metadata: Optional[RepoMetadata] = None
    entities: ExtractedEntities = field(default_factory=ExtractedEntities)
    costs: CostLedger = field(default_factory=CostLedger)
    gated: Optional[GatedShare] = None


@dataclass
class Item:
    """One captured URL and its processing state."""

    id: str
    user_id: str
    source_url: str
    source_kind: SourceKind
    status: ItemStatus = ItemStatus.PENDING
    error_message: Optional[str] = None
    title: Optional[str] = None
    summary: Optional[str] = None
    transcript: Optional[str] = None
    domain: Optional[str] = None
    content_kind: Optional[ContentKind] = None
    tags: list[str] = field(default_factory=list)
    extracted_entities: ExtractedEntities = field(default_factory=ExtractedEntities)
    repo_url: Optional[str] = None
    repo_metadata: Optional[RepoMetadata] = None
    raw_data: Optional[dict[str, Any]] = None
    classification_cost: Optional[float] = None
    social_cost: Optional[float] = None
    repo_extraction_cost: Optional[float] = None
    captured_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.source_url:
            raise ValueError("Source URL cannot be empty")
        if not self.user_id:
            raise ValueError("User ID cannot be empty")


@dataclass
class CaptureEvent:
    """Inbound trigger for one pipeline run."""

    item_id: str
    source_kind: SourceKind
    source_url: str
    user_id: str
    chat_id: Optional[int] = None
    run_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.run_id:
            self.run_id = f"process-item:{self.item_id}"


@dataclass
class Container:
    """Named semantic bucket owned by a user."""

    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    item_count: int = 0


@dataclass
class ProjectAnchor:
    """Active project used as a filing hint."""

    name: str
    description: Optional[str] = None
    tags: list[str] = field(default_factory=list)


@dataclass
class NewContainerSpec:
    """Container the filing model asked to create."""

    name: str
    description: str = ""


@dataclass
class ContainerAssignment:
    """Validated filing decision for one item."""

    existing_ids: list[str] = field(default_factory=list)
    create: list[NewContainerSpec] = field(default_factory=list)
    cost: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.existing_ids and not self.create


@dataclass
class FilingResult:
    """Containers an item ended up in."""

    container_names: list[str] = field(default_factory=list)
    cost: float = 0.0


@dataclass
class Interest:
    """Single interest derived from an item."""

    type: InterestType
    value: str


@dataclass
class InterestRecord:
    """Stored interest row for a user."""

    user_id: str
    type: InterestType
    value: str
    weight: float = 0.5
    occurrence_count: int = 1
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    id: Optional[int] = None


@dataclass
class EmbeddingResult:
    """Embedding vector and its cost."""

    vector: list[float]
    cost: float = 0.0


@dataclass
class SecondPassResult:
    """Entity set after the summary-based resolution pass."""

    entities: ExtractedEntities
    repo_metadata: Optional[RepoMetadata] = None
    repo_extraction_cost: float = 0.0


@dataclass
class WorkflowOutcome:
    """How a workflow instance ended."""

    item_id: str
    status: ItemStatus
    path: str = "normal"
    attempts: int = 1
    error: Optional[str] = None
