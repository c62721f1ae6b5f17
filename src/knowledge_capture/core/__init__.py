"""Core domain layer."""

from knowledge_capture.core.cost import CostLedger, PriceTable
from knowledge_capture.core.domains import DomainVocabulary
from knowledge_capture.core.entities import (
    Article,
    CandidateRepo,
    CaptureEvent,
    Classification,
    Completion,
    Container,
    ContainerAssignment,
    ContentKind,
    EmbeddingResult,
    ExtractedEntities,
    ExtractionResult,
    FilingResult,
    GatedShare,
    Interest,
    InterestRecord,
    InterestType,
    Item,
    ItemStatus,
    NewContainerSpec,
    ProjectAnchor,
    RepoMetadata,
    ResolutionResult,
    ResolvedRepo,
    SecondPassResult,
    SocialPost,
    SourceKind,
    VideoContent,
    WorkflowOutcome,
)
from knowledge_capture.core.interfaces import (
    ArticleSource,
    CodeHostClient,
    CompletionClient,
    Embedder,
    ItemStore,
    Notifier,
    SocialPostSource,
    SourceExtractor,
    StepCache,
    VideoSource,
)
from knowledge_capture.core.step_cache import InMemoryStepCache

__all__ = [
    "Article",
    "ArticleSource",
    "CandidateRepo",
    "CaptureEvent",
    "Classification",
    "CodeHostClient",
    "Completion",
    "CompletionClient",
    "Container",
    "ContainerAssignment",
    "ContentKind",
    "CostLedger",
    "DomainVocabulary",
    "Embedder",
    "EmbeddingResult",
    "ExtractedEntities",
    "ExtractionResult",
    "FilingResult",
    "GatedShare",
    "InMemoryStepCache",
    "Interest",
    "InterestRecord",
    "InterestType",
    "Item",
    "ItemStatus",
    "ItemStore",
    "NewContainerSpec",
    "Notifier",
    "PriceTable",
    "ProjectAnchor",
    "RepoMetadata",
    "ResolutionResult",
    "ResolvedRepo",
    "SecondPassResult",
    "SocialPost",
    "SocialPostSource",
    "SourceExtractor",
    "SourceKind",
    "StepCache",
    "VideoContent",
    "VideoSource",
    "WorkflowOutcome",
]
