"""Source extractors, one per source kind."""

from knowledge_capture.adapters.extractors.article import ArticleExtractor
from knowledge_capture.adapters.extractors.base import RepoDiscoveringExtractor
from knowledge_capture.adapters.extractors.repository import RepositoryExtractor
from knowledge_capture.adapters.extractors.social import SocialPostExtractor
from knowledge_capture.adapters.extractors.video import LongVideoExtractor, ShortVideoExtractor
from knowledge_capture.core import SourceExtractor, SourceKind


def extractor_map(extractors: list[SourceExtractor]) -> dict[SourceKind, SourceExtractor]:
    """Index extractors by the source kind they handle."""
    mapping: dict[SourceKind, SourceExtractor] = {}
    for extractor in extractors:
        if extractor.kind in mapping:
            raise ValueError(f"Duplicate extractor for {extractor.kind.value}")
        mapping[extractor.kind] = extractor
    return mapping


__all__ = [
    "ArticleExtractor",
    "LongVideoExtractor",
    "RepoDiscoveringExtractor",
    "RepositoryExtractor",
    "ShortVideoExtractor",
    "SocialPostExtractor",
    "extractor_map",
]
