"""Pipeline services built on the core interfaces."""

from knowledge_capture.services.classifier import Classifier
from knowledge_capture.services.container_filing import ContainerFilingService
from knowledge_capture.services.entity_resolution import EntityResolver
from knowledge_capture.services.interests import InterestExtractor, calculate_weight

__all__ = [
    "Classifier",
    "ContainerFilingService",
    "EntityResolver",
    "InterestExtractor",
    "calculate_weight",
]
