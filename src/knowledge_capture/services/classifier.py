"""Classification of captured content."""

import logging
from typing import Optional

from knowledge_capture import prompts
from knowledge_capture.core import (
    Classification,
    CompletionClient,
    ContentKind,
    DomainVocabulary,
    RepoMetadata,
    SourceKind,
)
from knowledge_capture.core.errors import ResponseError
from knowledge_capture.core.parsing import parse_payload
from knowledge_capture.core.schemas import ClassificationPayload

logger = logging.getLogger(__name__)

MAX_CONTEXT_CHARS = 3000


class Classifier:
    """Maps transcript, repository metadata and page text to a structured record."""

    def __init__(
        self,
        completion: CompletionClient,
        vocabulary: DomainVocabulary,
        prompt: Optional[dict] = None,
        max_tokens: int = 500,
        temperature: float = 0.2,
    ) -> None:
        self.completion = completion
        self.vocabulary = vocabulary
        self.prompt = prompt or prompts.CLASSIFICATION
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def classify(
        self,
        source_kind: SourceKind,
        transcript: Optional[str] = None,
        repo_metadata: Optional[RepoMetadata] = None,
        page_text: Optional[str] = None,
    ) -> Optional[Classification]:
        """Classify content, or return None.

        Nothing is returned without at least one content source, so the
        model never titles an item from its URL alone. A rejected response is
        also None. Transport failures propagate.
        """
        if not transcript and not repo_metadata and not page_text:
            logger.info("No content to classify for %s source", source_kind.value)
            return None

        context = self._build_context(source_kind, transcript, repo_metadata, page_text)
        valid_domains = ", ".join(f'"{name}"' for name in self.vocabulary.names)
        messages = prompts.render(
            self.prompt,
            context=context,
            valid_domains=valid_domains,
            domain_list=self.vocabulary.prompt_list(),
        )

        completion = await self.completion.complete(
            messages, temperature=self.temperature, max_tokens=self.max_tokens
        )

        try:
            payload = parse_payload(completion.text, ClassificationPayload)
        except ResponseError as e:
            logger.info("Classification rejected: %s", e, extra={"cost": completion.cost})
            return None

        return Classification(
            title=payload.title or "Untitled",
            summary=payload.summary or "",
            domain=self.vocabulary.coerce(payload.domain),
            content_kind=self._content_kind(payload.content_type),
            tags=[tag for tag in payload.tags if tag],
            cost=completion.cost,
        )

    def _build_context(
        self,
        source_kind: SourceKind,
        transcript: Optional[str],
        repo_metadata: Optional[RepoMetadata],
        page_text: Optional[str],
    ) -> str:
        context = f"Source type: {source_kind.value}\n\n"

        if transcript:
            context += f"Transcript:\n{transcript[:MAX_CONTEXT_CHARS]}\n\n"

        if repo_metadata:
            context += f"GitHub repo: {repo_metadata.name}\n"
            context += f"Description: {repo_metadata.description or 'None'}\n"
            context += f"Topics: {', '.join(repo_metadata.topics) or 'None'}\n\n"

        if page_text:
            context += f"Page content:\n{page_text[:MAX_CONTEXT_CHARS]}\n\n"

        return context.strip()

    @staticmethod
    def _content_kind(value: Optional[str]) -> ContentKind:
        try:
            return ContentKind(value)
        except ValueError:
            return ContentKind.RESOURCE
