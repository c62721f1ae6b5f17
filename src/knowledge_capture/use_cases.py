"""Business logic use cases."""

import asyncio
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pydantic import TypeAdapter

from knowledge_capture.adapters.embeddings import build_embedding_text
from knowledge_capture.core import (
    CaptureEvent,
    Classification,
    CodeHostClient,
    ContentKind,
    Embedder,
    ExtractedEntities,
    ExtractionResult,
    FilingResult,
    Item,
    ItemStatus,
    ItemStore,
    Notifier,
    SecondPassResult,
    SourceExtractor,
    SourceKind,
    StepCache,
    WorkflowOutcome,
)
from knowledge_capture.core.cost import REPO_EXTRACTION, SOCIAL
from knowledge_capture.core.errors import ExtractionError, ItemNotFoundError
from knowledge_capture.services import (
    Classifier,
    ContainerFilingService,
    EntityResolver,
    InterestExtractor,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

FAILURE_NOTICE = "Failed to process - check the web app"
GATED_NOTICE = "✓ X Article captured (login required to view content)"
SUMMARY_PREVIEW_CHARS = 200

_adapters: dict[Any, TypeAdapter] = {}


def _adapter(result_type: Any) -> TypeAdapter:
    if result_type not in _adapters:
        _adapters[result_type] = TypeAdapter(result_type)
    return _adapters[result_type]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def format_success_message(
    title: Optional[str], summary: Optional[str], container_names: Optional[list[str]] = None
) -> str:
    message = f"✓ {title or 'Untitled'}"
    if summary:
        preview = summary[:SUMMARY_PREVIEW_CHARS]
        if len(summary) > SUMMARY_PREVIEW_CHARS:
            preview += "..."
        message += f"\n{preview}"
    if container_names:
        message += f"\n📂 {', '.join(container_names)}"
    return message


class ProcessItemWorkflow:
    """Turns a capture event into a classified, filed and embedded item.

    Every step result is stored in the step cache under (run id, step name).
    A retried attempt or a redelivered event replays stored results instead
    of calling metered providers or writing rows again.
    """

    def __init__(
        self,
        store: ItemStore,
        step_cache: StepCache,
        extractors: dict[SourceKind, SourceExtractor],
        classifier: Classifier,
        resolver: EntityResolver,
        code_host: CodeHostClient,
        filing: ContainerFilingService,
        embedder: Embedder,
        interests: InterestExtractor,
        notifier: Notifier,
        max_attempts: int = 3,
        retry_delay: float = 2.0,
        max_repos: int = 3,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.step_cache = step_cache
        self.extractors = extractors
        self.classifier = classifier
        self.resolver = resolver
        self.code_host = code_host
        self.filing = filing
        self.embedder = embedder
        self.interests = interests
        self.notifier = notifier
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.max_repos = max_repos

    async def handle(self, event: CaptureEvent) -> WorkflowOutcome:
        """Run the workflow with retries; never raises for step failures."""
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self.run(event, attempt)
            except Exception as e:
                last_error = e
                logger.warning(
                    "Attempt %d/%d failed: %s",
                    attempt,
                    self.max_attempts,
                    e,
                    extra={"item_id": event.item_id},
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.retry_delay)

        await self._on_failure(event, last_error)
        return WorkflowOutcome(
            item_id=event.item_id,
            status=ItemStatus.FAILED,
            path="failed",
            attempts=self.max_attempts,
            error=self._error_message(last_error),
        )

    async def run(self, event: CaptureEvent, attempt: int = 1) -> WorkflowOutcome:
        """One attempt over the fixed step sequence."""
        item_id = event.item_id

        await self._step(event, "mark-processing", bool, lambda: self._mark_processing(item_id))
        item = await self._step(event, "fetch-item", Item, lambda: self._fetch_item(item_id))
        extracted = await self._step(
            event, "extract-content", ExtractionResult, lambda: self._extract(event, item)
        )

        if extracted.gated is not None:
            await self._step(
                event, "save-gated-share", bool, lambda: self._save_gated(item_id, extracted)
            )
            if event.chat_id:
                await self._step(
                    event,
                    "notify-gated-share",
                    bool,
                    lambda: self.notifier.send_message(event.chat_id, GATED_NOTICE),
                )
            await self._clear_failure(item_id)
            return WorkflowOutcome(item_id, ItemStatus.PROCESSED, path="gated", attempts=attempt)

        classification = await self._step(
            event,
            "classify",
            Optional[Classification],
            lambda: self.classifier.classify(
                event.source_kind,
                transcript=extracted.transcript,
                repo_metadata=extracted.repo_metadata,
            ),
        )
        second = await self._step(
            event,
            "second-pass-entity-resolution",
            SecondPassResult,
            lambda: self._second_pass(extracted, classification),
        )
        await self._step(
            event,
            "save-results",
            bool,
            lambda: self._save_results(event, item, extracted, classification, second),
        )
        filing = await self._step(
            event, "assign-containers", Optional[FilingResult], lambda: self._assign_containers(item_id)
        )
        await self._step(event, "generate-embedding", Optional[float], lambda: self._embed(item_id))
        await self._step(event, "extract-interests", int, lambda: self._extract_interests(item_id))

        if event.chat_id:
            await self._step(event, "notify-user", bool, lambda: self._notify(event, filing))

        await self._clear_failure(item_id)
        return WorkflowOutcome(item_id, ItemStatus.PROCESSED, attempts=attempt)

    async def _step(
        self,
        event: CaptureEvent,
        name: str,
        result_type: Any,
        action: Callable[[], Awaitable[T]],
    ) -> T:
        """Return the memoized result of a step, or run and memoize it."""
        adapter = _adapter(result_type)
        context = {"item_id": event.item_id, "step": name}

        cached = await self.step_cache.get(event.run_id, name)
        if cached is not None:
            logger.debug("Step %s replayed from cache", name, extra=context)
            return adapter.validate_json(cached)

        logger.info("Step %s started", name, extra=context)
        result = await action()
        await self.step_cache.put(event.run_id, name, adapter.dump_json(result).decode())
        logger.info("Step %s completed", name, extra=context)
        return result

    async def _mark_processing(self, item_id: str) -> bool:
        await self.store.update_item(item_id, status=ItemStatus.PROCESSING)
        return True

    async def _fetch_item(self, item_id: str) -> Item:
        item = await self.store.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(f"Failed to fetch item: {item_id} not found")
        return item

    async def _extract(self, event: CaptureEvent, item: Item) -> ExtractionResult:
        extractor = self.extractors.get(event.source_kind)
        if extractor is None:
            raise ExtractionError(f"No extractor for source kind {event.source_kind.value}")
        return await extractor.extract(item.source_url)

    async def _save_gated(self, item_id: str, extracted: ExtractionResult) -> bool:
        gated = extracted.gated
        await self.store.update_item(
            item_id,
            status=ItemStatus.PROCESSED,
            processed_at=_now(),
            error_message=None,
            title=f"@{gated.author_name} shared: X Article (login required)",
            summary=f"X Article shared by {gated.author_name}. Content requires X login to view.",
            transcript=f"Resolved URL: {gated.url}",
            content_kind=ContentKind.RESOURCE,
            extracted_entities=ExtractedEntities(),
            raw_data={"gated": asdict(gated)},
            classification_cost=None,
            social_cost=extracted.costs.or_none(SOCIAL),
        )
        return True

    async def _second_pass(
        self, extracted: ExtractionResult, classification: Optional[Classification]
    ) -> SecondPassResult:
        entities = ExtractedEntities(
            repos=list(extracted.entities.repos),
            tools=list(extracted.entities.tools),
            techniques=list(extracted.entities.techniques),
        )
        repo_metadata = extracted.repo_metadata
        cost = extracted.costs.get(REPO_EXTRACTION)

        if classification and not entities.repos and classification.title and classification.summary:
            resolution = await self.resolver.resolve_from_summary(
                classification.title, classification.summary, entities.repos
            )
            cost += resolution.cost
            for repo in resolution.repos[: self.max_repos]:
                metadata = await self.code_host.get_repository(repo.url)
                if not metadata:
                    continue
                entities.repos.append(repo.url)
                if repo_metadata is None:
                    repo_metadata = metadata

        return SecondPassResult(
            entities=entities, repo_metadata=repo_metadata, repo_extraction_cost=cost
        )

    async def _save_results(
        self,
        event: CaptureEvent,
        item: Item,
        extracted: ExtractionResult,
        classification: Optional[Classification],
        second: SecondPassResult,
    ) -> bool:
        metadata = second.repo_metadata
        fields: dict[str, Any] = {
            "status": ItemStatus.PROCESSED,
            "processed_at": _now(),
            "error_message": None,
            "transcript": extracted.transcript,
            "extracted_entities": second.entities,
            "raw_data": {
                "repo_metadata": asdict(metadata) if metadata else None,
                "transcript": extracted.transcript,
            },
            "classification_cost": classification.cost if classification and classification.cost else None,
            "social_cost": extracted.costs.or_none(SOCIAL),
            "repo_extraction_cost": second.repo_extraction_cost or None,
        }

        if classification:
            fields.update(
                title=classification.title,
                summary=classification.summary,
                domain=classification.domain,
                content_kind=classification.content_kind,
                tags=classification.tags,
            )

        if metadata:
            if event.source_kind == SourceKind.REPOSITORY:
                fields["repo_url"] = item.source_url
            elif second.entities.repos:
                fields["repo_url"] = second.entities.repos[0]
            fields["repo_metadata"] = metadata
            if not fields.get("title"):
                fields["title"] = metadata.name

        await self.store.update_item(item.id, **fields)
        return True

    async def _assign_containers(self, item_id: str) -> Optional[FilingResult]:
        item = await self.store.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(f"Item {item_id} disappeared")
        return await self.filing.file_item(item)

    async def _embed(self, item_id: str) -> Optional[float]:
        item = await self.store.get_item(item_id)
        if item is None or not item.title:
            logger.info("Skipping embedding, item has no title", extra={"item_id": item_id})
            return None

        result = await self.embedder.embed(build_embedding_text(item.title, item.summary, item.tags))
        if result is None:
            return None

        await self.store.set_embedding(item_id, result.vector)
        logger.info("Embedded item", extra={"item_id": item_id, "cost": result.cost})
        return result.cost

    async def _extract_interests(self, item_id: str) -> int:
        item = await self.store.get_item(item_id)
        if item is None:
            return 0
        return await self.interests.process(item)

    async def _notify(self, event: CaptureEvent, filing: Optional[FilingResult]) -> bool:
        item = await self.store.get_item(event.item_id)
        if item is None:
            return False
        names = filing.container_names if filing else None
        return await self.notifier.send_message(
            event.chat_id, format_success_message(item.title, item.summary, names)
        )

    async def _clear_failure(self, item_id: str) -> None:
        """A completed run supersedes an earlier terminal failure of the same item."""
        item = await self.store.get_item(item_id)
        if item is not None and item.status == ItemStatus.FAILED:
            await self.store.update_item(item_id, status=ItemStatus.PROCESSED, error_message=None)

    async def _on_failure(self, event: CaptureEvent, error: Optional[Exception]) -> None:
        """Persist the failure and tell the user; must not raise."""
        message = self._error_message(error)
        logger.error(
            "Process item failed: %s",
            message,
            extra={
                "item_id": event.item_id,
                "source_kind": event.source_kind.value,
                "source_url": event.source_url,
            },
        )

        try:
            await self.store.update_item(event.item_id, status=ItemStatus.FAILED, error_message=message)
        except Exception:
            logger.exception("Could not record failure", extra={"item_id": event.item_id})

        if event.chat_id:
            try:
                await self.notifier.send_message(event.chat_id, FAILURE_NOTICE)
            except Exception:
                logger.exception("Could not send failure notice", extra={"item_id": event.item_id})

    @staticmethod
    def _error_message(error: Optional[Exception]) -> str:
        if error is None:
            return "Unknown error"
        return str(error) or error.__class__.__name__
