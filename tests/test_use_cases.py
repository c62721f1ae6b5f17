"""Tests for the item processing workflow."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from knowledge_capture.adapters.storage import Database, SqliteItemStore, SqliteStepCache
from knowledge_capture.core import (
    CaptureEvent,
    Classification,
    CodeHostClient,
    ContentKind,
    CostLedger,
    Embedder,
    EmbeddingResult,
    ExtractedEntities,
    ExtractionResult,
    FilingResult,
    GatedShare,
    InMemoryStepCache,
    ItemStatus,
    Notifier,
    ResolutionResult,
    SourceExtractor,
    SourceKind,
)
from knowledge_capture.core.cost import REPO_EXTRACTION, SOCIAL
from knowledge_capture.core.errors import ExtractionError
from knowledge_capture.services import Classifier, ContainerFilingService, EntityResolver, InterestExtractor
from knowledge_capture.use_cases import (
    FAILURE_NOTICE,
    GATED_NOTICE,
    ProcessItemWorkflow,
    format_success_message,
)

INK = "https://github.com/vadimdemedes/ink"
VIDEO_URL = "https://www.tiktok.com/@dev/video/1"


@pytest.fixture
def mocks(code_host: AsyncMock, make_metadata) -> SimpleNamespace:
    """Collaborators for a successful short-video run."""
    extractor = AsyncMock(spec=SourceExtractor)
    extractor.kind = SourceKind.VIDEO_SHORT
    extractor.extract.return_value = ExtractionResult(
        transcript="ink lets you build CLIs with React github.com/vadimdemedes/ink",
        repo_metadata=make_metadata(INK, "React for interactive command-line apps"),
        entities=ExtractedEntities(repos=[INK]),
    )

    classifier = AsyncMock(spec=Classifier)
    classifier.classify.return_value = Classification(
        title="Ink",
        summary="React for interactive command-line apps",
        domain="vibe-coding",
        content_kind=ContentKind.REPO,
        tags=["react", "cli"],
        cost=0.004,
    )

    resolver = AsyncMock(spec=EntityResolver)
    resolver.resolve_from_summary.return_value = ResolutionResult()

    filing = AsyncMock(spec=ContainerFilingService)
    filing.file_item.return_value = FilingResult(container_names=["AI Dev Tools"], cost=0.002)

    embedder = AsyncMock(spec=Embedder)
    embedder.embed.return_value = EmbeddingResult(vector=[0.1, 0.2], cost=0.0001)

    interests = AsyncMock(spec=InterestExtractor)
    interests.process.return_value = 3

    notifier = AsyncMock(spec=Notifier)
    notifier.send_message.return_value = True

    return SimpleNamespace(
        extractor=extractor,
        classifier=classifier,
        resolver=resolver,
        code_host=code_host,
        filing=filing,
        embedder=embedder,
        interests=interests,
        notifier=notifier,
    )


def _workflow(store: SqliteItemStore, step_cache, mocks: SimpleNamespace, max_attempts: int = 3) -> ProcessItemWorkflow:
    return ProcessItemWorkflow(
        store=store,
        step_cache=step_cache,
        extractors={mocks.extractor.kind: mocks.extractor},
        classifier=mocks.classifier,
        resolver=mocks.resolver,
        code_host=mocks.code_host,
        filing=mocks.filing,
        embedder=mocks.embedder,
        interests=mocks.interests,
        notifier=mocks.notifier,
        max_attempts=max_attempts,
        retry_delay=0.0,
    )


async def _event(store: SqliteItemStore, chat_id=42) -> CaptureEvent:
    item = await store.create_item("user-1", VIDEO_URL, SourceKind.VIDEO_SHORT)
    return CaptureEvent(item.id, SourceKind.VIDEO_SHORT, VIDEO_URL, "user-1", chat_id=chat_id)


def test_format_success_message() -> None:
    assert format_success_message("Ink", None) == "✓ Ink"
    assert format_success_message(None, "short", ["A", "B"]) == "✓ Untitled\nshort\n📂 A, B"
    long_summary = "x" * 250
    assert format_success_message("T", long_summary) == f"✓ T\n{'x' * 200}..."


def test_workflow_requires_an_attempt(store: SqliteItemStore, mocks: SimpleNamespace) -> None:
    with pytest.raises(ValueError, match="max_attempts"):
        _workflow(store, InMemoryStepCache(), mocks, max_attempts=0)


@pytest.mark.asyncio
async def test_process_item_success(store: SqliteItemStore, database: Database, mocks: SimpleNamespace) -> None:
    """Test the full step sequence on the normal path."""
    event = await _event(store)
    cache = SqliteStepCache(database)

    outcome = await _workflow(store, cache, mocks).handle(event)

    assert outcome.status == ItemStatus.PROCESSED
    assert outcome.path == "normal"
    assert outcome.attempts == 1

    item = await store.get_item(event.item_id)
    assert item.status == ItemStatus.PROCESSED
    assert item.title == "Ink"
    assert item.domain == "vibe-coding"
    assert item.content_kind == ContentKind.REPO
    assert item.repo_url == INK
    assert item.repo_metadata.name == "ink"
    assert item.extracted_entities.repos == [INK]
    assert item.classification_cost == pytest.approx(0.004)
    assert item.social_cost is None
    assert item.repo_extraction_cost is None
    assert item.processed_at is not None
    assert await store.get_embedding(event.item_id) == [0.1, 0.2]

    # Repositories already found, so no summary-based search
    mocks.resolver.resolve_from_summary.assert_not_called()
    mocks.notifier.send_message.assert_awaited_once_with(
        42, "✓ Ink\nReact for interactive command-line apps\n📂 AI Dev Tools"
    )
    assert await cache.steps(event.run_id) == [
        "mark-processing",
        "fetch-item",
        "extract-content",
        "classify",
        "second-pass-entity-resolution",
        "save-results",
        "assign-containers",
        "generate-embedding",
        "extract-interests",
        "notify-user",
    ]


@pytest.mark.asyncio
async def test_no_chat_id_skips_notification(store: SqliteItemStore, mocks: SimpleNamespace) -> None:
    event = await _event(store, chat_id=None)

    outcome = await _workflow(store, InMemoryStepCache(), mocks).handle(event)

    assert outcome.status == ItemStatus.PROCESSED
    mocks.notifier.send_message.assert_not_called()


@pytest.mark.asyncio
async def test_second_pass_finds_repository(
    store: SqliteItemStore, mocks: SimpleNamespace, make_metadata, make_repo
) -> None:
    """Test the summary pass attaches a repository the transcript never named."""
    mocks.extractor.extract.return_value = ExtractionResult(
        transcript="this terminal UI library is great",
        costs=CostLedger({REPO_EXTRACTION: 0.001}),
    )
    mocks.resolver.resolve_from_summary.return_value = ResolutionResult(
        repos=[make_repo("vadimdemedes/ink")], cost=0.002
    )
    mocks.code_host.get_repository.return_value = make_metadata(INK)
    event = await _event(store)

    await _workflow(store, InMemoryStepCache(), mocks).handle(event)

    mocks.resolver.resolve_from_summary.assert_awaited_once()
    assert mocks.resolver.resolve_from_summary.call_args.args[:2] == (
        "Ink",
        "React for interactive command-line apps",
    )
    item = await store.get_item(event.item_id)
    assert item.extracted_entities.repos == [INK]
    assert item.repo_url == INK
    assert item.repo_extraction_cost == pytest.approx(0.003)


@pytest.mark.asyncio
async def test_repository_capture_uses_source_url(
    store: SqliteItemStore, mocks: SimpleNamespace, make_metadata
) -> None:
    mocks.extractor.kind = SourceKind.REPOSITORY
    mocks.extractor.extract.return_value = ExtractionResult(
        repo_metadata=make_metadata(INK), entities=ExtractedEntities(repos=[INK + "/tree/main"])
    )
    item = await store.create_item("user-1", INK + "/tree/main", SourceKind.REPOSITORY)
    event = CaptureEvent(item.id, SourceKind.REPOSITORY, item.source_url, "user-1")

    await _workflow(store, InMemoryStepCache(), mocks).handle(event)

    saved = await store.get_item(item.id)
    assert saved.repo_url == INK + "/tree/main"
    mocks.resolver.resolve_from_summary.assert_not_called()


@pytest.mark.asyncio
async def test_unclassifiable_item_is_saved_untitled(store: SqliteItemStore, mocks: SimpleNamespace) -> None:
    """Test an empty extraction still completes without a title or embedding."""
    mocks.extractor.extract.return_value = ExtractionResult()
    mocks.classifier.classify.return_value = None
    event = await _event(store)

    outcome = await _workflow(store, InMemoryStepCache(), mocks).handle(event)

    assert outcome.status == ItemStatus.PROCESSED
    item = await store.get_item(event.item_id)
    assert item.title is None
    assert item.classification_cost is None
    mocks.embedder.embed.assert_not_called()
    mocks.resolver.resolve_from_summary.assert_not_called()


@pytest.mark.asyncio
async def test_gated_share_path(store: SqliteItemStore, mocks: SimpleNamespace) -> None:
    """Test a login-gated share is saved as a placeholder and classification is skipped."""
    mocks.extractor.kind = SourceKind.SOCIAL_POST
    mocks.extractor.extract.return_value = ExtractionResult(
        transcript="https://t.co/abc",
        costs=CostLedger({SOCIAL: 0.01}),
        gated=GatedShare(author_name="dev", url="https://x.com/i/article/99"),
    )
    item = await store.create_item("user-1", "https://x.com/dev/status/1", SourceKind.SOCIAL_POST)
    event = CaptureEvent(item.id, SourceKind.SOCIAL_POST, item.source_url, "user-1", chat_id=42)
    cache = InMemoryStepCache()

    outcome = await _workflow(store, cache, mocks).handle(event)

    assert outcome.path == "gated"
    saved = await store.get_item(item.id)
    assert saved.status == ItemStatus.PROCESSED
    assert saved.title == "@dev shared: X Article (login required)"
    assert saved.transcript == "Resolved URL: https://x.com/i/article/99"
    assert saved.content_kind == ContentKind.RESOURCE
    assert saved.social_cost == pytest.approx(0.01)
    mocks.classifier.classify.assert_not_called()
    mocks.filing.file_item.assert_not_called()
    mocks.embedder.embed.assert_not_called()
    mocks.notifier.send_message.assert_awaited_once_with(42, GATED_NOTICE)
    assert await cache.steps(event.run_id) == [
        "mark-processing",
        "fetch-item",
        "extract-content",
        "save-gated-share",
        "notify-gated-share",
    ]


@pytest.mark.asyncio
async def test_terminal_failure(store: SqliteItemStore, mocks: SimpleNamespace) -> None:
    """Test exhausted attempts mark the item failed and notify once."""
    mocks.extractor.extract.side_effect = ExtractionError("Short video processing failed - no transcript returned")
    event = await _event(store)

    outcome = await _workflow(store, InMemoryStepCache(), mocks).handle(event)

    assert outcome.status == ItemStatus.FAILED
    assert outcome.path == "failed"
    assert outcome.attempts == 3
    assert mocks.extractor.extract.await_count == 3
    item = await store.get_item(event.item_id)
    assert item.status == ItemStatus.FAILED
    assert item.error_message == "Short video processing failed - no transcript returned"
    mocks.classifier.classify.assert_not_called()
    mocks.notifier.send_message.assert_awaited_once_with(42, FAILURE_NOTICE)


@pytest.mark.asyncio
async def test_missing_item_fails(store: SqliteItemStore, mocks: SimpleNamespace) -> None:
    event = CaptureEvent("missing", SourceKind.VIDEO_SHORT, VIDEO_URL, "user-1")

    outcome = await _workflow(store, InMemoryStepCache(), mocks, max_attempts=1).handle(event)

    assert outcome.status == ItemStatus.FAILED
    assert "not found" in outcome.error
    mocks.extractor.extract.assert_not_called()


@pytest.mark.asyncio
async def test_retry_replays_completed_steps(store: SqliteItemStore, mocks: SimpleNamespace) -> None:
    """Test a failed step is retried without repeating metered work."""
    mocks.filing.file_item.side_effect = [RuntimeError("database is locked"), FilingResult(["AI Dev Tools"], 0.002)]
    event = await _event(store)

    outcome = await _workflow(store, InMemoryStepCache(), mocks).handle(event)

    assert outcome.status == ItemStatus.PROCESSED
    assert outcome.attempts == 2
    assert mocks.extractor.extract.await_count == 1
    assert mocks.classifier.classify.await_count == 1
    assert mocks.filing.file_item.await_count == 2
    item = await store.get_item(event.item_id)
    assert item.classification_cost == pytest.approx(0.004)


@pytest.mark.asyncio
async def test_redelivery_after_restart(
    store: SqliteItemStore, database: Database, mocks: SimpleNamespace, tmp_path
) -> None:
    """Test a redelivered event in a fresh process replays every step from storage."""
    event = await _event(store)
    await _workflow(store, SqliteStepCache(database), mocks).handle(event)

    fresh = SimpleNamespace(
        extractor=AsyncMock(spec=SourceExtractor),
        classifier=AsyncMock(spec=Classifier),
        resolver=AsyncMock(spec=EntityResolver),
        code_host=AsyncMock(spec=CodeHostClient),
        filing=AsyncMock(spec=ContainerFilingService),
        embedder=AsyncMock(spec=Embedder),
        interests=AsyncMock(spec=InterestExtractor),
        notifier=AsyncMock(spec=Notifier),
    )
    fresh.extractor.kind = SourceKind.VIDEO_SHORT
    reopened = Database(tmp_path / "test.db")
    redelivered = CaptureEvent(event.item_id, SourceKind.VIDEO_SHORT, VIDEO_URL, "user-1", chat_id=42)

    outcome = await _workflow(SqliteItemStore(reopened), SqliteStepCache(reopened), fresh).handle(redelivered)

    assert outcome.status == ItemStatus.PROCESSED
    fresh.extractor.extract.assert_not_called()
    fresh.classifier.classify.assert_not_called()
    fresh.filing.file_item.assert_not_called()
    fresh.embedder.embed.assert_not_called()
    fresh.notifier.send_message.assert_not_called()


@pytest.mark.asyncio
async def test_failure_then_redelivery_recovers(store: SqliteItemStore, mocks: SimpleNamespace) -> None:
    """Test a later redelivery finishes an item that failed and clears its error."""
    mocks.embedder.embed.side_effect = RuntimeError("embedding service down")
    event = await _event(store)
    cache = InMemoryStepCache()
    workflow = _workflow(store, cache, mocks, max_attempts=2)

    first = await workflow.handle(event)
    assert first.status == ItemStatus.FAILED

    mocks.embedder.embed.side_effect = None
    second = await workflow.handle(event)

    assert second.status == ItemStatus.PROCESSED
    assert mocks.classifier.classify.await_count == 1
    item = await store.get_item(event.item_id)
    assert item.status == ItemStatus.PROCESSED
    assert item.error_message is None
