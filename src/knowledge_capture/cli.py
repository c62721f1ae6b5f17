"""CLI entry point for knowledge capture."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from knowledge_capture.adapters.codehost import GitHubClient
from knowledge_capture.adapters.embeddings import OpenAIEmbedder
from knowledge_capture.adapters.extractors import (
    ArticleExtractor,
    LongVideoExtractor,
    RepositoryExtractor,
    ShortVideoExtractor,
    SocialPostExtractor,
    extractor_map,
)
from knowledge_capture.adapters.llm import ClaudeClient, GrokClient
from knowledge_capture.adapters.media import ArticleFetcher, TikTokSource, XEmbedSource, YouTubeSource
from knowledge_capture.adapters.notifications import TelegramNotifier
from knowledge_capture.adapters.storage import Database, SqliteItemStore, SqliteStepCache
from knowledge_capture.config import Settings, get_settings
from knowledge_capture.core import CaptureEvent, ItemStatus
from knowledge_capture.core.urls import detect_source_kind
from knowledge_capture.logging_setup import setup_logging
from knowledge_capture.services import (
    Classifier,
    ContainerFilingService,
    EntityResolver,
    InterestExtractor,
)
from knowledge_capture.use_cases import ProcessItemWorkflow

app = typer.Typer(help="Capture links into a personal knowledge base.", no_args_is_help=True)

ConfigOption = typer.Option(Path("config.yaml"), "--config", help="Path to config.yaml")


def build_workflow(settings: Settings, store: SqliteItemStore, database: Database) -> ProcessItemWorkflow:
    """Wire adapters and services from settings."""
    completion = ClaudeClient(settings)
    code_host = GitHubClient(
        token=settings.github_token,
        api_base=settings.github.api_base,
        timeout=settings.github.timeout,
    )
    prompts = settings.prompts
    pipeline = settings.pipeline

    resolver = EntityResolver(
        completion,
        code_host,
        candidate_prompt=prompts.candidate_extraction,
        arbiter_prompt=prompts.repo_arbiter,
        validation_prompt=prompts.repo_validation,
        max_candidates=pipeline.max_candidates,
        max_pool_per_name=pipeline.max_pool_per_name,
        search_per_page=settings.github.search_per_page,
    )
    max_repos = pipeline.max_repos_per_item
    grok = GrokClient(settings)

    extractors = extractor_map(
        [
            RepositoryExtractor(code_host),
            ShortVideoExtractor(
                TikTokSource(
                    settings.openai_api_key,
                    transcription_model=settings.openai.transcription_model,
                    timeout=settings.openai.timeout,
                ),
                code_host,
                resolver,
                max_repos,
            ),
            LongVideoExtractor(
                YouTubeSource(settings.youtube_innertube_key), code_host, resolver, max_repos
            ),
            SocialPostExtractor(
                XEmbedSource(),
                code_host,
                rich=grok if grok.enabled else None,
                resolver=resolver,
                max_repos=max_repos,
            ),
            ArticleExtractor(ArticleFetcher(), code_host, resolver, max_repos),
        ]
    )

    vocabulary = settings.domains.vocabulary()
    return ProcessItemWorkflow(
        store=store,
        step_cache=SqliteStepCache(database),
        extractors=extractors,
        classifier=Classifier(
            completion,
            vocabulary,
            prompt=prompts.classification,
            max_tokens=settings.claude.max_tokens,
            temperature=settings.claude.temperature,
        ),
        resolver=resolver,
        code_host=code_host,
        filing=ContainerFilingService(completion, store, prompt=prompts.container_assignment),
        embedder=OpenAIEmbedder(
            settings.openai_api_key,
            model=settings.openai.embedding_model,
            price_table=settings.pricing.embedding,
            timeout=settings.openai.timeout,
        ),
        interests=InterestExtractor(
            completion, store, default_domain=vocabulary.default, prompt=prompts.interests
        ),
        notifier=TelegramNotifier(settings.telegram_bot_token),
        max_attempts=pipeline.max_attempts,
        retry_delay=pipeline.retry_delay,
        max_repos=max_repos,
    )


def _configure_logging(debug: bool, json_logs: bool) -> None:
    setup_logging(logging.DEBUG if debug else logging.INFO, json_output=json_logs)


@app.command("init-db")
def init_db(config: Path = ConfigOption) -> None:
    """Create the SQLite schema."""
    settings = get_settings(config)
    asyncio.run(Database(settings.database_path).init_tables())
    print(f"✓ Database ready: {settings.database_path}")


@app.command()
def capture(
    url: str,
    user: str = typer.Option(..., "--user", help="Owning user id"),
    chat_id: Optional[int] = typer.Option(None, "--chat-id", help="Chat to notify"),
    no_process: bool = typer.Option(False, "--no-process", help="Only record the item"),
    config: Path = ConfigOption,
    debug: bool = False,
    json_logs: bool = typer.Option(False, "--json-logs", help="Log as JSON lines"),
) -> None:
    """Record a URL and run the processing pipeline on it."""
    _configure_logging(debug, json_logs)
    asyncio.run(async_capture(url, user, chat_id, no_process, get_settings(config)))


@app.command()
def process(
    item_id: str,
    chat_id: Optional[int] = typer.Option(None, "--chat-id", help="Chat to notify"),
    run_id: Optional[str] = typer.Option(None, "--run-id", help="Memoization key (default: per item)"),
    config: Path = ConfigOption,
    debug: bool = False,
    json_logs: bool = typer.Option(False, "--json-logs", help="Log as JSON lines"),
) -> None:
    """Deliver a capture event for an existing item."""
    _configure_logging(debug, json_logs)
    asyncio.run(async_process(item_id, chat_id, run_id, get_settings(config)))


async def async_capture(
    url: str, user: str, chat_id: Optional[int], no_process: bool, settings: Settings
) -> None:
    """Async implementation of the capture command."""
    database = Database(settings.database_path)
    await database.init_tables()
    store = SqliteItemStore(database)

    source_kind = detect_source_kind(url)
    item = await store.create_item(user, url, source_kind)
    print(f"📥 Captured {source_kind.value}: {url}")
    print(f"  • Item: {item.id}")

    if no_process:
        return

    workflow = build_workflow(settings, store, database)
    event = CaptureEvent(
        item_id=item.id,
        source_kind=source_kind,
        source_url=url,
        user_id=user,
        chat_id=chat_id,
    )
    await _run_and_report(workflow, store, event)


async def async_process(
    item_id: str, chat_id: Optional[int], run_id: Optional[str], settings: Settings
) -> None:
    """Async implementation of the process command."""
    database = Database(settings.database_path)
    await database.init_tables()
    store = SqliteItemStore(database)

    item = await store.get_item(item_id)
    if item is None:
        print(f"✗ Item not found: {item_id}")
        raise typer.Exit(code=1)

    workflow = build_workflow(settings, store, database)
    event = CaptureEvent(
        item_id=item.id,
        source_kind=item.source_kind,
        source_url=item.source_url,
        user_id=item.user_id,
        chat_id=chat_id,
        run_id=run_id,
    )
    await _run_and_report(workflow, store, event)


async def _run_and_report(
    workflow: ProcessItemWorkflow, store: SqliteItemStore, event: CaptureEvent
) -> None:
    outcome = await workflow.handle(event)
    item = await store.get_item(event.item_id)

    if outcome.status == ItemStatus.FAILED:
        print(f"✗ Failed after {outcome.attempts} attempt(s): {outcome.error}")
        return

    print(f"✓ {item.title if item and item.title else 'Untitled'}")
    if item and item.summary:
        print(f"  {item.summary}")
    if item and item.domain:
        print(f"  • Domain: {item.domain}")
    if item and item.extracted_entities.repos:
        print(f"  • Repos: {', '.join(item.extracted_entities.repos)}")
    if outcome.path == "gated":
        print("  • Login-gated share, classification skipped")


if __name__ == "__main__":
    app()
