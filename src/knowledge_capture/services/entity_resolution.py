"""Resolution of tool names in free text to code repositories.

Two stages: one completion call extracts candidate names, then each candidate
is searched on the code host and the resulting pool is arbitrated by another
completion call. A "none" answer drops the candidate; nothing is guessed.
"""

import logging
import re
from typing import Iterable, Optional

from knowledge_capture import prompts
from knowledge_capture.core import (
    CandidateRepo,
    CodeHostClient,
    CompletionClient,
    ResolutionResult,
    ResolvedRepo,
)
from knowledge_capture.core.errors import CompletionError, ResponseError
from knowledge_capture.core.parsing import parse_payload
from knowledge_capture.core.schemas import CandidateList
from knowledge_capture.core.urls import repo_full_name

logger = logging.getLogger(__name__)

_SELECTION_RE = re.compile(r"^\s*[\"']?(\d+)")

MAX_TEXT_CHARS = 3000
MAX_ARBITER_CONTEXT_CHARS = 2000
MAX_MENTION_CHARS = 1500


def parse_selection(answer: str, pool_size: int) -> Optional[int]:
    """0-based pool index from an arbiter answer; None means no match."""
    match = _SELECTION_RE.match(answer or "")
    if not match:
        return None
    selection = int(match.group(1))
    if 1 <= selection <= pool_size:
        return selection - 1
    return None


def format_repo_list(pool: list[ResolvedRepo]) -> str:
    lines = []
    for index, repo in enumerate(pool, start=1):
        lines.append(
            f"{index}. {repo.full_name} ({repo.stars:,} stars)\n"
            f"   Description: {repo.description or 'No description'}\n"
            f"   Topics: {', '.join(repo.topics) or 'None'}"
        )
    return "\n\n".join(lines)


class EntityResolver:
    """Finds repositories referenced by name, not URL."""

    def __init__(
        self,
        completion: CompletionClient,
        code_host: CodeHostClient,
        candidate_prompt: Optional[dict] = None,
        arbiter_prompt: Optional[dict] = None,
        validation_prompt: Optional[dict] = None,
        max_candidates: int = 5,
        max_pool_per_name: int = 5,
        search_per_page: int = 10,
    ) -> None:
        self.completion = completion
        self.code_host = code_host
        self.candidate_prompt = candidate_prompt or prompts.CANDIDATE_EXTRACTION
        self.arbiter_prompt = arbiter_prompt or prompts.REPO_ARBITER
        self.validation_prompt = validation_prompt or prompts.REPO_VALIDATION
        self.max_candidates = max_candidates
        self.max_pool_per_name = max_pool_per_name
        self.search_per_page = search_per_page

    async def resolve_from_text(
        self, text: str, existing_urls: Iterable[str] = ()
    ) -> ResolutionResult:
        """Resolve every candidate named in raw text, one at a time."""
        candidates, cost = await self.extract_candidates(text)
        logger.info("Repository candidates: %s", [c.name for c in candidates])

        known = self._full_names(existing_urls)
        accepted: list[ResolvedRepo] = []

        for candidate in candidates:
            pool = [
                repo
                for repo in await self.search_pool(candidate.name, candidate.context)
                if repo.full_name.lower() not in known
            ]
            if not pool:
                continue

            context = (
                f'Transcript mentioning "{candidate.name}":\n{text[:MAX_MENTION_CHARS]}\n\n'
                f"Looking for: {candidate.name} - {candidate.context}"
            )
            selected, selection_cost = await self.arbitrate(pool, context, candidate.name)
            cost += selection_cost

            if selected:
                logger.info("Selected %s for candidate '%s'", selected.full_name, candidate.name)
                accepted.append(selected)
                known.add(selected.full_name.lower())

        return ResolutionResult(repos=accepted, cost=cost)

    async def resolve_from_summary(
        self, title: str, summary: str, existing_urls: Iterable[str] = ()
    ) -> ResolutionResult:
        """Second pass over the classified title and summary; at most one repo."""
        logger.info("Second pass repository search: %s", f"{title} {summary}"[:100])

        known = self._full_names(existing_urls)
        pool = [
            repo
            for repo in await self.search_pool(title, summary)
            if repo.full_name.lower() not in known
        ]
        if not pool:
            logger.info("Second pass found no new candidates")
            return ResolutionResult()

        context = f"Title: {title}\nDescription: {summary}"
        selected, cost = await self.arbitrate(pool, context, title)
        return ResolutionResult(repos=[selected] if selected else [], cost=cost)

    async def extract_candidates(self, text: str) -> tuple[list[CandidateRepo], float]:
        """Tool names that could be repositories, with search keywords."""
        messages = prompts.render(self.candidate_prompt, text=text[:MAX_TEXT_CHARS])
        try:
            completion = await self.completion.complete(messages, temperature=0, max_tokens=300)
        except CompletionError as e:
            logger.warning("Candidate extraction unavailable: %s", e)
            return [], 0.0

        try:
            payload = parse_payload(completion.text, CandidateList)
        except ResponseError as e:
            logger.info("Candidate list rejected: %s", e)
            return [], completion.cost

        candidates = []
        for entry in payload:
            if isinstance(entry, str):
                candidate = CandidateRepo(name=entry.strip())
            else:
                candidate = CandidateRepo(name=entry.name.strip(), context=entry.context.strip())
            if candidate.name:
                candidates.append(candidate)

        return candidates[: self.max_candidates], completion.cost

    async def search_pool(self, name: str, context: str = "") -> list[ResolvedRepo]:
        """Deduplicated search hits for one name, most-starred first."""
        queries = [f"{name} in:name", f"{name} {context}", name] if context else [f"{name} in:name", name]

        pool: list[ResolvedRepo] = []
        seen: set[str] = set()

        for query in queries:
            if len(pool) >= self.max_pool_per_name:
                break
            for repo in await self.code_host.search_repositories(query, limit=self.search_per_page):
                if len(pool) >= self.max_pool_per_name:
                    break
                key = repo.full_name.lower()
                if key in seen:
                    continue
                seen.add(key)
                pool.append(repo)

        # Stable: equal star counts keep search order
        return sorted(pool, key=lambda repo: repo.stars, reverse=True)

    async def arbitrate(
        self, pool: list[ResolvedRepo], context: str, name: str = ""
    ) -> tuple[Optional[ResolvedRepo], float]:
        """Pick the pool member that matches the context, or None."""
        if not pool:
            return None, 0.0
        if len(pool) == 1:
            is_match, cost = await self.validate(pool[0], name, context)
            return (pool[0] if is_match else None), cost

        messages = prompts.render(
            self.arbiter_prompt,
            context=context[:MAX_ARBITER_CONTEXT_CHARS],
            repo_list=format_repo_list(pool),
            count=len(pool),
        )
        try:
            completion = await self.completion.complete(messages, temperature=0, max_tokens=10)
        except CompletionError as e:
            logger.warning("Repository arbitration unavailable: %s", e)
            return None, 0.0

        index = parse_selection(completion.text, len(pool))
        logger.debug("Arbiter answered %r for %d candidates", completion.text, len(pool))
        if index is None:
            return None, completion.cost
        return pool[index], completion.cost

    async def validate(
        self, repo: ResolvedRepo, name: str, context: str
    ) -> tuple[bool, float]:
        """Yes/no check of a single search hit."""
        messages = prompts.render(
            self.validation_prompt,
            name=name,
            context=context[:MAX_ARBITER_CONTEXT_CHARS],
            full_name=repo.full_name,
            description=repo.description or "No description",
            topics=", ".join(repo.topics) or "None",
            stars=repo.stars,
        )
        try:
            completion = await self.completion.complete(messages, temperature=0, max_tokens=10)
        except CompletionError as e:
            logger.warning("Repository validation unavailable: %s", e)
            return False, 0.0

        answer = completion.text.strip().strip(".\"'").lower()
        return answer == "yes", completion.cost

    @staticmethod
    def _full_names(urls: Iterable[str]) -> set[str]:
        return {name for name in (repo_full_name(url) for url in urls) if name}
