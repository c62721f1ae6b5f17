"""Filing of classified items into containers."""

import logging
from typing import Optional

from knowledge_capture import prompts
from knowledge_capture.core import (
    CompletionClient,
    Container,
    ContainerAssignment,
    FilingResult,
    Item,
    ItemStore,
    NewContainerSpec,
    ProjectAnchor,
)
from knowledge_capture.core.errors import CompletionError, ResponseError
from knowledge_capture.core.parsing import parse_payload
from knowledge_capture.core.schemas import AssignmentPayload

logger = logging.getLogger(__name__)


def format_containers(containers: list[Container]) -> str:
    if not containers:
        return "No containers exist yet. You must create at least one."
    lines = []
    for container in containers:
        line = f"- [{container.id}]: {container.name}"
        if container.description:
            line += f": {container.description}"
        lines.append(line)
    return "\n".join(lines)


def format_anchors(anchors: list[ProjectAnchor]) -> str:
    if not anchors:
        return "No active projects."
    return "\n".join(
        f"- {a.name}: {a.description or 'No description'} (tags: {', '.join(a.tags) or 'none'})"
        for a in anchors
    )


class ContainerFilingService:
    """Asks the model where an item belongs and applies the validated answer."""

    def __init__(
        self,
        completion: CompletionClient,
        store: ItemStore,
        prompt: Optional[dict] = None,
        max_tokens: int = 300,
    ) -> None:
        self.completion = completion
        self.store = store
        self.prompt = prompt or prompts.CONTAINER_ASSIGNMENT
        self.max_tokens = max_tokens

    async def file_item(self, item: Item) -> Optional[FilingResult]:
        """Assign and apply; None when filing was skipped or unavailable."""
        if not item.title:
            logger.info("Skipping container assignment, item has no title", extra={"item_id": item.id})
            return None

        containers = await self.store.list_containers(item.user_id)
        anchors = await self.store.list_project_anchors(item.user_id)

        assignment = await self.assign(item, containers, anchors)
        if assignment is None:
            return None
        if assignment.is_empty:
            logger.info("No container assignment for item", extra={"item_id": item.id})
            return FilingResult(cost=assignment.cost)

        names = await self.apply(item.user_id, item.id, assignment)
        logger.info(
            "Assigned item to containers %s",
            names,
            extra={"item_id": item.id, "cost": assignment.cost},
        )
        return FilingResult(container_names=names, cost=assignment.cost)

    async def assign(
        self,
        item: Item,
        containers: list[Container],
        anchors: list[ProjectAnchor],
    ) -> Optional[ContainerAssignment]:
        """Run the filing call and keep only what the validation rules allow."""
        messages = prompts.render(
            self.prompt,
            title=item.title,
            summary=item.summary or "None",
            tags=", ".join(item.tags) or "None",
            domain=item.domain or "Unknown",
            content_type=item.content_kind.value if item.content_kind else "Unknown",
            container_list=format_containers(containers),
            anchor_list=format_anchors(anchors),
        )

        try:
            completion = await self.completion.complete(messages, max_tokens=self.max_tokens)
        except CompletionError as e:
            logger.warning("Container assignment unavailable: %s", e)
            return None

        try:
            payload = parse_payload(completion.text, AssignmentPayload)
        except ResponseError as e:
            logger.info("Container assignment rejected: %s", e)
            return ContainerAssignment(cost=completion.cost)

        known_ids = {c.id for c in containers}
        existing: list[str] = []
        for container_id in payload.existing:
            if container_id in known_ids and container_id not in existing:
                existing.append(container_id)
            elif container_id not in known_ids:
                logger.debug("Dropping unknown container id %r", container_id)

        create = [
            NewContainerSpec(name=spec.name.strip(), description=(spec.description or "").strip())
            for spec in payload.create
            if spec.name and spec.name.strip()
        ]

        return ContainerAssignment(existing_ids=existing, create=create, cost=completion.cost)

    async def apply(self, user_id: str, item_id: str, assignment: ContainerAssignment) -> list[str]:
        """Create missing containers and link the item; safe to repeat."""
        containers = await self.store.get_containers(user_id, assignment.existing_ids)

        for spec in assignment.create:
            container = await self.store.find_container_by_name(user_id, spec.name)
            if container is None:
                container = await self.store.create_container(user_id, spec.name, spec.description or None)
            containers.append(container)

        names: list[str] = []
        linked: set[str] = set()
        for container in containers:
            if container.id in linked:
                continue
            linked.add(container.id)
            await self.store.add_item_to_container(container.id, item_id)
            names.append(container.name)

        return names
