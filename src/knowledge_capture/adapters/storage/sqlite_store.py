"""SQLite persistence for items, containers, interests and step results."""

import json
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, AsyncIterator, Optional, Union

import aiosqlite

from knowledge_capture.core import (
    Container,
    ContentKind,
    ExtractedEntities,
    InterestRecord,
    InterestType,
    Item,
    ItemStatus,
    ItemStore,
    ProjectAnchor,
    RepoMetadata,
    SourceKind,
    StepCache,
)

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS items (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    source_url TEXT NOT NULL,
    source_kind TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending',
    error_message TEXT,
    title TEXT,
    summary TEXT,
    transcript TEXT,
    domain TEXT,
    content_kind TEXT,
    tags TEXT NOT NULL DEFAULT '[]',
    extracted_entities TEXT NOT NULL DEFAULT '{"repos": [], "tools": [], "techniques": []}',
    repo_url TEXT,
    repo_metadata TEXT,
    raw_data TEXT,
    classification_cost REAL,
    social_cost REAL,
    repo_extraction_cost REAL,
    embedding TEXT,
    captured_at TEXT NOT NULL,
    processed_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_items_user ON items(user_id);

CREATE TABLE IF NOT EXISTS containers (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL COLLATE NOCASE,
    description TEXT,
    item_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (user_id, name)
);

CREATE TABLE IF NOT EXISTS container_items (
    container_id TEXT NOT NULL REFERENCES containers(id) ON DELETE CASCADE,
    item_id TEXT NOT NULL REFERENCES items(id) ON DELETE CASCADE,
    added_at TEXT NOT NULL,
    PRIMARY KEY (container_id, item_id)
);

CREATE TRIGGER IF NOT EXISTS trg_container_items_insert
AFTER INSERT ON container_items
BEGIN
    UPDATE containers
    SET item_count = item_count + 1, updated_at = NEW.added_at
    WHERE id = NEW.container_id;
END;

CREATE TRIGGER IF NOT EXISTS trg_container_items_delete
AFTER DELETE ON container_items
BEGIN
    UPDATE containers SET item_count = item_count - 1 WHERE id = OLD.container_id;
END;

CREATE TABLE IF NOT EXISTS project_anchors (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    tags TEXT NOT NULL DEFAULT '[]'
);

CREATE TABLE IF NOT EXISTS user_interests (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    interest_type TEXT NOT NULL,
    value TEXT NOT NULL,
    weight REAL NOT NULL DEFAULT 0.5,
    occurrence_count INTEGER NOT NULL DEFAULT 1,
    first_seen TEXT NOT NULL,
    last_seen TEXT NOT NULL,
    UNIQUE (user_id, interest_type, value)
);

CREATE TABLE IF NOT EXISTS item_interests (
    item_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    interest_type TEXT NOT NULL,
    value TEXT NOT NULL,
    PRIMARY KEY (item_id, user_id, interest_type, value)
);

CREATE TABLE IF NOT EXISTS workflow_steps (
    run_id TEXT NOT NULL,
    step TEXT NOT NULL,
    payload TEXT NOT NULL,
    completed_at TEXT NOT NULL,
    PRIMARY KEY (run_id, step)
);
"""

ITEM_COLUMNS = {
    "status",
    "error_message",
    "title",
    "summary",
    "transcript",
    "domain",
    "content_kind",
    "tags",
    "extracted_entities",
    "repo_url",
    "repo_metadata",
    "raw_data",
    "classification_cost",
    "social_cost",
    "repo_extraction_cost",
    "processed_at",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_column(value: Any) -> Any:
    """Convert a field value to something SQLite stores."""
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (ExtractedEntities, RepoMetadata)):
        return json.dumps(asdict(value))
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=str)
    return value


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _row_to_item(row: aiosqlite.Row) -> Item:
    entities = json.loads(row["extracted_entities"] or "{}")
    metadata = json.loads(row["repo_metadata"]) if row["repo_metadata"] else None
    return Item(
        id=row["id"],
        user_id=row["user_id"],
        source_url=row["source_url"],
        source_kind=SourceKind(row["source_kind"]),
        status=ItemStatus(row["status"]),
        error_message=row["error_message"],
        title=row["title"],
        summary=row["summary"],
        transcript=row["transcript"],
        domain=row["domain"],
        content_kind=ContentKind(row["content_kind"]) if row["content_kind"] else None,
        tags=json.loads(row["tags"] or "[]"),
        extracted_entities=ExtractedEntities(**entities),
        repo_url=row["repo_url"],
        repo_metadata=RepoMetadata(**metadata) if metadata else None,
        raw_data=json.loads(row["raw_data"]) if row["raw_data"] else None,
        classification_cost=row["classification_cost"],
        social_cost=row["social_cost"],
        repo_extraction_cost=row["repo_extraction_cost"],
        captured_at=_parse_time(row["captured_at"]),
        processed_at=_parse_time(row["processed_at"]),
    )


def _row_to_container(row: aiosqlite.Row) -> Container:
    return Container(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        description=row["description"],
        item_count=row["item_count"],
    )


def _row_to_interest(row: aiosqlite.Row) -> InterestRecord:
    return InterestRecord(
        id=row["id"],
        user_id=row["user_id"],
        type=InterestType(row["interest_type"]),
        value=row["value"],
        weight=row["weight"],
        occurrence_count=row["occurrence_count"],
        first_seen=_parse_time(row["first_seen"]),
        last_seen=_parse_time(row["last_seen"]),
    )


class Database:
    """Connection factory; one connection per operation."""

    def __init__(self, path: Union[str, Path]):
        self.path = str(path)

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        conn = await aiosqlite.connect(self.path)
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA journal_mode=WAL;")
        await conn.execute("PRAGMA foreign_keys=ON;")
        try:
            yield conn
        finally:
            await conn.close()

    async def execute(self, query: str, params: tuple = ()) -> int:
        """Run a write and return the affected row count."""
        async with self.connect() as conn:
            cursor = await conn.execute(query, params)
            await conn.commit()
            return cursor.rowcount

    async def fetchone(self, query: str, params: tuple = ()):
        async with self.connect() as conn:
            cursor = await conn.execute(query, params)
            return await cursor.fetchone()

    async def fetchall(self, query: str, params: tuple = ()):
        async with self.connect() as conn:
            cursor = await conn.execute(query, params)
            return await cursor.fetchall()

    async def init_tables(self) -> None:
        """Create every table, index and trigger."""
        async with self.connect() as conn:
            await conn.executescript(SCHEMA)
            await conn.commit()
        logger.info("Database tables initialized at %s", self.path)


class SqliteItemStore(ItemStore):
    """Item store over a local SQLite database."""

    def __init__(self, database: Database) -> None:
        self.db = database

    async def create_item(self, user_id: str, source_url: str, source_kind: SourceKind) -> Item:
        item = Item(
            id=uuid.uuid4().hex,
            user_id=user_id,
            source_url=source_url,
            source_kind=source_kind,
            captured_at=_now(),
        )
        await self.db.execute(
            """
            INSERT INTO items (id, user_id, source_url, source_kind, status, captured_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                item.id,
                item.user_id,
                item.source_url,
                item.source_kind.value,
                item.status.value,
                _to_column(item.captured_at),
            ),
        )
        return item

    async def get_item(self, item_id: str) -> Optional[Item]:
        row = await self.db.fetchone("SELECT * FROM items WHERE id = ?", (item_id,))
        return _row_to_item(row) if row else None

    async def update_item(self, item_id: str, **fields: Any) -> None:
        unknown = set(fields) - ITEM_COLUMNS
        if unknown:
            raise ValueError(f"Unknown item fields: {sorted(unknown)}")
        if not fields:
            return

        assignments = ", ".join(f"{name} = ?" for name in fields)
        params = tuple(_to_column(value) for value in fields.values()) + (item_id,)
        await self.db.execute(f"UPDATE items SET {assignments} WHERE id = ?", params)

    async def set_embedding(self, item_id: str, vector: list[float]) -> None:
        await self.db.execute(
            "UPDATE items SET embedding = ? WHERE id = ?", (json.dumps(vector), item_id)
        )

    async def get_embedding(self, item_id: str) -> Optional[list[float]]:
        row = await self.db.fetchone("SELECT embedding FROM items WHERE id = ?", (item_id,))
        return json.loads(row["embedding"]) if row and row["embedding"] else None

    async def list_containers(self, user_id: str) -> list[Container]:
        rows = await self.db.fetchall(
            "SELECT * FROM containers WHERE user_id = ? ORDER BY updated_at DESC, created_at DESC",
            (user_id,),
        )
        return [_row_to_container(row) for row in rows]

    async def get_containers(self, user_id: str, container_ids: list[str]) -> list[Container]:
        if not container_ids:
            return []
        placeholders = ", ".join("?" for _ in container_ids)
        rows = await self.db.fetchall(
            f"SELECT * FROM containers WHERE user_id = ? AND id IN ({placeholders})",
            (user_id, *container_ids),
        )
        by_id = {row["id"]: _row_to_container(row) for row in rows}
        return [by_id[cid] for cid in container_ids if cid in by_id]

    async def find_container_by_name(self, user_id: str, name: str) -> Optional[Container]:
        row = await self.db.fetchone(
            "SELECT * FROM containers WHERE user_id = ? AND name = ? COLLATE NOCASE",
            (user_id, name.strip()),
        )
        return _row_to_container(row) if row else None

    async def create_container(
        self, user_id: str, name: str, description: Optional[str]
    ) -> Container:
        now = _to_column(_now())
        await self.db.execute(
            """
            INSERT INTO containers (id, user_id, name, description, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT (user_id, name) DO NOTHING
            """,
            (uuid.uuid4().hex, user_id, name.strip(), description, now, now),
        )
        container = await self.find_container_by_name(user_id, name)
        if container is None:
            raise RuntimeError(f"Container {name!r} missing after insert")
        return container

    async def add_item_to_container(self, container_id: str, item_id: str) -> bool:
        inserted = await self.db.execute(
            """
            INSERT INTO container_items (container_id, item_id, added_at)
            VALUES (?, ?, ?)
            ON CONFLICT (container_id, item_id) DO NOTHING
            """,
            (container_id, item_id, _to_column(_now())),
        )
        return inserted == 1

    async def count_container_items(self, container_id: str) -> int:
        row = await self.db.fetchone(
            "SELECT COUNT(*) AS n FROM container_items WHERE container_id = ?", (container_id,)
        )
        return row["n"]

    async def add_project_anchor(self, user_id: str, anchor: ProjectAnchor) -> None:
        await self.db.execute(
            "INSERT INTO project_anchors (user_id, name, description, tags) VALUES (?, ?, ?, ?)",
            (user_id, anchor.name, anchor.description, json.dumps(anchor.tags)),
        )

    async def list_project_anchors(self, user_id: str) -> list[ProjectAnchor]:
        rows = await self.db.fetchall(
            "SELECT name, description, tags FROM project_anchors WHERE user_id = ? ORDER BY id",
            (user_id,),
        )
        return [
            ProjectAnchor(name=row["name"], description=row["description"], tags=json.loads(row["tags"]))
            for row in rows
        ]

    async def get_interest(
        self, user_id: str, interest_type: InterestType, value: str
    ) -> Optional[InterestRecord]:
        row = await self.db.fetchone(
            """
            SELECT * FROM user_interests
            WHERE user_id = ? AND interest_type = ? AND value = ?
            """,
            (user_id, interest_type.value, value),
        )
        return _row_to_interest(row) if row else None

    async def record_interest(
        self, item_id: str, user_id: str, interest_type: InterestType, value: str, now: datetime
    ) -> InterestRecord:
        """Count one occurrence per item; repeats for the same item leave the row as is.

        The claim and the count update commit together.
        """
        async with self.db.connect() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO item_interests (item_id, user_id, interest_type, value)
                VALUES (?, ?, ?, ?)
                ON CONFLICT DO NOTHING
                """,
                (item_id, user_id, interest_type.value, value),
            )
            if cursor.rowcount == 1:
                await conn.execute(
                    """
                    INSERT INTO user_interests
                    (user_id, interest_type, value, weight, occurrence_count, first_seen, last_seen)
                    VALUES (?, ?, ?, 0.5, 1, ?, ?)
                    ON CONFLICT (user_id, interest_type, value) DO UPDATE SET
                        occurrence_count = occurrence_count + 1,
                        last_seen = excluded.last_seen
                    """,
                    (user_id, interest_type.value, value, _to_column(now), _to_column(now)),
                )
            cursor = await conn.execute(
                """
                SELECT * FROM user_interests
                WHERE user_id = ? AND interest_type = ? AND value = ?
                """,
                (user_id, interest_type.value, value),
            )
            row = await cursor.fetchone()
            await conn.commit()
        return _row_to_interest(row)

    async def update_interest_weight(self, record: InterestRecord) -> None:
        await self.db.execute(
            "UPDATE user_interests SET weight = ? WHERE id = ? AND user_id = ?",
            (record.weight, record.id, record.user_id),
        )


class SqliteStepCache(StepCache):
    """Step results in the ``workflow_steps`` table; they survive a restart."""

    def __init__(self, database: Database) -> None:
        self.db = database

    async def get(self, run_id: str, step: str) -> Optional[str]:
        row = await self.db.fetchone(
            "SELECT payload FROM workflow_steps WHERE run_id = ? AND step = ?", (run_id, step)
        )
        return row["payload"] if row else None

    async def put(self, run_id: str, step: str, payload: str) -> None:
        await self.db.execute(
            """
            INSERT INTO workflow_steps (run_id, step, payload, completed_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (run_id, step) DO UPDATE SET
                payload = excluded.payload, completed_at = excluded.completed_at
            """,
            (run_id, step, payload, _to_column(_now())),
        )

    async def steps(self, run_id: str) -> list[str]:
        rows = await self.db.fetchall(
            "SELECT step FROM workflow_steps WHERE run_id = ? ORDER BY rowid",
            (run_id,),
        )
        return [row["step"] for row in rows]
