"""Storage adapters."""

from knowledge_capture.adapters.storage.sqlite_store import Database, SqliteItemStore, SqliteStepCache

__all__ = ["Database", "SqliteItemStore", "SqliteStepCache"]
