"""PatternStore — aiosqlite persistence for the learned pattern table."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import aiosqlite

from cognition.config import settings

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS learning_patterns (
    key TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


@runtime_checkable
class DurableStore(Protocol):
    """Where the learning engine flushes its pattern table."""

    async def load_patterns(self, key: str) -> dict[str, Any]:
        """Return the saved payload; always contains a ``"patterns"`` mapping."""
        ...

    async def save_patterns(self, key: str, payload: dict[str, Any]) -> bool:
        """Persist *payload* under *key*. Returns True on success."""
        ...


class PatternStore:
    """Persists pattern snapshots in SQLite, one JSON payload per key.

    Pass an explicit *db_path* for test isolation (e.g. ``tmp_path / "test.db"``).
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path or settings.database_path
        self._initialised = False

    # -- Internal helpers ------------------------------------------------------

    async def _connect(self) -> aiosqlite.Connection:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        db = await aiosqlite.connect(str(self._db_path))
        if not self._initialised:
            await db.execute(_CREATE_TABLE)
            await db.commit()
            self._initialised = True
        return db

    # -- Operations ------------------------------------------------------------

    async def load_patterns(self, key: str) -> dict[str, Any]:
        """Fetch the payload saved under *key*, or an empty pattern map."""
        db = await self._connect()
        try:
            cursor = await db.execute(
                "SELECT payload FROM learning_patterns WHERE key = ?", (key,)
            )
            row = await cursor.fetchone()
        finally:
            await db.close()

        if row is None:
            return {"patterns": {}}
        try:
            data = json.loads(row[0])
        except json.JSONDecodeError:
            logger.warning("Stored patterns for '%s' are not valid JSON; ignoring", key)
            return {"patterns": {}}
        data.setdefault("patterns", {})
        return data

    async def save_patterns(self, key: str, payload: dict[str, Any]) -> bool:
        """Upsert *payload* under *key*. Returns False if the database rejects it."""
        try:
            db = await self._connect()
            try:
                await db.execute(
                    """
                    INSERT INTO learning_patterns (key, payload, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        payload = excluded.payload,
                        updated_at = excluded.updated_at
                    """,
                    (key, json.dumps(payload, default=str), datetime.now(UTC).isoformat()),
                )
                await db.commit()
            finally:
                await db.close()
        except (aiosqlite.Error, OSError):
            logger.exception("Failed to save patterns under '%s'", key)
            return False
        logger.info("Saved %d pattern(s) under '%s'", len(payload.get("patterns", {})), key)
        return True
