"""SQLite-backed TokenStore (persistent, file-based)."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import aiosqlite

from oidcore.errors import DuplicateTokenError
from oidcore.models.tokens import IssuedToken

DEFAULT_DB_PATH = "oidcore_tokens.db"
TOKENS_TABLE = "issued_tokens"


def _record_to_row(record: IssuedToken) -> tuple[str, str, str, str | None, int, str]:
    """Serialize IssuedToken to DB row (key, kind, client_id, subject, expires_at, data)."""
    return (
        record.key,
        record.kind,
        record.client_id,
        record.subject,
        record.expires_at,
        record.model_dump_json(),
    )


def _row_to_record(row: tuple[Any, ...]) -> IssuedToken:
    return IssuedToken.model_validate_json(row[0])


class SQLiteTokenStore:
    """SQLite TokenStore; tokens survive process restarts.

    Each insert is a single primary-key INSERT committed in its own
    transaction, so a cancelled write leaves either the whole record or
    nothing.
    """

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def _ensure_table(self, conn: aiosqlite.Connection) -> None:
        await conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {TOKENS_TABLE} (
                key TEXT PRIMARY KEY,
                kind TEXT NOT NULL,
                client_id TEXT NOT NULL,
                subject TEXT,
                expires_at INTEGER NOT NULL,
                data TEXT NOT NULL
            )
            """
        )
        await conn.execute(
            f"CREATE INDEX IF NOT EXISTS idx_{TOKENS_TABLE}_expires ON {TOKENS_TABLE} (expires_at)"
        )
        await conn.commit()

    async def initialize(self) -> None:
        """Create the table if it does not exist."""
        async with aiosqlite.connect(self._db_path) as conn:
            await self._ensure_table(conn)

    async def store(self, record: IssuedToken) -> None:
        async with aiosqlite.connect(self._db_path) as conn:
            await self._ensure_table(conn)
            try:
                await conn.execute(
                    f"""
                    INSERT INTO {TOKENS_TABLE}
                    (key, kind, client_id, subject, expires_at, data)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    _record_to_row(record),
                )
                await conn.commit()
            except aiosqlite.IntegrityError as exc:
                await conn.rollback()
                raise DuplicateTokenError(record.key) from exc

    async def get(self, key: str) -> IssuedToken | None:
        async with aiosqlite.connect(self._db_path) as conn:
            await self._ensure_table(conn)
            cursor = await conn.execute(
                f"SELECT data FROM {TOKENS_TABLE} WHERE key = ?",
                (key,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return _row_to_record(tuple(row))

    async def remove(self, key: str) -> bool:
        async with aiosqlite.connect(self._db_path) as conn:
            await self._ensure_table(conn)
            cursor = await conn.execute(f"DELETE FROM {TOKENS_TABLE} WHERE key = ?", (key,))
            await conn.commit()
            return bool(cursor.rowcount)

    async def purge_expired(self, now: int) -> int:
        async with aiosqlite.connect(self._db_path) as conn:
            await self._ensure_table(conn)
            cursor = await conn.execute(
                f"DELETE FROM {TOKENS_TABLE} WHERE expires_at <= ?",
                (now,),
            )
            await conn.commit()
            return cursor.rowcount if cursor.rowcount is not None else 0
