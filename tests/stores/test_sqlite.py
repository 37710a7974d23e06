"""Tests for the SQLite token store."""

from pathlib import Path

import pytest

from oidcore.errors import DuplicateTokenError
from oidcore.models.tokens import IssuedToken
from oidcore.stores.protocols import TokenStore
from oidcore.stores.sqlite import SQLiteTokenStore


def _record(key: str, expires_at: int = 200, subject: str | None = "bob") -> IssuedToken:
    return IssuedToken(
        key=key,
        client_id="roclient",
        subject=subject,
        scopes=("api1", "offline_access"),
        scope_owners={"api1": "api"},
        audiences=("api",),
        claims={"iss": "https://idsvr4", "scope": ["api1", "offline_access"], "amr": ["password"]},
        created_at=100,
        not_before=100,
        expires_at=expires_at,
    )


@pytest.fixture
def store(tmp_path: Path) -> SQLiteTokenStore:
    return SQLiteTokenStore(db_path=tmp_path / "tokens.db")


async def test_round_trip_preserves_record(store: SQLiteTokenStore) -> None:
    record = _record("k1")
    await store.store(record)
    assert await store.get("k1") == record


async def test_missing_key(store: SQLiteTokenStore) -> None:
    assert await store.get("missing") is None


async def test_write_once(store: SQLiteTokenStore) -> None:
    """Verify the primary key makes records write-once."""
    await store.store(_record("k1"))
    with pytest.raises(DuplicateTokenError):
        await store.store(_record("k1", subject=None))
    stored = await store.get("k1")
    assert stored is not None
    assert stored.subject == "bob"


async def test_remove(store: SQLiteTokenStore) -> None:
    await store.store(_record("k1"))
    assert await store.remove("k1") is True
    assert await store.remove("k1") is False


async def test_purge_expired(store: SQLiteTokenStore) -> None:
    await store.store(_record("old", expires_at=150))
    await store.store(_record("new", expires_at=500))
    assert await store.purge_expired(150) == 1
    assert await store.get("old") is None
    assert await store.get("new") is not None


async def test_survives_new_instance(tmp_path: Path) -> None:
    """Verify records persist across store instances."""
    path = tmp_path / "tokens.db"
    first = SQLiteTokenStore(db_path=path)
    await first.initialize()
    await first.store(_record("k1"))
    assert await SQLiteTokenStore(db_path=path).get("k1") is not None


def test_satisfies_protocol(store: SQLiteTokenStore) -> None:
    assert isinstance(store, TokenStore)
