"""Tests for the environment-driven token store factory."""

from pathlib import Path

import pytest

from oidcore.stores import create_token_store
from oidcore.stores.memory import InMemoryTokenStore
from oidcore.stores.sqlite import SQLiteTokenStore


def test_default_is_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OIDCORE_STORE_BACKEND", raising=False)
    assert isinstance(create_token_store(), InMemoryTokenStore)


def test_sqlite_backend(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("OIDCORE_STORE_BACKEND", " SQLite ")
    monkeypatch.setenv("OIDCORE_STORE_PATH", str(tmp_path / "t.db"))
    assert isinstance(create_token_store(), SQLiteTokenStore)


def test_unknown_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OIDCORE_STORE_BACKEND", "redis")
    with pytest.raises(ValueError, match="OIDCORE_STORE_BACKEND"):
        create_token_store()
