"""oidcore storage backends.

Protocols (TokenStore, ClientStore, ResourceStore, UserStore) live in
stores.protocols; in-memory implementations in stores.memory and the
SQLite token store in stores.sqlite.

Factory:
- create_token_store() builds a TokenStore from OIDCORE_STORE_BACKEND
  and OIDCORE_STORE_PATH (default: memory, oidcore_tokens.db).
"""

import os
from pathlib import Path

from oidcore.stores.memory import (
    InMemoryClientStore,
    InMemoryResourceStore,
    InMemoryTokenStore,
    InMemoryUserStore,
)
from oidcore.stores.protocols import ClientStore, ResourceStore, TokenStore, UserStore
from oidcore.stores.sqlite import DEFAULT_DB_PATH, SQLiteTokenStore

OIDCORE_STORE_BACKEND_ENV = "OIDCORE_STORE_BACKEND"
OIDCORE_STORE_PATH_ENV = "OIDCORE_STORE_PATH"


def create_token_store() -> TokenStore:
    """Create a TokenStore from environment.

    Reads OIDCORE_STORE_BACKEND (default "memory") and OIDCORE_STORE_PATH
    (default "oidcore_tokens.db" for sqlite).

    Raises:
        ValueError: If OIDCORE_STORE_BACKEND is not "memory" or "sqlite".
    """
    backend = os.environ.get(OIDCORE_STORE_BACKEND_ENV, "memory").strip().lower()
    path = os.environ.get(OIDCORE_STORE_PATH_ENV, DEFAULT_DB_PATH).strip()

    if backend == "memory":
        return InMemoryTokenStore()
    if backend == "sqlite":
        return SQLiteTokenStore(db_path=Path(path))
    raise ValueError(
        f"Unknown {OIDCORE_STORE_BACKEND_ENV}={backend!r}. Use 'memory' or 'sqlite'."
    )


__all__ = [
    "ClientStore",
    "InMemoryClientStore",
    "InMemoryResourceStore",
    "InMemoryTokenStore",
    "InMemoryUserStore",
    "ResourceStore",
    "SQLiteTokenStore",
    "TokenStore",
    "UserStore",
    "create_token_store",
]
