"""In-memory store implementations.

Useful for tests and single-process deployments that don't need tokens to
survive a restart.
"""

from __future__ import annotations

from collections.abc import Iterable

from oidcore.errors import DuplicateTokenError
from oidcore.models.entities import ApiResource, Client, IdentityResource, User
from oidcore.models.tokens import IssuedToken

DEFAULT_PURGE_EVERY = 1000


class InMemoryTokenStore:
    """In-memory TokenStore.

    Inserts go through ``dict.setdefault``, which is atomic under the GIL, so
    a key is written exactly once without a store-wide lock. Reads are plain
    dict lookups of immutable records.

    Every ``purge_every`` writes the store drops records already expired at
    the newest record's creation time. ``purge_every=0`` disables this and
    leaves cleanup to explicit ``purge_expired`` calls.
    """

    def __init__(self, purge_every: int = DEFAULT_PURGE_EVERY) -> None:
        if purge_every < 0:
            raise ValueError("purge_every must be >= 0")
        self._records: dict[str, IssuedToken] = {}
        self._purge_every = purge_every
        self._writes = 0

    async def store(self, record: IssuedToken) -> None:
        existing = self._records.setdefault(record.key, record)
        if existing is not record:
            raise DuplicateTokenError(record.key)
        self._writes += 1
        if self._purge_every and self._writes % self._purge_every == 0:
            await self.purge_expired(record.created_at)

    async def get(self, key: str) -> IssuedToken | None:
        return self._records.get(key)

    async def remove(self, key: str) -> bool:
        return self._records.pop(key, None) is not None

    async def purge_expired(self, now: int) -> int:
        expired = [key for key, record in list(self._records.items()) if record.expires_at <= now]
        removed = 0
        for key in expired:
            if self._records.pop(key, None) is not None:
                removed += 1
        return removed

    def __len__(self) -> int:
        return len(self._records)


class InMemoryClientStore:
    """Client registry backed by a dict built once at construction."""

    def __init__(self, clients: Iterable[Client] = ()) -> None:
        self._clients = {client.client_id: client for client in clients}

    async def find_client(self, client_id: str) -> Client | None:
        return self._clients.get(client_id)


class InMemoryResourceStore:
    """API and identity resources built once at construction."""

    def __init__(
        self,
        api_resources: Iterable[ApiResource] = (),
        identity_resources: Iterable[IdentityResource] = (),
    ) -> None:
        self._api = {resource.name: resource for resource in api_resources}
        self._identity = list(identity_resources)

    async def find_api_resource(self, name: str) -> ApiResource | None:
        return self._api.get(name)

    async def list_api_resources(self) -> list[ApiResource]:
        return list(self._api.values())

    async def list_identity_resources(self) -> list[IdentityResource]:
        return list(self._identity)


class InMemoryUserStore:
    """Users keyed by username."""

    def __init__(self, users: Iterable[User] = ()) -> None:
        self._users = {user.username: user for user in users}

    async def find_by_username(self, username: str) -> User | None:
        return self._users.get(username)


__all__ = [
    "InMemoryClientStore",
    "InMemoryResourceStore",
    "InMemoryTokenStore",
    "InMemoryUserStore",
]
