"""Store interfaces.

Persistence is an external collaborator: the provider only talks to these
protocols. In-memory and SQLite implementations ship for tests and single
node deployments.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from oidcore.models.entities import ApiResource, Client, IdentityResource, User
from oidcore.models.tokens import IssuedToken


@runtime_checkable
class TokenStore(Protocol):
    """Write-once, read-many storage for issued tokens.

    Records are keyed by ``IssuedToken.key`` and never updated in place.
    Implementations must allow concurrent inserts and lookups without a
    global lock and must make ``store`` atomic: a record is either fully
    visible or absent.
    """

    async def store(self, record: IssuedToken) -> None:
        """Insert ``record``.

        Raises:
            DuplicateTokenError: If a record with the same key exists.
        """
        ...

    async def get(self, key: str) -> IssuedToken | None:
        """Return the record for ``key`` or None."""
        ...

    async def remove(self, key: str) -> bool:
        """Delete the record for ``key``; True if something was deleted."""
        ...

    async def purge_expired(self, now: int) -> int:
        """Delete records whose ``expires_at`` is at or before ``now``; return the count."""
        ...


@runtime_checkable
class ClientStore(Protocol):
    """Read-only client registry."""

    async def find_client(self, client_id: str) -> Client | None: ...


@runtime_checkable
class ResourceStore(Protocol):
    """Read-only API and identity resource registry."""

    async def find_api_resource(self, name: str) -> ApiResource | None: ...

    async def list_api_resources(self) -> list[ApiResource]: ...

    async def list_identity_resources(self) -> list[IdentityResource]: ...


@runtime_checkable
class UserStore(Protocol):
    """Resource-owner lookup for the password grant."""

    async def find_by_username(self, username: str) -> User | None: ...
