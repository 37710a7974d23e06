"""Caller authentication for the token and introspection endpoints.

One authenticator type serves both endpoints: clients authenticate at the
token endpoint, API resources at the introspection endpoint. It runs before
anything else and its failures say nothing about whether the principal
exists.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable
from typing import Callable, Generic, NoReturn, Protocol, TypeVar

from oidcore.auth.secrets import CallerCredentials
from oidcore.errors import UnauthorizedCallerError
from oidcore.models.entities import ApiResource, Client, Secret
from oidcore.observability import get_logger, get_metrics
from oidcore.stores.protocols import ClientStore, ResourceStore
from oidcore.utils.timeouts import run_bounded

logger = get_logger(__name__)


class Principal(Protocol):
    """Anything that authenticates with a shared secret."""

    @property
    def principal_id(self) -> str: ...

    @property
    def secrets(self) -> tuple[Secret, ...]: ...

    @property
    def enabled(self) -> bool: ...


P = TypeVar("P", Client, ApiResource)

Lookup = Callable[[str], Awaitable[P | None]]


class CallerAuthenticator(Generic[P]):
    """Validate caller credentials against a principal registry.

    Example:
        >>> authenticator = CallerAuthenticator.for_clients(client_store)
        >>> client = await authenticator.authenticate(credentials)
    """

    def __init__(
        self,
        lookup: Lookup[P],
        *,
        kind: str,
        timeout: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the authenticator.

        Args:
            lookup: Async principal lookup by identifier.
            kind: "client" or "resource"; used in logs and metrics labels.
            timeout: Budget for the lookup in seconds.
            clock: Time source for secret expiry checks.
        """
        self._lookup = lookup
        self._kind = kind
        self._timeout = timeout
        self._clock = clock

    @classmethod
    def for_clients(
        cls,
        store: ClientStore,
        *,
        timeout: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> CallerAuthenticator[Client]:
        return CallerAuthenticator(store.find_client, kind="client", timeout=timeout, clock=clock)

    @classmethod
    def for_resources(
        cls,
        store: ResourceStore,
        *,
        timeout: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> CallerAuthenticator[ApiResource]:
        return CallerAuthenticator(
            store.find_api_resource, kind="resource", timeout=timeout, clock=clock
        )

    @property
    def kind(self) -> str:
        return self._kind

    async def authenticate(self, credentials: CallerCredentials | None) -> P:
        """Return the authenticated principal.

        Raises:
            UnauthorizedCallerError: Missing credentials, unknown or disabled
                principal, or no matching unexpired secret.
            ServiceUnavailableError: The lookup exceeded its budget.
        """
        if credentials is None:
            self._reject("missing_credentials", None)

        principal_id = credentials.principal_id
        principal = await run_bounded(
            self._lookup(principal_id), self._timeout, f"{self._kind}_lookup"
        )
        if principal is None:
            self._reject("unknown", principal_id)
        if not principal.enabled:
            self._reject("disabled", principal_id)
        if not credentials.secret:
            self._reject("missing_secret", principal_id)

        now = self._clock()
        if not any(secret.matches(credentials.secret, now) for secret in principal.secrets):
            self._reject("secret_mismatch", principal_id)

        logger.debug(
            "oidcore.auth.authenticated",
            kind=self._kind,
            principal_id=principal_id,
            source=credentials.source,
        )
        return principal

    def _reject(self, reason: str, principal_id: str | None) -> NoReturn:
        logger.warning(
            "oidcore.auth.failed",
            kind=self._kind,
            principal_id=principal_id,
            reason=reason,
        )
        get_metrics().increment_counter("oidcore_client_auth_failures_total", {"kind": self._kind})
        raise UnauthorizedCallerError(reason, principal_id)
