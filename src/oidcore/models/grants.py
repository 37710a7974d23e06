"""Grant request, validation context and grant outcome records."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from oidcore.models.base import OIDCoreBaseModel
from oidcore.models.constants import (
    DEFAULT_IDENTITY_PROVIDER,
    ERROR_INVALID_GRANT,
    INVALID_CREDENTIAL,
)
from oidcore.models.entities import Client


class GrantRequest(OIDCoreBaseModel):
    """One token request, as received.

    Attributes:
        grant_type: The ``grant_type`` form field.
        client_id: The authenticated client's identifier.
        scopes: Requested scopes, de-duplicated, in request order.
        scope_requested: False when the ``scope`` field was absent or blank.
        parameters: Every other form field (username, password, outcome, ...).
    """

    grant_type: str = Field(..., min_length=1)
    client_id: str
    scopes: tuple[str, ...] = Field(default_factory=tuple)
    scope_requested: bool = False
    parameters: dict[str, str] = Field(default_factory=dict)

    def param(self, name: str) -> str | None:
        """Return a non-blank parameter value, or None."""
        value = self.parameters.get(name)
        if value is None or not value.strip():
            return None
        return value


class GrantValidationContext(OIDCoreBaseModel):
    """What a grant validator sees.

    ``scopes`` are already checked against the client's allowed scopes and
    the known resources; a validator may narrow them but never widen them.
    """

    client: Client
    request: GrantRequest
    scopes: tuple[str, ...]
    now: int


class GrantOutcome(OIDCoreBaseModel):
    """Result of a grant validator.

    On success ``amr`` must be non-empty; ``subject`` is None for grants
    without a resource owner. On failure ``error`` carries the OAuth error
    code. Use the ``succeed``/``fail`` factories rather than the constructor.
    """

    success: bool
    subject: str | None = None
    amr: tuple[str, ...] = Field(default_factory=tuple)
    scopes: tuple[str, ...] | None = None
    auth_time: int | None = None
    identity_provider: str = DEFAULT_IDENTITY_PROVIDER
    claims: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None
    error_description: str | None = None

    @classmethod
    def succeed(
        cls,
        *,
        amr: str | tuple[str, ...] | list[str],
        subject: str | None = None,
        scopes: tuple[str, ...] | None = None,
        auth_time: int | None = None,
        identity_provider: str = DEFAULT_IDENTITY_PROVIDER,
        claims: dict[str, Any] | None = None,
    ) -> GrantOutcome:
        methods = (amr,) if isinstance(amr, str) else tuple(amr)
        return cls(
            success=True,
            subject=subject,
            amr=methods,
            scopes=scopes,
            auth_time=auth_time,
            identity_provider=identity_provider,
            claims=claims or {},
        )

    @classmethod
    def fail(
        cls,
        error: str = ERROR_INVALID_GRANT,
        description: str | None = INVALID_CREDENTIAL,
    ) -> GrantOutcome:
        return cls(success=False, error=error, error_description=description)

    @property
    def has_subject(self) -> bool:
        return self.subject is not None
