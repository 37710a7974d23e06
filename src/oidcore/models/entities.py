"""Configuration entities: clients, resources, users and scope ownership.

These are loaded once by the host (configuration loading is external) and
are immutable for the lifetime of a request.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

from pydantic import Field, field_validator

from oidcore.models.base import OIDCoreBaseModel
from oidcore.models.constants import (
    ACCESS_TOKEN_JWT,
    ACCESS_TOKEN_REFERENCE,
    DEFAULT_ACCESS_TOKEN_LIFETIME,
    DEFAULT_IDENTITY_TOKEN_LIFETIME,
    DEFAULT_REFRESH_TOKEN_LIFETIME,
)
from oidcore.utils.hashing import constant_time_equals, hash_secret


class Secret(OIDCoreBaseModel):
    """A hashed shared secret.

    Only the SHA-256 digest is kept. An expired secret never matches.

    Attributes:
        value: base64 SHA-256 digest of the plaintext secret.
        description: Optional operator note.
        expiration: Unix timestamp after which the secret is rejected.
    """

    value: str = Field(..., min_length=1, description="Hashed secret value")
    description: str | None = Field(default=None, description="Operator note")
    expiration: int | None = Field(default=None, description="Unix expiry of the secret")

    @classmethod
    def from_plaintext(
        cls,
        plaintext: str,
        *,
        description: str | None = None,
        expiration: int | None = None,
    ) -> Secret:
        """Hash ``plaintext`` and wrap it."""
        return cls(value=hash_secret(plaintext), description=description, expiration=expiration)

    def is_expired(self, now: float | None = None) -> bool:
        if self.expiration is None:
            return False
        return (now if now is not None else time.time()) >= self.expiration

    def matches(self, plaintext: str, now: float | None = None) -> bool:
        """Constant-time comparison of ``plaintext`` against the stored digest."""
        if self.is_expired(now):
            return False
        return constant_time_equals(hash_secret(plaintext), self.value)


class Client(OIDCoreBaseModel):
    """A registered OAuth2 client.

    Attributes:
        client_id: Unique client identifier.
        client_secrets: Accepted secrets (hashed).
        allowed_grant_types: Grant types the client may use.
        allowed_scopes: Scopes the client may request.
        enabled: Disabled clients fail authentication.
        allow_offline_access: Whether refresh tokens may be issued.
        allow_identity_tokens: Whether identity tokens may be issued.
        access_token_lifetime: Access token lifetime in seconds.
        identity_token_lifetime: Identity token lifetime in seconds.
        refresh_token_lifetime: Refresh token lifetime in seconds.
        access_token_type: "jwt" (self-contained) or "reference" (opaque handle).
    """

    client_id: str = Field(..., min_length=1)
    client_secrets: tuple[Secret, ...] = Field(default_factory=tuple)
    allowed_grant_types: tuple[str, ...] = Field(default_factory=tuple)
    allowed_scopes: tuple[str, ...] = Field(default_factory=tuple)
    enabled: bool = True
    allow_offline_access: bool = False
    allow_identity_tokens: bool = False
    access_token_lifetime: int = Field(default=DEFAULT_ACCESS_TOKEN_LIFETIME, gt=0)
    identity_token_lifetime: int = Field(default=DEFAULT_IDENTITY_TOKEN_LIFETIME, gt=0)
    refresh_token_lifetime: int = Field(default=DEFAULT_REFRESH_TOKEN_LIFETIME, gt=0)
    access_token_type: Literal["jwt", "reference"] = ACCESS_TOKEN_JWT

    @property
    def principal_id(self) -> str:
        return self.client_id

    @property
    def secrets(self) -> tuple[Secret, ...]:
        return self.client_secrets

    @property
    def uses_reference_tokens(self) -> bool:
        return self.access_token_type == ACCESS_TOKEN_REFERENCE


class ApiResource(OIDCoreBaseModel):
    """A protected API: owns scopes, is an audience, and may introspect tokens.

    Attributes:
        name: Resource identifier, emitted as the ``aud`` value.
        scopes: Names of the scopes this resource owns.
        api_secrets: Secrets the resource presents at the introspection endpoint.
        enabled: Disabled resources fail authentication.
    """

    name: str = Field(..., min_length=1)
    scopes: tuple[str, ...] = Field(default_factory=tuple)
    api_secrets: tuple[Secret, ...] = Field(default_factory=tuple)
    enabled: bool = True

    @property
    def principal_id(self) -> str:
        return self.name

    @property
    def secrets(self) -> tuple[Secret, ...]:
        return self.api_secrets


class IdentityResource(OIDCoreBaseModel):
    """An identity scope such as ``openid`` or ``profile``.

    Identity scopes are grantable but contribute no audience.
    """

    name: str = Field(..., min_length=1)
    user_claims: tuple[str, ...] = Field(default_factory=tuple)


class User(OIDCoreBaseModel):
    """A resource owner known to the password grant's user store."""

    subject_id: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    password_hash: str = Field(..., min_length=1)
    is_active: bool = True
    claims: dict[str, Any] = Field(default_factory=dict)

    @field_validator("claims")
    @classmethod
    def _no_subject_override(cls, value: dict[str, Any]) -> dict[str, Any]:
        if "sub" in value:
            raise ValueError("user claims may not carry 'sub'; use subject_id")
        return value

    @classmethod
    def create(
        cls,
        username: str,
        password: str,
        *,
        subject_id: str | None = None,
        is_active: bool = True,
        claims: dict[str, Any] | None = None,
    ) -> User:
        """Build a user from a plaintext password."""
        return cls(
            subject_id=subject_id or username,
            username=username,
            password_hash=hash_secret(password),
            is_active=is_active,
            claims=claims or {},
        )

    def check_password(self, password: str) -> bool:
        return constant_time_equals(hash_secret(password), self.password_hash)


@dataclass(frozen=True)
class ScopeOwnership:
    """Immutable scope -> owning resource mapping.

    Built once at startup and handed to the claims assembler and the
    introspection service. Every scope is owned by exactly one resource.

    Example:
        >>> ownership = ScopeOwnership.from_resources(
        ...     [ApiResource(name="api3", scopes=("api3-a", "api3-b"))]
        ... )
        >>> ownership.owner("api3-b")
        'api3'
    """

    _owners: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    _identity_scopes: frozenset[str] = frozenset()

    @classmethod
    def from_resources(
        cls,
        api_resources: Iterable[ApiResource],
        identity_resources: Iterable[IdentityResource] = (),
    ) -> ScopeOwnership:
        """Build the mapping.

        Raises:
            ValueError: If a scope is claimed by more than one resource.
        """
        owners: dict[str, str] = {}
        for resource in api_resources:
            for scope in resource.scopes:
                existing = owners.get(scope)
                if existing is not None and existing != resource.name:
                    raise ValueError(
                        f"Scope '{scope}' is owned by both '{existing}' and '{resource.name}'"
                    )
                owners[scope] = resource.name
        identity = frozenset(r.name for r in identity_resources)
        clash = identity & owners.keys()
        if clash:
            raise ValueError(f"Scopes owned by both API and identity resources: {sorted(clash)}")
        return cls(_owners=MappingProxyType(owners), _identity_scopes=identity)

    def owner(self, scope: str) -> str | None:
        """Return the API resource owning ``scope`` (None for identity or unknown scopes)."""
        return self._owners.get(scope)

    def is_known(self, scope: str) -> bool:
        return scope in self._owners or scope in self._identity_scopes

    def is_identity_scope(self, scope: str) -> bool:
        return scope in self._identity_scopes

    def audiences(self, scopes: Iterable[str]) -> tuple[str, ...]:
        """Distinct owning resources of ``scopes`` in first-seen order."""
        seen: dict[str, None] = {}
        for scope in scopes:
            owner = self._owners.get(scope)
            if owner is not None:
                seen.setdefault(owner, None)
        return tuple(seen)

    def owners_of(self, scopes: Iterable[str]) -> dict[str, str]:
        """Map each API scope in ``scopes`` to its owner; identity scopes are skipped."""
        return {s: self._owners[s] for s in scopes if s in self._owners}
