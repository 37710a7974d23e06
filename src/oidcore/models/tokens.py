"""Token claims, token responses, store records and introspection results."""

from __future__ import annotations

import time
from typing import Any, Literal

from pydantic import Field

from oidcore.models.base import OIDCoreBaseModel
from oidcore.models.constants import (
    CLAIM_AMR,
    CLAIM_AUDIENCE,
    CLAIM_AUTH_TIME,
    CLAIM_CLIENT_ID,
    CLAIM_EXPIRES,
    CLAIM_IDENTITY_PROVIDER,
    CLAIM_ISSUED_AT,
    CLAIM_ISSUER,
    CLAIM_JWT_ID,
    CLAIM_NOT_BEFORE,
    CLAIM_SCOPE,
    CLAIM_SUBJECT,
    STANDARD_RESPONSE_FIELDS,
    TOKEN_KIND_ACCESS,
    TOKEN_KIND_REFRESH,
    TOKEN_TYPE_BEARER,
)


def audience_value(audiences: tuple[str, ...]) -> str | list[str] | None:
    """Serialize audiences: scalar for one, array for several, None for none."""
    if not audiences:
        return None
    if len(audiences) == 1:
        return audiences[0]
    return list(audiences)


class AccessTokenClaims(OIDCoreBaseModel):
    """Canonical access token claim set.

    One ordered scope tuple backs both projections: an array in the token
    payload and a space-delimited string in introspection responses.
    """

    iss: str
    aud: tuple[str, ...] = Field(default_factory=tuple)
    client_id: str
    scopes: tuple[str, ...] = Field(default_factory=tuple)
    amr: tuple[str, ...] = Field(default_factory=tuple)
    iat: int
    nbf: int
    exp: int
    jti: str
    sub: str | None = None
    auth_time: int | None = None
    idp: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    def scope_list(self) -> list[str]:
        return list(self.scopes)

    def scope_string(self) -> str:
        return " ".join(self.scopes)

    def to_payload(self) -> dict[str, Any]:
        """JWT payload; subject claims only when there is a subject."""
        payload: dict[str, Any] = {
            CLAIM_ISSUER: self.iss,
            CLAIM_NOT_BEFORE: self.nbf,
            CLAIM_ISSUED_AT: self.iat,
            CLAIM_EXPIRES: self.exp,
        }
        aud = audience_value(self.aud)
        if aud is not None:
            payload[CLAIM_AUDIENCE] = aud
        payload[CLAIM_SCOPE] = self.scope_list()
        if self.amr:
            payload[CLAIM_AMR] = list(self.amr)
        payload[CLAIM_CLIENT_ID] = self.client_id
        if self.sub is not None:
            payload[CLAIM_SUBJECT] = self.sub
            if self.auth_time is not None:
                payload[CLAIM_AUTH_TIME] = self.auth_time
            if self.idp is not None:
                payload[CLAIM_IDENTITY_PROVIDER] = self.idp
        payload[CLAIM_JWT_ID] = self.jti
        for name, value in self.extra.items():
            payload.setdefault(name, value)
        return payload


class TokenResponse(OIDCoreBaseModel):
    """Token endpoint response.

    ``custom`` holds fields added by the customization hook. ``to_wire``
    renders them after the standard fields and never lets them replace one.
    On error the token fields and ``token_type`` are None and ``expires_in``
    is 0.
    """

    access_token: str | None = None
    token_type: str | None = None
    expires_in: int = 0
    identity_token: str | None = Field(default=None, alias="id_token")
    refresh_token: str | None = None
    scope: str | None = None
    error: str | None = None
    error_description: str | None = None
    custom: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def for_error(cls, error: str, description: str | None = None) -> TokenResponse:
        return cls(error=error, error_description=description)

    @classmethod
    def bearer(
        cls,
        access_token: str,
        expires_in: int,
        *,
        scope: str | None = None,
        identity_token: str | None = None,
        refresh_token: str | None = None,
    ) -> TokenResponse:
        return cls(
            access_token=access_token,
            token_type=TOKEN_TYPE_BEARER,
            expires_in=expires_in,
            scope=scope,
            identity_token=identity_token,
            refresh_token=refresh_token,
        )

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def with_custom(self, fields: dict[str, Any]) -> TokenResponse:
        """Return a copy carrying ``fields`` minus any standard field names."""
        allowed = {k: v for k, v in fields.items() if k not in STANDARD_RESPONSE_FIELDS}
        return self.model_copy(update={"custom": {**self.custom, **allowed}})

    def standard_fields(self) -> dict[str, Any]:
        if self.is_error:
            body: dict[str, Any] = {"error": self.error, "expires_in": self.expires_in}
            if self.error_description is not None:
                body["error_description"] = self.error_description
            return body
        body = {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
        }
        if self.identity_token is not None:
            body["id_token"] = self.identity_token
        if self.refresh_token is not None:
            body["refresh_token"] = self.refresh_token
        if self.scope is not None:
            body["scope"] = self.scope
        return body

    def to_wire(self) -> dict[str, Any]:
        body = self.standard_fields()
        for name, value in self.custom.items():
            if name not in STANDARD_RESPONSE_FIELDS:
                body.setdefault(name, value)
        return body


class IssuedToken(OIDCoreBaseModel):
    """Token store record.

    Attributes:
        key: Hex SHA-256 of the token value (handle or JWT); never the value itself.
        kind: "access_token" or "refresh_token".
        client_id: Owning client.
        subject: Resource owner, if any.
        scopes: Granted scopes in canonical order.
        scope_owners: Scope -> owning API resource for every API scope granted.
        audiences: Owning resources in first-seen order.
        claims: The full access token claim set (for refresh tokens: the
            claims of the grant the refresh token can replay).
        created_at: Unix time of issuance.
        not_before: Unix time before which the token is not active.
        expires_at: Unix time at which the token stops being active.
    """

    key: str = Field(..., min_length=1)
    kind: Literal["access_token", "refresh_token"] = TOKEN_KIND_ACCESS
    client_id: str
    subject: str | None = None
    scopes: tuple[str, ...] = Field(default_factory=tuple)
    scope_owners: dict[str, str] = Field(default_factory=dict)
    audiences: tuple[str, ...] = Field(default_factory=tuple)
    claims: dict[str, Any] = Field(default_factory=dict)
    created_at: int
    not_before: int
    expires_at: int

    @property
    def is_refresh_token(self) -> bool:
        return self.kind == TOKEN_KIND_REFRESH

    def is_active_at(self, now: float | None = None) -> bool:
        moment = now if now is not None else time.time()
        return self.not_before <= moment < self.expires_at

    def visible_to(self, resource_name: str) -> tuple[str, ...]:
        """Granted scopes that were owned by ``resource_name`` at issuance, in order."""
        return tuple(s for s in self.scopes if self.scope_owners.get(s) == resource_name)


class IntrospectionResult(OIDCoreBaseModel):
    """Introspection answer; claims are present only when active."""

    active: bool
    claims: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def inactive(cls) -> IntrospectionResult:
        return cls(active=False)

    def to_wire(self) -> dict[str, Any]:
        if not self.active:
            return {"active": False}
        return {**self.claims, "active": True}
