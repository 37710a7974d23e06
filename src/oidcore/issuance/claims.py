"""Claims assembly for access and identity tokens."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from typing import Any

from oidcore.models.constants import (
    CLAIM_AMR,
    CLAIM_AUDIENCE,
    CLAIM_AUTH_TIME,
    CLAIM_EXPIRES,
    CLAIM_IDENTITY_PROVIDER,
    CLAIM_ISSUED_AT,
    CLAIM_ISSUER,
    CLAIM_NOT_BEFORE,
    CLAIM_SUBJECT,
    RESERVED_CLAIMS,
)
from oidcore.models.entities import Client, ScopeOwnership
from oidcore.models.grants import GrantOutcome
from oidcore.models.tokens import AccessTokenClaims
from oidcore.observability import get_logger

logger = get_logger(__name__)


def new_token_id() -> str:
    return uuid.uuid4().hex.upper()


class ClaimsAssembler:
    """Build the canonical claim set for a successful grant.

    Audiences are the owning API resources of the granted scopes in
    first-seen order; identity scopes and ``offline_access`` contribute none.
    Subject claims are present only when the grant produced a subject.

    Example:
        >>> assembler = ClaimsAssembler("https://idsvr4", ownership)
        >>> claims = assembler.assemble(client, outcome, ("api1",), now=1700000000)
        >>> claims.aud
        ('api',)
    """

    def __init__(
        self,
        issuer_uri: str,
        ownership: ScopeOwnership,
        *,
        token_id_factory: Callable[[], str] = new_token_id,
    ) -> None:
        self.issuer_uri = issuer_uri
        self._ownership = ownership
        self._token_id_factory = token_id_factory

    @property
    def ownership(self) -> ScopeOwnership:
        return self._ownership

    def assemble(
        self,
        client: Client,
        outcome: GrantOutcome,
        scopes: tuple[str, ...],
        now: int,
    ) -> AccessTokenClaims:
        """Return the access token claims for ``outcome`` restricted to ``scopes``."""
        subject = outcome.subject
        return AccessTokenClaims(
            iss=self.issuer_uri,
            aud=self._ownership.audiences(scopes),
            client_id=client.client_id,
            scopes=scopes,
            amr=outcome.amr,
            iat=now,
            nbf=now,
            exp=now + client.access_token_lifetime,
            jti=self._token_id_factory(),
            sub=subject,
            auth_time=(outcome.auth_time if outcome.auth_time is not None else now)
            if subject is not None
            else None,
            idp=outcome.identity_provider if subject is not None else None,
            extra=self._extra_claims(client, outcome),
        )

    def assemble_identity(self, client: Client, outcome: GrantOutcome, now: int) -> dict[str, Any]:
        """Return the identity token payload; the outcome must carry a subject.

        Raises:
            ValueError: If the outcome has no subject.
        """
        if outcome.subject is None:
            raise ValueError("Identity tokens require a subject")
        return {
            CLAIM_ISSUER: self.issuer_uri,
            CLAIM_AUDIENCE: client.client_id,
            CLAIM_SUBJECT: outcome.subject,
            CLAIM_ISSUED_AT: now,
            CLAIM_NOT_BEFORE: now,
            CLAIM_EXPIRES: now + client.identity_token_lifetime,
            CLAIM_AUTH_TIME: outcome.auth_time if outcome.auth_time is not None else now,
            CLAIM_IDENTITY_PROVIDER: outcome.identity_provider,
            CLAIM_AMR: list(outcome.amr),
        }

    @staticmethod
    def _extra_claims(client: Client, outcome: GrantOutcome) -> dict[str, Any]:
        reserved = sorted(name for name in outcome.claims if name in RESERVED_CLAIMS)
        if reserved:
            logger.warning(
                "oidcore.claims.reserved_dropped",
                client_id=client.client_id,
                claims=reserved,
            )
        return {k: v for k, v in outcome.claims.items() if k not in RESERVED_CLAIMS}
