"""OAuth2 token introspection (RFC 7662) for registered API resources.

A resource only ever sees the part of a token that concerns it: the
``scope`` it receives lists the granted scopes it owns, and a token
granting it nothing is reported inactive. Every other claim is returned
as issued.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from oidcore.auth.authenticator import CallerAuthenticator
from oidcore.auth.secrets import CallerCredentials
from oidcore.errors import MalformedRequestError, TokenSigningError
from oidcore.issuance.signing import TokenSigner, looks_like_jwt
from oidcore.models.constants import CLAIM_SCOPE
from oidcore.models.entities import ApiResource
from oidcore.models.tokens import IntrospectionResult, IssuedToken
from oidcore.observability import get_logger, get_metrics
from oidcore.stores.protocols import TokenStore
from oidcore.utils.hashing import token_key
from oidcore.utils.timeouts import run_bounded

logger = get_logger(__name__)


class IntrospectionService:
    """Answer introspection requests from API resources.

    Lookups are read-only, so repeated calls for the same token and
    resource give the same answer until the token expires.

    Example:
        >>> service = IntrospectionService(
        ...     authenticator=CallerAuthenticator.for_resources(resources),
        ...     token_store=tokens,
        ...     signer=signer,
        ... )
        >>> result = await service.introspect(credentials, token)
        >>> result.to_wire()["scope"]
        'api3-a api3-b'
    """

    def __init__(
        self,
        *,
        authenticator: CallerAuthenticator[ApiResource],
        token_store: TokenStore,
        signer: TokenSigner,
        store_timeout: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._authenticator = authenticator
        self._tokens = token_store
        self._signer = signer
        self._store_timeout = store_timeout
        self._clock = clock

    async def introspect(
        self, credentials: CallerCredentials | None, token: str | None
    ) -> IntrospectionResult:
        """Introspect ``token`` on behalf of the resource behind ``credentials``.

        Raises:
            UnauthorizedCallerError: The resource failed authentication.
            MalformedRequestError: No token was supplied.
            ServiceUnavailableError: The token store timed out.
        """
        resource = await self._authenticator.authenticate(credentials)
        if token is None or not token.strip():
            raise MalformedRequestError("token is required")

        result = await self._resolve(resource, token.strip())
        get_metrics().increment_counter(
            "oidcore_introspection_requests_total",
            {"status": "active" if result.active else "inactive"},
        )
        return result

    async def _resolve(self, resource: ApiResource, token: str) -> IntrospectionResult:
        now = self._clock()
        if looks_like_jwt(token):
            try:
                self._signer.verify(token, now=now)
            except TokenSigningError as exc:
                return self._inactive(resource, "invalid_jwt", error=exc.message)

        record = await run_bounded(
            self._tokens.get(token_key(token)), self._store_timeout, "token_lookup"
        )
        if record is None:
            return self._inactive(resource, "unknown")
        if record.is_refresh_token:
            return self._inactive(resource, "not_access_token")
        if not record.is_active_at(now):
            return self._inactive(resource, "expired")

        visible = record.visible_to(resource.name)
        if not visible:
            return self._inactive(resource, "no_visible_scopes", client_id=record.client_id)

        logger.info(
            "oidcore.introspection.active",
            resource=resource.name,
            client_id=record.client_id,
            scopes=list(visible),
        )
        return IntrospectionResult(active=True, claims=self._visible_claims(record, visible))

    @staticmethod
    def _visible_claims(record: IssuedToken, visible: tuple[str, ...]) -> dict[str, object]:
        claims = dict(record.claims)
        claims[CLAIM_SCOPE] = " ".join(visible)
        return claims

    @staticmethod
    def _inactive(resource: ApiResource, reason: str, **details: object) -> IntrospectionResult:
        logger.info(
            "oidcore.introspection.inactive",
            resource=resource.name,
            reason=reason,
            **details,
        )
        return IntrospectionResult.inactive()
