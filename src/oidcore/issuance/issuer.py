"""Token issuance.

``TokenIssuer.issue`` drives one token request end to end:

1. authenticate the client (failure raises ``UnauthorizedCallerError``)
2. check the grant type is registered and allowed for the client
3. validate the requested scopes
4. run the grant validator
5. assemble claims, sign or mint the access token, persist it
6. build the response and pass it through the customization hook

Grant-level rejections come back as error ``TokenResponse`` values, still
customized. Transport-level problems (missing ``grant_type``, collaborator
timeouts, malformed validator outcomes) raise.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Mapping

from authlib.common.security import generate_token

from oidcore.auth.authenticator import CallerAuthenticator
from oidcore.auth.secrets import CLIENT_ID_FIELD, CLIENT_SECRET_FIELD, CallerCredentials
from oidcore.errors import (
    MalformedRequestError,
    OIDCoreError,
    TokenRequestError,
    UnauthorizedCallerError,
    UnauthorizedClientError,
    UnsupportedGrantTypeError,
)
from oidcore.issuance.claims import ClaimsAssembler
from oidcore.issuance.hooks import Customization, CustomizationContext, NoCustomization
from oidcore.issuance.signing import TYP_IDENTITY_TOKEN, TokenSigner
from oidcore.models.constants import (
    ERROR_INVALID_CLIENT,
    SCOPE_OFFLINE_ACCESS,
    SCOPE_OPENID,
    TOKEN_KIND_ACCESS,
    TOKEN_KIND_REFRESH,
)
from oidcore.models.entities import Client
from oidcore.models.grants import GrantOutcome, GrantRequest, GrantValidationContext
from oidcore.models.tokens import AccessTokenClaims, IssuedToken, TokenResponse
from oidcore.observability import get_logger, get_metrics, sanitize_for_logging
from oidcore.stores.protocols import TokenStore
from oidcore.utils.hashing import token_key
from oidcore.utils.timeouts import run_bounded
from oidcore.validation.registry import GrantValidatorRegistry
from oidcore.validation.scopes import ScopeValidator, parse_scope

logger = get_logger(__name__)

GRANT_TYPE_FIELD = "grant_type"
SCOPE_FIELD = "scope"
HANDLE_LENGTH = 48

_NON_GRANT_FIELDS = frozenset({GRANT_TYPE_FIELD, SCOPE_FIELD, CLIENT_ID_FIELD, CLIENT_SECRET_FIELD})


def build_grant_request(client: Client, form: Mapping[str, str]) -> GrantRequest:
    """Turn decoded form fields into a ``GrantRequest``.

    Raises:
        MalformedRequestError: If ``grant_type`` is missing or blank.
    """
    grant_type = (form.get(GRANT_TYPE_FIELD) or "").strip()
    if not grant_type:
        raise MalformedRequestError("grant_type is required")
    raw_scope = form.get(SCOPE_FIELD)
    scopes = parse_scope(raw_scope)
    return GrantRequest(
        grant_type=grant_type,
        client_id=client.client_id,
        scopes=scopes,
        scope_requested=bool(scopes),
        parameters={k: v for k, v in form.items() if k not in _NON_GRANT_FIELDS},
    )


class TokenIssuer:
    """Issue access, refresh and identity tokens for authenticated clients.

    Example:
        >>> issuer = TokenIssuer(
        ...     authenticator=CallerAuthenticator.for_clients(clients),
        ...     registry=registry,
        ...     scope_validator=ScopeValidator(ownership),
        ...     assembler=ClaimsAssembler("https://idsvr4", ownership),
        ...     signer=JoseTokenSigner.generate(),
        ...     token_store=InMemoryTokenStore(),
        ... )
        >>> response = await issuer.issue(credentials, {"grant_type": "client_credentials"})
    """

    def __init__(
        self,
        *,
        authenticator: CallerAuthenticator[Client],
        registry: GrantValidatorRegistry,
        scope_validator: ScopeValidator,
        assembler: ClaimsAssembler,
        signer: TokenSigner,
        token_store: TokenStore,
        customization: Customization | None = None,
        store_timeout: float | None = None,
        customize_client_errors: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._authenticator = authenticator
        self._registry = registry
        self._scopes = scope_validator
        self._assembler = assembler
        self._signer = signer
        self._tokens = token_store
        self._customization: Customization = customization or NoCustomization()
        self._store_timeout = store_timeout
        self._customize_client_errors = customize_client_errors
        self._clock = clock

    @property
    def registry(self) -> GrantValidatorRegistry:
        return self._registry

    async def issue(
        self,
        credentials: CallerCredentials | None,
        form: Mapping[str, str],
    ) -> TokenResponse:
        """Process one token request.

        Returns:
            A success response or a 200-class OAuth error response.

        Raises:
            UnauthorizedCallerError: Client authentication failed.
            MalformedRequestError: ``grant_type`` is missing.
            InvalidGrantOutcomeError: The grant validator misbehaved.
            ServiceUnavailableError: A collaborator timed out.
        """
        client = await self._authenticate(credentials)
        request = build_grant_request(client, form)
        grant_type = request.grant_type
        now = int(self._clock())
        logger.debug(
            "oidcore.token.requested",
            client_id=client.client_id,
            grant_type=grant_type,
            scopes=list(request.scopes),
            parameters=sanitize_for_logging(request.parameters),
        )

        try:
            outcome, scopes = await self._validate(client, request, now)
        except TokenRequestError as exc:
            logger.info(
                "oidcore.token.rejected",
                client_id=client.client_id,
                grant_type=grant_type,
                error=exc.oauth_error,
                details=exc.details,
            )
            response = TokenResponse.for_error(exc.oauth_error, exc.description)
            return await self._finish(response, client, request, None)

        if not outcome.success:
            logger.info(
                "oidcore.token.grant_failed",
                client_id=client.client_id,
                grant_type=grant_type,
                error=outcome.error,
            )
            response = TokenResponse.for_error(outcome.error or "invalid_grant", outcome.error_description)
            return await self._finish(response, client, request, outcome)

        granted = outcome.scopes if outcome.scopes is not None else scopes
        written: list[str] = []
        try:
            response = await self._mint(client, outcome, granted, now, written)
            return await self._finish(response, client, request, outcome)
        except (asyncio.CancelledError, OIDCoreError):
            if written:
                await asyncio.shield(self._discard(written))
            raise

    async def _authenticate(self, credentials: CallerCredentials | None) -> Client:
        try:
            return await self._authenticator.authenticate(credentials)
        except UnauthorizedCallerError as exc:
            if self._customize_client_errors:
                base = TokenResponse.for_error(ERROR_INVALID_CLIENT)
                customized = await self._customization.apply(CustomizationContext(response=base))
                exc.response_body = customized.to_wire()
            get_metrics().increment_counter(
                "oidcore_token_requests_total", {"grant_type": "unknown", "status": "unauthorized"}
            )
            raise

    async def _validate(
        self, client: Client, request: GrantRequest, now: int
    ) -> tuple[GrantOutcome, tuple[str, ...]]:
        grant_type = request.grant_type
        if not self._registry.has_validator(grant_type):
            raise UnsupportedGrantTypeError(grant_type)
        if grant_type not in client.allowed_grant_types:
            raise UnauthorizedClientError(client.client_id, grant_type)
        scopes = self._scopes.validate(client, request)
        context = GrantValidationContext(client=client, request=request, scopes=scopes, now=now)
        outcome = await self._registry.validate(context)
        return outcome, scopes

    async def _mint(
        self,
        client: Client,
        outcome: GrantOutcome,
        scopes: tuple[str, ...],
        now: int,
        written: list[str],
    ) -> TokenResponse:
        claims = self._assembler.assemble(client, outcome, scopes, now)
        payload = claims.to_payload()
        if client.uses_reference_tokens:
            access_token = generate_token(HANDLE_LENGTH)
        else:
            access_token = self._signer.sign(payload)
        await self._persist(self._record(access_token, TOKEN_KIND_ACCESS, claims, now, claims.exp), written)

        refresh_token = None
        if SCOPE_OFFLINE_ACCESS in scopes and client.allow_offline_access:
            refresh_token = generate_token(HANDLE_LENGTH)
            expires_at = now + client.refresh_token_lifetime
            await self._persist(self._record(refresh_token, TOKEN_KIND_REFRESH, claims, now, expires_at), written)

        identity_token = None
        if SCOPE_OPENID in scopes and outcome.has_subject and client.allow_identity_tokens:
            identity_claims = self._assembler.assemble_identity(client, outcome, now)
            identity_token = self._signer.sign(identity_claims, typ=TYP_IDENTITY_TOKEN)

        logger.info(
            "oidcore.token.issued",
            client_id=client.client_id,
            subject=outcome.subject,
            scopes=list(scopes),
            audiences=list(claims.aud),
            reference=client.uses_reference_tokens,
            refresh=refresh_token is not None,
            identity=identity_token is not None,
        )
        return TokenResponse.bearer(
            access_token,
            client.access_token_lifetime,
            scope=claims.scope_string() or None,
            identity_token=identity_token,
            refresh_token=refresh_token,
        )

    def _record(
        self,
        token: str,
        kind: str,
        claims: AccessTokenClaims,
        now: int,
        expires_at: int,
    ) -> IssuedToken:
        return IssuedToken(
            key=token_key(token),
            kind=kind,
            client_id=claims.client_id,
            subject=claims.sub,
            scopes=claims.scopes,
            scope_owners=self._assembler.ownership.owners_of(claims.scopes),
            audiences=claims.aud,
            claims=claims.to_payload(),
            created_at=now,
            not_before=claims.nbf,
            expires_at=expires_at,
        )

    async def _persist(self, record: IssuedToken, written: list[str]) -> None:
        await run_bounded(self._tokens.store(record), self._store_timeout, "token_store")
        written.append(record.key)

    async def _discard(self, keys: list[str]) -> None:
        for key in keys:
            try:
                await run_bounded(self._tokens.remove(key), self._store_timeout, "token_discard")
            except Exception:
                logger.exception("oidcore.token.discard_failed", key_prefix=key[:8])
        logger.warning("oidcore.token.discarded", count=len(keys))

    async def _finish(
        self,
        response: TokenResponse,
        client: Client,
        request: GrantRequest,
        outcome: GrantOutcome | None,
    ) -> TokenResponse:
        context = CustomizationContext(response=response, client=client, request=request, outcome=outcome)
        customized = await self._customization.apply(context)
        grant_label = request.grant_type if self._registry.has_validator(request.grant_type) else "unsupported"
        get_metrics().increment_counter(
            "oidcore_token_requests_total",
            {"grant_type": grant_label, "status": "error" if customized.is_error else "success"},
        )
        return customized
