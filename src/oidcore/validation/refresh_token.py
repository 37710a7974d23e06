"""Built-in refresh_token grant (RFC 6749 section 6).

Replays the grant a refresh token was minted for: same subject, amr,
auth_time and identity provider. Requested scopes may only narrow the
original grant.
"""

from __future__ import annotations

from oidcore.models.constants import (
    CLAIM_AMR,
    CLAIM_AUTH_TIME,
    CLAIM_IDENTITY_PROVIDER,
    DEFAULT_IDENTITY_PROVIDER,
    GRANT_TYPE_REFRESH_TOKEN,
)
from oidcore.models.grants import GrantOutcome, GrantValidationContext
from oidcore.observability import get_logger
from oidcore.stores.protocols import TokenStore
from oidcore.utils.hashing import token_key
from oidcore.utils.timeouts import run_bounded

logger = get_logger(__name__)


class RefreshTokenGrantValidator:
    """Validate a refresh token handle from the token store."""

    grant_type = GRANT_TYPE_REFRESH_TOKEN

    def __init__(self, tokens: TokenStore, *, timeout: float | None = None) -> None:
        self._tokens = tokens
        self._timeout = timeout

    async def validate(self, context: GrantValidationContext) -> GrantOutcome:
        handle = context.request.param("refresh_token")
        if handle is None:
            return GrantOutcome.fail(description=None)

        record = await run_bounded(self._tokens.get(token_key(handle)), self._timeout, "token_lookup")
        if (
            record is None
            or not record.is_refresh_token
            or record.client_id != context.client.client_id
            or not record.is_active_at(context.now)
        ):
            logger.info(
                "oidcore.grant.refresh_rejected",
                client_id=context.client.client_id,
                found=record is not None,
            )
            return GrantOutcome.fail(description=None)

        scopes = tuple(s for s in record.scopes if s in context.scopes)
        if context.request.scope_requested:
            scopes = tuple(s for s in scopes if s in context.request.scopes)
        if not scopes:
            return GrantOutcome.fail(error="invalid_scope", description=None)

        amr = record.claims.get(CLAIM_AMR) or [GRANT_TYPE_REFRESH_TOKEN]
        return GrantOutcome.succeed(
            subject=record.subject,
            amr=tuple(str(method) for method in amr),
            scopes=scopes,
            auth_time=record.claims.get(CLAIM_AUTH_TIME),
            identity_provider=record.claims.get(CLAIM_IDENTITY_PROVIDER, DEFAULT_IDENTITY_PROVIDER),
        )
