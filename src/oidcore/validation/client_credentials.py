"""Built-in client_credentials grant (RFC 6749 section 4.4)."""

from __future__ import annotations

from oidcore.models.constants import (
    AMR_CLIENT_CREDENTIALS,
    GRANT_TYPE_CLIENT_CREDENTIALS,
    SCOPE_OFFLINE_ACCESS,
)
from oidcore.models.entities import ScopeOwnership
from oidcore.models.grants import GrantOutcome, GrantValidationContext


class ClientCredentialsGrantValidator:
    """The client acts on its own behalf: no subject, API scopes only.

    Identity scopes and ``offline_access`` make no sense without a resource
    owner. Explicitly requesting them fails with ``invalid_scope``; when
    they came from the client's default scope set they are dropped.
    """

    grant_type = GRANT_TYPE_CLIENT_CREDENTIALS

    def __init__(self, ownership: ScopeOwnership) -> None:
        self._ownership = ownership

    def _is_user_scope(self, scope: str) -> bool:
        return scope == SCOPE_OFFLINE_ACCESS or self._ownership.is_identity_scope(scope)

    async def validate(self, context: GrantValidationContext) -> GrantOutcome:
        user_scopes = [s for s in context.scopes if self._is_user_scope(s)]
        if user_scopes and context.request.scope_requested:
            return GrantOutcome.fail(error="invalid_scope", description=None)
        api_scopes = tuple(s for s in context.scopes if not self._is_user_scope(s))
        if not api_scopes:
            return GrantOutcome.fail(error="invalid_scope", description=None)
        return GrantOutcome.succeed(amr=AMR_CLIENT_CREDENTIALS, scopes=api_scopes)
