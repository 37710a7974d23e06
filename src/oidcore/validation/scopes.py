"""Requested-scope validation.

Runs before any grant validator: the scopes a validator sees are always
known and allowed for the client.
"""

from __future__ import annotations

from typing import Literal

from oidcore.errors import InvalidScopeError
from oidcore.models.constants import GRANT_TYPE_REFRESH_TOKEN, SCOPE_OFFLINE_ACCESS
from oidcore.models.entities import Client, ScopeOwnership
from oidcore.models.grants import GrantRequest
from oidcore.observability import get_logger

logger = get_logger(__name__)

EmptyScopePolicy = Literal["allowed", "reject"]


def parse_scope(value: str | None) -> tuple[str, ...]:
    """Split a space-delimited scope string, dropping duplicates and blanks."""
    if not value:
        return ()
    seen: dict[str, None] = {}
    for scope in value.split():
        seen.setdefault(scope, None)
    return tuple(seen)


class ScopeValidator:
    """Resolve the effective scopes of a token request.

    With no ``scope`` parameter the client's allowed scopes are used under
    the "allowed" policy and the request is rejected under "reject".
    Refresh requests always fall back to the allowed set; the refresh grant
    narrows it to the original grant.
    """

    def __init__(self, ownership: ScopeOwnership, empty_scope_policy: EmptyScopePolicy = "allowed"):
        if empty_scope_policy not in ("allowed", "reject"):
            raise ValueError(f"Unknown empty scope policy: {empty_scope_policy}")
        self._ownership = ownership
        self.empty_scope_policy = empty_scope_policy

    def _grantable(self, client: Client, scope: str) -> bool:
        if scope == SCOPE_OFFLINE_ACCESS:
            return client.allow_offline_access
        return scope in client.allowed_scopes and self._ownership.is_known(scope)

    def validate(self, client: Client, request: GrantRequest) -> tuple[str, ...]:
        """Return the validated scopes in request order.

        Raises:
            InvalidScopeError: On an unknown or disallowed scope, or an empty
                request under the "reject" policy.
        """
        if not request.scope_requested:
            if self.empty_scope_policy == "reject" and request.grant_type != GRANT_TYPE_REFRESH_TOKEN:
                logger.info("oidcore.scope.empty_rejected", client_id=client.client_id)
                raise InvalidScopeError((), reason="scope_required")
            defaults = [s for s in client.allowed_scopes if self._grantable(client, s)]
            if client.allow_offline_access and SCOPE_OFFLINE_ACCESS not in defaults:
                defaults.append(SCOPE_OFFLINE_ACCESS)
            if not defaults:
                raise InvalidScopeError((), reason="no_allowed_scopes")
            return tuple(defaults)

        rejected = [s for s in request.scopes if not self._grantable(client, s)]
        if rejected:
            logger.info(
                "oidcore.scope.rejected",
                client_id=client.client_id,
                scopes=rejected,
            )
            raise InvalidScopeError(rejected, reason="not_allowed")
        return request.scopes
