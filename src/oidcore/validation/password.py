"""Built-in resource owner password grant (RFC 6749 section 4.3)."""

from __future__ import annotations

from oidcore.models.constants import AMR_PASSWORD, GRANT_TYPE_PASSWORD
from oidcore.models.grants import GrantOutcome, GrantValidationContext
from oidcore.observability import get_logger
from oidcore.stores.protocols import UserStore
from oidcore.utils.timeouts import run_bounded

logger = get_logger(__name__)


class PasswordGrantValidator:
    """Check ``username``/``password`` against the user store.

    Every rejection (missing fields, unknown user, inactive user, wrong
    password) yields the same ``invalid_grant``/``invalid_credential``
    outcome so callers cannot probe for usernames.
    """

    grant_type = GRANT_TYPE_PASSWORD

    def __init__(self, users: UserStore, *, timeout: float | None = None) -> None:
        self._users = users
        self._timeout = timeout

    async def validate(self, context: GrantValidationContext) -> GrantOutcome:
        username = context.request.param("username")
        password = context.request.parameters.get("password")
        if username is None or not password:
            return GrantOutcome.fail()

        user = await run_bounded(
            self._users.find_by_username(username), self._timeout, "user_lookup"
        )
        if user is None or not user.is_active or not user.check_password(password):
            logger.info(
                "oidcore.grant.password_rejected",
                client_id=context.client.client_id,
                username=username,
            )
            return GrantOutcome.fail()

        return GrantOutcome.succeed(
            subject=user.subject_id,
            amr=AMR_PASSWORD,
            auth_time=context.now,
        )
