"""Grant validator registry.

Maps a grant-type string to a ``GrantValidator``. New grant types are added
by registering an implementation; the dispatcher never changes.

The registry imposes no semantics on a grant beyond routing and a
well-formed outcome:
- success carries a non-empty ``amr``
- failure carries an ``error`` code
- narrowed scopes stay within the validated request scopes

Thread Safety:
    Registration and lookup are guarded by an RLock; validation itself runs
    outside the lock.

Example:
    >>> registry = GrantValidatorRegistry(timeout=5.0)
    >>> registry.register(ClientCredentialsGrantValidator())
    >>> outcome = await registry.validate(context)
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable
from threading import RLock
from typing import Protocol, Union, runtime_checkable

from oidcore.errors import InvalidGrantOutcomeError, UnsupportedGrantTypeError
from oidcore.models.grants import GrantOutcome, GrantValidationContext
from oidcore.observability import get_logger
from oidcore.utils.timeouts import run_bounded

logger = get_logger(__name__)


@runtime_checkable
class GrantValidator(Protocol):
    """A grant type's validation capability.

    ``validate`` may be a coroutine function or a plain function; it must
    decide success or failure itself and return a ``GrantOutcome``.
    """

    grant_type: str

    def validate(
        self, context: GrantValidationContext
    ) -> Union[GrantOutcome, Awaitable[GrantOutcome]]: ...


class GrantValidatorRegistry:
    """Registry and dispatcher for grant validators.

    Attributes:
        timeout: Budget in seconds for one validator call (None: unbounded).
    """

    def __init__(self, *, timeout: float | None = None) -> None:
        self._validators: dict[str, GrantValidator] = {}
        self._lock = RLock()
        self.timeout = timeout

    def register(self, validator: GrantValidator, grant_type: str | None = None) -> None:
        """Register ``validator`` under ``grant_type`` (default: ``validator.grant_type``).

        Raises:
            TypeError: If the validator has no callable ``validate``.
            ValueError: If no grant type can be determined.
        """
        if not callable(getattr(validator, "validate", None)):
            raise TypeError("Grant validator must define validate(context)")
        key = grant_type or getattr(validator, "grant_type", None)
        if not key:
            raise ValueError("Grant validator has no grant_type")
        with self._lock:
            is_override = key in self._validators
            self._validators[key] = validator
        logger.debug(
            "oidcore.grant.registered",
            grant_type=key,
            validator=type(validator).__name__,
            is_override=is_override,
        )

    def has_validator(self, grant_type: str) -> bool:
        with self._lock:
            return grant_type in self._validators

    def grant_types(self) -> list[str]:
        with self._lock:
            return sorted(self._validators)

    def get(self, grant_type: str) -> GrantValidator:
        """Return the validator for ``grant_type``.

        Raises:
            UnsupportedGrantTypeError: If none is registered.
        """
        with self._lock:
            validator = self._validators.get(grant_type)
        if validator is None:
            logger.info("oidcore.grant.unsupported", grant_type=grant_type)
            raise UnsupportedGrantTypeError(grant_type)
        return validator

    async def validate(self, context: GrantValidationContext) -> GrantOutcome:
        """Dispatch ``context`` to its validator and check the outcome.

        Raises:
            UnsupportedGrantTypeError: No validator for the grant type.
            InvalidGrantOutcomeError: The validator returned a malformed outcome.
            ServiceUnavailableError: The validator exceeded the timeout.
        """
        grant_type = context.request.grant_type
        validator = self.get(grant_type)
        outcome = await run_bounded(
            self._invoke(validator, context), self.timeout, f"grant_validation:{grant_type}"
        )
        self._check_outcome(grant_type, context, outcome)
        logger.debug(
            "oidcore.grant.validated",
            grant_type=grant_type,
            client_id=context.client.client_id,
            success=outcome.success,
            error=outcome.error,
        )
        return outcome

    @staticmethod
    async def _invoke(validator: GrantValidator, context: GrantValidationContext) -> object:
        result = validator.validate(context)
        if inspect.isawaitable(result):
            return await result
        return result

    @staticmethod
    def _check_outcome(
        grant_type: str, context: GrantValidationContext, outcome: object
    ) -> None:
        if not isinstance(outcome, GrantOutcome):
            raise InvalidGrantOutcomeError(grant_type, "not a GrantOutcome")
        if outcome.success:
            if not outcome.amr or not all(method for method in outcome.amr):
                raise InvalidGrantOutcomeError(grant_type, "success without amr")
            if outcome.scopes is not None:
                widened = [s for s in outcome.scopes if s not in context.scopes]
                if widened:
                    raise InvalidGrantOutcomeError(grant_type, f"scopes widened: {widened}")
        elif not outcome.error:
            raise InvalidGrantOutcomeError(grant_type, "failure without error code")
