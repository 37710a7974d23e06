"""Token response customization.

A deployment may attach extra top-level fields to token responses, on
success and on grant failure alike. The hook is either absent
(``NoCustomization``) or a callable wrapped in ``HookCustomization``.

Hooks receive a frozen ``CustomizationContext`` and return a mapping of
extra fields. The result is deep-copied, checked for JSON-compatible
values, and stripped of standard field names. A hook that raises or runs
past its timeout is logged and ignored: the base response is returned.

Example:
    >>> def add_tenant(context: CustomizationContext) -> dict[str, Any]:
    ...     return {"tenant": "acme"}
    >>> customization = customization_for(add_tenant, timeout=1.0)
    >>> response = await customization.apply(context)
"""

from __future__ import annotations

import asyncio
import copy
import functools
import inspect
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from oidcore.models.constants import STANDARD_RESPONSE_FIELDS
from oidcore.models.entities import Client
from oidcore.models.grants import GrantOutcome, GrantRequest
from oidcore.models.tokens import TokenResponse
from oidcore.observability import get_logger, get_metrics

logger = get_logger(__name__)


@dataclass(frozen=True)
class CustomizationContext:
    """What a hook may inspect.

    Attributes:
        response: The base response about to be returned.
        client: The authenticated client; None for client-authentication failures.
        request: The parsed grant request, when one was built.
        outcome: The grant outcome; None when the request failed before validation.
    """

    response: TokenResponse
    client: Client | None = None
    request: GrantRequest | None = None
    outcome: GrantOutcome | None = None

    @property
    def is_error(self) -> bool:
        return self.response.is_error


ResponseHook = Callable[[CustomizationContext], Union[Mapping[str, Any], Awaitable[Mapping[str, Any]]]]


def _is_json_value(value: Any) -> bool:
    if value is None or isinstance(value, (str, bool, int, float)):
        return True
    if isinstance(value, (list, tuple)):
        return all(_is_json_value(item) for item in value)
    if isinstance(value, Mapping):
        return all(isinstance(k, str) and _is_json_value(v) for k, v in value.items())
    return False


def _is_coroutine_hook(hook: ResponseHook) -> bool:
    return inspect.iscoroutinefunction(hook) or inspect.iscoroutinefunction(
        getattr(hook, "__call__", None)
    )


@dataclass(frozen=True)
class NoCustomization:
    """Return the base response untouched."""

    async def apply(self, context: CustomizationContext) -> TokenResponse:
        return context.response


@dataclass(frozen=True)
class HookCustomization:
    """Run ``hook`` and merge its fields into the response.

    Attributes:
        hook: Sync or async callable; sync hooks run in the default executor.
        timeout: Budget in seconds (None: unbounded).
    """

    hook: ResponseHook
    timeout: float | None = None

    async def apply(self, context: CustomizationContext) -> TokenResponse:
        base = context.response
        try:
            result = await asyncio.wait_for(self._run(context), timeout=self.timeout)
        except asyncio.TimeoutError:
            return self._failed(base, "timeout")
        except Exception as exc:
            logger.exception("oidcore.hook.error", error=str(exc))
            return self._failed(base, "exception")

        if not isinstance(result, Mapping):
            logger.warning("oidcore.hook.invalid_result", result_type=type(result).__name__)
            return self._failed(base, "invalid_result")

        fields = copy.deepcopy(dict(result))
        dropped = sorted(name for name in fields if name in STANDARD_RESPONSE_FIELDS)
        if dropped:
            logger.warning("oidcore.hook.reserved_fields_dropped", fields=dropped)
        invalid = sorted(
            name
            for name, value in fields.items()
            if name not in STANDARD_RESPONSE_FIELDS and not _is_json_value(value)
        )
        if invalid:
            logger.warning("oidcore.hook.non_json_fields_dropped", fields=invalid)
        accepted = {
            name: value
            for name, value in fields.items()
            if name not in STANDARD_RESPONSE_FIELDS and name not in invalid
        }
        return base.with_custom(accepted)

    async def _run(self, context: CustomizationContext) -> Any:
        if _is_coroutine_hook(self.hook):
            return await self.hook(context)  # type: ignore[misc]
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, functools.partial(self.hook, context))
        if inspect.isawaitable(result):
            return await result
        return result

    def _failed(self, base: TokenResponse, reason: str) -> TokenResponse:
        logger.warning("oidcore.hook.failed", reason=reason, timeout_seconds=self.timeout)
        get_metrics().increment_counter("oidcore_hook_failures_total", {"reason": reason})
        return base


Customization = Union[NoCustomization, HookCustomization]


def customization_for(hook: ResponseHook | None, *, timeout: float | None = None) -> Customization:
    """Wrap ``hook`` (or nothing) in the matching customization variant."""
    if hook is None:
        return NoCustomization()
    return HookCustomization(hook=hook, timeout=timeout)
