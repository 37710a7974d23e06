"""Provider configuration.

``ProviderOptions`` holds every tunable of the provider core. Values can be
passed explicitly or read from ``OIDCORE_*`` environment variables with
``ProviderOptions.from_env()``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from oidcore.models.constants import MAX_REQUEST_SIZE
from oidcore.validation.scopes import EmptyScopePolicy

ENV_ISSUER_URI = "OIDCORE_ISSUER_URI"
ENV_STORE_TIMEOUT = "OIDCORE_STORE_TIMEOUT"
ENV_GRANT_TIMEOUT = "OIDCORE_GRANT_TIMEOUT"
ENV_HOOK_TIMEOUT = "OIDCORE_HOOK_TIMEOUT"
ENV_EMPTY_SCOPE_POLICY = "OIDCORE_EMPTY_SCOPE_POLICY"
ENV_CUSTOMIZE_CLIENT_ERRORS = "OIDCORE_CUSTOMIZE_CLIENT_ERRORS"
ENV_MAX_REQUEST_SIZE = "OIDCORE_MAX_REQUEST_SIZE"

DEFAULT_ISSUER_URI = "https://localhost"
DEFAULT_STORE_TIMEOUT = 5.0
DEFAULT_GRANT_TIMEOUT = 10.0
DEFAULT_HOOK_TIMEOUT = 2.0

_TRUE_VALUES = ("true", "1", "yes")


def _float_or_none(raw: str | None, default: float | None) -> float | None:
    if raw is None or not raw.strip():
        return default
    value = float(raw)
    # zero or negative disables the bound
    return value if value > 0 else None


@dataclass(frozen=True)
class ProviderOptions:
    """Provider-wide settings.

    Attributes:
        issuer_uri: Value of the ``iss`` claim.
        store_timeout: Budget for every store call in seconds (None: unbounded).
        grant_validation_timeout: Budget for one grant validator call.
        hook_timeout: Budget for the response customization hook.
        empty_scope_policy: "allowed" grants the client's allowed scopes when
            ``scope`` is absent; "reject" answers ``invalid_scope``.
        customize_client_errors: Also pass 401 token responses through the hook.
        max_request_size: Largest accepted request body in bytes.
    """

    issuer_uri: str = DEFAULT_ISSUER_URI
    store_timeout: float | None = DEFAULT_STORE_TIMEOUT
    grant_validation_timeout: float | None = DEFAULT_GRANT_TIMEOUT
    hook_timeout: float | None = DEFAULT_HOOK_TIMEOUT
    empty_scope_policy: EmptyScopePolicy = "allowed"
    customize_client_errors: bool = False
    max_request_size: int = MAX_REQUEST_SIZE

    def __post_init__(self) -> None:
        if not self.issuer_uri:
            raise ValueError("issuer_uri must not be empty")
        if self.empty_scope_policy not in ("allowed", "reject"):
            raise ValueError(
                f"Unknown empty_scope_policy={self.empty_scope_policy!r}. Use 'allowed' or 'reject'."
            )
        if self.max_request_size <= 0:
            raise ValueError("max_request_size must be positive")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ProviderOptions:
        """Build options from ``OIDCORE_*`` variables; unset ones keep their defaults.

        Raises:
            ValueError: If a variable cannot be parsed.
        """
        env = os.environ if environ is None else environ
        policy = env.get(ENV_EMPTY_SCOPE_POLICY, "allowed").strip().lower()
        return cls(
            issuer_uri=env.get(ENV_ISSUER_URI, DEFAULT_ISSUER_URI).strip().rstrip("/"),
            store_timeout=_float_or_none(env.get(ENV_STORE_TIMEOUT), DEFAULT_STORE_TIMEOUT),
            grant_validation_timeout=_float_or_none(env.get(ENV_GRANT_TIMEOUT), DEFAULT_GRANT_TIMEOUT),
            hook_timeout=_float_or_none(env.get(ENV_HOOK_TIMEOUT), DEFAULT_HOOK_TIMEOUT),
            empty_scope_policy=policy,  # type: ignore[arg-type]
            customize_client_errors=env.get(ENV_CUSTOMIZE_CLIENT_ERRORS, "").strip().lower()
            in _TRUE_VALUES,
            max_request_size=int(env.get(ENV_MAX_REQUEST_SIZE, str(MAX_REQUEST_SIZE))),
        )
