"""oidcore error taxonomy.

Every failure on the issuance and introspection paths is one of the
exceptions below. Each carries the HTTP status and OAuth error code the
transport layer renders, so the mapping lives next to the error and not in
the endpoint code.

Grant rejections by a validator (``invalid_grant``) are not exceptions: they
are ``GrantOutcome`` values, because they still flow through the response
customization hook.
"""

from __future__ import annotations

from typing import Any


class OIDCoreError(Exception):
    """Base exception for all oidcore errors.

    Attributes:
        code: Error code following the oidcore:<area>/<reason> pattern
        message: Human-readable error message
        details: Optional additional error context
        status_code: HTTP status used when the error reaches an endpoint
        oauth_error: OAuth2 ``error`` value rendered in the response body
    """

    status_code: int = 500
    oauth_error: str = "server_error"

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{code, message, details}`` dict."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def to_oauth_error(self) -> dict[str, Any]:
        """Render the RFC 6749 section 5.2 error body."""
        return {"error": self.oauth_error}


class UnauthorizedCallerError(OIDCoreError):
    """Raised when a client or resource fails authentication.

    The message is logged but never rendered: callers learn nothing about
    whether the principal exists.

    Attributes:
        principal_id: The presented identifier, if any
        reason: Short machine-readable reason (unknown, disabled, secret_mismatch, ...)
    """

    status_code = 401
    oauth_error = "invalid_client"

    def __init__(
        self,
        reason: str,
        principal_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="oidcore:auth/unauthorized",
            message=f"Caller authentication failed: {reason}",
            details={"reason": reason, "principal_id": principal_id, **(details or {})},
        )
        self.reason = reason
        self.principal_id = principal_id
        self.response_body: dict[str, Any] | None = None

    def to_oauth_error(self) -> dict[str, Any]:
        if self.response_body is not None:
            return dict(self.response_body)
        return {"error": self.oauth_error}


class MalformedRequestError(OIDCoreError):
    """Raised when a required parameter is missing or the body cannot be read."""

    status_code = 400
    oauth_error = "invalid_request"

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="oidcore:request/malformed",
            message=f"Malformed request: {reason}",
            details=details or {},
        )
        self.reason = reason

    def to_oauth_error(self) -> dict[str, Any]:
        return {"error": self.oauth_error, "error_description": self.reason}


class UnsupportedMediaTypeError(MalformedRequestError):
    """Raised when an endpoint receives a body that is not form-encoded."""

    status_code = 415

    def __init__(self, content_type: str | None) -> None:
        super().__init__(
            reason="unsupported_content_type",
            details={"content_type": content_type},
        )
        self.content_type = content_type


class TokenRequestError(OIDCoreError):
    """Base for token request rejections rendered as 200 with an OAuth error body."""

    status_code = 200

    def __init__(
        self,
        oauth_error: str,
        description: str | None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code=f"oidcore:token/{oauth_error}",
            message=description or oauth_error,
            details=details or {},
        )
        self.oauth_error = oauth_error
        self.description = description

    def to_oauth_error(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.oauth_error}
        if self.description:
            body["error_description"] = self.description
        return body


class UnsupportedGrantTypeError(TokenRequestError):
    """Raised when no validator is registered for the requested grant type."""

    def __init__(self, grant_type: str) -> None:
        super().__init__(
            oauth_error="unsupported_grant_type",
            description=None,
            details={"grant_type": grant_type},
        )
        self.grant_type = grant_type


class UnauthorizedClientError(TokenRequestError):
    """Raised when the client is not configured for the requested grant type."""

    def __init__(self, client_id: str, grant_type: str) -> None:
        super().__init__(
            oauth_error="unauthorized_client",
            description=None,
            details={"client_id": client_id, "grant_type": grant_type},
        )
        self.client_id = client_id
        self.grant_type = grant_type


class InvalidScopeError(TokenRequestError):
    """Raised when requested scopes are unknown or not allowed for the client.

    Attributes:
        scopes: The offending scope names
    """

    def __init__(self, scopes: list[str] | tuple[str, ...], reason: str = "invalid_scope") -> None:
        super().__init__(
            oauth_error="invalid_scope",
            description=None,
            details={"scopes": list(scopes), "reason": reason},
        )
        self.scopes = tuple(scopes)
        self.reason = reason


class InvalidGrantOutcomeError(OIDCoreError):
    """Raised when a grant validator returns an outcome that is not well-formed."""

    status_code = 500
    oauth_error = "server_error"

    def __init__(self, grant_type: str, reason: str) -> None:
        super().__init__(
            code="oidcore:grant/invalid_outcome",
            message=f"Validator for '{grant_type}' returned an invalid outcome: {reason}",
            details={"grant_type": grant_type, "reason": reason},
        )
        self.grant_type = grant_type
        self.reason = reason


class ServiceUnavailableError(OIDCoreError):
    """Raised when a collaborator (store, validator) exceeds its time budget or is down.

    Attributes:
        operation: The bounded operation that failed
        timeout_seconds: The budget that was exceeded, if the cause was a timeout
    """

    status_code = 503
    oauth_error = "temporarily_unavailable"

    def __init__(
        self,
        operation: str,
        timeout_seconds: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        message = f"Operation '{operation}' is unavailable"
        if timeout_seconds is not None:
            message = f"Operation '{operation}' exceeded {timeout_seconds}s"
        super().__init__(
            code="oidcore:service/unavailable",
            message=message,
            details={"operation": operation, "timeout_seconds": timeout_seconds, **(details or {})},
        )
        self.operation = operation
        self.timeout_seconds = timeout_seconds


class TokenSigningError(OIDCoreError):
    """Raised when the signer cannot produce or verify a token."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="oidcore:signing/failed",
            message=message,
            details=details or {},
        )


class DuplicateTokenError(OIDCoreError):
    """Raised when a store write would overwrite an existing token record.

    Tokens are write-once; a collision means a handle was minted twice.
    """

    def __init__(self, key: str) -> None:
        super().__init__(
            code="oidcore:store/duplicate_token",
            message="Token record already exists",
            details={"key_prefix": key[:8]},
        )
        self.key = key
