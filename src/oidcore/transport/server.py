"""FastAPI application exposing the token and introspection endpoints.

Endpoints:
    POST /connect/token       Token issuance (form-encoded)
    POST /connect/introspect  Token introspection for API resources (form-encoded only)
    GET  /health              Liveness probe
    GET  /metrics             Prometheus text metrics

Example:
    >>> from oidcore.provider import create_in_memory_provider
    >>> from oidcore.transport.server import create_app
    >>> app = create_app(create_in_memory_provider(clients=[...], api_resources=[...]))
    >>> # Run with uvicorn: uvicorn module:app
"""

from __future__ import annotations

import time
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from oidcore import __version__
from oidcore.auth.secrets import parse_credentials
from oidcore.errors import MalformedRequestError, OIDCoreError, UnsupportedMediaTypeError
from oidcore.models.constants import FORM_CONTENT_TYPE
from oidcore.observability import get_logger, get_metrics
from oidcore.provider import Provider
from oidcore.transport.middleware import NO_CACHE_HEADERS, SizeLimitMiddleware

logger = get_logger(__name__)

TOKEN_PATH = "/connect/token"
INTROSPECTION_PATH = "/connect/introspect"
TOKEN_FIELD = "token"


def _media_type(request: Request) -> str:
    return request.headers.get("content-type", "").split(";")[0].strip().lower()


def _is_form(media_type: str) -> bool:
    # no content type at all reads as an empty form
    return media_type in ("", FORM_CONTENT_TYPE)


async def _read_form(request: Request) -> dict[str, str]:
    form = await request.form()
    return {name: value for name, value in form.items() if isinstance(value, str)}


def _json(status_code: int, content: dict[str, Any], **headers: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers={**NO_CACHE_HEADERS, **headers})


def _error_response(exc: OIDCoreError, endpoint: str) -> JSONResponse:
    log = logger.warning if exc.status_code >= 500 else logger.info
    log(
        "oidcore.request.failed",
        endpoint=endpoint,
        status_code=exc.status_code,
        code=exc.code,
        details=exc.details,
    )
    headers: dict[str, str] = {}
    if exc.status_code == 401:
        headers["WWW-Authenticate"] = 'Basic realm="oidcore"'
    return _json(exc.status_code, exc.to_oauth_error(), **headers)


def create_app(provider: Provider, *, max_request_size: int | None = None) -> FastAPI:
    """Create the FastAPI application for ``provider``.

    Args:
        provider: Assembled provider core (see ``oidcore.provider.create_provider``).
        max_request_size: Body size limit in bytes (default: provider options).

    Returns:
        Configured FastAPI application.
    """
    if max_request_size is None:
        max_request_size = provider.options.max_request_size

    app = FastAPI(
        title="oidcore",
        description="OAuth2/OIDC token issuance and introspection",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.add_middleware(SizeLimitMiddleware, max_size=max_request_size)
    app.state.provider = provider
    metrics = get_metrics()

    @app.get("/health")
    async def health() -> JSONResponse:
        """Liveness probe: always OK if the process is running."""
        return JSONResponse(status_code=200, content={"status": "ok"})

    @app.get("/metrics")
    async def metrics_endpoint() -> PlainTextResponse:
        """Return Prometheus-compatible metrics."""
        return PlainTextResponse(
            content=get_metrics().export_prometheus(),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    @app.post(TOKEN_PATH)
    async def token(request: Request) -> JSONResponse:
        """Issue tokens.

        Grant-level rejections are 200 responses carrying an OAuth error body.
        """
        started = time.perf_counter()
        try:
            if not _is_form(_media_type(request)):
                raise MalformedRequestError("form body required")
            form = await _read_form(request)
            credentials = parse_credentials(request.headers, form)
            response = await provider.issuer.issue(credentials, form)
            return _json(200, response.to_wire())
        except OIDCoreError as exc:
            return _error_response(exc, "token")
        finally:
            metrics.observe_histogram(
                "oidcore_request_duration_seconds",
                time.perf_counter() - started,
                {"endpoint": "token"},
            )

    @app.post(INTROSPECTION_PATH)
    async def introspect(request: Request) -> JSONResponse:
        """Introspect a token for the authenticated API resource (RFC 7662)."""
        started = time.perf_counter()
        try:
            media_type = _media_type(request)
            if not _is_form(media_type):
                raise UnsupportedMediaTypeError(media_type)
            form = await _read_form(request)
            credentials = parse_credentials(request.headers, form)
            result = await provider.introspection.introspect(credentials, form.get(TOKEN_FIELD))
            return _json(200, result.to_wire())
        except OIDCoreError as exc:
            return _error_response(exc, "introspection")
        finally:
            metrics.observe_histogram(
                "oidcore_request_duration_seconds",
                time.perf_counter() - started,
                {"endpoint": "introspection"},
            )

    logger.info(
        "oidcore.server.created",
        issuer_uri=provider.options.issuer_uri,
        max_request_size=max_request_size,
        grant_types=provider.registry.grant_types(),
    )
    return app
