"""HTTP middleware for the oidcore endpoints."""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from oidcore.observability import get_logger

logger = get_logger(__name__)

NO_CACHE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}


class SizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared Content-Length exceeds ``max_size``.

    Token and introspection requests are small forms; anything larger is
    answered with 413 before routing.

    Example:
        >>> app.add_middleware(SizeLimitMiddleware, max_size=64 * 1024)
    """

    def __init__(self, app: Any, max_size: int) -> None:
        """Initialize the middleware.

        Raises:
            ValueError: If max_size is less than 1
        """
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Any]]
    ) -> Any:
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                size = int(content_length)
            except ValueError:
                logger.debug("oidcore.request.invalid_content_length", content_length=content_length)
            else:
                if size > self.max_size:
                    logger.warning(
                        "oidcore.request.size_exceeded",
                        path=request.url.path,
                        content_length=size,
                        max_size=self.max_size,
                    )
                    return JSONResponse(
                        status_code=413,
                        content={"error": "invalid_request", "error_description": "request_too_large"},
                        headers=NO_CACHE_HEADERS,
                    )
        return await call_next(request)


__all__ = ["NO_CACHE_HEADERS", "SizeLimitMiddleware"]
