"""HTTP transport for oidcore.

Public exports:
    create_app: FastAPI application factory
    SizeLimitMiddleware: Request size limit (413)
"""

from oidcore.transport.middleware import SizeLimitMiddleware
from oidcore.transport.server import INTROSPECTION_PATH, TOKEN_PATH, create_app

__all__ = ["INTROSPECTION_PATH", "SizeLimitMiddleware", "TOKEN_PATH", "create_app"]
