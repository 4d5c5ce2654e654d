"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    RedirectsMiddleware -- Rules-file redirects (307, first match wins)
    TrailingSlashMiddleware -- 301 from ``/path/`` to ``/path``
"""

from detour.middleware.protocol import AnyResponse, Middleware, Next
from detour.middleware.redirects import RedirectsMiddleware
from detour.middleware.trailing_slash import TrailingSlashMiddleware

__all__ = [
    "AnyResponse",
    "Middleware",
    "Next",
    "RedirectsMiddleware",
    "TrailingSlashMiddleware",
]
