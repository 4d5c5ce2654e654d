"""Trailing-slash canonicalisation.

``/episodes/`` → 301 → ``/episodes``. Runs of slashes collapse to one,
and the query string is carried over unchanged.
"""

import re

from detour.http.request import Request
from detour.http.response import Redirect
from detour.middleware.protocol import AnyResponse, Next

_SLASH_RUN = re.compile(r"/+")


def canonical_path(raw_path: str) -> str | None:
    """Slash-free form of *raw_path*, or ``None`` if it is already canonical."""
    if len(raw_path) <= 1 or not raw_path.endswith("/"):
        return None
    return _SLASH_RUN.sub("/", raw_path[:-1])


class TrailingSlashMiddleware:
    """301-redirect any path longer than ``/`` that ends with a slash."""

    __slots__ = ("status",)

    def __init__(self, status: int = 301) -> None:
        self.status = status

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        path = canonical_path(request.raw_path)
        if path is None:
            return await next(request)
        query = request.query.raw
        return Redirect(f"{path}?{query}" if query else path, status=self.status)
