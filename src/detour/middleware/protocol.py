"""Middleware protocol and the types it works with.

A middleware is an async callable taking the request and the rest of
the chain::

    async def my_mw(request: Request, next: Next) -> AnyResponse: ...

Registered middleware runs after the redirect and trailing-slash layers,
so it only sees requests that no rule claimed. It may answer itself or
call ``next`` and adjust what comes back: a ``Response``, a ``Redirect``
or a ``PassThrough`` to the downstream build. Each supports
``.with_header()`` and ``.with_status()``.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from detour.http.request import Request
from detour.http.response import PassThrough, Redirect, Response

type AnyResponse = Response | Redirect | PassThrough

type Next = Callable[[Request], Awaitable[AnyResponse]]


class Middleware(Protocol):
    """Shape every registered middleware must have.

    Functions and objects with ``__call__`` both qualify::

        # Send legacy API traffic to its new home
        async def legacy_api(request: Request, next: Next) -> AnyResponse:
            if request.path.startswith("/api/v1/"):
                return Redirect("https://api.example.com" + request.path[7:])
            return await next(request)

        # Block a prefix the build should never serve
        class BlockPrefix:
            def __init__(self, prefix: str) -> None:
                self.prefix = prefix

            async def __call__(self, request: Request, next: Next) -> AnyResponse:
                if request.path.startswith(self.prefix):
                    return Response("Not Found", status=404)
                return await next(request)
    """

    async def __call__(self, request: Request, next: Next) -> AnyResponse: ...
