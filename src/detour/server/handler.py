"""ASGI handler — translates ASGI scope/messages to detour types.

The only component that touches raw ASGI directly. Converts scope dicts
to typed Request objects, runs the middleware pipeline, and either sends
the resulting Response or forwards the untouched request downstream.
"""

from collections.abc import Callable
from typing import Any

from detour._internal.asgi import Receive, Scope, Send
from detour.build import BuildHandle
from detour.errors import HTTPError, NotFound
from detour.http.request import Request
from detour.http.response import PassThrough
from detour.middleware.protocol import AnyResponse, Next
from detour.server.access_log import AccessLogRecorder
from detour.server.errors import handle_http_error, handle_internal_error
from detour.server.sender import send_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    middleware: tuple[Callable[..., Any], ...],
    build: BuildHandle | None,
    debug: bool,
    access_log: bool = False,
) -> None:
    """Process a single request through the full pipeline."""
    if scope["type"] != "http":
        # Websockets and other protocols belong to the downstream app
        if build is not None:
            await build.resolve()(scope, receive, send)
        return

    # Build Request from ASGI scope
    request = Request.from_asgi(scope)

    recorder: AccessLogRecorder | None = None
    if access_log:
        recorder = AccessLogRecorder(request.method, request.url)
        send = recorder.wrap(send)

    try:
        # Innermost handler: nothing answered, hand over to the build
        async def dispatch(req: Request) -> AnyResponse:  # noqa: ARG001
            return PassThrough()

        # Wrap middleware around the dispatch
        handler = dispatch
        for mw in reversed(middleware):
            outer = handler
            mw_ref = mw

            async def make_next(req: Request, _mw: Any = mw_ref, _next: Next = outer) -> AnyResponse:
                return await _mw(req, _next)

            handler = make_next

        # Execute the full pipeline
        response = await handler(request)

    except HTTPError as exc:
        response = handle_http_error(exc, request, debug)
    except Exception as exc:
        response = handle_internal_error(exc, request, debug)

    try:
        if isinstance(response, PassThrough):
            if build is None:
                response = handle_http_error(NotFound(), request, debug)
                await send_response(response, send, head=request.method == "HEAD")
            else:
                await build.resolve()(scope, receive, send)
        else:
            await send_response(response, send, head=request.method == "HEAD")
    finally:
        if recorder is not None:
            recorder.emit()
