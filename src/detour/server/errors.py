"""Error handling pipeline for detour requests.

Maps HTTPError exceptions and unexpected failures to plain-text
Response objects.
"""

import logging
import traceback

from detour.errors import HTTPError
from detour.http.request import Request
from detour.http.response import Response

logger = logging.getLogger("detour.server")


def handle_http_error(exc: HTTPError, request: Request, debug: bool) -> Response:
    """Map an HTTPError to a Response."""
    logger.debug("%d %s %s — %s", exc.status, request.method, request.path, exc.detail)

    detail = exc.detail or f"Error {exc.status}"
    if debug and exc.detail:
        detail = f"{exc.status}: {exc.detail}"

    resp = Response(body=detail, status=exc.status)
    for name, value in exc.headers:
        resp = resp.with_header(name, value)
    return resp


def handle_internal_error(exc: Exception, request: Request, debug: bool) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.path)

    if debug:
        body = "".join(traceback.format_exception(exc))
        return Response(body=body, status=500)

    return Response(body="Internal Server Error", status=500)
