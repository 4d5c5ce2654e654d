"""Immutable HTTP request.

Frozen metadata read from the ASGI scope. Redirect decisions only need
the request line and headers, so the body is left untouched for the
downstream application.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from detour.http.headers import Headers
from detour.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path`` is the percent-decoded path from the ASGI scope;
    ``raw_path`` is the path exactly as it arrived on the wire.
    """

    method: str
    path: str
    raw_path: str
    headers: Headers
    query: QueryParams
    http_version: str = "1.1"
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None

    # -- Computed properties --

    @property
    def url(self) -> str:
        """Raw request target (path + query string), as sent by the client."""
        qs = self.query.raw
        if qs:
            return f"{self.raw_path}?{qs}"
        return self.raw_path

    @property
    def host(self) -> str | None:
        """Effective host: ``X-Forwarded-Host`` if present, else ``Host``."""
        forwarded = self.headers.get("x-forwarded-host")
        if forwarded is not None:
            return forwarded
        return self.headers.get("host")

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: dict[str, Any]) -> Request:
        """Create a Request from an ASGI scope."""
        headers = Headers(tuple(scope.get("headers", ())))
        server = scope.get("server")
        client = scope.get("client")
        raw_path = scope.get("raw_path")
        return cls(
            method=scope["method"],
            path=scope["path"],
            raw_path=raw_path.decode("latin-1") if raw_path else scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
        )
