"""HTTP response types with a chainable .with_*() transformation API.

Each transformation returns a new object. Immutable by convention,
built incrementally by design.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status and headers. Each call returns a new ``Response``.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/plain; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Return a new Response with additional headers."""
        new = tuple(headers.items())
        return replace(self, headers=(*self.headers, *new))

    def with_content_type(self, content_type: str) -> Response:
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    # -- Body helpers --

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def header(self, name: str) -> str | None:
        """Return the first header value named *name* (case-insensitive)."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None


@dataclass(frozen=True, slots=True)
class Redirect:
    """A redirect response.

    ``307`` and ``308`` preserve the request method and body; ``301``
    and ``302`` let clients downgrade to ``GET``.
    """

    url: str
    status: int = 302
    headers: tuple[tuple[str, str], ...] = ()

    def with_status(self, status: int) -> Redirect:
        """Return a new Redirect with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Redirect:
        """Return a new Redirect with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Redirect:
        """Return a new Redirect with additional headers."""
        new = tuple(headers.items())
        return replace(self, headers=(*self.headers, *new))

    def to_response(self) -> Response:
        """Render as a plain ``Response`` with a ``Location`` header."""
        return Response(
            body=f"Redirecting to {self.url}",
            status=self.status,
            headers=(("Location", self.url), *self.headers),
        )


@dataclass(frozen=True, slots=True)
class PassThrough:
    """Sentinel response: nothing in the pipeline answered the request.

    The ASGI handler forwards the original request to the downstream
    application. Provides no-op ``.with_*()`` methods so middleware
    chains don't crash; the downstream app owns its own headers.
    """

    def with_status(self, status: int) -> PassThrough:  # noqa: ARG002
        """No-op: the downstream app picks the status."""
        return self

    def with_header(self, name: str, value: str) -> PassThrough:  # noqa: ARG002
        """No-op: the downstream app sends its own headers."""
        return self

    def with_headers(self, headers: Mapping[str, str]) -> PassThrough:  # noqa: ARG002
        """No-op: the downstream app sends its own headers."""
        return self
