"""Detour exception hierarchy.

Shared across the rule compiler, matcher, app, and server so every module
raises and catches the same types.
"""

from dataclasses import dataclass


class DetourError(Exception):
    """Base for all detour-specific errors."""


class ConfigurationError(DetourError):
    """Raised when app configuration is invalid.

    Typically raised while reading ``AppConfig.from_env()`` or during
    ``App._freeze()`` at startup.
    """


class PatternError(DetourError):
    """Raised when a path pattern cannot be parsed or expanded.

    The rule compiler turns these into skipped lines; the matcher turns
    them into a per-rule failure. Neither lets it escape to a request.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(DetourError):
    """An error that maps directly to an HTTP status code.

    The ASGI handler catches these and answers with the status and detail.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — no redirect fired and no downstream app is configured."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
