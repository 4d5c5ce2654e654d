"""Detour — rules-file redirects in front of an ASGI site.

Reads a Netlify-style ``_redirects`` file once at startup, answers
matching requests with a ``307``, canonicalises trailing slashes, and
hands everything else to the downstream application.

Basic usage::

    from detour import App, AppConfig

    app = App(AppConfig.from_env(), build="site.build:app")
    app.run()

Rules file::

    # [methods]  from              to
    /old/:id                       /new/:id
    GET,HEAD     /feed             https://feeds.example.com/main.xml

Error tracking (``pip install detour[sentry]``)::

    app = App(AppConfig(sentry_dsn="https://...@sentry.io/1"))
"""

__version__ = "0.1.0-dev"
__all__ = [
    "AnyResponse",
    "App",
    "AppConfig",
    "ConfigurationError",
    "DetourError",
    "HTTPError",
    "Middleware",
    "Next",
    "NotFound",
    "PassThrough",
    "PatternError",
    "Redirect",
    "RedirectMatcher",
    "Request",
    "Response",
    "RuleSet",
    "load_rules",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import detour`` fast while providing a clean top-level API.
    """
    if name == "App":
        from detour.app import App

        return App

    if name == "AppConfig":
        from detour.config import AppConfig

        return AppConfig

    if name == "Request":
        from detour.http.request import Request

        return Request

    if name in ("Response", "Redirect", "PassThrough"):
        from detour.http import response as _resp

        return getattr(_resp, name)

    if name in ("AnyResponse", "Middleware", "Next"):
        from detour.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("RuleSet", "load_rules"):
        from detour.redirects import rules as _rules

        return getattr(_rules, name)

    if name == "RedirectMatcher":
        from detour.redirects.matcher import RedirectMatcher

        return RedirectMatcher

    if name in ("DetourError", "ConfigurationError", "PatternError", "HTTPError", "NotFound"):
        from detour import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
