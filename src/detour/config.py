"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from detour.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000, redirects_path="config/_redirects")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = False
    workers: int = 1
    keep_alive_timeout: float = 5.0

    # Redirects: None disables the rules file entirely
    redirects_path: str | Path | None = "_redirects"

    # Built-in middleware
    trailing_slash: bool = True
    access_log: bool = True

    # Downstream application ("module:attribute"), reloaded per request in debug
    build: str | None = None
    build_dir: str | Path = "build"

    # Logging
    log_level: str = "info"

    # Error tracking (requires sentry-sdk)
    sentry_dsn: str | None = None
    sentry_environment: str | None = None
    sentry_region: str | None = None
    sentry_traces_sample_rate: float = 0.3

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AppConfig:
        """Build a config from process environment variables.

        Recognised variables::

            DETOUR_ENV / NODE_ENV   "production" disables debug mode
            HOST, PORT, WORKERS     server binding
            DETOUR_REDIRECTS        rules file path ("" disables redirects)
            DETOUR_BUILD            downstream app import string
            DETOUR_BUILD_DIR        directory purged on reload
            LOG_LEVEL               logging level name
            SENTRY_DSN, FLY_REGION  error tracking

        Raises ``ConfigurationError`` if a numeric variable is malformed.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        mode = env.get("DETOUR_ENV") or env.get("NODE_ENV") or "development"
        redirects = env.get("DETOUR_REDIRECTS")

        return cls(
            host=env.get("HOST", defaults.host),
            port=_env_int(env, "PORT", defaults.port),
            debug=mode != "production",
            workers=_env_int(env, "WORKERS", defaults.workers),
            redirects_path=defaults.redirects_path if redirects is None else (redirects or None),
            build=env.get("DETOUR_BUILD") or None,
            build_dir=env.get("DETOUR_BUILD_DIR", str(defaults.build_dir)),
            log_level=env.get("LOG_LEVEL", defaults.log_level).lower(),
            sentry_dsn=env.get("SENTRY_DSN") or None,
            sentry_environment=mode,
            sentry_region=env.get("FLY_REGION") or None,
        )


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        msg = f"{name} must be an integer, got {value!r}"
        raise ConfigurationError(msg) from exc
