"""Production server.

Starts uvicorn behind a proxy: forwarded headers trusted, multiple worker
processes when the app can be imported by name.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("detour.server")


def run_production_server(
    app: object,
    host: str = "0.0.0.0",
    port: int = 3000,
    workers: int = 1,
    *,
    app_path: str | None = None,
    log_level: str = "info",
    keep_alive_timeout: float = 5.0,
) -> None:
    """Run a detour app in production mode.

    Args:
        app: ASGI callable (detour App instance).
        host: Bind address (default: 0.0.0.0 for all interfaces).
        port: Bind port (default: 3000).
        workers: Worker process count. Values above 1 need *app_path*,
            since each worker imports the app itself.
        app_path: ``"module:attribute"`` import string for the app.
        log_level: uvicorn log level.
        keep_alive_timeout: Keep-alive connection timeout (seconds).

    Example:
        >>> from myapp import app
        >>> from detour.server.production import run_production_server
        >>> run_production_server(app, workers=4, app_path="myapp:app")
    """
    import uvicorn

    if workers > 1 and app_path is None:
        logger.warning("workers=%d needs an import string; running a single worker", workers)
        workers = 1

    uvicorn.run(
        app_path if workers > 1 else app,
        host=host,
        port=port,
        workers=workers,
        proxy_headers=True,
        forwarded_allow_ips="*",
        log_level=log_level,
        access_log=False,
        timeout_keep_alive=int(keep_alive_timeout),
    )
