"""Development server with auto-reload.

Starts uvicorn with a single worker. Code reloading of the downstream
build is handled per request by ``BuildHandle``; uvicorn's own reloader
restarts the process when detour's app module changes.
"""

from __future__ import annotations


def run_dev_server(
    app: object,
    host: str,
    port: int,
    *,
    reload: bool = True,
    app_path: str | None = None,
    log_level: str = "info",
) -> None:
    """Start a uvicorn dev server with the given detour App.

    Args:
        app: ASGI callable (detour App instance).
        host: Bind host address.
        port: Bind port number.
        reload: Restart on file changes. Requires *app_path*, because
            uvicorn re-imports the app in a fresh process.
        app_path: Optional ``"module:attribute"`` import string.
        log_level: uvicorn log level.
    """
    import uvicorn

    use_reload = reload and app_path is not None
    uvicorn.run(
        app_path if use_reload else app,
        host=host,
        port=port,
        reload=use_reload,
        log_level=log_level,
        access_log=False,
    )
