"""Detour application class.

Mutable during setup (middleware, lifecycle hooks).
Frozen at runtime when app.run() or __call__() is first invoked: the
redirect rules are read and compiled exactly once, then shared by every
request.
"""

import inspect
import logging
import threading
from collections.abc import Callable
from typing import Any

from detour._internal.asgi import ASGIApp, Receive, Scope, Send
from detour.build import BuildHandle
from detour.config import AppConfig
from detour.middleware.protocol import Middleware
from detour.middleware.redirects import RedirectsMiddleware
from detour.middleware.trailing_slash import TrailingSlashMiddleware
from detour.redirects.rules import RuleSet, load_rules
from detour.server.handler import handle_request

logger = logging.getLogger("detour.server")


class App:
    """The detour application.

    Usage::

        app = App(AppConfig(redirects_path="_redirects"), build="site.build:app")

    Pipeline, outermost first: redirects, trailing-slash canonicalisation,
    user middleware, then the downstream build (or ``404`` without one).

    Thread safety:
        The setup phase is single-threaded. The freeze transition uses a
        Lock + double-check so exactly one thread reads and compiles the
        rules file, even when several workers call ``__call__()`` on
        their first request at the same time.
    """

    __slots__ = (
        "_build",
        "_build_target",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_rule_set",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        build: str | ASGIApp | None = None,
        rules: RuleSet | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._build_target: str | ASGIApp | None = build if build is not None else self.config.build
        self._middleware_list: list[Middleware] = []
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set during _freeze(). An explicit rule set skips the file
        self._rule_set: RuleSet | None = rules
        self._middleware: tuple[Callable[..., Any], ...] = ()
        self._build: BuildHandle | None = None

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware after the built-in redirect stages."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        after the rules file has been compiled.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Compiled state --

    @property
    def rule_set(self) -> RuleSet:
        """The compiled redirect rules (freezes the app)."""
        self._ensure_frozen()
        if self._rule_set is None:
            msg = "App froze without compiling its redirect rules"
            raise RuntimeError(msg)
        return self._rule_set

    @property
    def build(self) -> BuildHandle | None:
        """The downstream app handle, if one is configured (freezes the app)."""
        self._ensure_frozen()
        return self._build

    # -- Server --

    def run(
        self,
        host: str | None = None,
        port: int | None = None,
        *,
        production: bool | None = None,
        workers: int | None = None,
        app_path: str | None = None,
    ) -> None:
        """Start the server (dev or production based on config.debug).

        Compiles the rules before binding, so an unreadable rules file
        stops the process before it accepts any connection.

        Args:
            host: Override bind host.
            port: Override bind port.
            production: Force production mode regardless of ``config.debug``.
            workers: Override the production worker count.
            app_path: ``"module:attribute"`` import string for this app,
                needed for uvicorn reload and multi-worker mode.
        """
        from detour._internal.logs import configure_logging
        from detour.server.observability import init_error_tracking

        configure_logging(self.config.log_level)
        init_error_tracking(self.config)
        self._ensure_frozen()

        _host = host or self.config.host
        _port = port or self.config.port
        production_mode = production if production is not None else not self.config.debug

        if production_mode:
            from detour.server.production import run_production_server

            run_production_server(
                self,
                host=_host,
                port=_port,
                workers=workers if workers is not None else self.config.workers,
                app_path=app_path,
                log_level=self.config.log_level,
                keep_alive_timeout=self.config.keep_alive_timeout,
            )
        else:
            from detour.server.dev import run_dev_server

            run_dev_server(
                self,
                _host,
                _port,
                reload=self.config.debug,
                app_path=app_path,
                log_level=self.config.log_level,
            )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()

        await handle_request(
            scope,
            receive,
            send,
            middleware=self._middleware,
            build=self._build,
            debug=self.config.debug,
            access_log=self.config.access_log,
        )

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Compiles the rules and preloads the build at startup, so the first
        request does not pay for either. A startup failure (unreadable
        rules file, unimportable build) is reported back to the server,
        which refuses to start.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    if self._build is not None:
                        self._build.resolve()
                    await self.startup()
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send(
                        {
                            "type": "lifespan.startup.failed",
                            "message": str(exc),
                        }
                    )
                    return

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def startup(self) -> None:
        """Run registered startup hooks."""
        for hook in self._startup_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    async def shutdown(self) -> None:
        """Run registered shutdown hooks."""
        for hook in self._shutdown_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock. ``OSError`` from
        an unreadable rules file propagates.
        """
        # 1. Compile the rules file once
        if self._rule_set is None:
            path = self.config.redirects_path
            self._rule_set = load_rules(path) if path is not None else RuleSet()
            logger.info(
                "Loaded %d redirect rule(s) from %s (%d line(s) skipped)",
                len(self._rule_set.rules),
                path,
                len(self._rule_set.skipped),
            )

        # 2. Capture middleware as an immutable tuple, built-ins first
        middleware_list: list[Callable[..., Any]] = [RedirectsMiddleware(self._rule_set)]
        if self.config.trailing_slash:
            middleware_list.append(TrailingSlashMiddleware())
        middleware_list.extend(self._middleware_list)
        self._middleware = tuple(middleware_list)

        # 3. Downstream build handle, reloaded per request in debug mode
        if self._build_target is not None:
            self._build = BuildHandle(
                self._build_target,
                build_dir=self.config.build_dir,
                reload=self.config.debug,
            )

        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register middleware and hooks before calling app.run()."
            )
            raise RuntimeError(msg)
