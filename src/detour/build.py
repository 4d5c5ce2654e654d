"""Swappable handle on the downstream application build.

The page renderer is a separate ASGI app, found by an import string such
as ``"site.build:app"``. ``BuildHandle`` sits between detour and that app:

- production (``reload=False``): resolve once, cache forever;
- development (``reload=True``): before every request, drop every loaded
  module whose source lives under ``build_dir`` and import the app again,
  so a fresh build is picked up without restarting the process.

Each resolution bumps ``version``.
"""

import importlib
import logging
import sys
import threading
from pathlib import Path

from detour._internal.asgi import ASGIApp

logger = logging.getLogger("detour.server")


def resolve_asgi_app(import_string: str, *, factory: bool = False) -> ASGIApp:
    """Resolve ``"module:attribute"`` to an ASGI application.

    When the attribute portion is omitted, defaults to ``"app"``. With
    ``factory=True`` the resolved object is called with no arguments and
    its return value is used.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object is not callable.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "app"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if factory:
        obj = obj()

    if not callable(obj):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not an ASGI application"
        raise TypeError(msg)
    return obj


class BuildHandle:
    """Indirection point for the downstream ASGI app.

    Usage::

        handle = BuildHandle("site.build:app", build_dir="site/build", reload=True)
        app = handle.resolve()   # re-imported on every call while reload=True

    A handle can also wrap an app object directly; it is then returned
    as-is and never reloaded.
    """

    __slots__ = ("_app", "_build_dir", "_import_string", "_lock", "factory", "reload", "version")

    def __init__(
        self,
        target: str | ASGIApp,
        *,
        build_dir: str | Path = "build",
        reload: bool = False,
        factory: bool = False,
    ) -> None:
        self._lock = threading.Lock()
        self._build_dir = Path(build_dir)
        self.factory = factory
        self.version = 0
        if isinstance(target, str):
            self._import_string: str | None = target
            self._app: ASGIApp | None = None
            self.reload = reload
        else:
            self._import_string = None
            self._app = target
            self.reload = False

    @property
    def import_string(self) -> str | None:
        return self._import_string

    def resolve(self) -> ASGIApp:
        """Return the current app, importing (or re-importing) as needed."""
        app = self._app
        if app is not None and not self.reload:
            return app
        with self._lock:
            if self._app is not None and not self.reload:
                return self._app
            if self._import_string is None:
                msg = "Build has no import string to load from"
                raise RuntimeError(msg)
            if self.reload:
                self.purge()
            self._app = resolve_asgi_app(self._import_string, factory=self.factory)
            self.version += 1
            return self._app

    def purge(self) -> list[str]:
        """Forget every imported module whose file lives under ``build_dir``.

        Returns the names of the purged modules.
        """
        root = self._build_dir.resolve()
        purged: list[str] = []
        for name, module in list(sys.modules.items()):
            filename = getattr(module, "__file__", None)
            if filename and Path(filename).resolve().is_relative_to(root):
                del sys.modules[name]
                purged.append(name)
        if purged:
            importlib.invalidate_caches()
            logger.debug("Purged %d build module(s) from %s", len(purged), root)
        return purged
