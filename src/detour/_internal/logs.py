"""Logging setup for the ``detour`` command.

Library code only creates named loggers (``detour.redirects``,
``detour.server``, ``detour.access``); handlers are installed here, once,
by the CLI or ``App.run()``.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str = "info") -> logging.Logger:
    """Attach a single stderr handler to the ``detour`` logger tree."""
    root = logging.getLogger("detour")
    root.setLevel(level.upper())
    if not any(getattr(h, "_detour", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._detour = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return root
