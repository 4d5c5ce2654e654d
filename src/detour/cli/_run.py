"""``detour run`` — development or production server command."""

import argparse
import sys

from detour.cli._resolve import resolve_app


def run_server(args: argparse.Namespace) -> None:
    """Resolve ``args.app`` to a detour App and start serving it.

    Production mode is used with ``--production`` or when the app is not
    in debug mode. CLI flags override app config.
    """
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    try:
        app.run(
            args.host,
            args.port,
            production=True if args.production else None,
            workers=args.workers,
            app_path=args.app,
        )
    except OSError as exc:
        print(f"Error: cannot read redirects: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
