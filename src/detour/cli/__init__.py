"""Detour CLI — server, rules validation, and rule debugging.

Entry point registered as ``detour`` in ``pyproject.toml``::

    [project.scripts]
    detour = "detour.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``detour`` command."""
    parser = argparse.ArgumentParser(
        prog="detour",
        description="Detour — rules-file redirects in front of an ASGI site.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- detour run -------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Start dev or production server")
    run_parser.add_argument(
        "app",
        help="Import string (e.g. myapp:app)",
    )
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument(
        "--production",
        action="store_true",
        help="Run in production mode (proxy headers, multiple workers)",
    )
    run_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker process count (production only)",
    )

    # -- detour check -----------------------------------------------------
    check_parser = subparsers.add_parser("check", help="Compile a rules file and report problems")
    check_parser.add_argument("rules", help="Path to the rules file (e.g. _redirects)")

    # -- detour match -----------------------------------------------------
    match_parser = subparsers.add_parser("match", help="Show where a request would be redirected")
    match_parser.add_argument("rules", help="Path to the rules file (e.g. _redirects)")
    match_parser.add_argument("method", help="Request method (e.g. GET)")
    match_parser.add_argument("url", help="Request path and query (e.g. /old/42?ref=x)")
    match_parser.add_argument(
        "--host",
        default="localhost:3000",
        help="Host header to simulate (default: localhost:3000)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from detour.cli._run import run_server

        run_server(args)
    elif args.command == "check":
        from detour.cli._check import run_check

        run_check(args)
    elif args.command == "match":
        from detour.cli._match import run_match

        run_match(args)
