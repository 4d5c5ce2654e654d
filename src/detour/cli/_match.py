"""``detour match`` — show which rule a request hits and where it goes."""

import argparse
import sys
from urllib.parse import unquote

from detour.redirects.matcher import RedirectMatcher
from detour.redirects.rules import load_rules


def run_match(args: argparse.Namespace) -> None:
    """Evaluate one simulated request against ``args.rules``."""
    try:
        rule_set = load_rules(args.rules)
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    path = unquote(args.url.partition("?")[0])
    found = RedirectMatcher(rule_set).match(args.method.upper(), path, args.url, args.host)

    if found is None:
        print("pass-through")
        return

    print(f"{found.status} {found.location}")
    print(f"  rule  {found.rule}")
    for name, value in found.params.items():
        print(f"  param {name}={value}")
