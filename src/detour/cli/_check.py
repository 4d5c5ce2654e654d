"""``detour check`` — compile a rules file and report every problem.

Prints one line per compiled rule and per skipped line. Exits with code 1
if any line was skipped or the file cannot be read.
"""

import argparse
import sys

from detour.redirects.rules import parse_rules


def run_check(args: argparse.Namespace) -> None:
    """Validate ``args.rules`` and print the results."""
    try:
        with open(args.rules, encoding="utf-8") as fh:
            text = fh.read()
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    rule_set = parse_rules(text)

    for rule in rule_set.rules:
        print(f"  ok    {rule}")
    for skipped in rule_set.skipped:
        print(f"  skip  {skipped.describe()}")

    print(f"{len(rule_set.rules)} rule(s), {len(rule_set.skipped)} skipped")
    if rule_set.skipped:
        raise SystemExit(1)
