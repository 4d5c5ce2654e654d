"""Redirects — a declarative rules file compiled into a first-match-wins matcher.

Rules are compiled once at startup (``load_rules``) into an immutable
``RuleSet``; ``RedirectMatcher`` evaluates each request against it.
"""

from detour.redirects.matcher import (
    REDIRECT_STATUS,
    InvalidRequestURL,
    NoMatch,
    RedirectMatch,
    RedirectMatcher,
    RequestURL,
    RuleError,
    resolve_request_url,
)
from detour.redirects.pattern import PathPattern, PathTemplate, compile_pattern, compile_template
from detour.redirects.rules import (
    SAME_HOST,
    Destination,
    RedirectRule,
    RuleSet,
    SkippedLine,
    compile_rules,
    load_rules,
    parse_line,
    parse_rules,
)

__all__ = [
    "REDIRECT_STATUS",
    "SAME_HOST",
    "Destination",
    "InvalidRequestURL",
    "NoMatch",
    "PathPattern",
    "PathTemplate",
    "RedirectMatch",
    "RedirectMatcher",
    "RedirectRule",
    "RequestURL",
    "RuleError",
    "RuleSet",
    "SkippedLine",
    "compile_pattern",
    "compile_rules",
    "compile_template",
    "load_rules",
    "parse_line",
    "parse_rules",
    "resolve_request_url",
]
