"""Redirect rules: parse a ``_redirects`` file into compiled rules.

File format, one rule per line::

    # comment
    /old/:id                    /new/:id
    GET,HEAD /feed              https://feeds.example.com/main.xml
    *        /chats/:season     /seasons/:season

An optional first column lists methods (``HEAD GET POST PUT DELETE
PATCH`` or ``*``). The source is a path pattern; the destination is a
path (same host as the request) or an absolute URL.

Compilation never raises for bad rule content. ``parse_line`` returns a
``SkippedLine`` describing why a line was dropped, and ``compile_rules``
logs it and carries on. Only an unreadable file is fatal.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Literal
from urllib.parse import urlsplit

from detour.errors import PatternError
from detour.redirects.pattern import (
    PathPattern,
    PathTemplate,
    compile_pattern,
    compile_template,
    encode_uri,
)

logger = logging.getLogger("detour.redirects")

HTTP_METHODS = frozenset({"HEAD", "GET", "POST", "PUT", "DELETE", "PATCH"})
ANY_METHOD = "*"

# Placeholder host for path-only destinations; replaced by the request host
SAME_HOST = "same_host"

type SkipReason = Literal["missing-target", "compile-error"]


@dataclass(frozen=True, slots=True)
class Destination:
    """A parsed destination URL.

    ``path`` is the raw destination path pattern (``/new/:id``), expanded
    per request by the rule's ``PathTemplate``. ``scheme`` is a
    placeholder: the matcher always replaces it with the request protocol.
    """

    scheme: str
    netloc: str
    path: str
    query: str = ""
    fragment: str = ""

    @property
    def same_host(self) -> bool:
        """True when the destination inherits the request's host."""
        return self.netloc == SAME_HOST


def _ascii_netloc(netloc: str, to: str) -> str:
    if netloc.isascii():
        return netloc
    userinfo, at, hostport = netloc.rpartition("@")
    host, colon, port = hostport.partition(":")
    try:
        host = host.encode("idna").decode("ascii")
    except UnicodeError as exc:
        msg = f"Invalid destination host in {to!r}: {exc}"
        raise PatternError(msg) from exc
    return f"{encode_uri(userinfo)}{at}{host}{colon}{port}"


def parse_destination(to: str) -> Destination:
    """Parse the destination column of a rule.

    Anything containing ``//`` is an absolute URL and must carry a scheme
    and host. Everything else is a path (or ``?query`` / ``#fragment``)
    resolved against the ``same_host`` sentinel.

    Non-ASCII text is normalised here: the host is IDNA-encoded and the
    query and fragment are percent-encoded. The path stays as written
    because it is a template; ``compile_template`` encodes its literals.

    Raises ``PatternError`` if the URL is malformed.
    """
    if "//" in to:
        try:
            parts = urlsplit(to)
        except ValueError as exc:
            msg = f"Invalid destination URL {to!r}: {exc}"
            raise PatternError(msg) from exc
        if not parts.scheme or not parts.netloc:
            msg = f"Invalid destination URL {to!r}: expected scheme://host"
            raise PatternError(msg)
    else:
        if not to.startswith(("/", "?", "#")):
            msg = f"Invalid destination {to!r}: paths must start with '/'"
            raise PatternError(msg)
        parts = urlsplit(f"https://{SAME_HOST}{to}")

    try:
        parts.port  # noqa: B018
    except ValueError as exc:
        msg = f"Invalid destination URL {to!r}: {exc}"
        raise PatternError(msg) from exc

    return Destination(
        scheme=parts.scheme,
        netloc=_ascii_netloc(parts.netloc, to),
        path=parts.path or "/",
        query=encode_uri(parts.query),
        fragment=encode_uri(parts.fragment),
    )


@dataclass(frozen=True, slots=True)
class RedirectRule:
    """A fully compiled redirect rule. Never mutated after compilation."""

    methods: frozenset[str]
    source: PathPattern
    target: PathTemplate
    destination: Destination
    line_number: int = 0
    line: str = ""

    def allows(self, method: str) -> bool:
        """Whether requests with *method* are subject to this rule."""
        return ANY_METHOD in self.methods or method in self.methods

    def __str__(self) -> str:
        if self.line:
            return f"line {self.line_number}: {self.line}"
        return f"{','.join(sorted(self.methods))} {self.source.source} {self.target.source}"


@dataclass(frozen=True, slots=True)
class SkippedLine:
    """A rules-file line that did not become a rule."""

    line_number: int
    line: str
    reason: SkipReason
    detail: str = ""

    def describe(self) -> str:
        """Human-readable diagnostic, as logged at compile time."""
        if self.reason == "missing-target":
            return f'Invalid redirect on line {self.line_number}: "{self.line}"'
        return f'Failed to parse redirect on line {self.line_number}: "{self.line}" ({self.detail})'


@dataclass(frozen=True, slots=True)
class RuleSet:
    """The compiled, ordered rule set. First match wins.

    Immutable: built once at startup and shared by every request.
    """

    rules: tuple[RedirectRule, ...] = ()
    skipped: tuple[SkippedLine, ...] = ()

    def __iter__(self) -> Iterator[RedirectRule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)


def _split_columns(line: str) -> tuple[list[str], str | None, str | None]:
    """Resolve ``[methods] from to`` columns."""
    columns = line.split()
    first = columns[0].split(",")
    if any(token in HTTP_METHODS or token == ANY_METHOD for token in first):
        return (
            first,
            columns[1] if len(columns) > 1 else None,
            columns[2] if len(columns) > 2 else None,
        )
    return [ANY_METHOD], columns[0], columns[1] if len(columns) > 1 else None


def parse_line(line: str, line_number: int) -> RedirectRule | SkippedLine | None:
    """Compile one line of a rules file.

    Returns ``None`` for blank and comment lines, a ``RedirectRule`` on
    success, and a ``SkippedLine`` otherwise. Never raises.
    """
    line = line.strip()
    if not line or line.startswith("#"):
        return None

    methods, source, to = _split_columns(line)
    if not source or not to:
        return SkippedLine(line_number, line, "missing-target")

    try:
        destination = parse_destination(to)
        return RedirectRule(
            methods=frozenset(methods),
            source=compile_pattern(source),
            target=compile_template(destination.path),
            destination=destination,
            line_number=line_number,
            line=line,
        )
    except (PatternError, ValueError) as exc:
        return SkippedLine(line_number, line, "compile-error", str(exc))


def parse_rules(text: str) -> RuleSet:
    """Compile the full text of a rules file. Pure: no logging, no I/O."""
    rules: list[RedirectRule] = []
    skipped: list[SkippedLine] = []
    for index, raw in enumerate(text.split("\n")):
        result = parse_line(raw, index + 1)
        if isinstance(result, RedirectRule):
            rules.append(result)
        elif isinstance(result, SkippedLine):
            skipped.append(result)
    return RuleSet(rules=tuple(rules), skipped=tuple(skipped))


def compile_rules(text: str) -> RuleSet:
    """Compile rules text, logging a diagnostic for every skipped line."""
    rule_set = parse_rules(text)
    for skipped in rule_set.skipped:
        logger.error(skipped.describe())
    logger.debug(
        "Compiled %d redirect rule(s), skipped %d line(s)",
        len(rule_set.rules),
        len(rule_set.skipped),
    )
    return rule_set


def load_rules(path: str | PathLike[str]) -> RuleSet:
    """Read and compile a rules file.

    Raises ``OSError`` if the file cannot be read; a missing rules file
    is a deployment defect, not a bad rule.
    """
    text = Path(path).read_text(encoding="utf-8")
    return compile_rules(text)
