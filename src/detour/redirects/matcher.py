"""Per-request redirect matching.

``RedirectMatcher`` walks a ``RuleSet`` in order and returns the first
rule that fires, with the destination URL fully rebuilt:

- the scheme comes from the request (``http`` for hosts containing
  ``localhost``, ``https`` otherwise);
- ``same_host`` destinations adopt the request host;
- every incoming query parameter is appended to the destination query;
- captured path parameters are substituted into the destination path.

Nothing here raises into the request path. A request whose URL cannot be
rebuilt passes through; a rule that errors is logged and skipped.
"""

import logging
import re
from dataclasses import dataclass
from typing import Literal
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from detour.http.request import Request
from detour.http.response import Redirect
from detour.redirects.rules import RedirectRule, RuleSet

logger = logging.getLogger("detour.redirects")

REDIRECT_STATUS = 307

_DEFAULT_PORTS = {"http": 80, "https": 443}

# Characters that may not appear in a host (WHATWG forbidden host code points)
_FORBIDDEN_HOST = re.compile(r"[\x00-\x20\x7f#/<>?@\\^|%]")


def request_protocol(host: str) -> str:
    """Protocol used to rebuild URLs for *host*.

    Any host containing ``localhost`` is served over plain ``http``.
    """
    return "http" if "localhost" in host else "https"


@dataclass(frozen=True, slots=True)
class RequestURL:
    """The incoming request, rebuilt as an absolute URL."""

    url: str
    protocol: str
    host: str
    query: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True, slots=True)
class InvalidRequestURL:
    """The request could not be rebuilt as a URL; redirects are skipped."""

    url: str
    reason: str


def resolve_request_url(host: str | None, target: str) -> RequestURL | InvalidRequestURL:
    """Rebuild ``protocol://host + target`` for a request.

    *target* is the raw request target (path and query string). ``host``
    in the result is normalised: lowercased, default port dropped.
    """
    if not host:
        return InvalidRequestURL(f"?://{host or ''}{target}", "missing Host header")

    protocol = request_protocol(host)
    url = f"{protocol}://{host}{target}"

    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as exc:
        return InvalidRequestURL(url, str(exc))

    hostname = parts.hostname
    if (
        parts.netloc != host
        or not hostname
        or not host.isascii()
        or _FORBIDDEN_HOST.search(parts.netloc)
    ):
        return InvalidRequestURL(url, "malformed host")

    netloc = f"[{hostname}]" if ":" in hostname else hostname
    if port is not None and port != _DEFAULT_PORTS[protocol]:
        netloc = f"{netloc}:{port}"

    return RequestURL(
        url=url,
        protocol=protocol,
        host=netloc,
        query=tuple(parse_qsl(parts.query, keep_blank_values=True)),
    )


@dataclass(frozen=True, slots=True)
class RedirectMatch:
    """A rule fired: where to send the client."""

    rule: RedirectRule
    location: str
    params: dict[str, str]
    status: int = REDIRECT_STATUS

    def to_redirect(self) -> Redirect:
        return Redirect(self.location, status=self.status)


@dataclass(frozen=True, slots=True)
class NoMatch:
    """The rule did not apply to this request."""

    reason: Literal["method", "path"]


@dataclass(frozen=True, slots=True)
class RuleError:
    """Evaluating the rule raised; the rule is treated as not matching."""

    rule: RedirectRule
    error: Exception


def build_location(rule: RedirectRule, params: dict[str, str], request_url: RequestURL) -> str:
    """Rebuild the destination URL for a matched rule.

    Works on copies only; the rule's parsed destination is never mutated.
    Raises ``PatternError`` if the destination path cannot be expanded.
    """
    destination = rule.destination
    netloc = request_url.host if destination.same_host else destination.netloc

    query = destination.query
    if request_url.query:
        pairs = parse_qsl(destination.query, keep_blank_values=True)
        pairs.extend(request_url.query)
        query = urlencode(pairs)

    path = rule.target.expand(params)
    return urlunsplit((request_url.protocol, netloc, path, query, destination.fragment))


class RedirectMatcher:
    """First-match-wins evaluation of a compiled ``RuleSet``.

    Stateless apart from the rule set it closes over, so one instance is
    shared by every request.

    Usage::

        matcher = RedirectMatcher(load_rules("_redirects"))
        found = matcher.match("GET", "/old/42", "/old/42?ref=x", "example.com")
        if found is not None:
            return found.to_redirect()
    """

    __slots__ = ("rule_set",)

    def __init__(self, rule_set: RuleSet) -> None:
        self.rule_set = rule_set

    def try_rule(
        self,
        rule: RedirectRule,
        method: str,
        path: str,
        request_url: RequestURL,
    ) -> RedirectMatch | NoMatch | RuleError:
        """Evaluate a single rule. Never raises."""
        try:
            if not rule.allows(method):
                return NoMatch("method")
            params = rule.source.match(path)
            if params is None:
                return NoMatch("path")
            location = build_location(rule, params, request_url)
        except Exception as exc:  # noqa: BLE001
            return RuleError(rule, exc)
        return RedirectMatch(rule=rule, location=location, params=params)

    def match(
        self,
        method: str,
        path: str,
        target: str,
        host: str | None,
    ) -> RedirectMatch | None:
        """Find the redirect for a request, or ``None`` to pass through.

        Args:
            method: Request method, e.g. ``"GET"``.
            path: Decoded request path, matched against rule sources.
            target: Raw request target (path and query string).
            host: Effective host (``X-Forwarded-Host`` or ``Host``).
        """
        if not self.rule_set.rules:
            return None

        request_url = resolve_request_url(host, target)
        if isinstance(request_url, InvalidRequestURL):
            logger.error("Invalid URL: %s (%s)", request_url.url, request_url.reason)
            return None

        for rule in self.rule_set:
            outcome = self.try_rule(rule, method, path, request_url)
            if isinstance(outcome, RedirectMatch):
                return outcome
            if isinstance(outcome, RuleError):
                logger.error(
                    "Error processing redirects: rule=%s url=%s",
                    outcome.rule,
                    request_url.url,
                    exc_info=outcome.error,
                )
        return None

    def match_request(self, request: Request) -> RedirectMatch | None:
        """``match()`` for a ``Request``."""
        return self.match(request.method, request.path, request.url, request.host)
