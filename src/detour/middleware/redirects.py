"""Redirects middleware: answer matching requests with a 307.

Runs first in the pipeline. Requests that match no rule continue
untouched to the next middleware.
"""

from os import PathLike

from detour.http.request import Request
from detour.middleware.protocol import AnyResponse, Next
from detour.redirects.matcher import RedirectMatcher
from detour.redirects.rules import RuleSet, load_rules


class RedirectsMiddleware:
    """Evaluate the compiled rule set for every request.

    Usage::

        app.add_middleware(RedirectsMiddleware(load_rules("_redirects")))

    or, equivalently::

        app.add_middleware(RedirectsMiddleware.from_file("_redirects"))
    """

    __slots__ = ("matcher",)

    def __init__(self, rules: RuleSet | RedirectMatcher) -> None:
        self.matcher = rules if isinstance(rules, RedirectMatcher) else RedirectMatcher(rules)

    @classmethod
    def from_file(cls, path: str | PathLike[str]) -> "RedirectsMiddleware":
        """Load and compile a rules file. ``OSError`` propagates."""
        return cls(load_rules(path))

    @property
    def rule_set(self) -> RuleSet:
        return self.matcher.rule_set

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        found = self.matcher.match_request(request)
        if found is None:
            return await next(request)
        return found.to_redirect()
