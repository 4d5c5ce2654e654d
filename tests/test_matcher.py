"""Tests for detour.redirects.matcher — per-request rule evaluation."""

import logging

import pytest

from detour.http.headers import Headers
from detour.http.query import QueryParams
from detour.http.request import Request
from detour.http.response import Redirect
from detour.redirects.matcher import (
    REDIRECT_STATUS,
    InvalidRequestURL,
    NoMatch,
    RedirectMatch,
    RedirectMatcher,
    RequestURL,
    RuleError,
    build_location,
    request_protocol,
    resolve_request_url,
)
from detour.redirects.rules import RedirectRule, RuleSet, parse_line, parse_rules

RULES = """\
/old/:id            /new/:id
GET /get-only       /got
/external           https://example.org/landing?src=detour#top
/first              /winner
/first              /loser
/x/:id              /y/:id(\\d+)
/x/:id              /fallback/:id
"""


@pytest.fixture
def matcher() -> RedirectMatcher:
    return RedirectMatcher(parse_rules(RULES))


def _rule(line: str) -> RedirectRule:
    rule = parse_line(line, 1)
    assert isinstance(rule, RedirectRule)
    return rule


class TestRequestProtocol:
    def test_localhost_is_http(self) -> None:
        assert request_protocol("localhost:3000") == "http"

    def test_substring_heuristic(self) -> None:
        assert request_protocol("mylocalhost.dev") == "http"

    def test_everything_else_is_https(self) -> None:
        assert request_protocol("example.com") == "https"
        assert request_protocol("127.0.0.1:3000") == "https"


class TestResolveRequestURL:
    def test_basic(self) -> None:
        url = resolve_request_url("example.com", "/a?x=1&x=2&y=")
        assert isinstance(url, RequestURL)
        assert url.url == "https://example.com/a?x=1&x=2&y="
        assert url.protocol == "https"
        assert url.host == "example.com"
        assert url.query == (("x", "1"), ("x", "2"), ("y", ""))

    def test_host_normalised(self) -> None:
        url = resolve_request_url("Example.COM:443", "/")
        assert isinstance(url, RequestURL)
        assert url.host == "example.com"

    def test_non_default_port_kept(self) -> None:
        url = resolve_request_url("localhost:3000", "/")
        assert isinstance(url, RequestURL)
        assert url.protocol == "http"
        assert url.host == "localhost:3000"

    def test_ipv6(self) -> None:
        url = resolve_request_url("[::1]:8443", "/")
        assert isinstance(url, RequestURL)
        assert url.host == "[::1]:8443"

    @pytest.mark.parametrize(
        "host",
        [
            None,
            "",
            "exa mple.com",
            "example.com:abc",
            "user@example.com",
            "example.com/evil",
            "example.com?q",
            "exämple.com",
            ":8080",
        ],
    )
    def test_invalid(self, host: str | None) -> None:
        assert isinstance(resolve_request_url(host, "/"), InvalidRequestURL)


class TestBuildLocation:
    def test_same_host(self) -> None:
        url = resolve_request_url("example.com", "/old/1")
        assert isinstance(url, RequestURL)
        assert build_location(_rule("/old/:id /new/:id"), {"id": "1"}, url) == (
            "https://example.com/new/1"
        )

    def test_destination_query_then_request_query(self) -> None:
        url = resolve_request_url("example.com", "/a?utm=x&b=")
        assert isinstance(url, RequestURL)
        location = build_location(_rule("/a https://example.org/b?src=1#frag"), {}, url)
        assert location == "https://example.org/b?src=1&utm=x&b=#frag"

    def test_destination_query_kept_verbatim_without_request_query(self) -> None:
        url = resolve_request_url("example.com", "/a")
        assert isinstance(url, RequestURL)
        assert build_location(_rule("/a /b?x=%20"), {}, url) == "https://example.com/b?x=%20"

    def test_scheme_follows_request(self) -> None:
        url = resolve_request_url("localhost:3000", "/a")
        assert isinstance(url, RequestURL)
        assert build_location(_rule("/a https://example.org/b"), {}, url) == (
            "http://example.org/b"
        )


class TestTryRule:
    def test_method_mismatch(self, matcher: RedirectMatcher) -> None:
        url = resolve_request_url("example.com", "/get-only")
        assert isinstance(url, RequestURL)
        rule = matcher.rule_set.rules[1]
        assert matcher.try_rule(rule, "POST", "/get-only", url) == NoMatch("method")

    def test_path_mismatch(self, matcher: RedirectMatcher) -> None:
        url = resolve_request_url("example.com", "/nope")
        assert isinstance(url, RequestURL)
        rule = matcher.rule_set.rules[0]
        assert matcher.try_rule(rule, "GET", "/nope", url) == NoMatch("path")

    def test_error_is_captured(self, matcher: RedirectMatcher) -> None:
        url = resolve_request_url("example.com", "/x/abc")
        assert isinstance(url, RequestURL)
        rule = matcher.rule_set.rules[5]
        outcome = matcher.try_rule(rule, "GET", "/x/abc", url)
        assert isinstance(outcome, RuleError)
        assert outcome.rule is rule


class TestRedirectMatcher:
    def test_redirect(self, matcher: RedirectMatcher) -> None:
        found = matcher.match("GET", "/old/42", "/old/42", "example.com")
        assert isinstance(found, RedirectMatch)
        assert found.location == "https://example.com/new/42"
        assert found.status == REDIRECT_STATUS == 307
        assert found.params == {"id": "42"}

    def test_to_redirect(self, matcher: RedirectMatcher) -> None:
        found = matcher.match("GET", "/old/42", "/old/42", "example.com")
        assert found is not None
        assert found.to_redirect() == Redirect("https://example.com/new/42", status=307)

    def test_no_match(self, matcher: RedirectMatcher) -> None:
        assert matcher.match("GET", "/elsewhere", "/elsewhere", "example.com") is None

    def test_query_forwarded(self, matcher: RedirectMatcher) -> None:
        found = matcher.match("GET", "/old/42", "/old/42?ref=rss&x=1", "example.com")
        assert found is not None
        assert found.location == "https://example.com/new/42?ref=rss&x=1"

    def test_external_destination(self, matcher: RedirectMatcher) -> None:
        found = matcher.match("GET", "/external", "/external?utm=a", "example.com")
        assert found is not None
        assert found.location == "https://example.org/landing?src=detour&utm=a#top"

    def test_localhost_gets_http(self, matcher: RedirectMatcher) -> None:
        found = matcher.match("GET", "/old/1", "/old/1", "localhost:3000")
        assert found is not None
        assert found.location == "http://localhost:3000/new/1"

    def test_method_filter(self, matcher: RedirectMatcher) -> None:
        assert matcher.match("POST", "/get-only", "/get-only", "example.com") is None
        found = matcher.match("GET", "/get-only", "/get-only", "example.com")
        assert found is not None
        assert found.location == "https://example.com/got"

    def test_first_match_wins(self, matcher: RedirectMatcher) -> None:
        found = matcher.match("GET", "/first", "/first", "example.com")
        assert found is not None
        assert found.location == "https://example.com/winner"

    def test_case_insensitive_and_trailing_slash(self, matcher: RedirectMatcher) -> None:
        found = matcher.match("GET", "/OLD/7/", "/OLD/7/", "example.com")
        assert found is not None
        assert found.location == "https://example.com/new/7"

    def test_params_are_encoded(self, matcher: RedirectMatcher) -> None:
        found = matcher.match("GET", "/old/a b", "/old/a%20b", "example.com")
        assert found is not None
        assert found.location == "https://example.com/new/a%20b"

    def test_encoded_slash_is_not_a_segment_match(self, matcher: RedirectMatcher) -> None:
        assert matcher.match("GET", "/old/a/b", "/old/a%2Fb", "example.com") is None

    def test_encoded_question_mark_is_not_a_segment_match(self, matcher: RedirectMatcher) -> None:
        assert matcher.match("GET", "/old/a?b", "/old/a%3Fb", "example.com") is None

    def test_failing_rule_is_skipped(
        self, matcher: RedirectMatcher, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.ERROR, logger="detour.redirects"):
            found = matcher.match("GET", "/x/abc", "/x/abc", "example.com")
        assert found is not None
        assert found.location == "https://example.com/fallback/abc"
        assert "Error processing redirects" in caplog.text
        assert caplog.records[0].exc_info is not None

    def test_invalid_host_passes_through(
        self, matcher: RedirectMatcher, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.ERROR, logger="detour.redirects"):
            assert matcher.match("GET", "/old/1", "/old/1", "bad host") is None
        assert "Invalid URL" in caplog.text

    def test_missing_host_passes_through(self, matcher: RedirectMatcher) -> None:
        assert matcher.match("GET", "/old/1", "/old/1", None) is None

    def test_empty_rule_set_skips_url_check(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="detour.redirects"):
            assert RedirectMatcher(RuleSet()).match("GET", "/", "/", None) is None
        assert caplog.records == []

    def test_rules_not_mutated_between_requests(self, matcher: RedirectMatcher) -> None:
        first = matcher.match("GET", "/external", "/external?a=1", "example.com")
        second = matcher.match("GET", "/external", "/external?b=2", "localhost:3000")
        assert first is not None
        assert second is not None
        assert first.location == "https://example.org/landing?src=detour&a=1#top"
        assert second.location == "http://example.org/landing?src=detour&b=2#top"
        assert matcher.rule_set.rules[2].destination.query == "src=detour"


class TestMatchRequest:
    def _request(self, path: str, query: bytes = b"", **headers: str) -> Request:
        return Request(
            method="GET",
            path=path,
            raw_path=path,
            headers=Headers.from_dict({k.replace("_", "-"): v for k, v in headers.items()}),
            query=QueryParams(query),
        )

    def test_uses_host_header(self, matcher: RedirectMatcher) -> None:
        found = matcher.match_request(self._request("/old/5", b"q=1", host="example.com"))
        assert found is not None
        assert found.location == "https://example.com/new/5?q=1"

    def test_forwarded_host_wins(self, matcher: RedirectMatcher) -> None:
        request = self._request(
            "/old/5", host="internal:8080", x_forwarded_host="www.example.com"
        )
        found = matcher.match_request(request)
        assert found is not None
        assert found.location == "https://www.example.com/new/5"


class TestNonASCIIDestinations:
    def _location(self, line: str, target: str, host: str = "example.com") -> str:
        found = RedirectMatcher(RuleSet((_rule(line),))).match(
            "GET", target.partition("?")[0], target, host
        )
        assert found is not None
        assert found.location.isascii()
        return found.location

    def test_path_literal(self) -> None:
        assert self._location("/euro /€uro", "/euro") == "https://example.com/%E2%82%ACuro"

    def test_latin1_path_literal(self) -> None:
        assert self._location("/cafe /café", "/cafe") == "https://example.com/caf%C3%A9"

    def test_query_and_fragment(self) -> None:
        assert self._location("/q /b?q=ü#größe", "/q") == (
            "https://example.com/b?q=%C3%BC#gr%C3%B6%C3%9Fe"
        )

    def test_query_merged_with_request_query(self) -> None:
        assert self._location("/q /b?q=ü", "/q?r=1") == "https://example.com/b?q=%C3%BC&r=1"

    def test_idn_host(self) -> None:
        assert self._location("/shop https://bücher.example/x", "/shop") == (
            "https://xn--bcher-kva.example/x"
        )

    def test_idn_host_with_port(self) -> None:
        assert self._location("/shop https://bücher.example:8443/x", "/shop") == (
            "https://xn--bcher-kva.example:8443/x"
        )
