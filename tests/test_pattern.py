"""Tests for detour.redirects.pattern — path patterns and templates."""

import pytest

from detour.errors import PatternError
from detour.redirects.pattern import (
    DEFAULT_PATTERN,
    ParamKey,
    compile_pattern,
    compile_template,
    encode_component,
    encode_uri,
    parse,
)


class TestParse:
    def test_literal_only(self) -> None:
        assert parse("/about") == ["/about"]

    def test_named_param_takes_slash_prefix(self) -> None:
        assert parse("/old/:id") == ["/old", ParamKey("id", prefix="/")]

    def test_dot_prefix(self) -> None:
        assert parse("/feed.:format") == ["/feed", ParamKey("format", prefix=".")]

    def test_other_chars_stay_literal(self) -> None:
        assert parse("/a-:b") == ["/a-", ParamKey("b")]

    def test_unnamed_groups_are_numbered(self) -> None:
        tokens = parse("/(\\d+)/(\\w+)")
        assert tokens == [
            ParamKey("0", prefix="/", pattern="\\d+"),
            ParamKey("1", prefix="/", pattern="\\w+"),
        ]

    def test_modifier(self) -> None:
        assert parse("/files/:path*") == ["/files", ParamKey("path", prefix="/", modifier="*")]

    def test_brace_group(self) -> None:
        assert parse("/docs{/:section}?") == [
            "/docs",
            ParamKey("section", prefix="/", pattern=DEFAULT_PATTERN, modifier="?"),
        ]

    def test_escaped_char_is_literal(self) -> None:
        assert parse("/a\\:b") == ["/a:b"]

    @pytest.mark.parametrize(
        "source",
        [
            "/:",
            "/a(",
            "/a/(?:x)",
            "/*",
            "/a/:id(a(b))",
            "/a{b",
            "/a\\",
            "/a()",
        ],
    )
    def test_malformed(self, source: str) -> None:
        with pytest.raises(PatternError):
            parse(source)


class TestParamKey:
    def test_flags(self) -> None:
        assert ParamKey("a", modifier="?").optional
        assert not ParamKey("a", modifier="?").repeat
        assert ParamKey("a", modifier="*").optional
        assert ParamKey("a", modifier="*").repeat
        assert ParamKey("a", modifier="+").repeat
        assert not ParamKey("a", modifier="+").optional


class TestPathPattern:
    def test_named_match(self) -> None:
        assert compile_pattern("/old/:id").match("/old/42") == {"id": "42"}

    def test_case_insensitive(self) -> None:
        assert compile_pattern("/old/:id").match("/OLD/42") == {"id": "42"}

    def test_trailing_delimiter_tolerated(self) -> None:
        assert compile_pattern("/old/:id").match("/old/42/") == {"id": "42"}

    def test_extra_segment_rejected(self) -> None:
        assert compile_pattern("/old/:id").match("/old/42/more") is None

    def test_required_param_missing(self) -> None:
        assert compile_pattern("/old/:id").match("/old") is None

    def test_literal(self) -> None:
        pattern = compile_pattern("/about")
        assert pattern.match("/about") == {}
        assert pattern.match("/about/") == {}
        assert pattern.match("/aboutx") is None

    def test_literal_regex_chars_escaped(self) -> None:
        pattern = compile_pattern("/a.b")
        assert pattern.match("/a.b") == {}
        assert pattern.match("/axb") is None

    def test_optional(self) -> None:
        pattern = compile_pattern("/blog/:slug?")
        assert pattern.match("/blog") == {}
        assert pattern.match("/blog/hello") == {"slug": "hello"}

    def test_zero_or_more(self) -> None:
        pattern = compile_pattern("/files/:path*")
        assert pattern.match("/files") == {}
        assert pattern.match("/files/a/b/c") == {"path": "a/b/c"}

    def test_one_or_more(self) -> None:
        pattern = compile_pattern("/files/:path+")
        assert pattern.match("/files") is None
        assert pattern.match("/files/a/b") == {"path": "a/b"}

    def test_custom_pattern(self) -> None:
        pattern = compile_pattern("/posts/:id(\\d+)")
        assert pattern.match("/posts/12") == {"id": "12"}
        assert pattern.match("/posts/ab") is None

    def test_unnamed_group(self) -> None:
        assert compile_pattern("/(\\d+)").match("/12") == {"0": "12"}

    def test_brace_group(self) -> None:
        pattern = compile_pattern("/docs{/:section}?")
        assert pattern.match("/docs") == {}
        assert pattern.match("/docs/intro") == {"section": "intro"}

    def test_default_pattern_stops_at_query_and_fragment(self) -> None:
        pattern = compile_pattern("/a/:b")
        assert pattern.match("/a/x?y") is None
        assert pattern.match("/a/x#y") is None

    def test_keys_in_declaration_order(self) -> None:
        pattern = compile_pattern("/:year/:month")
        assert [key.name for key in pattern.keys] == ["year", "month"]
        assert pattern.match("/2024/05") == {"year": "2024", "month": "05"}

    def test_invalid_regex_raises(self) -> None:
        with pytest.raises(PatternError):
            compile_pattern("/a/:id([)")


class TestEncodeComponent:
    def test_matches_encode_uri_component(self) -> None:
        assert encode_component("a b/c?d#e") == "a%20b%2Fc%3Fd%23e"
        assert encode_component("it's (fine)!*") == "it's%20(fine)!*"
        assert encode_component("~-_.") == "~-_."

    def test_unicode(self) -> None:
        assert encode_component("café") == "caf%C3%A9"


class TestEncodeURI:
    def test_reserved_characters_kept(self) -> None:
        assert encode_uri("/a?b=c&d#e") == "/a?b=c&d#e"

    def test_existing_escapes_kept(self) -> None:
        assert encode_uri("/a%20b") == "/a%20b"

    def test_unicode(self) -> None:
        assert encode_uri("/€uro") == "/%E2%82%ACuro"


class TestPathTemplate:
    def test_expand(self) -> None:
        assert compile_template("/new/:id").expand({"id": "42"}) == "/new/42"

    def test_literal_template(self) -> None:
        assert compile_template("/landing").expand({"unused": "x"}) == "/landing"

    def test_values_are_encoded(self) -> None:
        assert compile_template("/new/:id").expand({"id": "a b/c"}) == "/new/a%20b%2Fc"

    def test_unicode_literals_are_encoded(self) -> None:
        assert compile_template("/café/:id").expand({"id": "1"}) == "/caf%C3%A9/1"

    def test_encoded_literals_left_alone(self) -> None:
        assert compile_template("/a%20b/:id").expand({"id": "1"}) == "/a%20b/1"

    def test_missing_required(self) -> None:
        with pytest.raises(PatternError, match='Expected "id" to be a string'):
            compile_template("/new/:id").expand({})

    def test_missing_optional_dropped_with_prefix(self) -> None:
        assert compile_template("/blog/:slug?").expand({}) == "/blog"

    def test_pattern_mismatch(self) -> None:
        with pytest.raises(PatternError, match='Expected "id" to match'):
            compile_template("/posts/:id(\\d+)").expand({"id": "abc"})

    def test_repeat_accepts_sequence(self) -> None:
        template = compile_template("/files/:path*")
        assert template.expand({"path": ["a", "b"]}) == "/files/a/b"
        assert template.expand({"path": []}) == "/files"

    def test_required_repeat_rejects_empty_sequence(self) -> None:
        with pytest.raises(PatternError, match="to not be empty"):
            compile_template("/files/:path+").expand({"path": []})

    def test_non_repeat_rejects_sequence(self) -> None:
        with pytest.raises(PatternError, match="to not repeat"):
            compile_template("/new/:id").expand({"id": ["a", "b"]})

    def test_custom_encoder(self) -> None:
        template = compile_template("/new/:id", encode=str.upper)
        assert template.expand({"id": "abc"}) == "/new/ABC"

    def test_round_trip_with_pattern(self) -> None:
        params = compile_pattern("/old/:year/:slug").match("/old/2020/hello")
        assert params is not None
        assert compile_template("/new/:slug/:year").expand(params) == "/new/hello/2020"
