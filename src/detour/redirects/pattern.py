"""Path patterns: ``:param`` matchers and reversible path templates.

The syntax is the ``path-to-regexp`` dialect redirect files are written in::

    /old/:id              named parameter, matches one segment
    /files/:path*         zero or more segments
    /posts/:id(\\d+)       custom pattern
    /blog/:slug?          optional (the leading "/" goes with it)
    /docs{/:section}?     group with explicit prefix
    /(\\d+)                unnamed parameter, keyed "0"

A pattern is parsed once into tokens (literal strings and ``ParamKey``
objects). ``compile_pattern`` turns the tokens into an anchored,
case-insensitive regex; ``compile_template`` turns them into a
``PathTemplate`` that substitutes parameters back in.
"""

import re
import string
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from urllib.parse import quote

from detour.errors import PatternError

DEFAULT_PATTERN = r"[^/#?]+?"

# Characters that attach to a directly following parameter as its prefix
PREFIXES = "./"

# A match may end with one of these (non-strict trailing delimiter)
_TRAILING_DELIMITER = r"[/#?]?"

_NAME_CHARS = frozenset(string.ascii_letters + string.digits + "_")
_MODIFIERS = frozenset("*+?")


def encode_component(value: str) -> str:
    """Percent-encode *value* like JavaScript's ``encodeURIComponent``."""
    return quote(value, safe="!'()*")


def encode_uri(value: str) -> str:
    """Percent-encode *value* like JavaScript's ``encodeURI``.

    Reserved characters and existing ``%XX`` escapes are left alone, so
    text that is already encoded passes through unchanged.
    """
    return quote(value, safe=";,/?:@&=+$!*'()#%")


@dataclass(frozen=True, slots=True)
class ParamKey:
    """A parameter token.

    ``name`` is the declared name, or the string index for unnamed
    ``(regex)`` groups. A key with an empty ``pattern`` is a literal
    ``{...}`` group with nothing to capture.
    """

    name: str
    prefix: str = ""
    suffix: str = ""
    pattern: str = DEFAULT_PATTERN
    modifier: str = ""

    @property
    def optional(self) -> bool:
        return self.modifier in ("?", "*")

    @property
    def repeat(self) -> bool:
        return self.modifier in ("*", "+")


type Token = str | ParamKey


@dataclass(frozen=True, slots=True)
class _Lexeme:
    kind: str
    index: int
    value: str


def _lex(source: str) -> list[_Lexeme]:
    """Split a pattern into lexemes. Raises ``PatternError`` on bad syntax."""
    lexemes: list[_Lexeme] = []
    i = 0
    n = len(source)

    while i < n:
        char = source[i]

        if char in _MODIFIERS:
            lexemes.append(_Lexeme("MODIFIER", i, char))
            i += 1
            continue

        if char == "\\":
            if i + 1 >= n:
                msg = f"Dangling escape at {i}"
                raise PatternError(msg)
            lexemes.append(_Lexeme("ESCAPED_CHAR", i, source[i + 1]))
            i += 2
            continue

        if char == "{":
            lexemes.append(_Lexeme("OPEN", i, char))
            i += 1
            continue

        if char == "}":
            lexemes.append(_Lexeme("CLOSE", i, char))
            i += 1
            continue

        if char == ":":
            j = i + 1
            while j < n and source[j] in _NAME_CHARS:
                j += 1
            if j == i + 1:
                msg = f"Missing parameter name at {i}"
                raise PatternError(msg)
            lexemes.append(_Lexeme("NAME", i, source[i + 1 : j]))
            i = j
            continue

        if char == "(":
            lexemes.append(_Lexeme("PATTERN", i, _read_group(source, i)))
            i += len(lexemes[-1].value) + 2
            continue

        lexemes.append(_Lexeme("CHAR", i, char))
        i += 1

    lexemes.append(_Lexeme("END", i, ""))
    return lexemes


def _read_group(source: str, start: int) -> str:
    """Read the body of a ``(regex)`` group opening at *start*."""
    depth = 1
    j = start + 1
    body: list[str] = []

    if j < len(source) and source[j] == "?":
        msg = f'Pattern cannot start with "?" at {j}'
        raise PatternError(msg)

    while j < len(source):
        char = source[j]
        if char == "\\":
            body.append(source[j : j + 2])
            j += 2
            continue
        if char == ")":
            depth -= 1
            if depth == 0:
                break
        elif char == "(":
            depth += 1
            if j + 1 >= len(source) or source[j + 1] != "?":
                msg = f"Capturing groups are not allowed at {j}"
                raise PatternError(msg)
        body.append(char)
        j += 1

    if depth:
        msg = f"Unbalanced pattern at {start}"
        raise PatternError(msg)
    if not body:
        msg = f"Missing pattern at {start}"
        raise PatternError(msg)
    return "".join(body)


class _Cursor:
    """Lexeme reader used by ``parse``."""

    __slots__ = ("_index", "_lexemes")

    def __init__(self, lexemes: list[_Lexeme]) -> None:
        self._lexemes = lexemes
        self._index = 0

    @property
    def done(self) -> bool:
        return self._index >= len(self._lexemes)

    def take(self, kind: str) -> str | None:
        if self._index < len(self._lexemes) and self._lexemes[self._index].kind == kind:
            value = self._lexemes[self._index].value
            self._index += 1
            return value
        return None

    def expect(self, kind: str) -> str:
        value = self.take(kind)
        if value is not None:
            return value
        lexeme = self._lexemes[self._index]
        msg = f"Unexpected {lexeme.kind} at {lexeme.index}, expected {kind}"
        raise PatternError(msg)

    def text(self) -> str:
        parts: list[str] = []
        while True:
            value = self.take("CHAR")
            if value is None:
                value = self.take("ESCAPED_CHAR")
            if value is None:
                return "".join(parts)
            parts.append(value)


def parse(source: str) -> list[Token]:
    """Parse a path pattern into literal strings and ``ParamKey`` tokens.

    Examples::

        parse("/old/:id")   -> ["/old", ParamKey("id", prefix="/")]
        parse("/a/(\\d+)")   -> ["/a", ParamKey("0", prefix="/", pattern="\\d+")]
        parse("/x{-:y}?")   -> ["/x", ParamKey("y", prefix="-", modifier="?")]

    Raises ``PatternError`` on malformed input.
    """
    cursor = _Cursor(_lex(source))
    tokens: list[Token] = []
    unnamed = 0
    path = ""

    while not cursor.done:
        char = cursor.take("CHAR")
        name = cursor.take("NAME")
        pattern = cursor.take("PATTERN")

        if name is not None or pattern is not None:
            prefix = char or ""
            if prefix not in PREFIXES:
                path += prefix
                prefix = ""
            if path:
                tokens.append(path)
                path = ""
            if name is None:
                name = str(unnamed)
                unnamed += 1
            tokens.append(
                ParamKey(
                    name=name,
                    prefix=prefix,
                    pattern=pattern or DEFAULT_PATTERN,
                    modifier=cursor.take("MODIFIER") or "",
                )
            )
            continue

        value = char if char is not None else cursor.take("ESCAPED_CHAR")
        if value is not None:
            path += value
            continue

        if path:
            tokens.append(path)
            path = ""

        if cursor.take("OPEN") is not None:
            prefix = cursor.text()
            group_name = cursor.take("NAME") or ""
            group_pattern = cursor.take("PATTERN") or ""
            suffix = cursor.text()
            cursor.expect("CLOSE")
            if not group_name and group_pattern:
                group_name = str(unnamed)
                unnamed += 1
            if group_name and not group_pattern:
                group_pattern = DEFAULT_PATTERN
            tokens.append(
                ParamKey(
                    name=group_name,
                    prefix=prefix,
                    suffix=suffix,
                    pattern=group_pattern,
                    modifier=cursor.take("MODIFIER") or "",
                )
            )
            continue

        cursor.expect("END")

    return tokens


# -- Matching --


@dataclass(frozen=True, slots=True)
class PathPattern:
    """A compiled request-path matcher.

    ``keys`` lists the capturing parameters in declaration order; group
    *n* of ``regex`` captures ``keys[n]``.
    """

    source: str
    regex: re.Pattern[str]
    keys: tuple[ParamKey, ...]

    def match(self, path: str) -> dict[str, str] | None:
        """Match *path*; return the captured parameters by name, or ``None``.

        Optional parameters that did not participate are left out.
        """
        found = self.regex.fullmatch(path)
        if found is None:
            return None
        params: dict[str, str] = {}
        for key, value in zip(self.keys, found.groups(), strict=True):
            if value is not None:
                params[key.name] = value
        return params


def _token_regex(token: ParamKey) -> str:
    prefix = re.escape(token.prefix)
    suffix = re.escape(token.suffix)

    if not token.pattern:
        return f"(?:{prefix}{suffix}){token.modifier}"

    if prefix or suffix:
        if token.repeat:
            mod = "?" if token.modifier == "*" else ""
            return (
                f"(?:{prefix}((?:{token.pattern})(?:{suffix}{prefix}(?:{token.pattern}))*)"
                f"{suffix}){mod}"
            )
        return f"(?:{prefix}({token.pattern}){suffix}){token.modifier}"

    if token.repeat:
        return f"((?:{token.pattern}){token.modifier})"
    return f"({token.pattern}){token.modifier}"


def compile_pattern(source: str) -> PathPattern:
    """Compile a path pattern into a ``PathPattern``.

    Matching is case-insensitive and tolerates one trailing delimiter,
    so ``/old/:id`` matches ``/OLD/42/``.

    Raises ``PatternError`` on malformed input.
    """
    parts: list[str] = []
    keys: list[ParamKey] = []

    for token in parse(source):
        if isinstance(token, str):
            parts.append(re.escape(token))
            continue
        if token.pattern:
            keys.append(token)
        parts.append(_token_regex(token))

    parts.append(_TRAILING_DELIMITER)
    try:
        regex = re.compile("".join(parts), re.IGNORECASE)
    except re.error as exc:
        msg = f"Invalid pattern {source!r}: {exc}"
        raise PatternError(msg) from exc

    if regex.groups != len(keys):
        msg = f"Invalid pattern {source!r}: custom patterns must not capture"
        raise PatternError(msg)

    return PathPattern(source=source, regex=regex, keys=tuple(keys))


# -- Expansion --


@dataclass(frozen=True, slots=True)
class PathTemplate:
    """A compiled path template that re-expands parameters into a path.

    Values are passed through ``encode`` and then checked against the
    parameter's pattern, so an expanded path always matches the template.
    """

    source: str
    tokens: tuple[Token, ...]
    validators: tuple[re.Pattern[str] | None, ...]
    encode: Callable[[str], str] = encode_component

    def expand(self, params: Mapping[str, str | Sequence[str]]) -> str:
        """Build a concrete path from *params*.

        Raises ``PatternError`` when a required parameter is missing or a
        value does not fit its pattern.
        """
        out: list[str] = []

        for token, validator in zip(self.tokens, self.validators, strict=True):
            if isinstance(token, str):
                out.append(token)
                continue

            value = params.get(token.name)

            if value is None:
                if token.optional:
                    continue
                kind = "an array" if token.repeat else "a string"
                msg = f'Expected "{token.name}" to be {kind}'
                raise PatternError(msg)

            if isinstance(value, str):
                segments = [value]
            else:
                if not token.repeat:
                    msg = f'Expected "{token.name}" to not repeat, but got an array'
                    raise PatternError(msg)
                segments = list(value)
                if not segments:
                    if token.optional:
                        continue
                    msg = f'Expected "{token.name}" to not be empty'
                    raise PatternError(msg)

            for segment in segments:
                encoded = self.encode(segment)
                if validator is not None and not validator.match(encoded):
                    msg = (
                        f'Expected "{token.name}" to match "{token.pattern}", '
                        f'but got "{encoded}"'
                    )
                    raise PatternError(msg)
                out.append(f"{token.prefix}{encoded}{token.suffix}")

        return "".join(out)


def compile_template(
    source: str,
    *,
    encode: Callable[[str], str] = encode_component,
) -> PathTemplate:
    """Compile a destination path into a ``PathTemplate``.

    Raises ``PatternError`` on malformed input.
    """
    tokens: list[Token] = []
    validators: list[re.Pattern[str] | None] = []
    for token in parse(source):
        # expand() emits literals verbatim
        if isinstance(token, str):
            tokens.append(encode_uri(token))
            validators.append(None)
            continue
        tokens.append(
            replace(token, prefix=encode_uri(token.prefix), suffix=encode_uri(token.suffix))
        )
        try:
            validators.append(re.compile(f"(?:{token.pattern})\\Z", re.IGNORECASE))
        except re.error as exc:
            msg = f"Invalid pattern {source!r}: {exc}"
            raise PatternError(msg) from exc
    return PathTemplate(
        source=source,
        tokens=tuple(tokens),
        validators=tuple(validators),
        encode=encode,
    )
