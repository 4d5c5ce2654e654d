"""Immutable query string parameters.

Implements ``Mapping[str, str]`` while keeping every ``(key, value)`` pair
in arrival order, so redirects can forward the query exactly as received.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qsl


class QueryParams(Mapping[str, str]):
    """Immutable query string parameters.

    Attributes:
        _pairs: Every decoded ``(key, value)`` pair, in order.
        _raw: Raw query string bytes.

    ``__getitem__`` returns the first value for a key.
    ``get_list`` returns all values for a key.
    ``items_list`` returns every pair, duplicates included.
    """

    _pairs: tuple[tuple[str, str], ...]
    _raw: bytes

    __slots__ = ("_pairs", "_raw")

    def __init__(self, query_string: bytes = b"") -> None:
        object.__setattr__(self, "_raw", query_string)
        pairs = parse_qsl(query_string.decode("latin-1"), keep_blank_values=True)
        object.__setattr__(self, "_pairs", tuple(pairs))

    def __getitem__(self, key: str) -> str:
        for name, value in self._pairs:
            if name == key:
                return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return any(name == key for name, _ in self._pairs)

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name for name, _ in self._pairs))

    def __len__(self) -> int:
        return len(dict.fromkeys(name for name, _ in self._pairs))

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {v!r}" for k, v in self._pairs)
        return f"QueryParams([{items}])"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        try:
            return self[key]
        except KeyError:
            return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return [value for name, value in self._pairs if name == key]

    def items_list(self) -> list[tuple[str, str]]:
        """Return every ``(key, value)`` pair in arrival order."""
        return list(self._pairs)

    @property
    def raw(self) -> str:
        """The undecoded query string (without the leading ``?``)."""
        return self._raw.decode("latin-1")
