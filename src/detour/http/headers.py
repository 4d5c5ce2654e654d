"""Request headers as an immutable, case-insensitive ``Mapping[str, str]``.

Keeps the raw ASGI byte pairs (duplicates and order intact) and decodes
values as latin-1 on access. Only a handful of headers matter to
redirects (``Host``, ``X-Forwarded-Host``), so lookups scan the pairs.
"""

from collections.abc import Iterator, Mapping


def _key(name: str) -> bytes:
    return name.lower().encode("latin-1")


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive HTTP headers.

    ``headers[name]`` returns the first value; ``get_list(name)`` returns
    every value in arrival order.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        object.__setattr__(self, "_raw", raw)

    @classmethod
    def from_dict(cls, headers: Mapping[str, str]) -> "Headers":
        """Build headers from a plain ``str -> str`` mapping (tests, tools)."""
        return cls(tuple((_key(name), value.encode("latin-1")) for name, value in headers.items()))

    def _values(self, name: str) -> Iterator[str]:
        wanted = _key(name)
        return (
            value.decode("latin-1") for raw_name, value in self._raw if raw_name.lower() == wanted
        )

    def __getitem__(self, key: str) -> str:
        for value in self._values(key):
            return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and next(self._values(key), None) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name.decode("latin-1").lower() for name, _ in self._raw))

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self) -> str:
        return f"Headers({dict(self.items())!r})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """First value for *key*, or *default*."""
        return next(self._values(key), default)

    def get_list(self, key: str) -> list[str]:
        """Every value for *key*, in arrival order."""
        return list(self._values(key))

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """The byte pairs as received from the ASGI scope."""
        return self._raw
