"""Typed ASGI definitions.

Raw ASGI aliases for internal use. Users interact with ``Request``.
"""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

# Raw ASGI 3.0 types
Scope: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send: TypeAlias = Callable[[MutableMapping[str, Any]], Awaitable[None]]

# Any ASGI 3 application, e.g. the downstream page renderer
ASGIApp: TypeAlias = Callable[[Scope, Receive, Send], Awaitable[None]]
