"""Access logging in morgan's ``tiny`` layout::

    GET /chats/01?ref=rss 307 61 - 0.412 ms

The recorder wraps the ASGI ``send`` callable, so it sees the real status
and length for redirects answered by detour and for responses streamed by
the downstream application alike.
"""

import logging
import time

from detour._internal.asgi import Send

logger = logging.getLogger("detour.access")


class AccessLogRecorder:
    """Collect status and length for one request, then log a single line."""

    __slots__ = ("content_length", "method", "started", "status", "target")

    def __init__(self, method: str, target: str) -> None:
        self.method = method
        self.target = target
        self.started = time.perf_counter()
        self.status: int | None = None
        self.content_length: str | None = None

    def wrap(self, send: Send) -> Send:
        """Return a ``send`` that records ``http.response.start`` details."""

        async def recording_send(message) -> None:
            if message["type"] == "http.response.start":
                self.status = message["status"]
                for name, value in message.get("headers", ()):
                    if name.lower() == b"content-length":
                        self.content_length = value.decode("latin-1")
            await send(message)

        return recording_send

    def emit(self) -> None:
        elapsed_ms = (time.perf_counter() - self.started) * 1000
        logger.info(
            "%s %s %s %s - %.3f ms",
            self.method,
            self.target,
            self.status if self.status is not None else "-",
            self.content_length or "-",
            elapsed_ms,
        )
