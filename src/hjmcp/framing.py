"""Newline-delimited JSON framing for stdio streams.

Each message is one JSON object on a single line terminated by ``\\n``.
Incoming data arrives in arbitrary chunks, so ``LineFramer`` buffers partial
lines until their terminator shows up.

Lines that are not JSON objects are dropped rather than reported. The same
stream may carry diagnostic text from the peer, and a stray log line must
never break the conversation.
"""

import codecs
import itertools
import json
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

MessageCallback = Callable[[dict[str, Any]], None]


def encode_message(message: dict[str, Any]) -> str:
    """Serialize a message to a single newline-terminated line."""
    return json.dumps(message) + "\n"


def decode_line(line: str) -> dict[str, Any] | None:
    """Parse one line, returning None for blank, malformed or non-object lines."""
    line = line.strip()
    if not line:
        return None
    try:
        value = json.loads(line)
    except json.JSONDecodeError:
        logger.debug("Dropping non-JSON line: %s", line[:200])
        return None
    if not isinstance(value, dict):
        logger.debug("Dropping non-object JSON line: %s", line[:200])
        return None
    return value


class LineFramer:
    """Reassembles JSON messages from a chunked text or byte stream."""

    def __init__(self):
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._subscribers: dict[int, MessageCallback] = {}
        self._tokens = itertools.count(1)
        self.dropped_lines = 0

    @property
    def pending(self) -> str:
        """Buffered text that has not been terminated by a newline yet."""
        return self._buffer

    def subscribe(self, callback: MessageCallback) -> int:
        """Register a callback for every emitted message and return its token."""
        token = next(self._tokens)
        self._subscribers[token] = callback
        return token

    def unsubscribe(self, token: int) -> None:
        """Revoke a subscription. Unknown tokens are ignored."""
        self._subscribers.pop(token, None)

    def feed(self, chunk: str | bytes) -> list[dict[str, Any]]:
        """Append a chunk and return every message completed by it."""
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk

        messages = []
        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            message = decode_line(line)
            if message is None:
                if line.strip():
                    self.dropped_lines += 1
                continue
            messages.append(message)
            self._emit(message)
        return messages

    def _emit(self, message: dict[str, Any]) -> None:
        # Copy so callbacks may unsubscribe while we iterate
        for token, callback in list(self._subscribers.items()):
            try:
                callback(message)
            except Exception:
                logger.exception("Subscriber %s failed while handling message", token)
