"""Request/response correlation for the client side of the protocol."""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from .framing import LineFramer, encode_message
from .protocol import RequestTimeoutError, is_response, make_notification, make_request

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0
MAX_NOTIFICATIONS = 1000


@dataclass
class PendingRequest:
    method: str
    future: asyncio.Future
    token: int


class MessageCorrelator:
    """Matches responses to outstanding requests by id.

    Every ``call`` gets a fresh id from a per-instance counter and a
    subscription on the framer's message stream. The subscription resolves
    the call when a response with that id arrives and is revoked as soon as
    the call settles, so a response arriving after a timeout is ignored.
    """

    def __init__(
        self,
        framer: LineFramer,
        send: Callable[[str], Awaitable[None]],
        default_timeout: float = DEFAULT_TIMEOUT,
    ):
        self._framer = framer
        self._send = send
        self.default_timeout = default_timeout
        self._next_id = 1
        self._pending: dict[int, PendingRequest] = {}
        self.notifications: deque[dict[str, Any]] = deque(maxlen=MAX_NOTIFICATIONS)
        self._failure: BaseException | None = None
        self._framer.subscribe(self._on_message)

    @property
    def pending_ids(self) -> list[int]:
        return list(self._pending)

    def _allocate_id(self) -> int:
        request_id = self._next_id
        self._next_id += 1
        return request_id

    async def call(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Send a request and wait for the response carrying the same id."""
        if self._failure is not None:
            raise self._failure
        timeout = self.default_timeout if timeout is None else timeout
        request_id = self._allocate_id()
        request = make_request(request_id, method, params)

        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        def on_message(message: dict[str, Any]) -> None:
            if is_response(message) and message["id"] == request_id and not future.done():
                future.set_result(message)

        token = self._framer.subscribe(on_message)
        self._pending[request_id] = PendingRequest(method=method, future=future, token=token)
        logger.debug("-> %s (id=%s)", method, request_id)

        try:
            await self._send(encode_message(request))
            response = await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            logger.warning("Request '%s' (id=%s) timed out after %ss", method, request_id, timeout)
            raise RequestTimeoutError(method, timeout) from None
        finally:
            self._settle(request_id)

        logger.debug("<- %s (id=%s)", method, request_id)
        return response

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a notification; no response is expected."""
        await self._send(encode_message(make_notification(method, params)))

    def fail_all(self, exc: BaseException) -> None:
        """Reject every pending call with ``exc``, and every later one too."""
        self._failure = exc
        for pending in list(self._pending.values()):
            if not pending.future.done():
                pending.future.set_exception(exc)

    def _settle(self, request_id: int) -> None:
        pending = self._pending.pop(request_id, None)
        if pending is not None:
            self._framer.unsubscribe(pending.token)

    def _on_message(self, message: dict[str, Any]) -> None:
        if "id" not in message:
            self.notifications.append(message)
            return
        if is_response(message) and message["id"] not in self._pending:
            logger.debug("Discarding response with unmatched id %s", message["id"])
