"""Method dispatch for the server side of the protocol."""

import logging
from collections.abc import Awaitable, Callable, Mapping
from types import MappingProxyType
from typing import Any

from .protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    JsonRpcError,
    make_error_response,
    make_response,
)

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any]], Awaitable[Any]]


class RequestRouter:
    """Routes requests to handlers by method name.

    The handler table is fixed at construction. ``dispatch`` never raises for
    a bad request: unknown methods and handler failures come back as error
    responses carrying the request's id.
    """

    def __init__(self, handlers: Mapping[str, Handler]):
        self._handlers = MappingProxyType(dict(handlers))

    @property
    def handlers(self) -> Mapping[str, Handler]:
        return self._handlers

    @property
    def methods(self) -> list[str]:
        return sorted(self._handlers)

    async def dispatch(self, message: dict[str, Any]) -> dict[str, Any] | None:
        """Handle one incoming message and return its response, if any."""
        notification = "id" not in message
        request_id = message.get("id")
        method = message.get("method")

        if method is None and ("result" in message or "error" in message):
            logger.debug("Ignoring response message with id %s", request_id)
            return None

        if not isinstance(method, str):
            return self._reply_error(notification, request_id, INVALID_REQUEST, "Invalid request: missing method")

        handler = self._handlers.get(method)
        if handler is None:
            logger.warning("Unknown method: %s", method)
            return self._reply_error(notification, request_id, METHOD_NOT_FOUND, f"Unknown method: {method}")

        params = message.get("params")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            return self._reply_error(notification, request_id, INVALID_PARAMS, "Invalid params: expected an object")

        try:
            result = await handler(params)
        except JsonRpcError as e:
            logger.info("%s failed: %s", method, e.message)
            return self._reply_error(notification, request_id, e.code, e.message)
        except Exception as e:
            logger.exception("Handler for %s raised", method)
            return self._reply_error(notification, request_id, INTERNAL_ERROR, str(e) or type(e).__name__)

        if notification:
            return None
        return make_response(request_id, result)

    @staticmethod
    def _reply_error(notification: bool, request_id: Any, code: int, message: str) -> dict[str, Any] | None:
        if notification:
            return None
        return make_error_response(request_id, code, message)
