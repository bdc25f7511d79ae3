"""JSON-RPC message helpers and error types for hjmcp."""

from typing import Any

from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
)

JSONRPC_VERSION = "2.0"
DEFAULT_PROTOCOL_VERSION = "2024-11-05"


class JsonRpcError(Exception):
    """A failure that is reported back to the caller as an error response."""

    code = INTERNAL_ERROR

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class InvalidRequestError(JsonRpcError):
    code = INVALID_REQUEST


class MethodNotFoundError(JsonRpcError):
    """Raised for unknown methods, tools and prompts."""

    code = METHOD_NOT_FOUND


class InvalidParamsError(JsonRpcError):
    code = INVALID_PARAMS


class AccessDeniedError(InvalidParamsError):
    """Raised when a path resolves outside the permitted project root."""


class ResourceReadError(JsonRpcError):
    code = INTERNAL_ERROR


class ServerError(Exception):
    """An error response received from the server."""

    def __init__(self, code: int, message: str):
        super().__init__(f"[{code}] {message}")
        self.code = code
        self.message = message

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> "ServerError":
        error = response.get("error") or {}
        return cls(error.get("code", INTERNAL_ERROR), error.get("message", "Unknown error"))


class RequestTimeoutError(TimeoutError):
    """No response arrived for a request within its timeout."""

    def __init__(self, method: str, timeout: float):
        super().__init__(f"Timeout waiting for response to '{method}' after {timeout:g}s")
        self.method = method
        self.timeout = timeout


def make_request(request_id: int, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build a request message."""
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "method": method,
        "params": params if params is not None else {},
    }


def make_notification(method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build a notification message (no id, no response expected)."""
    message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": method}
    if params is not None:
        message["params"] = params
    return message


def make_response(request_id: Any, result: Any) -> dict[str, Any]:
    """Build a success response."""
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def make_error_response(request_id: Any, code: int, message: str) -> dict[str, Any]:
    """Build an error response."""
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": {"code": code, "message": message},
    }


def is_response(message: dict[str, Any]) -> bool:
    return "method" not in message and "id" in message and ("result" in message or "error" in message)
