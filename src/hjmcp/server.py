"""Stdio server exposing the built-in tools, prompts and resources."""

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from mcp.types import (
    Implementation,
    InitializeResult,
    PromptsCapability,
    ResourcesCapability,
    ServerCapabilities,
    ToolsCapability,
)

from .config import ServerConfig
from .framing import LineFramer, encode_message
from .prompts import PromptRegistry
from .protocol import DEFAULT_PROTOCOL_VERSION, InvalidParamsError
from .resources import ResourceRegistry
from .router import RequestRouter
from .tools import ToolRegistry

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536

ReadChunk = Callable[[], Awaitable[bytes]]
WriteLine = Callable[[str], None]


class MCPStdioServer:
    """Serves tools, prompts and resources over newline-delimited JSON-RPC."""

    def __init__(self, config: ServerConfig | None = None):
        self.config = config or ServerConfig()
        self.project_root: Path = self.config.resolved_root()
        self.tools = ToolRegistry(self.project_root)
        self.prompts = PromptRegistry()
        self.resources = ResourceRegistry(self.project_root)
        self.router = RequestRouter(
            {
                "initialize": self.handle_initialize,
                "ping": self.handle_ping,
                "notifications/initialized": self.handle_initialized,
                "resources/list": self.handle_list_resources,
                "resources/read": self.handle_read_resource,
                "tools/list": self.handle_list_tools,
                "tools/call": self.handle_call_tool,
                "prompts/list": self.handle_list_prompts,
                "prompts/get": self.handle_get_prompt,
            }
        )
        self.initialized = False

    async def handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        client_info = params.get("clientInfo") or {}
        logger.info("Initialize from %s", client_info.get("name", "unknown client"))
        result = InitializeResult(
            protocolVersion=requested if isinstance(requested, str) else DEFAULT_PROTOCOL_VERSION,
            capabilities=ServerCapabilities(
                resources=ResourcesCapability(),
                tools=ToolsCapability(),
                prompts=PromptsCapability(),
            ),
            serverInfo=Implementation(name=self.config.name, version=self.config.version),
        )
        return result.model_dump(mode="json", by_alias=True, exclude_none=True)

    async def handle_ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def handle_initialized(self, params: dict[str, Any]) -> None:
        self.initialized = True

    async def handle_list_resources(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"resources": self.resources.list_resources()}

    async def handle_read_resource(self, params: dict[str, Any]) -> dict[str, Any]:
        uri = params.get("uri")
        if not isinstance(uri, str):
            raise InvalidParamsError("Missing required parameter: uri")
        return await asyncio.to_thread(self.resources.read_resource, uri)

    async def handle_list_tools(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": self.tools.list_tools()}

    async def handle_call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str):
            raise InvalidParamsError("Missing required parameter: name")
        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            raise InvalidParamsError("Tool arguments must be an object")
        return await asyncio.to_thread(self.tools.call_tool, name, arguments)

    async def handle_list_prompts(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"prompts": self.prompts.list_prompts()}

    async def handle_get_prompt(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str):
            raise InvalidParamsError("Missing required parameter: name")
        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            raise InvalidParamsError("Prompt arguments must be an object")
        return self.prompts.get_prompt(name, arguments)

    async def serve(self, read_chunk: ReadChunk, write_line: WriteLine) -> None:
        """Read messages until EOF, answering each request in order."""
        framer = LineFramer()
        while True:
            chunk = await read_chunk()
            if not chunk:
                break
            for message in framer.feed(chunk):
                response = await self.router.dispatch(message)
                if response is not None:
                    write_line(encode_message(response))

        if framer.pending.strip():
            logger.debug("Discarding unterminated input at EOF: %s", framer.pending[:200])
        logger.info("Input closed, shutting down")

    async def run(self) -> None:
        """Serve on this process's stdin and stdout."""
        stdin = sys.stdin.buffer
        stdout = sys.stdout

        async def read_chunk() -> bytes:
            return await asyncio.to_thread(stdin.read1, CHUNK_SIZE)

        def write_line(line: str) -> None:
            stdout.write(line)
            stdout.flush()

        logger.info("MCP Stdio Server running (root: %s)", self.project_root)
        await self.serve(read_chunk, write_line)

