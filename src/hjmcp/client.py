"""Stdio client that spawns an hjmcp server and talks to it."""

import asyncio
import codecs
import logging
import os
from collections import deque
from typing import Any

from .config import ClientConfig
from .correlator import MessageCorrelator
from .framing import LineFramer
from .protocol import DEFAULT_PROTOCOL_VERSION, ServerError
from .version import __version__

logger = logging.getLogger(__name__)
server_logger = logging.getLogger(__name__ + ".server")

READ_SIZE = 65536
MAX_STDERR_LINES = 1000


class MCPStdioClient:
    """Client for an MCP server running as a child process."""

    def __init__(self, config: ClientConfig | None = None, client_name: str = "hjmcp-client"):
        self.config = config or ClientConfig()
        self.client_name = client_name
        self.framer = LineFramer()
        self.correlator = MessageCorrelator(
            self.framer, self._write, default_timeout=self.config.request_timeout
        )
        self.server_info: dict | None = None
        self.capabilities: dict = {}
        self.return_code: int | None = None
        self._process: asyncio.subprocess.Process | None = None
        self._stdout_task: asyncio.Task | None = None
        self._stderr_task: asyncio.Task | None = None
        self._stderr_lines: deque[str] = deque(maxlen=MAX_STDERR_LINES)

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def stderr_output(self) -> str:
        return "".join(self._stderr_lines)

    async def start(self) -> None:
        """Spawn the server process and start the stream readers."""
        server = self.config.server
        env = {**os.environ, **server.env} if server.env else None
        self._process = await asyncio.create_subprocess_exec(
            server.command,
            *server.args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
            cwd=server.cwd,
        )
        logger.info("Started server process %s: %s %s", self._process.pid, server.command, " ".join(server.args))
        self._stdout_task = asyncio.create_task(self._read_stdout())
        self._stderr_task = asyncio.create_task(self._read_stderr())

    async def connect(self) -> dict[str, Any]:
        """Start the server and perform the initialize handshake.

        The server counts as ready once it answers ``initialize``; the wait is
        bounded by ``startup_timeout``.
        """
        if self._process is None:
            await self.start()
        response = await self.correlator.call(
            "initialize",
            {
                "protocolVersion": DEFAULT_PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {"name": self.client_name, "version": __version__},
            },
            timeout=self.config.startup_timeout,
        )
        result = self._unwrap(response)
        self.server_info = result.get("serverInfo")
        self.capabilities = result.get("capabilities", {})
        await self.correlator.notify("notifications/initialized")
        return result

    async def request(self, method: str, params: dict[str, Any] | None = None, timeout: float | None = None) -> dict:
        """Send a request and return the raw response message."""
        return await self.correlator.call(method, params, timeout)

    async def list_tools(self) -> list[dict]:
        return self._unwrap(await self.request("tools/list")).get("tools", [])

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> dict:
        return self._unwrap(await self.request("tools/call", {"name": name, "arguments": arguments or {}}))

    async def list_resources(self) -> list[dict]:
        return self._unwrap(await self.request("resources/list")).get("resources", [])

    async def read_resource(self, uri: str) -> dict:
        return self._unwrap(await self.request("resources/read", {"uri": uri}))

    async def list_prompts(self) -> list[dict]:
        return self._unwrap(await self.request("prompts/list")).get("prompts", [])

    async def get_prompt(self, name: str, arguments: dict[str, Any] | None = None) -> dict:
        return self._unwrap(await self.request("prompts/get", {"name": name, "arguments": arguments or {}}))

    async def ping(self) -> dict:
        return self._unwrap(await self.request("ping"))

    async def stop(self) -> None:
        """Close the server's stdin and wait for it to exit, killing it if needed."""
        if self._process is None:
            return
        process = self._process
        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()
        try:
            await asyncio.wait_for(process.wait(), timeout=self.config.shutdown_timeout)
        except asyncio.TimeoutError:
            logger.warning("Server did not exit, terminating")
            try:
                process.terminate()
                await asyncio.wait_for(process.wait(), timeout=self.config.shutdown_timeout)
            except (asyncio.TimeoutError, ProcessLookupError):
                try:
                    process.kill()
                    await process.wait()
                except ProcessLookupError:
                    pass
        self.return_code = process.returncode

        # Let the readers drain what the process wrote before exiting
        readers = [task for task in (self._stdout_task, self._stderr_task) if task is not None]
        if readers:
            _, unfinished = await asyncio.wait(readers, timeout=self.config.shutdown_timeout)
            for task in unfinished:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        logger.info("Server process exited with code %s", self.return_code)

    async def __aenter__(self) -> "MCPStdioClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    @staticmethod
    def _unwrap(response: dict[str, Any]) -> dict[str, Any]:
        if "error" in response:
            raise ServerError.from_response(response)
        return response.get("result") or {}

    async def _write(self, line: str) -> None:
        if self._process is None or self._process.stdin is None:
            raise ConnectionError("Transport not started")
        self._process.stdin.write(line.encode("utf-8"))
        await self._process.stdin.drain()

    async def _read_stdout(self) -> None:
        assert self._process is not None and self._process.stdout is not None
        while True:
            chunk = await self._process.stdout.read(READ_SIZE)
            if not chunk:
                break
            self.framer.feed(chunk)
        logger.debug("Server closed stdout")
        self.correlator.fail_all(ConnectionError("Server process closed stdout (EOF)"))

    async def _read_stderr(self) -> None:
        assert self._process is not None and self._process.stderr is not None
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        partial = ""
        while True:
            chunk = await self._process.stderr.read(READ_SIZE)
            if not chunk:
                break
            *lines, partial = (partial + decoder.decode(chunk)).split("\n")
            for line in lines:
                self._record_stderr(line + "\n")
        partial += decoder.decode(b"", final=True)
        if partial:
            self._record_stderr(partial)

    def _record_stderr(self, line: str) -> None:
        self._stderr_lines.append(line)
        server_logger.debug(line.rstrip())
