"""CLI interface for hjmcp."""

import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .client import MCPStdioClient
from .config import config_manager
from .demo import CalculatorDemo, print_tool_result, run_check
from .log import setup_logging
from .protocol import ServerError
from .server import MCPStdioServer
from .version import __version__

app = typer.Typer(
    name="hjmcp",
    help="🔌 hjmcp - JSON-RPC tool server and client over stdio",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    """Show version information."""
    if value:
        console.print(f"[bold cyan]🔌 hjmcp[/bold cyan] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging on stderr"),
) -> None:
    """hjmcp - JSON-RPC tool server and client over stdio."""
    setup_logging("DEBUG" if verbose else "WARNING")


def _parse_json_args(raw: Optional[str]) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        console.print(f"[red]❌ Invalid JSON for --args:[/red] {e}")
        raise typer.Exit(2)
    if not isinstance(value, dict):
        console.print("[red]❌ --args must be a JSON object[/red]")
        raise typer.Exit(2)
    return value


def _with_client(action: Callable[[MCPStdioClient], Awaitable[None]]) -> None:
    """Connect to a fresh server process, run ``action``, then shut down."""
    config = config_manager.get_config().client

    async def run() -> None:
        client = MCPStdioClient(config)
        try:
            await client.connect()
            await action(client)
        finally:
            await client.stop()

    try:
        asyncio.run(run())
    except ServerError as e:
        console.print(f"[red]❌ Server error {e.code}:[/red] {escape(e.message)}")
        raise typer.Exit(1)
    except (TimeoutError, ConnectionError, OSError) as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        raise typer.Exit(1)


@app.command(name="serve")
def serve_command(
    root: Optional[Path] = typer.Option(None, "--root", "-r", help="Project root served by the tools"),
    log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="Log level for stderr output"),
) -> None:
    """🖥️ Run the server on stdin/stdout."""
    config = config_manager.get_config().server.model_copy()
    if root is not None:
        config.project_root = root
    setup_logging(log_level or config.log_level)
    asyncio.run(MCPStdioServer(config).run())


@app.command(name="demo")
def demo_command(
    timeout: Optional[float] = typer.Option(None, "--timeout", "-t", help="Per-request timeout in seconds"),
) -> None:
    """🧮 Run the calculator demo against a spawned server."""
    config = config_manager.get_config().client.model_copy()
    if timeout is not None:
        config.request_timeout = timeout
    ok = asyncio.run(CalculatorDemo(config).run())
    if not ok:
        raise typer.Exit(1)


@app.command(name="check")
def check_command() -> None:
    """🩺 Spawn the server, initialize it and show its response."""
    if not asyncio.run(run_check(config_manager.get_config().client)):
        raise typer.Exit(1)


@app.command(name="tools")
def tools_command() -> None:
    """🛠️ List the server's tools."""

    async def action(client: MCPStdioClient) -> None:
        table = Table(title="🛠️ Tools")
        table.add_column("Name", style="cyan")
        table.add_column("Description", style="green")
        for tool in await client.list_tools():
            table.add_row(tool["name"], tool.get("description", ""))
        console.print(table)

    _with_client(action)


@app.command(name="call")
def call_command(
    name: str = typer.Argument(..., help="Tool name"),
    args: Optional[str] = typer.Option(None, "--args", "-a", help="Tool arguments as a JSON object"),
) -> None:
    """📞 Call a tool."""
    arguments = _parse_json_args(args)

    async def action(client: MCPStdioClient) -> None:
        print_tool_result(await client.call_tool(name, arguments))

    _with_client(action)


@app.command(name="prompts")
def prompts_command() -> None:
    """💡 List the server's prompts."""

    async def action(client: MCPStdioClient) -> None:
        table = Table(title="💡 Prompts")
        table.add_column("Name", style="cyan")
        table.add_column("Description", style="green")
        table.add_column("Arguments", style="blue")
        for prompt in await client.list_prompts():
            arguments = ", ".join(
                f"{arg['name']}{'*' if arg.get('required') else ''}" for arg in prompt.get("arguments", [])
            )
            table.add_row(prompt["name"], prompt.get("description", ""), arguments or "None")
        console.print(table)

    _with_client(action)


@app.command(name="prompt")
def prompt_command(
    name: str = typer.Argument(..., help="Prompt name"),
    args: Optional[str] = typer.Option(None, "--args", "-a", help="Prompt arguments as a JSON object"),
) -> None:
    """📝 Render a prompt."""
    arguments = _parse_json_args(args)

    async def action(client: MCPStdioClient) -> None:
        result = await client.get_prompt(name, arguments)
        for message in result.get("messages", []):
            content = message.get("content", {})
            console.print(Panel(
                Text(content.get("text", "")),
                title=f"{message.get('role')} - {result.get('description', '')}",
                border_style="cyan",
            ))

    _with_client(action)


@app.command(name="resources")
def resources_command() -> None:
    """📚 List the server's resources."""

    async def action(client: MCPStdioClient) -> None:
        table = Table(title="📚 Resources")
        table.add_column("URI", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("MIME Type", style="yellow")
        for resource in await client.list_resources():
            table.add_row(resource["uri"], resource.get("name", ""), resource.get("mimeType", ""))
        console.print(table)

    _with_client(action)


@app.command(name="read")
def read_command(uri: str = typer.Argument(..., help="Resource URI, e.g. file://README.md")) -> None:
    """📖 Read a resource."""

    async def action(client: MCPStdioClient) -> None:
        result = await client.read_resource(uri)
        for content in result.get("contents", []):
            console.print(content.get("text", ""), markup=False, highlight=False)

    _with_client(action)


@app.command(name="config")
def config_command(
    show: bool = typer.Option(False, "--show", "-s", help="Show current configuration"),
    request_timeout: Optional[float] = typer.Option(None, "--request-timeout", help="Client request timeout (s)"),
    startup_timeout: Optional[float] = typer.Option(None, "--startup-timeout", help="Client startup timeout (s)"),
    project_root: Optional[Path] = typer.Option(None, "--project-root", help="Server project root"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Server log level"),
) -> None:
    """⚙️ Show or update hjmcp settings."""
    config = config_manager.get_config()

    if show:
        table = Table(title="⚙️ Current Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Server Command", f"{config.client.server.command} {' '.join(config.client.server.args)}")
        table.add_row("Request Timeout", f"{config.client.request_timeout:g}s")
        table.add_row("Startup Timeout", f"{config.client.startup_timeout:g}s")
        table.add_row("Shutdown Timeout", f"{config.client.shutdown_timeout:g}s")
        table.add_row("Server Name", config.server.name)
        table.add_row("Project Root", str(config.server.project_root or "Working directory"))
        table.add_row("Log Level", config.server.log_level)

        console.print(table)
        console.print(f"\n[dim]Config file: {config_manager.config_path}[/dim]")
        return

    try:
        if request_timeout is not None:
            config.client.request_timeout = request_timeout
        if startup_timeout is not None:
            config.client.startup_timeout = startup_timeout
        if project_root is not None:
            config.server.project_root = project_root
        if log_level is not None:
            config.server.log_level = log_level.upper()
    except ValidationError as e:
        config_manager.reset()
        console.print(f"[red]❌ Invalid setting:[/red] {escape(str(e))}")
        raise typer.Exit(2)

    config_manager.save_config(config)
    console.print("[green]✓ Configuration saved successfully![/green]")


@app.command(name="info")
def info_command() -> None:
    """ℹ️ Show information about hjmcp."""
    info_text = """
[bold cyan]🔌 hjmcp[/bold cyan] - JSON-RPC tool server and client over stdio

[bold]Server:[/bold]
  • Tools: calculate, list_files
  • Prompts: code-review, explain-code
  • Resources: project files (file:// URIs)

[bold]Configuration:[/bold]
  Config file: ./hjmcp.json or ~/.config/hjmcp/config.json

  Environment variables:
    • HJMCP_CLIENT__REQUEST_TIMEOUT / HJMCP_CLIENT__STARTUP_TIMEOUT
    • HJMCP_SERVER__PROJECT_ROOT / HJMCP_SERVER__LOG_LEVEL

[bold]Quick Start:[/bold]
  1. Run the demo: hjmcp demo
  2. Call a tool: hjmcp call calculate --args '{"expression": "2 + 3 * 4"}'
  3. Serve for another client: hjmcp serve
    """

    console.print(Panel(info_text, border_style="cyan"))


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
