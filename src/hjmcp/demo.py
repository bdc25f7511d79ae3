"""Demo scenarios driving the stdio server through the client."""

import json
import logging

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from .client import MCPStdioClient
from .config import ClientConfig
from .protocol import ServerError

console = Console()
logger = logging.getLogger(__name__)

DEMO_EXPRESSIONS = [
    "2 + 3",
    "10 * 5",
    "(15 + 5) / 4",
    "2.5 * 3.14159",
    "100 - 25 + 10",
    "Math.sqrt(16)",  # letters are stripped, so this fails to parse
    "2**8",
]


def print_tool_result(result: dict) -> None:
    """Print the text content of a tool result."""
    style = "red" if result.get("isError") else "green"
    for content in result.get("content", []):
        if content.get("type") == "text":
            console.print(f"[{style}]📊 Result:[/{style}] {escape(content['text'])}")


class CalculatorDemo:
    """Starts the server, lists its tools and evaluates a few expressions."""

    def __init__(self, config: ClientConfig | None = None, expressions: list[str] | None = None):
        self.client = MCPStdioClient(config, client_name="calculator-demo-client")
        self.expressions = expressions if expressions is not None else DEMO_EXPRESSIONS
        self.results: list[dict] = []

    async def initialize(self) -> None:
        console.print("📡 Initializing connection...")
        result = await self.client.connect()
        console.print("[green]✅ Initialization successful[/green]")
        console.print("🔧 Server capabilities:", json.dumps(result.get("capabilities"), indent=2))

    async def list_tools(self) -> None:
        console.print("\n📋 Listing available tools...")
        try:
            tools = await self.client.list_tools()
        except (ServerError, TimeoutError) as e:
            console.print(f"[red]❌ Failed to list tools:[/red] {e}")
            return
        console.print("🛠️  Available tools:")
        for tool in tools:
            console.print(f"   • [cyan]{tool['name']}[/cyan]: {tool.get('description', '')}")

    async def calculate(self, expression: str) -> None:
        console.print(f"\n🧮 Calculating: {escape(expression)}")
        try:
            result = await self.client.call_tool("calculate", {"expression": expression})
        except ServerError as e:
            console.print(f"[red]❌ Calculation error:[/red] {escape(e.message)}")
            return
        except TimeoutError as e:
            console.print(f"[red]❌ Failed to calculate:[/red] {e}")
            return
        self.results.append(result)
        print_tool_result(result)

    async def run(self) -> bool:
        """Run the demo; returns False if the server could not be initialized."""
        console.print("🚀 Starting MCP Server for Calculator Demo...")
        try:
            await self.initialize()
            await self.list_tools()
            for expression in self.expressions:
                await self.calculate(expression)
            return True
        except (ServerError, TimeoutError, ConnectionError, OSError) as e:
            logger.debug("Demo failed", exc_info=True)
            console.print(f"[red]❌ Demo failed:[/red] {e}")
            return False
        finally:
            console.print("\n🔚 Stopping server...")
            await self.client.stop()
            console.print("[green]✅ Demo completed[/green]")


async def run_check(config: ClientConfig | None = None) -> bool:
    """Start the server, initialize, and report what it said."""
    console.print("🚀 Starting MCP Server Test...")
    client = MCPStdioClient(config, client_name="simple-test-client")
    ok = False
    try:
        result = await client.connect()
        console.print("📤 Sent initialization message")
        console.print(Panel(Text(json.dumps(result, indent=2)), title="📥 Server response", border_style="green"))
        ok = True
    except (ServerError, TimeoutError, ConnectionError, OSError) as e:
        console.print(f"[red]❌ Initialization failed:[/red] {e}")
    finally:
        await client.stop()
        if client.stderr_output:
            console.print(Panel(Text(client.stderr_output.rstrip()), title="Server stderr", border_style="dim"))
        console.print("[green]✅ Test completed[/green]" if ok else "[red]❌ Test failed[/red]")
    return ok
