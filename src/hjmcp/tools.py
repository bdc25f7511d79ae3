"""Built-in tools: arithmetic evaluation and directory listing."""

import ast
import logging
import math
import operator
import re
from pathlib import Path
from typing import Any

from mcp.types import TextContent, Tool

from .protocol import AccessDeniedError, InvalidParamsError, MethodNotFoundError

logger = logging.getLogger(__name__)

# Anything that is not a digit, operator, parenthesis, dot or whitespace
_DISALLOWED_CHARS = re.compile(r"[^0-9+\-*/().\s]")
_MAX_EXPONENT = 1000

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Pow: operator.pow,
}
_UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


def sanitize_expression(expression: str) -> str:
    """Strip every character that cannot appear in an arithmetic expression."""
    return _DISALLOWED_CHARS.sub("", expression)


def _too_large(base: int | float, exponent: int | float) -> bool:
    if abs(exponent) > _MAX_EXPONENT:
        return True
    # Bound the number of digits in the result
    return abs(base) > 1 and exponent * math.log10(abs(base)) > 10 * _MAX_EXPONENT


def _eval_node(node: ast.AST) -> int | float:
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        left = _eval_node(node.left)
        right = _eval_node(node.right)
        if isinstance(node.op, ast.Pow) and _too_large(left, right):
            raise ValueError(f"exponent too large: {right}")
        return _BINARY_OPS[type(node.op)](left, right)
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_eval_node(node.operand))
    raise ValueError(f"unsupported expression element: {type(node).__name__}")


def evaluate_expression(expression: str) -> int | float:
    """Evaluate an arithmetic expression after sanitizing it.

    Supports ``+ - * / **``, unary signs, parentheses and numeric literals.
    """
    sanitized = sanitize_expression(expression).strip()
    if not sanitized:
        raise ValueError("empty expression")
    try:
        tree = ast.parse(sanitized, mode="eval")
        return _eval_node(tree.body)
    except RecursionError:
        raise ValueError("expression is nested too deeply") from None


def format_number(value: int | float) -> str:
    """Render a number, dropping the fractional part of integral floats."""
    if isinstance(value, complex):
        raise ValueError("result is not a real number")
    if isinstance(value, float) and math.isfinite(value) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return str(value)


def _text_result(text: str, is_error: bool = False) -> dict[str, Any]:
    result: dict[str, Any] = {
        "content": [TextContent(type="text", text=text).model_dump(mode="json", exclude_none=True)],
    }
    if is_error:
        result["isError"] = True
    return result


class ToolRegistry:
    """The tools exposed through ``tools/list`` and ``tools/call``."""

    def __init__(self, project_root: Path):
        self.project_root = project_root.resolve()

    def list_tools(self) -> list[dict[str, Any]]:
        tools = [
            Tool(
                name="calculate",
                description="Perform mathematical calculations",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "expression": {
                            "type": "string",
                            "description": "Mathematical expression to evaluate (e.g., '2 + 3 * 4')",
                        },
                    },
                    "required": ["expression"],
                },
            ),
            Tool(
                name="list_files",
                description="List files in the project directory",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "directory": {
                            "type": "string",
                            "description": "Directory path relative to project root (default: '.')",
                            "default": ".",
                        },
                    },
                },
            ),
        ]
        return [tool.model_dump(mode="json", by_alias=True, exclude_none=True) for tool in tools]

    def call_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """Run a tool. Tool failures are reported in the result, not raised."""
        if name == "calculate":
            return self.calculate(arguments)
        if name == "list_files":
            return self.list_files(arguments)
        raise MethodNotFoundError(f"Unknown tool: {name}")

    def calculate(self, arguments: dict[str, Any]) -> dict[str, Any]:
        expression = arguments.get("expression")
        try:
            if not isinstance(expression, str):
                raise ValueError("'expression' must be a string")
            value = evaluate_expression(expression)
            return _text_result(f"Calculation: {expression} = {format_number(value)}")
        except (ValueError, SyntaxError, ArithmeticError, TypeError, MemoryError) as e:
            logger.debug("calculate failed for %r: %s", expression, e)
            return _text_result(f"Error calculating expression: {e}", is_error=True)

    def list_files(self, arguments: dict[str, Any]) -> dict[str, Any]:
        directory = arguments.get("directory") or "."
        try:
            full_path = self.resolve_path(directory, "Access denied: Directory outside project")
            entries = sorted(full_path.iterdir(), key=lambda p: p.name)
        except (AccessDeniedError, OSError) as e:
            message = e.message if isinstance(e, AccessDeniedError) else str(e)
            return _text_result(f"Error listing files: {message}", is_error=True)

        lines = [f"{'📁' if entry.is_dir() else '📄'} {entry.name}" for entry in entries]
        return _text_result(f"Files in {directory}:\n" + "\n".join(lines))

    def resolve_path(self, relative: str, denied_message: str) -> Path:
        """Resolve ``relative`` against the project root, refusing escapes."""
        if not isinstance(relative, str):
            raise InvalidParamsError("Path must be a string")
        full_path = (self.project_root / relative).resolve()
        if full_path != self.project_root and not full_path.is_relative_to(self.project_root):
            raise AccessDeniedError(denied_message)
        return full_path
