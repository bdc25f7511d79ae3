"""Prompt templates for code review and code explanation."""

from typing import Any

from mcp.types import GetPromptResult, Prompt, PromptArgument, PromptMessage, TextContent

from .protocol import InvalidParamsError, MethodNotFoundError

DEFAULT_FOCUS_AREAS = "general code quality, best practices, and potential improvements"
DEFAULT_LANGUAGE = "the programming language used"

CODE_REVIEW_TEMPLATE = """Please review the code in the file "{file_path}" and provide feedback focusing on: {focus_areas}.

Please analyze the code for:
- Code quality and readability
- Potential bugs or issues
- Performance considerations
- Security concerns
- Best practices adherence
- Suggestions for improvement

Provide specific, actionable feedback with examples where possible."""

EXPLAIN_CODE_TEMPLATE = """Please explain how this {language} code works:

```{fence}
{code_snippet}
```

Please provide:
1. A high-level overview of what the code does
2. Step-by-step explanation of the logic
3. Key concepts or patterns used
4. Any potential edge cases or considerations
5. Suggestions for improvement if applicable

Make the explanation clear and accessible."""

PROMPTS = [
    Prompt(
        name="code-review",
        description="Get code review suggestions for a file",
        arguments=[
            PromptArgument(name="file_path", description="Path to the file to review", required=True),
            PromptArgument(
                name="focus_areas",
                description="Specific areas to focus on (e.g., 'security', 'performance', 'readability')",
                required=False,
            ),
        ],
    ),
    Prompt(
        name="explain-code",
        description="Get an explanation of how code works",
        arguments=[
            PromptArgument(name="code_snippet", description="The code snippet to explain", required=True),
            PromptArgument(name="language", description="Programming language of the code", required=False),
        ],
    ),
]


def _user_prompt(description: str, text: str) -> dict[str, Any]:
    result = GetPromptResult(
        description=description,
        messages=[PromptMessage(role="user", content=TextContent(type="text", text=text))],
    )
    return result.model_dump(mode="json", by_alias=True, exclude_none=True)


def _require(arguments: dict[str, Any], name: str) -> str:
    value = arguments.get(name)
    if value is None or value == "":
        raise InvalidParamsError(f"Missing required argument: {name}")
    return str(value)


class PromptRegistry:
    """The prompts exposed through ``prompts/list`` and ``prompts/get``."""

    def list_prompts(self) -> list[dict[str, Any]]:
        return [prompt.model_dump(mode="json", by_alias=True, exclude_none=True) for prompt in PROMPTS]

    def get_prompt(self, name: str, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
        arguments = arguments or {}
        if name == "code-review":
            return self.code_review(arguments)
        if name == "explain-code":
            return self.explain_code(arguments)
        raise MethodNotFoundError(f"Unknown prompt: {name}")

    def code_review(self, arguments: dict[str, Any]) -> dict[str, Any]:
        file_path = _require(arguments, "file_path")
        focus_areas = arguments.get("focus_areas") or DEFAULT_FOCUS_AREAS
        return _user_prompt(
            f"Code review for {file_path}",
            CODE_REVIEW_TEMPLATE.format(file_path=file_path, focus_areas=focus_areas),
        )

    def explain_code(self, arguments: dict[str, Any]) -> dict[str, Any]:
        code_snippet = _require(arguments, "code_snippet")
        language = arguments.get("language") or ""
        return _user_prompt(
            f"Explain code snippet in {language or DEFAULT_LANGUAGE}",
            EXPLAIN_CODE_TEMPLATE.format(
                language=language or DEFAULT_LANGUAGE,
                fence=language,
                code_snippet=code_snippet,
            ),
        )
