"""Tests for the prompt templates."""

import pytest

from hjmcp.prompts import DEFAULT_FOCUS_AREAS, PromptRegistry
from hjmcp.protocol import InvalidParamsError, MethodNotFoundError


@pytest.fixture
def prompts():
    return PromptRegistry()


class TestPromptRegistry:
    """Test prompt listing and rendering."""

    def test_list_prompts(self, prompts):
        """Both prompts are listed with their arguments."""
        listed = prompts.list_prompts()

        assert [p["name"] for p in listed] == ["code-review", "explain-code"]
        review_args = {a["name"]: a["required"] for a in listed[0]["arguments"]}
        assert review_args == {"file_path": True, "focus_areas": False}
        explain_args = {a["name"]: a["required"] for a in listed[1]["arguments"]}
        assert explain_args == {"code_snippet": True, "language": False}

    def test_code_review_defaults(self, prompts):
        """Focus areas fall back to a general review."""
        result = prompts.get_prompt("code-review", {"file_path": "app.py"})

        assert result["description"] == "Code review for app.py"
        message = result["messages"][0]
        assert message["role"] == "user"
        assert message["content"]["type"] == "text"
        assert message["content"]["text"].startswith(
            f'Please review the code in the file "app.py" and provide feedback focusing on: {DEFAULT_FOCUS_AREAS}.'
        )

    def test_code_review_focus(self, prompts):
        """Requested focus areas appear in the prompt."""
        result = prompts.get_prompt("code-review", {"file_path": "app.py", "focus_areas": "security"})

        assert "focusing on: security." in result["messages"][0]["content"]["text"]

    def test_explain_code_with_language(self, prompts):
        """The language names the code and tags the fence."""
        result = prompts.get_prompt("explain-code", {"code_snippet": "print({})", "language": "python"})

        text = result["messages"][0]["content"]["text"]
        assert result["description"] == "Explain code snippet in python"
        assert text.startswith("Please explain how this python code works:")
        assert "```python\nprint({})\n```" in text

    def test_explain_code_without_language(self, prompts):
        """Without a language the fence is untagged."""
        result = prompts.get_prompt("explain-code", {"code_snippet": "x = 1"})

        text = result["messages"][0]["content"]["text"]
        assert result["description"] == "Explain code snippet in the programming language used"
        assert "```\nx = 1\n```" in text

    def test_missing_required_argument(self, prompts):
        """Required arguments must be supplied."""
        with pytest.raises(InvalidParamsError, match="file_path"):
            prompts.get_prompt("code-review", {})

    def test_unknown_prompt(self, prompts):
        """Unknown prompts raise a method-not-found error."""
        with pytest.raises(MethodNotFoundError, match="Unknown prompt: nope"):
            prompts.get_prompt("nope", {})
