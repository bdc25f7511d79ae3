"""Tests for the command line interface."""

import json

import pytest
from typer.testing import CliRunner

from conftest import SRC_DIR
from hjmcp import __version__
from hjmcp.cli import app
from hjmcp.config import config_manager

runner = CliRunner()


@pytest.fixture
def isolated_config(tmp_path, monkeypatch, project_dir):
    """Point the global config manager at a temporary location."""
    monkeypatch.chdir(project_dir)
    monkeypatch.setenv("PYTHONPATH", str(SRC_DIR))
    monkeypatch.setattr(config_manager, "CONFIG_DIR", tmp_path / "home")
    monkeypatch.setattr(config_manager, "CONFIG_FILE", tmp_path / "home" / "config.json")
    config_manager.reset()
    yield config_manager
    config_manager.reset()


class TestInfoCommands:
    """Test commands that need no server."""

    def test_version(self):
        """--version prints the version and exits."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_info(self):
        """info describes the tools and prompts."""
        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "calculate" in result.output
        assert "code-review" in result.output

    def test_config_show(self, isolated_config):
        """config --show lists the current settings."""
        result = runner.invoke(app, ["config", "--show"])

        assert result.exit_code == 0
        assert "Request Timeout" in result.output
        assert "hjmcp-stdio" in result.output

    def test_config_update(self, isolated_config):
        """config options are saved to the config file."""
        result = runner.invoke(app, ["config", "--request-timeout", "2", "--log-level", "debug"])

        assert result.exit_code == 0
        saved = json.loads(isolated_config.CONFIG_FILE.read_text())
        assert saved["client"]["request_timeout"] == 2.0
        assert saved["server"]["log_level"] == "DEBUG"

    def test_config_rejects_invalid_log_level(self, isolated_config):
        """An invalid setting is refused and nothing is written."""
        result = runner.invoke(app, ["config", "--request-timeout", "3", "--log-level", "loud"])

        assert result.exit_code == 2
        assert "Invalid setting" in result.output
        assert not isolated_config.CONFIG_FILE.exists()
        assert isolated_config.get_config().server.log_level == "INFO"

    def test_call_rejects_bad_json(self, isolated_config):
        """--args must be a JSON object."""
        result = runner.invoke(app, ["call", "calculate", "--args", "[1, 2]"])

        assert result.exit_code == 2


class TestServerCommands:
    """Test commands that spawn the server."""

    def test_call_calculate(self, isolated_config):
        """call runs a tool and prints its text."""
        result = runner.invoke(app, ["call", "calculate", "--args", '{"expression": "2 + 3 * 4"}'])

        assert result.exit_code == 0, result.output
        assert "Calculation: 2 + 3 * 4 = 14" in result.output

    def test_call_unknown_tool(self, isolated_config):
        """Server errors are reported with a non-zero exit code."""
        result = runner.invoke(app, ["call", "bogus"])

        assert result.exit_code == 1
        assert "Unknown tool: bogus" in result.output

    def test_read(self, isolated_config):
        """read prints the resource text."""
        result = runner.invoke(app, ["read", "file://README.md"])

        assert result.exit_code == 0, result.output
        assert "# Demo project" in result.output

    def test_demo(self, isolated_config):
        """The calculator demo evaluates every expression."""
        result = runner.invoke(app, ["demo"])

        assert result.exit_code == 0, result.output
        assert "Calculation: (15 + 5) / 4 = 5" in result.output
        assert "Calculation: 2**8 = 256" in result.output
        assert "Error calculating expression" in result.output
        assert "Demo completed" in result.output

    def test_check(self, isolated_config):
        """check prints the initialize response."""
        result = runner.invoke(app, ["check"])

        assert result.exit_code == 0, result.output
        assert "hjmcp-stdio" in result.output
