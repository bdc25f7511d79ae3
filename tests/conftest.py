"""Shared fixtures for hjmcp tests."""

import json
import os
import sys
from pathlib import Path

import pytest

from hjmcp.config import ClientConfig, ServerConfig, ServerProcessConfig
from hjmcp.server import MCPStdioServer

SRC_DIR = Path(__file__).resolve().parent.parent / "src"


def subprocess_env() -> dict[str, str]:
    """Environment that lets a child interpreter import hjmcp from the source tree."""
    pythonpath = os.environ.get("PYTHONPATH")
    return {
        "PYTHONPATH": f"{SRC_DIR}{os.pathsep}{pythonpath}" if pythonpath else str(SRC_DIR),
    }


@pytest.fixture
def project_dir(tmp_path):
    """A small project tree for the tools and resources to work on."""
    root = tmp_path / "project"
    (root / "src" / "hjmcp").mkdir(parents=True)
    (root / "docs").mkdir()
    (root / "README.md").write_text("# Demo project\n", encoding="utf-8")
    (root / "pyproject.toml").write_text('[project]\nname = "demo"\n', encoding="utf-8")
    (root / "src" / "hjmcp" / "server.py").write_text("print('hello')\n", encoding="utf-8")
    (root / "data.json").write_text(json.dumps({"answer": 42}), encoding="utf-8")
    (tmp_path / "secret.txt").write_text("top secret\n", encoding="utf-8")
    return root


@pytest.fixture
def server(project_dir):
    return MCPStdioServer(ServerConfig(project_root=project_dir))


@pytest.fixture
def client_config(project_dir):
    """Client configuration that spawns ``hjmcp serve`` over the test project."""
    return ClientConfig(
        request_timeout=10.0,
        startup_timeout=30.0,
        server=ServerProcessConfig(
            command=sys.executable,
            args=["-m", "hjmcp", "serve", "--root", str(project_dir)],
            env=subprocess_env(),
            cwd=str(project_dir),
        ),
    )
