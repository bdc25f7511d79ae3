"""Project files served through ``resources/list`` and ``resources/read``."""

import logging
from pathlib import Path
from typing import Any

from .protocol import AccessDeniedError, InvalidParamsError, ResourceReadError

logger = logging.getLogger(__name__)

FILE_SCHEME = "file://"

MIME_TYPES = {
    ".md": "text/markdown",
    ".json": "application/json",
    ".ts": "text/typescript",
    ".js": "text/javascript",
    ".txt": "text/plain",
    ".py": "text/x-python",
    ".html": "text/html",
    ".css": "text/css",
    ".toml": "application/toml",
}

RESOURCES = [
    {
        "uri": "file://README.md",
        "name": "Project README",
        "description": "The main README file for this project",
        "mimeType": "text/markdown",
    },
    {
        "uri": "file://pyproject.toml",
        "name": "Package Configuration",
        "description": "Python package configuration file",
        "mimeType": "application/toml",
    },
    {
        "uri": "file://src/hjmcp/server.py",
        "name": "Server Source",
        "description": "Main MCP server implementation",
        "mimeType": "text/x-python",
    },
]


def get_mime_type(path: str) -> str:
    """Guess a MIME type from the file extension."""
    return MIME_TYPES.get(Path(path).suffix.lower(), "text/plain")


class ResourceRegistry:
    """Serves files below a project root, refusing paths that escape it."""

    def __init__(self, project_root: Path):
        self.project_root = project_root.resolve()

    def list_resources(self) -> list[dict[str, Any]]:
        return [dict(resource) for resource in RESOURCES]

    def resolve_uri(self, uri: str) -> Path:
        if not isinstance(uri, str) or not uri.startswith(FILE_SCHEME):
            raise InvalidParamsError(f"Unsupported URI scheme: {uri}")

        file_path = uri[len(FILE_SCHEME):]
        if file_path.endswith("/"):
            file_path = file_path[:-1]

        full_path = (self.project_root / file_path).resolve()
        if full_path != self.project_root and not full_path.is_relative_to(self.project_root):
            logger.warning("Refused read outside project root: %s", uri)
            raise AccessDeniedError("Access denied: File outside project directory")
        return full_path

    def read_resource(self, uri: str) -> dict[str, Any]:
        full_path = self.resolve_uri(uri)
        try:
            text = full_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ResourceReadError(f"Failed to read file: {e}") from e

        return {
            "contents": [
                {
                    "uri": uri,
                    "mimeType": get_mime_type(full_path.name),
                    "text": text,
                }
            ]
        }
