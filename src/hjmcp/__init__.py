"""hjmcp - line-delimited JSON-RPC tool server and client over stdio."""

from .version import __version__

__all__ = ["__version__"]
