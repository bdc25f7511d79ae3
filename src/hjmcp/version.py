"""Version information for hjmcp."""

__version__ = "1.0.0"
