"""Allow running hjmcp with ``python -m hjmcp``."""

from .cli import main

if __name__ == "__main__":
    main()
