"""Entry point for ``python -m org_grep``."""

from .cli import main

if __name__ == "__main__":
    main()
