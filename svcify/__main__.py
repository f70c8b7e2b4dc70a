"""Allow running svcify with ``python -m svcify``."""

from .cli import main

if __name__ == "__main__":
    main()
