"""Entry point for ``python -m appforge``."""

from appforge.cli import main

if __name__ == "__main__":
    main()
