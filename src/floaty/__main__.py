"""Allow running floaty with ``python -m floaty``."""

from floaty.cli.main import main


if __name__ == "__main__":
    main()
