"""Allow ``python -m axtrace``."""

from axtrace.cli.main import cli

if __name__ == "__main__":
    cli()
