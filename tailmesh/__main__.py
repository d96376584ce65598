"""
Entry point for the ``tailmesh`` console script and ``python -m tailmesh``.
"""

import sys

from loguru import logger
from rich.console import Console

from tailmesh.cli.main import app


def main():
    """Run the CLI. Ctrl-C exits 0; an unexpected error exits 1 and lands in tailmesh_errors.log."""
    err = Console(stderr=True)
    try:
        app()
    except KeyboardInterrupt:
        err.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(0)
    except Exception as e:
        logger.opt(exception=e).error("Unexpected error")
        err.print(f"\n[red]✗ Unexpected error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
