"""CLI package for SearchSync operator commands.

Contains the click interface, the command runner managing component
lifecycle, and the command implementations.
"""

from __future__ import annotations

__all__ = ["CommandRunner", "main"]

from SearchSync.cli.runner import CommandRunner
from SearchSync.cli.ui import cli


def main() -> None:
    """Run SearchSync CLI.

    Entry point referenced by console script in pyproject.toml.
    """
    cli()
