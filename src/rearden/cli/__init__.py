"""Command line interface for rearden.

One verb per invocation: init, backup, restore, push, pull, list, verify,
stats, export and template.
"""

from rearden.cli.main import cli, main

__all__ = ["cli", "main"]
