#!/usr/bin/env python3
"""Slather CLI - Declarative onboarding for a fresh Mac."""

import typer
from rich.console import Console

from slather.cli_domains_commands import register_domains_commands
from slather.cli_run_commands import register_run_commands
from slather.cli_utility_commands import register_utility_commands
from slather.core.logger import get_logger

app = typer.Typer(
    name="slather",
    help="""Slather - Declarative onboarding for a fresh Mac

One YAML table. Packages + preferences + hotkeys + reminders.

Quick start:
  slather init         # Write a starter table
  slather plan         # See what will change
  slather run          # Make it happen
  slather run --tame   # ...without restarting Dock and Finder

More commands: slather --help
""",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)

# Attach modular subcommands
register_run_commands(app, console)
register_utility_commands(app, console)
register_domains_commands(app, console)

if __name__ == "__main__":
    app()
