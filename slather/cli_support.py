"""Shared utilities for Slather CLI modules."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Tuple

import typer
from rich.console import Console
from rich.markup import escape

from slather.config.loader import DeclarationLoader, DeclarationTable
from slather.core.actions import ActionCollector
from slather.core.applier import Applier, DryRunApplier
from slather.core.config import mock_enabled
from slather.core.handlers import build_handlers
from slather.core.manual_steps import ManualStepSink
from slather.core.probe import Probe
from slather.core.reconciler import Reconciler

# Default table search paths (ordered by proximity to current run)
CONFIG_PATHS = [
    "./slather.yml",
    str(Path.home() / ".config" / "slather" / "slather.yml"),
]


def find_config(config_path: Optional[str] = None) -> str:
    """Locate the active declaration table."""
    if config_path:
        return config_path

    if env_config := os.environ.get("SLATHER_CONFIG"):
        return env_config

    for path in CONFIG_PATHS:
        if Path(path).exists():
            return path

    return "slather.yml"


def is_mock() -> bool:
    """Return True when CLI runs in mock mode."""
    return mock_enabled()


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> None:
    """Set up file logging for CLI commands.

    Args:
        log_file: Path to log file (optional)
        verbose: Enable verbose logging
    """
    from slather.core.logger import setup_file_logging as _setup_file_logging
    _setup_file_logging(log_file=log_file, verbose=verbose)


def load_table(config_path: Optional[str]) -> Tuple[str, DeclarationTable]:
    """Find and load the declaration table.

    Returns:
        Tuple of (resolved path, table)
    """
    config_file = find_config(config_path)
    return config_file, DeclarationLoader(config_file).load()


def build_reconciler(
    table: DeclarationTable,
    console: Console,
    dry_run: bool = False,
    tame: bool = False,
    mock: Optional[bool] = None,
) -> Reconciler:
    """Wire Probe, Applier, ActionCollector and ManualStepSink for one run."""
    if mock is None:
        mock = is_mock()
    handlers = build_handlers(mock=mock)
    applier = DryRunApplier(handlers) if dry_run else Applier(handlers)
    return Reconciler(
        table.declarations,
        Probe(handlers),
        applier,
        actions=ActionCollector(dry_run=dry_run, tame=tame),
        manual_steps=ManualStepSink(),
        setup_actions=table.setup,
        tame=tame,
        console=console,
    )


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Handle CLI errors with consistent formatting.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
    """
    console.print(f"[red]Error:[/red] {escape(str(e))}")
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    """Print success message with consistent formatting."""
    console.print(f"[green]{prefix}[/green] {message}")


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    """Print error message with consistent formatting."""
    console.print(f"[red]{prefix}[/red] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    """Print warning message with consistent formatting."""
    console.print(f"[yellow]{prefix}[/yellow] {message}")


def print_info(console: Console, message: str, prefix: str = "ℹ") -> None:
    """Print info message with consistent formatting."""
    console.print(f"[cyan]{prefix}[/cyan] {message}")
