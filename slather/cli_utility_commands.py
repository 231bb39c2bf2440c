"""Utility CLI commands - validate, doctor, init, version."""
import platform
import shutil
from pathlib import Path
from typing import List, Optional, Tuple

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from slather import __version__
from slather.cli_support import find_config, load_table, print_error, print_success, print_warning
from slather.core.config import get_config
from slather.core.errors import ConfigValidationError, SlatherError
from slather.core.lock import check_lock_status
from slather.services.shell import run_command

# Module-level console instance (will be set by register function)
console: Console = Console()

STARTER_TEMPLATE = Path(__file__).parent / "config" / "templates" / "starter.yml"
REQUIRED_TOOLS = ("brew", "defaults", "osascript")


def validate(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Declaration table path"),
):
    """Check the declaration table without touching the host."""
    try:
        config_file, table = load_table(config)
    except FileNotFoundError as e:
        print_error(console, str(e))
        raise typer.Exit(1) from e
    except ConfigValidationError as e:
        print_error(console, escape(str(e)))
        raise typer.Exit(1) from e

    counts = table.count_by_kind()
    summary = Table(title=f"{config_file}", show_header=True)
    summary.add_column("Kind", style="cyan")
    summary.add_column("Declarations", justify="right")
    for kind, count in counts.items():
        summary.add_row(kind, str(count))
    console.print(summary)

    if table.setup:
        console.print(f"[dim]Setup actions: {', '.join(action.name for action in table.setup)}[/dim]")
    print_success(console, f"{len(table.declarations)} declarations OK")


def macos_major_version() -> Optional[int]:
    """Return the running macOS major version, or None off macOS."""
    if platform.system() != "Darwin":
        return None
    try:
        result = run_command(["sw_vers", "-productVersion"], check=True)
    except SlatherError:
        return None
    try:
        return int(result.stdout.strip().split(".")[0])
    except ValueError:
        return None


def check_host() -> List[Tuple[str, bool, str]]:
    """Collect (check, ok, detail) rows for `doctor`."""
    checks: List[Tuple[str, bool, str]] = []
    expected = get_config().expected_macos

    major = macos_major_version()
    if major is None:
        checks.append(("macOS", False, f"not macOS ({platform.system()})"))
    else:
        checks.append(("macOS", True, f"major version {major}"))
        if major != expected:
            checks.append(("macOS version", False, f"expected {expected}, found {major}"))
        else:
            checks.append(("macOS version", True, f"{major}"))

    lock = check_lock_status()
    if lock is None:
        checks.append(("run lock", True, "free"))
    else:
        checks.append(("run lock", False, f"held by PID {lock['pid']} since {lock['time']}"))

    for tool in REQUIRED_TOOLS:
        path = shutil.which(tool)
        checks.append((tool, path is not None, path or "not found"))

    return checks


def doctor():
    """Check that this host can be reconciled.

    Verifies the OS, the expected macOS major version
    (SLATHER_EXPECTED_MACOS), that no other run holds the lock
    and the tools slather calls.
    """
    checks = check_host()

    table = Table(title="slather doctor", show_header=True)
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Detail")
    for name, ok, detail in checks:
        table.add_row(name, "[green]ok[/green]" if ok else "[red]fail[/red]", escape(detail))
    console.print(table)

    failed = [name for name, ok, _ in checks if not ok]
    if failed:
        print_warning(console, f"{len(failed)} check(s) failed: {', '.join(failed)}")
        raise typer.Exit(1)
    print_success(console, "Host looks ready")


def init(
    path: Optional[str] = typer.Option(None, "--path", "-p", help="Where to write the table"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing table"),
):
    """Write a starter declaration table."""
    target = Path(path or find_config(None)).expanduser()

    if target.exists() and not force:
        print_error(console, f"{target} already exists (use --force to overwrite)")
        raise typer.Exit(1)

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(STARTER_TEMPLATE.read_text())
    print_success(console, f"Created {target}")
    console.print("[dim]Next: slather plan[/dim]")


def version():
    """Show slather version."""
    console.print(f"slather v{__version__}")


def register_utility_commands(app: typer.Typer, shared_console: Console):
    """Register utility commands with the main Typer app.

    Args:
        app: Main Typer application
        shared_console: Shared Rich console instance
    """
    global console
    console = shared_console

    app.command()(validate)
    app.command()(doctor)
    app.command()(init)
    app.command()(version)
