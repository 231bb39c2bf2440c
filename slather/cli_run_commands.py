"""Reconciliation CLI commands - run, plan."""
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from slather.cli_support import (
    build_reconciler,
    handle_cli_error,
    load_table,
    print_error,
    print_success,
    print_warning,
    setup_file_logging,
)
from slather.core.counts import CommandTally
from slather.core.errors import ConfigValidationError, LockError
from slather.core.lock import run_lock
from slather.core.reconciler import EXIT_INTERNAL, EXIT_INTERRUPTED, EXIT_PERMANENT, RunReport

# Module-level console instance (will be set by register function)
console: Console = Console()


def _render_summary(report: RunReport) -> None:
    table = Table(title="Dry run" if report.dry_run else "Run report", show_header=False)
    table.add_column("What", style="cyan")
    table.add_column("Count", justify="right")

    table.add_row("Would change" if report.dry_run else "Changed", str(report.changed))
    table.add_row("Unchanged", str(report.unchanged))
    table.add_row("Failed (permanent)", str(len(report.permanent_failures)))
    table.add_row("Failed (transient)", str(len(report.transient_failures)))
    table.add_row("Skipped (state unknown)", str(len(report.skipped)))
    table.add_row("Actions", str(len(report.actions)))
    table.add_row("Manual steps", str(len(report.manual_steps)))
    console.print()
    console.print(table)


def _render_failures(report: RunReport) -> None:
    if report.permanent_failures:
        console.print("\n[red]Permanent failures - fix the declaration table:[/red]")
        for failure in report.permanent_failures:
            console.print(f"  [red]✗[/red] {escape(failure.label or failure.identifier)}: {escape(failure.message)}")

    if report.transient_failures:
        console.print("\n[yellow]Transient failures - re-run later:[/yellow]")
        for failure in report.transient_failures:
            console.print(f"  [yellow]✗[/yellow] {escape(failure.label or failure.identifier)}: {escape(failure.message)}")

    if report.skipped:
        console.print("\n[yellow]Skipped (could not read current state):[/yellow]")
        for skip in report.skipped:
            console.print(f"  [yellow]?[/yellow] {escape(skip.identifier)}: {escape(skip.reason)}")


def _render_counts(report: RunReport) -> None:
    tally = CommandTally.from_report(report)

    table = Table(title="Counts report", show_header=False)
    table.add_column("Command", style="cyan")
    table.add_column("Calls", justify="right")
    for name, count in tally.as_rows().items():
        table.add_row(name, str(count))
    console.print()
    console.print(table)

    if tally.defaults_domains:
        console.print("[dim]defaults calls per domain:[/dim]")
        for domain, count in sorted(tally.defaults_domains.items()):
            console.print(f"  {count:3d} : {escape(domain)}")


def _render_manual_steps(report: RunReport) -> None:
    if not report.manual_steps:
        return

    console.print("\n[bold]Please perform the following tasks manually:[/bold]\n")
    for step in report.manual_steps:
        console.print(step, markup=False, highlight=False)
    console.print("\nGood luck!")


def execute_run(
    config: Optional[str],
    dry_run: bool,
    tame: bool,
    count: bool,
    verbose: bool,
    log_file: Optional[str],
    no_lock: bool,
) -> None:
    """Load the table, reconcile, print the report and exit with its code."""
    setup_file_logging(log_file=log_file, verbose=verbose)

    if count:
        dry_run = True

    try:
        config_file, table = load_table(config)
    except FileNotFoundError as e:
        print_error(console, str(e))
        console.print("[dim]Create one with 'slather init'[/dim]")
        raise typer.Exit(EXIT_PERMANENT) from e
    except ConfigValidationError as e:
        print_error(console, escape(str(e)))
        raise typer.Exit(EXIT_PERMANENT) from e

    console.print(f"[dim]Declaration table: {escape(config_file)}[/dim]")
    if dry_run:
        print_warning(console, "DRY RUN - probing only, nothing will be changed")
    if tame:
        console.print("[dim]Tame mode: disruptive restarts are skipped[/dim]")

    reconciler = build_reconciler(table, console, dry_run=dry_run, tame=tame)

    try:
        if dry_run or no_lock:
            report = reconciler.run()
        else:
            with run_lock():
                report = reconciler.run()
    except LockError as e:
        print_error(console, escape(str(e)))
        raise typer.Exit(EXIT_PERMANENT) from e
    except KeyboardInterrupt as e:
        print_warning(console, "Interrupted")
        raise typer.Exit(EXIT_INTERRUPTED) from e
    except Exception as e:
        handle_cli_error(e, console, verbose=verbose, exit_code=EXIT_INTERNAL)

    _render_summary(report)
    _render_failures(report)
    if count:
        _render_counts(report)
    _render_manual_steps(report)

    if report.interrupted:
        print_warning(console, "Interrupted - remaining declarations were not processed")
    elif not report.failed:
        print_success(console, "Dry run complete" if dry_run else "Host reconciled")

    exit_code = report.exit_code()
    if exit_code:
        raise typer.Exit(exit_code)


def run(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Declaration table path"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Probe only; show what would change"),
    tame: bool = typer.Option(False, "--tame", help="Skip disruptive restarts (Dock, Finder)"),
    count: bool = typer.Option(False, "--count", help="Dry run and print command counts"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Path to log file"),
    no_lock: bool = typer.Option(False, "--no-lock", help="Don't take the run lock"),
):
    """Reconcile this Mac against the declaration table.

    Installs missing packages, writes preferences, runs each restart
    action once, then lists the steps that must be done by hand.

    Exit codes: 0 ok, 1 permanent failures, 2 internal error, 3 interrupted.
    """
    execute_run(config, dry_run, tame, count, verbose, log_file, no_lock)


def plan(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Declaration table path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Path to log file"),
):
    """Show what 'slather run' would change (same as run --dry-run)."""
    execute_run(config, True, False, False, verbose, log_file, True)


def register_run_commands(app: typer.Typer, shared_console: Console):
    """Register reconciliation commands with the main Typer app.

    Args:
        app: Main Typer application
        shared_console: Shared Rich console instance
    """
    global console
    console = shared_console

    app.command()(run)
    app.command()(plan)
