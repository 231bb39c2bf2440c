"""Preference domain inspection commands - domains list, domains dump."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional, Set

import typer
from rich.console import Console
from rich.markup import escape

from slather.cli_support import is_mock, print_error, print_success, print_warning
from slather.core.errors import SlatherError
from slather.services.defaults import GLOBAL_DOMAIN, DefaultsManager

DomainsTyper = typer.Typer(help="Inspect macOS preference domains")

DEFAULT_BLOCKLIST = Path.home() / ".config" / "slather" / "domains-block.list"
GLOBAL_DUMP_NAME = "_apple_global_domain__nsglobaldomain.plist"
ALL_DUMP_NAME = "_all_defaults.plist"


def load_blocklist(path: Optional[Path]) -> Set[str]:
    """Read domain names to skip, one per line; '#' starts a comment."""
    if path is None or not path.exists():
        return set()

    names = set()
    for line in path.read_text().splitlines():
        name = line.split("#", 1)[0].strip()
        if name:
            names.add(name)
    return names


def dump_domains(
    defaults: DefaultsManager,
    output_root: Path,
    blocklist: Set[str],
    console: Console,
) -> Path:
    """Write each domain's dump into a new timestamped directory.

    Returns:
        The directory that was created
    """
    dump_dir = output_root / f"domains_dump__{datetime.now().strftime('%Y%m%d%H%M%S')}"
    dump_dir.mkdir(parents=True)

    for name in defaults.list_domains():
        if name in blocklist:
            continue
        console.print(f"Dumping domain: {escape(name)}")
        try:
            (dump_dir / f"{name}.plist").write_text(defaults.dump_domain(name))
        except SlatherError as e:
            # `defaults domains` lists some domains that cannot be read
            print_warning(console, f"{escape(name)}: {escape(str(e))}")

    # NSGlobalDomain is not listed by `defaults domains`
    (dump_dir / GLOBAL_DUMP_NAME).write_text(defaults.dump_domain(GLOBAL_DOMAIN))
    (dump_dir / ALL_DUMP_NAME).write_text(defaults.dump_domain())
    return dump_dir


def register_domains_commands(root: typer.Typer, console: Console) -> None:
    """Attach domains subcommands to the main CLI."""

    @DomainsTyper.command("list")
    def list_command() -> None:
        """List all preference domains, sorted."""
        try:
            names = DefaultsManager(mock=is_mock()).list_domains()
        except SlatherError as e:
            print_error(console, escape(str(e)))
            raise typer.Exit(1) from e

        for name in names:
            console.print(name, markup=False, highlight=False)

    @DomainsTyper.command("dump")
    def dump_command(
        all_domains: bool = typer.Option(False, "--all", help="Ignore the blocklist."),
        blocklist: Optional[Path] = typer.Option(
            None, "--blocklist", help=f"Domains to skip (default: {DEFAULT_BLOCKLIST})."
        ),
        output_dir: Path = typer.Option(Path("."), "--output-dir", "-o", help="Where to create the dump directory."),
    ) -> None:
        """Write each domain's settings to a file in a new directory.

        Run it before and after changing a setting in System Settings, then
        diff the two directories to find the domain and key that changed.
        """
        if blocklist is not None and not blocklist.exists():
            print_error(console, f"Blocklist not found: {blocklist}")
            raise typer.Exit(1)

        skip = set() if all_domains else load_blocklist(blocklist or DEFAULT_BLOCKLIST)

        try:
            dump_dir = dump_domains(DefaultsManager(mock=is_mock()), output_dir, skip, console)
        except (SlatherError, OSError) as e:
            print_error(console, escape(str(e)))
            raise typer.Exit(1) from e

        print_success(console, "Your domains dump is ready under the new directory:")
        console.print(f"  {escape(str(dump_dir))}")

    root.add_typer(DomainsTyper, name="domains")
