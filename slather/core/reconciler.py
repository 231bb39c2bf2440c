"""Reconcile the host against an ordered list of declarations.

The run is collect-and-continue: a failing declaration is recorded in the
report and the next one is processed. Post-apply actions are deduplicated
and flushed once at the end, then manual reminders are drained.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.markup import escape

from slather.core.actions import ActionCollector, ActionOutcome, ActionStatus
from slather.core.applier import Applier
from slather.core.declarations import ActionRef, Declaration, DeclarationKind
from slather.core.errors import ApplyError, ErrorKind
from slather.core.logger import get_logger
from slather.core.manual_steps import ManualStepSink
from slather.core.probe import Probe
from slather.services.shell import format_command

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_PERMANENT = 1
EXIT_INTERNAL = 2
EXIT_INTERRUPTED = 3


class RunState(str, Enum):
    IDLE = "idle"
    PROBING = "probing"
    SKIPPING = "skipping"
    APPLYING = "applying"
    FLUSHING = "flushing"
    REPORTING = "reporting"
    DONE = "done"


@dataclass(frozen=True)
class Change:
    index: int
    identifier: str
    label: str
    commands: Tuple[Tuple[str, ...], ...] = ()


@dataclass(frozen=True)
class Failure:
    index: int
    identifier: str
    kind: DeclarationKind
    error_kind: ErrorKind
    message: str
    label: str = ""


@dataclass(frozen=True)
class Skip:
    index: int
    identifier: str
    reason: str


@dataclass(frozen=True)
class RunReport:
    """Result of one reconciler run. Immutable once returned."""

    changed: int = 0
    unchanged: int = 0
    failed: Tuple[Failure, ...] = ()
    skipped: Tuple[Skip, ...] = ()
    manual_steps: Tuple[str, ...] = ()
    changes: Tuple[Change, ...] = ()
    setup: Tuple[ActionOutcome, ...] = ()
    actions: Tuple[ActionOutcome, ...] = ()
    dry_run: bool = False
    tame: bool = False
    interrupted: bool = False

    @property
    def permanent_failures(self) -> Tuple[Failure, ...]:
        return tuple(f for f in self.failed if f.error_kind == ErrorKind.PERMANENT)

    @property
    def transient_failures(self) -> Tuple[Failure, ...]:
        return tuple(f for f in self.failed if f.error_kind == ErrorKind.TRANSIENT)

    @property
    def commands(self) -> List[Tuple[str, ...]]:
        """Every command line issued (or planned) by the run, in order."""
        lines: List[Tuple[str, ...]] = []
        for outcome in self.setup:
            if outcome.command and outcome.status != ActionStatus.SUPPRESSED:
                lines.append(outcome.command)
        for change in self.changes:
            lines.extend(change.commands)
        for outcome in self.actions:
            if outcome.command and outcome.status != ActionStatus.SUPPRESSED:
                lines.append(outcome.command)
        return lines

    def exit_code(self) -> int:
        if self.interrupted:
            return EXIT_INTERRUPTED
        if self.permanent_failures:
            return EXIT_PERMANENT
        return EXIT_OK

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class _Tally:
    changed: int = 0
    unchanged: int = 0
    failed: List[Failure] = field(default_factory=list)
    skipped: List[Skip] = field(default_factory=list)
    changes: List[Change] = field(default_factory=list)


class Reconciler:
    """Drives Probe -> Applier -> ActionCollector/ManualStepSink.

    States: idle -> probing(i) -> (skipping | applying(i)) -> probing(i+1)
    ... -> flushing -> reporting -> done. ``done`` is reached even when
    declarations fail. On Ctrl-C the loop stops, already-applied state is
    kept, and the flush and report still run.
    """

    def __init__(
        self,
        declarations: Sequence[Declaration],
        probe: Probe,
        applier: Applier,
        actions: Optional[ActionCollector] = None,
        manual_steps: Optional[ManualStepSink] = None,
        setup_actions: Sequence[ActionRef] = (),
        tame: bool = False,
        console: Optional[Console] = None,
    ):
        self.declarations = list(declarations)
        self.probe = probe
        self.applier = applier
        self.dry_run = applier.dry_run
        self.tame = tame
        self.actions = actions or ActionCollector(dry_run=self.dry_run, tame=tame)
        self.manual_steps = manual_steps or ManualStepSink()
        self.setup_actions = list(setup_actions)
        self.console = console or Console()
        self.state = RunState.IDLE
        self.position: Optional[int] = None

    def run(self) -> RunReport:
        tally = _Tally()
        interrupted = False

        setup_outcomes = self._run_setup()

        try:
            for index, decl in enumerate(self.declarations):
                self.position = index
                self._reconcile_one(index, decl, tally)
        except KeyboardInterrupt:
            interrupted = True
            logger.warning(
                f"Interrupted at declaration {self.position}; "
                "already-applied changes are kept"
            )

        self.state = RunState.FLUSHING
        outcomes = self.actions.flush()
        for outcome in outcomes:
            self._print_action(outcome)

        self.state = RunState.REPORTING
        report = RunReport(
            changed=tally.changed,
            unchanged=tally.unchanged,
            failed=tuple(tally.failed),
            skipped=tuple(tally.skipped),
            manual_steps=tuple(self.manual_steps.drain()),
            changes=tuple(tally.changes),
            setup=tuple(setup_outcomes),
            actions=tuple(outcomes),
            dry_run=self.dry_run,
            tame=self.tame,
            interrupted=interrupted,
        )
        self.state = RunState.DONE
        return report

    def _run_setup(self) -> List[ActionOutcome]:
        if not self.setup_actions:
            return []
        collector = ActionCollector(dry_run=self.dry_run, tame=self.tame)
        for action in self.setup_actions:
            collector.enqueue(action)
        outcomes = collector.flush()
        for outcome in outcomes:
            self._print_action(outcome)
        return outcomes

    def _reconcile_one(self, index: int, decl: Declaration, tally: _Tally) -> None:
        if decl.kind == DeclarationKind.MANUAL:
            self.manual_steps.record(str(decl.desired_value or decl.identifier))
            return

        self.state = RunState.PROBING
        state = self.probe.probe(decl)

        if state.is_unknown:
            self.state = RunState.SKIPPING
            tally.skipped.append(Skip(index, decl.identifier, state.detail))
            self.console.print(
                f"[yellow]?[/yellow] {escape(decl.label)}: state unknown, skipped "
                f"[dim]({escape(state.detail)})[/dim]"
            )
            return

        if decl.is_satisfied(state):
            self.state = RunState.SKIPPING
            tally.unchanged += 1
            self.console.print(f"[dim]· {escape(decl.label)} (already set)[/dim]")
            return

        self.state = RunState.APPLYING
        try:
            result = self.applier.apply(decl, state)
        except ApplyError as e:
            self._record_failure(tally, index, decl, e.kind, str(e))
            return
        except OSError as e:
            self._record_failure(tally, index, decl, ErrorKind.TRANSIENT, str(e))
            return

        if not result.changed:
            tally.unchanged += 1
            return

        tally.changed += 1
        tally.changes.append(Change(index, decl.identifier, decl.label, result.commands))
        if decl.action is not None:
            self.actions.enqueue(decl.action)

        if result.dry_run:
            self.console.print(f"[cyan]→[/cyan] Would change: {escape(decl.label)}")
            for command in result.commands:
                self.console.print(f"  [dim]{escape(format_command(command))}[/dim]")
        else:
            self.console.print(f"[green]✓[/green] {escape(decl.label)}")
            logger.debug(f"Applied {decl.kind.value} {decl.identifier}")

    def _record_failure(self, tally: _Tally, index: int, decl: Declaration,
                        error_kind: ErrorKind, message: str) -> None:
        tally.failed.append(
            Failure(index, decl.identifier, decl.kind, error_kind, message, decl.label)
        )
        self.console.print(
            f"[red]✗[/red] {escape(decl.label)}: {escape(message)} "
            f"[{'red' if error_kind == ErrorKind.PERMANENT else 'yellow'}]"
            f"({error_kind.value})[/]"
        )
        logger.debug(f"{error_kind.value} failure on {decl.identifier}: {message}")

    def _print_action(self, outcome: ActionOutcome) -> None:
        name = escape(outcome.name)
        if outcome.status == ActionStatus.RAN:
            self.console.print(f"[green]✓[/green] Ran {name}")
        elif outcome.status == ActionStatus.PLANNED:
            self.console.print(f"[cyan]→[/cyan] Would run {name}: [dim]{escape(outcome.description)}[/dim]")
        elif outcome.status == ActionStatus.SUPPRESSED:
            self.console.print(f"[dim]· Skipped {name} (--tame)[/dim]")
        else:
            self.console.print(f"[red]✗[/red] {name} failed: {escape(outcome.error)}")
