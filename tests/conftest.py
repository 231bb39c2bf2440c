"""Shared test fixtures for Slather tests."""
from typing import Any, Dict, List, Optional

import pytest
from rich.console import Console

from slather.core.applier import Applier, DryRunApplier
from slather.core.config import set_config
from slather.core.declarations import ActionRef, CurrentState, Declaration, DeclarationKind
from slather.core.errors import PermanentError, TransientError
from slather.core.probe import Probe
from slather.core.reconciler import Reconciler


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch, tmp_path):
    """Re-read settings from the environment for every test."""
    monkeypatch.delenv("SLATHER_MOCK", raising=False)
    monkeypatch.delenv("SLATHER_CONFIG", raising=False)
    monkeypatch.setenv("SLATHER_LOCK_FILE", str(tmp_path / "run.lock"))
    set_config(None)
    yield
    set_config(None)


class FakeHost:
    """In-memory host: a key/value store plus a log of every mutation."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.store: Dict[str, Any] = dict(initial or {})
        self.writes: List[str] = []
        self.action_runs: List[str] = []
        self.probe_errors: Dict[str, Exception] = {}
        self.apply_errors: Dict[str, Exception] = {}

    def _probe(self, decl: Declaration) -> CurrentState:
        if decl.identifier in self.probe_errors:
            raise self.probe_errors[decl.identifier]
        if decl.identifier not in self.store:
            return CurrentState.absent()
        return CurrentState.present(self.store[decl.identifier])

    def _apply(self, decl: Declaration, state: CurrentState) -> None:
        if decl.identifier in self.apply_errors:
            raise self.apply_errors[decl.identifier]
        self.writes.append(decl.identifier)
        self.store[decl.identifier] = (
            True if decl.kind == DeclarationKind.PACKAGE else decl.desired_value
        )

    def action(self, name: str, disruptive: bool = False, fail: bool = False) -> ActionRef:
        def _run():
            self.action_runs.append(name)
            if fail:
                raise RuntimeError(f"{name} exploded")

        return ActionRef(name=name, run_fn=_run, disruptive=disruptive, description=f"Run {name}")

    def package(self, name: str, action: Optional[ActionRef] = None) -> Declaration:
        return Declaration(
            kind=DeclarationKind.PACKAGE,
            identifier=name,
            action=action,
            probe_fn=self._probe,
            apply_fn=self._apply,
        )

    def preference(self, identifier: str, value: Any, value_type: str = "string",
                   action: Optional[ActionRef] = None) -> Declaration:
        domain, key = identifier.split("/", 1)
        return Declaration(
            kind=DeclarationKind.PREFERENCE,
            identifier=identifier,
            desired_value=value,
            action=action,
            domain=domain,
            key=key,
            value_type=value_type,
            probe_fn=self._probe,
            apply_fn=self._apply,
        )

    @staticmethod
    def manual(text: str) -> Declaration:
        return Declaration(
            kind=DeclarationKind.MANUAL,
            identifier=text.splitlines()[0],
            desired_value=text,
        )

    def reconciler(self, declarations, dry_run: bool = False, tame: bool = False,
                   setup_actions=()) -> Reconciler:
        applier_cls = DryRunApplier if dry_run else Applier
        return Reconciler(
            declarations,
            Probe({}),
            applier_cls({}, attempts=1, retry_delay=0),
            setup_actions=setup_actions,
            tame=tame,
            console=Console(quiet=True),
        )


@pytest.fixture
def host():
    """Empty in-memory host."""
    return FakeHost()


@pytest.fixture
def transient():
    return TransientError("network unreachable")


@pytest.fixture
def permanent():
    return PermanentError("No available formula with the name \"nosuchpkg\"")
