"""Desired-state declarations and the probe states they are compared to."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from slather.core.hotkeys import SymbolicHotKey


class DeclarationKind(str, Enum):
    """What a declaration manages."""

    PACKAGE = "package"
    TAP = "tap"
    PREFERENCE = "preference"
    HOTKEY = "hotkey"
    SYMLINK = "symlink"
    MANUAL = "manual"


class StateStatus(str, Enum):
    """Outcome of a probe."""

    PRESENT = "present"
    ABSENT = "absent"
    UNKNOWN = "unknown"


PREFERENCE_TYPES = ("bool", "int", "float", "string", "dict", "array")


@dataclass(frozen=True)
class CurrentState:
    """What a probe saw on the host."""

    status: StateStatus
    value: Any = None
    detail: str = ""

    @classmethod
    def present(cls, value: Any = None) -> "CurrentState":
        return cls(StateStatus.PRESENT, value)

    @classmethod
    def absent(cls) -> "CurrentState":
        return cls(StateStatus.ABSENT)

    @classmethod
    def unknown(cls, reason: str) -> "CurrentState":
        return cls(StateStatus.UNKNOWN, None, reason)

    @property
    def is_unknown(self) -> bool:
        return self.status == StateStatus.UNKNOWN


@dataclass(frozen=True)
class ActionRef:
    """A post-apply side effect, deduplicated by name within a run."""

    name: str
    run_fn: Callable[[], Any] = field(compare=False, repr=False)
    disruptive: bool = field(default=False, compare=False)
    description: str = field(default="", compare=False)
    command: tuple = field(default=(), compare=False)


def preference_values_equal(current: Any, desired: Any, value_type: Optional[str]) -> bool:
    """Compare a value read from the preference store with the desired one."""
    if value_type == "bool":
        if isinstance(current, str):
            return (current.strip().lower() in ("1", "true", "yes")) == bool(desired)
        return bool(current) == bool(desired)
    if value_type == "float":
        try:
            return math.isclose(float(current), float(desired), rel_tol=1e-9)
        except (TypeError, ValueError):
            return False
    if value_type == "int":
        if isinstance(current, bool):
            return False
        try:
            return int(current) == int(desired)
        except (TypeError, ValueError):
            return False
    if value_type == "string":
        return isinstance(current, str) and current == str(desired)
    return current == desired


@dataclass(frozen=True)
class Declaration:
    """One unit of desired host state.

    ``probe_fn`` and ``apply_fn`` override the kind handlers; they take the
    declaration (and, for ``apply_fn``, the probed state).
    """

    kind: DeclarationKind
    identifier: str
    desired_value: Any = None
    action: Optional[ActionRef] = None
    description: str = ""
    domain: Optional[str] = None
    key: Optional[str] = None
    value_type: Optional[str] = None
    cask: bool = False
    probe_fn: Optional[Callable[["Declaration"], CurrentState]] = field(
        default=None, compare=False, repr=False
    )
    apply_fn: Optional[Callable[["Declaration", CurrentState], Any]] = field(
        default=None, compare=False, repr=False
    )

    @property
    def label(self) -> str:
        return self.description or f"{self.kind.value} {self.identifier}"

    def is_satisfied(self, state: CurrentState) -> bool:
        """Return True when ``state`` already matches this declaration."""
        if state.status != StateStatus.PRESENT:
            return False

        if self.kind in (DeclarationKind.PACKAGE, DeclarationKind.TAP):
            return True
        if self.kind == DeclarationKind.PREFERENCE:
            return preference_values_equal(state.value, self.desired_value, self.value_type)
        if self.kind == DeclarationKind.HOTKEY:
            desired = self.desired_value
            if isinstance(desired, SymbolicHotKey):
                desired = desired.to_plist()
            return state.value == desired
        if self.kind == DeclarationKind.SYMLINK:
            return str(state.value) == str(self.desired_value)
        # Manual steps are never satisfied by the host
        return False
