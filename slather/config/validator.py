"""Structural validation of a declaration table."""
from typing import Any, Iterable, List

from slather.core.declarations import PREFERENCE_TYPES, DeclarationKind

KIND_KEYS = tuple(kind.value for kind in DeclarationKind)

ENTRY_FIELDS = {
    DeclarationKind.PACKAGE: {"cask", "action", "description"},
    DeclarationKind.TAP: {"action", "description"},
    DeclarationKind.PREFERENCE: {"domain", "key", "type", "value", "action", "description"},
    DeclarationKind.HOTKEY: {"enabled", "character", "key_code", "modifiers", "action", "description"},
    DeclarationKind.SYMLINK: {"target", "action", "description"},
    DeclarationKind.MANUAL: {"description"},
}


class TableValidator:
    """Collects every structural problem instead of stopping at the first."""

    def __init__(self, known_actions: Iterable[str] = ()):
        self.known_actions = set(known_actions)
        self.problems: List[str] = []

    def validate(self, raw: Any) -> List[str]:
        self.problems = []

        if not isinstance(raw, dict):
            self.problems.append("top level must be a mapping")
            return self.problems

        unknown = set(raw) - {"actions", "setup", "declarations"}
        for key in sorted(unknown):
            self.problems.append(f"unknown top-level key: {key}")

        actions = raw.get("actions") or {}
        if not isinstance(actions, dict):
            self.problems.append("'actions' must be a mapping of name -> {command: [...]}")
            actions = {}
        for name, definition in actions.items():
            self._validate_action(name, definition)
        known = self.known_actions | set(actions)

        setup = raw.get("setup") or []
        if not isinstance(setup, list):
            self.problems.append("'setup' must be a list of action names")
            setup = []
        for name in setup:
            if name not in known:
                self.problems.append(f"setup: unknown action '{name}'")

        declarations = raw.get("declarations")
        if declarations is None:
            self.problems.append("missing 'declarations' list")
            return self.problems
        if not isinstance(declarations, list):
            self.problems.append("'declarations' must be a list")
            return self.problems

        for index, entry in enumerate(declarations):
            self._validate_entry(index, entry, known)

        return self.problems

    def _validate_action(self, name: str, definition: Any) -> None:
        if not isinstance(definition, dict):
            self.problems.append(f"action '{name}': must be a mapping")
            return
        command = definition.get("command")
        if not isinstance(command, list) or not command or not all(
            isinstance(part, (str, int)) for part in command
        ):
            self.problems.append(f"action '{name}': 'command' must be a non-empty list of strings")

    def _validate_entry(self, index: int, entry: Any, known_actions: set) -> None:
        where = f"declarations[{index}]"

        if isinstance(entry, str):
            # Bare strings are package names
            return
        if not isinstance(entry, dict):
            self.problems.append(f"{where}: must be a mapping or a package name")
            return

        kinds = [key for key in entry if key in KIND_KEYS]
        if len(kinds) != 1:
            self.problems.append(
                f"{where}: needs exactly one of {', '.join(KIND_KEYS)} (found {len(kinds)})"
            )
            return

        kind = DeclarationKind(kinds[0])
        for key in entry:
            if key != kind.value and key not in ENTRY_FIELDS[kind]:
                self.problems.append(f"{where}: unexpected field '{key}' for {kind.value}")

        action = entry.get("action")
        if action is not None and action not in known_actions:
            self.problems.append(f"{where}: unknown action '{action}'")

        if kind == DeclarationKind.PREFERENCE:
            if "value" not in entry:
                self.problems.append(f"{where}: preference needs a 'value'")
            elif entry["value"] is None:
                self.problems.append(f"{where}: preference value is empty")
            value_type = entry.get("type")
            if value_type is not None and value_type not in PREFERENCE_TYPES:
                self.problems.append(
                    f"{where}: type must be one of {', '.join(PREFERENCE_TYPES)}, got '{value_type}'"
                )
        elif kind == DeclarationKind.SYMLINK and not entry.get("target"):
            self.problems.append(f"{where}: symlink needs a 'target'")
        elif kind == DeclarationKind.MANUAL and not str(entry.get("manual") or "").strip():
            self.problems.append(f"{where}: manual step text is empty")
