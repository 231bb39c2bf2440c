"""YAML declaration table loader."""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from slather.config.default_actions import BUILTIN_ACTIONS, build_actions
from slather.config.validator import KIND_KEYS, TableValidator
from slather.core.declarations import ActionRef, Declaration, DeclarationKind
from slather.core.errors import ConfigValidationError
from slather.core.hotkeys import HOTKEYS_DOMAIN, HOTKEYS_KEY, SymbolicHotKey
from slather.core.values import parse_bool
from slather.services.defaults import split_preference_identifier


def infer_type(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, dict):
        return "dict"
    if isinstance(value, list):
        return "array"
    return "string"


def coerce_value(value: Any, value_type: str) -> Any:
    """Coerce a YAML value to the declared preference type.

    Raises:
        ValueError: If the value does not fit the type
    """
    if value is None:
        raise ValueError("value is empty")
    if value_type == "bool":
        return parse_bool(value)
    if value_type == "int":
        if isinstance(value, bool):
            raise ValueError(f"not an integer: {value!r}")
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"not an integer: {value!r}")
        return int(value)
    if value_type == "float":
        if isinstance(value, bool):
            raise ValueError(f"not a number: {value!r}")
        return float(value)
    if value_type == "string":
        if isinstance(value, (dict, list)):
            raise ValueError(f"not a string: {value!r}")
        return str(value)
    if value_type == "dict":
        if not isinstance(value, dict):
            raise ValueError(f"not a dictionary: {value!r}")
        return value
    if value_type == "array":
        if not isinstance(value, list):
            raise ValueError(f"not an array: {value!r}")
        return value
    raise ValueError(f"unknown type: {value_type}")


@dataclass
class DeclarationTable:
    """A loaded declaration table."""

    declarations: List[Declaration] = field(default_factory=list)
    actions: Dict[str, ActionRef] = field(default_factory=dict)
    setup: List[ActionRef] = field(default_factory=list)

    def count_by_kind(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for decl in self.declarations:
            counts[decl.kind.value] = counts.get(decl.kind.value, 0) + 1
        return counts


class DeclarationLoader:
    """Loads and builds a declaration table from YAML."""

    def __init__(self, config_path: str = "slather.yml"):
        self.config_path = Path(config_path).expanduser()
        self.raw_config: Optional[Dict[str, Any]] = None

    def load(self) -> DeclarationTable:
        """Load and validate the table.

        Raises:
            FileNotFoundError: The file does not exist
            ConfigValidationError: The file is empty or malformed
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Declaration table not found: {self.config_path}")

        with open(self.config_path) as f:
            try:
                self.raw_config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigValidationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not self.raw_config:
            raise ConfigValidationError(
                f"{self.config_path} is empty. Run 'slather init' to create a starter table."
            )

        return self.build(self.raw_config)

    def build(self, raw: Dict[str, Any]) -> DeclarationTable:
        validator = TableValidator(known_actions=BUILTIN_ACTIONS)
        problems = validator.validate(raw)
        if problems:
            raise ConfigValidationError(f"Invalid declaration table {self.config_path}:", problems)

        actions = build_actions(raw.get("actions"))
        table = DeclarationTable(
            actions=actions,
            setup=[actions[name] for name in raw.get("setup") or []],
        )

        errors: List[str] = []
        for index, entry in enumerate(raw["declarations"]):
            try:
                table.declarations.append(self._build_entry(entry, actions))
            except (ValueError, TypeError) as e:
                errors.append(f"declarations[{index}]: {e}")

        if errors:
            raise ConfigValidationError(f"Invalid declaration table {self.config_path}:", errors)
        return table

    def _build_entry(self, entry: Any, actions: Dict[str, ActionRef]) -> Declaration:
        if isinstance(entry, str):
            entry = {"package": entry}

        kind = DeclarationKind(next(key for key in entry if key in KIND_KEYS))
        action_name = entry.get("action")
        action = actions[action_name] if action_name else None
        description = str(entry.get("description") or "")

        if kind in (DeclarationKind.PACKAGE, DeclarationKind.TAP):
            name = str(entry[kind.value]).strip()
            if not name:
                raise ValueError(f"{kind.value} name is empty")
            return Declaration(
                kind=kind,
                identifier=name,
                action=action,
                description=description or f"Brew {'tap' if kind == DeclarationKind.TAP else 'install'}: {name}",
                cask=parse_bool(entry.get("cask", False)),
            )

        if kind == DeclarationKind.PREFERENCE:
            return self._build_preference(entry, action, description)

        if kind == DeclarationKind.HOTKEY:
            hotkey = SymbolicHotKey.from_config(entry)
            if "action" not in entry:
                action = actions.get("rewire-hotkeys")
            return Declaration(
                kind=kind,
                identifier=f"{HOTKEYS_DOMAIN}/{HOTKEYS_KEY}/{hotkey.hotkey_id}",
                desired_value=hotkey,
                action=action,
                description=description or f"Keyboard Shortcuts: {hotkey.describe()}",
                domain=HOTKEYS_DOMAIN,
                key=HOTKEYS_KEY,
                value_type="dict",
            )

        if kind == DeclarationKind.SYMLINK:
            link = str(Path(str(entry["symlink"])).expanduser())
            target = str(Path(str(entry["target"])).expanduser())
            return Declaration(
                kind=kind,
                identifier=link,
                desired_value=target,
                action=action,
                description=description or f"Symlink: {link} -> {target}",
            )

        text = str(entry["manual"]).rstrip()
        return Declaration(
            kind=DeclarationKind.MANUAL,
            identifier=text.splitlines()[0],
            desired_value=text,
            description=description,
        )

    @staticmethod
    def _build_preference(entry: Dict[str, Any], action: Optional[ActionRef],
                          description: str) -> Declaration:
        identifier = str(entry["preference"])
        domain, key = entry.get("domain"), entry.get("key")
        if domain is None or key is None:
            parts = split_preference_identifier(identifier)
            if parts is None:
                raise ValueError(
                    f"preference '{identifier}' must be 'domain/key' or set domain: and key:"
                )
            domain, key = domain or parts[0], key or parts[1]

        value = entry["value"]
        value_type = entry.get("type") or infer_type(value)
        value = coerce_value(value, value_type)

        return Declaration(
            kind=DeclarationKind.PREFERENCE,
            identifier=f"{domain}/{key}",
            desired_value=value,
            action=action,
            description=description or f"{domain} {key} = {value!r}",
            domain=str(domain),
            key=str(key),
            value_type=value_type,
        )
