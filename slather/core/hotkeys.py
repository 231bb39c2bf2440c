"""Typed records for macOS symbolic hotkeys (com.apple.symbolichotkeys).

Each entry in the ``AppleSymbolicHotKeys`` dictionary is keyed by a numeric
action id and stores::

    {"enabled": True,
     "value": {"parameters": [character, key_code, modifier_mask],
               "type": "standard"}}

``character`` is the ASCII code of the key, or 65535 for keys without one
(arrows, function keys).
"""
from dataclasses import dataclass, field
from enum import IntFlag
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union

from slather.core.values import parse_bool

HOTKEYS_DOMAIN = "com.apple.symbolichotkeys"
HOTKEYS_KEY = "AppleSymbolicHotKeys"

NO_CHARACTER = 65535


class Modifier(IntFlag):
    """Modifier bits as stored in the third hotkey parameter."""

    SHIFT = 0x20000
    CONTROL = 0x40000
    OPTION = 0x80000
    COMMAND = 0x100000
    NUMERIC_PAD = 0x200000  # set for arrow keys
    FUNCTION = 0x800000


_MODIFIER_ALIASES = {
    "shift": Modifier.SHIFT,
    "control": Modifier.CONTROL,
    "ctrl": Modifier.CONTROL,
    "option": Modifier.OPTION,
    "alt": Modifier.OPTION,
    "command": Modifier.COMMAND,
    "cmd": Modifier.COMMAND,
    "numeric_pad": Modifier.NUMERIC_PAD,
    "function": Modifier.FUNCTION,
    "fn": Modifier.FUNCTION,
}


def parse_modifiers(value: Union[int, Iterable[str], None]) -> FrozenSet[Modifier]:
    """Turn a raw mask or a list of modifier names into a set of flags."""
    if value is None:
        return frozenset()

    if isinstance(value, int):
        unknown = value & ~sum(int(m) for m in Modifier)
        if unknown:
            raise ValueError(f"unknown modifier bits: {unknown:#x}")
        return frozenset(m for m in Modifier if value & m)

    modifiers = set()
    for name in value:
        try:
            modifiers.add(_MODIFIER_ALIASES[str(name).lower()])
        except KeyError:
            raise ValueError(f"unknown modifier: {name}") from None
    return frozenset(modifiers)


@dataclass(frozen=True)
class SymbolicHotKey:
    """One AppleSymbolicHotKeys binding."""

    hotkey_id: int
    enabled: bool = True
    character: Optional[int] = None
    key_code: Optional[int] = None
    modifiers: FrozenSet[Modifier] = field(default_factory=frozenset)

    def modifier_mask(self) -> int:
        mask = 0
        for modifier in self.modifiers:
            mask |= int(modifier)
        return mask

    def to_plist(self) -> Dict[str, Any]:
        """Serialize to the dictionary stored under the hotkey id."""
        if self.key_code is None:
            return {"enabled": self.enabled}

        character = NO_CHARACTER if self.character is None else self.character
        return {
            "enabled": self.enabled,
            "value": {
                "parameters": [character, self.key_code, self.modifier_mask()],
                "type": "standard",
            },
        }

    def describe(self) -> str:
        if self.key_code is None:
            return f"hotkey {self.hotkey_id}: {'on' if self.enabled else 'off'}"
        names = "+".join(sorted(m.name.lower() for m in self.modifiers))
        state = "" if self.enabled else " (disabled)"
        return f"hotkey {self.hotkey_id}: {names or 'none'} key {self.key_code}{state}"

    @classmethod
    def from_config(cls, data: Mapping[str, Any]) -> "SymbolicHotKey":
        """Build from a declaration table entry.

        Raises:
            ValueError: On a missing id or malformed field.
        """
        if "hotkey" not in data:
            raise ValueError("hotkey entry needs an id")

        character = data.get("character")
        if isinstance(character, str):
            if len(character) != 1:
                raise ValueError(f"character must be a single key, got {character!r}")
            character = ord(character)

        key_code = data.get("key_code")
        return cls(
            hotkey_id=int(data["hotkey"]),
            enabled=parse_bool(data.get("enabled", True)),
            character=None if character is None else int(character),
            key_code=None if key_code is None else int(key_code),
            modifiers=parse_modifiers(data.get("modifiers")),
        )
