"""Post-apply actions available to every declaration table."""
from typing import Any, Dict, Mapping, Optional

from slather.core.declarations import ActionRef
from slather.services.processes import (
    ACTIVATE_SETTINGS,
    command_action,
    killall_command,
    quit_app_command,
)

# disruptive=True actions are skipped by `slather run --tame`
BUILTIN_ACTIONS: Dict[str, Dict[str, Any]] = {
    "restart-dock": {
        "command": killall_command("Dock"),
        "disruptive": True,
        "description": "Restart the Dock",
    },
    "restart-finder": {
        "command": killall_command("Finder"),
        "disruptive": True,
        "description": "Restart Finder",
    },
    "restart-systemuiserver": {
        "command": killall_command("SystemUIServer"),
        "disruptive": False,
        "description": "Restart the menu bar (SystemUIServer)",
    },
    "rewire-hotkeys": {
        "command": [ACTIVATE_SETTINGS, "-u"],
        "disruptive": False,
        "description": "Reload symbolic hotkeys",
    },
    "close-system-settings": {
        "command": quit_app_command("System Settings"),
        "disruptive": False,
        "description": "Quit System Settings so it doesn't overwrite our writes",
    },
}


def build_actions(overrides: Optional[Mapping[str, Mapping[str, Any]]] = None) -> Dict[str, ActionRef]:
    """Merge table-defined actions over the built-ins and build ActionRefs."""
    definitions: Dict[str, Mapping[str, Any]] = dict(BUILTIN_ACTIONS)
    definitions.update(overrides or {})
    return {
        name: command_action(
            name,
            definition["command"],
            disruptive=bool(definition.get("disruptive", False)),
            description=definition.get("description", ""),
        )
        for name, definition in definitions.items()
    }
