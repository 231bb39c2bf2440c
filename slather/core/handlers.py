"""Per-kind probe/apply/plan implementations.

A handler answers three questions about a declaration of its kind: what
the host currently has (``probe``), how to change it (``apply``) and which
commands a live run would issue (``plan``).
"""
from typing import Dict, List, Optional

from slather.core.declarations import CurrentState, Declaration, DeclarationKind
from slather.core.hotkeys import HOTKEYS_DOMAIN, HOTKEYS_KEY, SymbolicHotKey
from slather.services.defaults import DefaultsManager
from slather.services.homebrew import HomebrewManager
from slather.services.symlinks import SymlinkManager


class PackageHandler:
    def __init__(self, brew: HomebrewManager):
        self.brew = brew

    def probe(self, decl: Declaration) -> CurrentState:
        if self.brew.is_installed(decl.identifier, cask=decl.cask):
            return CurrentState.present(decl.identifier)
        return CurrentState.absent()

    def apply(self, decl: Declaration) -> None:
        self.brew.install(decl.identifier, cask=decl.cask)

    def plan(self, decl: Declaration) -> List[List[str]]:
        return [self.brew.install_command(decl.identifier, cask=decl.cask)]


class TapHandler:
    def __init__(self, brew: HomebrewManager):
        self.brew = brew

    def probe(self, decl: Declaration) -> CurrentState:
        if self.brew.is_tapped(decl.identifier):
            return CurrentState.present(decl.identifier)
        return CurrentState.absent()

    def apply(self, decl: Declaration) -> None:
        self.brew.tap(decl.identifier)

    def plan(self, decl: Declaration) -> List[List[str]]:
        return [self.brew.tap_command(decl.identifier)]


class PreferenceHandler:
    def __init__(self, defaults: DefaultsManager):
        self.defaults = defaults

    def probe(self, decl: Declaration) -> CurrentState:
        return self.defaults.read(decl.domain, decl.key)

    def apply(self, decl: Declaration) -> None:
        self.defaults.write(decl.domain, decl.key, decl.desired_value, decl.value_type)

    def plan(self, decl: Declaration) -> List[List[str]]:
        return [
            self.defaults.write_command(
                decl.domain, decl.key, decl.desired_value, decl.value_type
            )
        ]


class HotkeyHandler:
    """Entries of AppleSymbolicHotKeys, merged with `-dict-add`."""

    def __init__(self, defaults: DefaultsManager):
        self.defaults = defaults

    @staticmethod
    def _hotkey(decl: Declaration) -> SymbolicHotKey:
        return decl.desired_value

    def probe(self, decl: Declaration) -> CurrentState:
        hotkeys = self.defaults.export_domain(HOTKEYS_DOMAIN).get(HOTKEYS_KEY) or {}
        if not isinstance(hotkeys, dict):
            return CurrentState.unknown(f"{HOTKEYS_KEY} is a {type(hotkeys).__name__}, not a dictionary")
        entry = hotkeys.get(str(self._hotkey(decl).hotkey_id))
        if entry is None:
            return CurrentState.absent()
        return CurrentState.present(entry)

    def apply(self, decl: Declaration) -> None:
        hotkey = self._hotkey(decl)
        self.defaults.dict_add(HOTKEYS_DOMAIN, HOTKEYS_KEY, str(hotkey.hotkey_id), hotkey.to_plist())

    def plan(self, decl: Declaration) -> List[List[str]]:
        hotkey = self._hotkey(decl)
        return [
            self.defaults.dict_add_command(
                HOTKEYS_DOMAIN, HOTKEYS_KEY, str(hotkey.hotkey_id), hotkey.to_plist()
            )
        ]


class SymlinkHandler:
    def __init__(self, links: SymlinkManager):
        self.links = links

    def probe(self, decl: Declaration) -> CurrentState:
        return self.links.read(decl.identifier)

    def apply(self, decl: Declaration) -> None:
        self.links.ensure(decl.identifier, decl.desired_value)

    def plan(self, decl: Declaration) -> List[List[str]]:
        return [["ln", "-sf", str(decl.desired_value), decl.identifier]]


def build_handlers(
    brew: Optional[HomebrewManager] = None,
    defaults: Optional[DefaultsManager] = None,
    links: Optional[SymlinkManager] = None,
    mock: bool = False,
) -> Dict[DeclarationKind, object]:
    """Return the kind -> handler registry used by Probe and Applier."""
    brew = brew or HomebrewManager(mock=mock)
    defaults = defaults or DefaultsManager(mock=mock)
    links = links or SymlinkManager(mock=mock)
    return {
        DeclarationKind.PACKAGE: PackageHandler(brew),
        DeclarationKind.TAP: TapHandler(brew),
        DeclarationKind.PREFERENCE: PreferenceHandler(defaults),
        DeclarationKind.HOTKEY: HotkeyHandler(defaults),
        DeclarationKind.SYMLINK: SymlinkHandler(links),
    }
