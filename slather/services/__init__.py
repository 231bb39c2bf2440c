"""Host services: Homebrew, the preference store, processes and symlinks."""
from slather.services.defaults import DefaultsManager
from slather.services.homebrew import HomebrewManager
from slather.services.symlinks import SymlinkManager

__all__ = ['DefaultsManager', 'HomebrewManager', 'SymlinkManager']
