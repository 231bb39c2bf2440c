"""User-local symlinks to Homebrew executables (e.g. ~/.local/bin/date -> gdate)."""
import os
from pathlib import Path
from typing import Dict

from slather.core.config import mock_enabled
from slather.core.declarations import CurrentState
from slather.core.errors import PermanentError, TransientError
from slather.core.logger import get_logger

logger = get_logger(__name__)


class SymlinkManager:
    """Reads and creates symlinks."""

    def __init__(self, mock: bool = False):
        self.mock = mock or mock_enabled()
        self._mock_links: Dict[str, str] = {}

    def read(self, link: str) -> CurrentState:
        if self.mock:
            if link in self._mock_links:
                return CurrentState.present(self._mock_links[link])
            return CurrentState.absent()

        path = Path(link).expanduser()
        if path.is_symlink():
            return CurrentState.present(os.readlink(path))
        if path.exists():
            # A regular file in the way; `ensure` replaces it like `ln -sf`
            return CurrentState.present(None)
        return CurrentState.absent()

    def ensure(self, link: str, target: str) -> None:
        """Point ``link`` at ``target``, replacing whatever is there.

        Raises:
            PermanentError: Target missing or not executable, or link is a directory
            TransientError: Filesystem error while creating the link
        """
        if self.mock:
            logger.info(f"MOCK: Would link {link} -> {target}")
            self._mock_links[link] = target
            return

        link_path = Path(link).expanduser()
        target_path = Path(target).expanduser()

        if not target_path.exists() or not os.access(target_path, os.X_OK):
            raise PermanentError(f"Symlink target not there or not executable: {target_path}")
        if link_path.is_dir() and not link_path.is_symlink():
            raise PermanentError(f"Refusing to replace directory with symlink: {link_path}")

        try:
            link_path.parent.mkdir(parents=True, exist_ok=True)
            if link_path.is_symlink() or link_path.exists():
                link_path.unlink()
            link_path.symlink_to(target_path)
        except OSError as e:
            raise TransientError(f"Could not link {link_path} -> {target_path}: {e}") from e

        logger.info(f"Symlinking: {link_path} -> {target_path}")
