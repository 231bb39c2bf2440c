"""Homebrew formula, cask and tap management."""
import re
import shutil
from pathlib import Path
from typing import List, Optional

from slather.core.config import get_config, mock_enabled
from slather.core.errors import PermanentError, TransientError
from slather.core.logger import get_logger
from slather.services.shell import format_command, run_command

logger = get_logger(__name__)

# Apple Silicon first, then Intel
BREW_CANDIDATES = [
    Path("/opt/homebrew/bin/brew"),
    Path("/usr/local/bin/brew"),
]

_PERMANENT_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"No available formula",
        r"No formulae or casks found",
        r"No Cask with this name",
        r"Cask '.*' is unavailable",
        r"Invalid tap name",
        r"is not a valid (formula|cask|tap)",
        r"Invalid usage",
    )
]

_TRANSIENT_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"Could not resolve host",
        r"Failed to (download|connect)",
        r"curl: \(\d+\)",
        r"Connection (refused|reset|timed out)",
        r"Operation timed out",
        r"already locked",
        r"A `brew .*` process",
        r"Network is unreachable",
    )
]


def classify_brew_failure(stderr: str) -> type:
    """Return the error class for a failed brew command.

    Unrecognized failures are treated as transient: the declaration is
    retried on the next run rather than flagged as misconfigured.
    """
    for pattern in _PERMANENT_PATTERNS:
        if pattern.search(stderr):
            return PermanentError
    for pattern in _TRANSIENT_PATTERNS:
        if pattern.search(stderr):
            return TransientError
    return TransientError


def find_brew() -> Optional[str]:
    """Locate the brew executable."""
    for candidate in BREW_CANDIDATES:
        if candidate.exists():
            return str(candidate)
    return shutil.which("brew")


def parse_caveats(info_output: str) -> str:
    """Extract the ``==> Caveats`` section from ``brew info`` output."""
    lines: List[str] = []
    showing = False
    for line in info_output.splitlines():
        if line.startswith("==> Caveats"):
            showing = True
            continue
        if line.startswith("==>"):
            showing = False
        if showing:
            lines.append(line)
    return "\n".join(lines).strip()


class HomebrewManager:
    """Queries and mutates the local Homebrew installation."""

    def __init__(self, mock: bool = False, brew_path: Optional[str] = None):
        self.mock = mock or mock_enabled()
        self._brew_path = brew_path
        self._mock_installed = set()
        self._mock_taps = set()

    @property
    def brew(self) -> str:
        if self._brew_path is None:
            self._brew_path = find_brew()
        if self._brew_path is None:
            raise TransientError("Homebrew not found (expected /opt/homebrew or /usr/local)")
        return self._brew_path

    @staticmethod
    def _cask_args(cask: bool) -> List[str]:
        return ["--cask"] if cask else []

    def install_command(self, name: str, cask: bool = False) -> List[str]:
        return ["brew", "install", *self._cask_args(cask), name]

    def tap_command(self, tap: str) -> List[str]:
        return ["brew", "tap", tap]

    def is_installed(self, name: str, cask: bool = False) -> bool:
        """Return True if the formula or cask is installed.

        Note that ``brew list`` only succeeds for installed packages,
        whereas ``brew info`` matches anything in the index.

        Raises:
            TransientError: Homebrew missing or its answer is unreadable
        """
        if self.mock:
            return name in self._mock_installed

        result = run_command(
            [self.brew, "list", "--versions", *self._cask_args(cask), name]
        )
        if result.returncode == 0:
            return bool(result.stdout.strip())
        if result.returncode == 1:
            return False
        raise TransientError(
            f"brew list {name} exited {result.returncode}: {result.stderr.strip()}"
        )

    def install(self, name: str, cask: bool = False) -> None:
        """Install a formula or cask.

        Raises:
            PermanentError: Homebrew does not know the package
            TransientError: Anything retryable (network, lock, timeout)
        """
        command = self.install_command(name, cask)
        if self.mock:
            logger.info(f"MOCK: Would run {format_command(command)}")
            self._mock_installed.add(name)
            return

        logger.info(f"Brew install: {name}")
        result = run_command(
            [self.brew, *command[1:]], timeout=get_config().install_timeout
        )
        if result.returncode != 0:
            stderr = result.stderr.strip()
            error_cls = classify_brew_failure(stderr)
            raise error_cls(
                f"brew install {name} failed: {stderr.splitlines()[-1] if stderr else result.returncode}",
                command=command,
            )

        caveats = self.caveats(name, cask)
        if caveats:
            logger.info(f"{name} caveats:\n{caveats}")

    def caveats(self, name: str, cask: bool = False) -> str:
        """Return the caveats brew prints for a package, or ''."""
        if self.mock:
            return ""
        try:
            result = run_command([self.brew, "info", *self._cask_args(cask), name])
        except TransientError as e:
            logger.debug(f"brew info {name} unavailable: {e}")
            return ""
        if result.returncode != 0:
            return ""
        return parse_caveats(result.stdout)

    def list_taps(self) -> List[str]:
        """Return the names of tapped repositories."""
        if self.mock:
            return sorted(self._mock_taps)

        result = run_command([self.brew, "tap"], check=True)
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def is_tapped(self, tap: str) -> bool:
        return tap.lower() in (t.lower() for t in self.list_taps())

    def tap(self, tap: str) -> None:
        """Tap a third-party repository."""
        command = self.tap_command(tap)
        if self.mock:
            logger.info(f"MOCK: Would run {format_command(command)}")
            self._mock_taps.add(tap)
            return

        logger.info(f"Brew tap: {tap}")
        result = run_command([self.brew, *command[1:]], timeout=get_config().install_timeout)
        if result.returncode != 0:
            stderr = result.stderr.strip()
            raise classify_brew_failure(stderr)(
                f"brew tap {tap} failed: {stderr}", command=command
            )
