"""macOS preference store access through the `defaults` tool."""
import plistlib
import re
from typing import Any, Dict, List, Optional

from slather.core.config import mock_enabled
from slather.core.declarations import CurrentState
from slather.core.errors import PermanentError, TransientError
from slather.core.logger import get_logger
from slather.services.shell import format_command, run_command

logger = get_logger(__name__)

GLOBAL_DOMAIN = "NSGlobalDomain"

_PERMANENT_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"Could not parse",
        r"is not a dictionary",
        r"is not an array",
        r"Unexpected argument",
        r"Command line interface to a user's defaults",  # usage text
    )
]


def plist_fragment(value: Any) -> str:
    """Serialize a dict or list to the XML form `defaults write` accepts."""
    document = plistlib.dumps(value, fmt=plistlib.FMT_XML).decode("utf-8")
    start = document.index("<plist")
    start = document.index(">", start) + 1
    end = document.rindex("</plist>")
    return re.sub(r">\s+<", "><", document[start:end].strip())


def write_args(value: Any, value_type: str) -> List[str]:
    """Return the trailing `defaults write` arguments for a typed value."""
    if value_type == "bool":
        return ["-bool", "true" if value else "false"]
    if value_type == "int":
        return ["-int", str(int(value))]
    if value_type == "float":
        return ["-float", repr(float(value))]
    if value_type == "string":
        return ["-string", str(value)]
    if value_type in ("dict", "array"):
        return [plist_fragment(value)]
    raise PermanentError(f"unsupported preference type: {value_type}")


class DefaultsManager:
    """Reads and writes preference domains."""

    def __init__(self, mock: bool = False):
        self.mock = mock or mock_enabled()
        self._mock_domains: Dict[str, Dict[str, Any]] = {}

    # ----------------------------
    # Reads
    # ----------------------------

    def export_domain(self, domain: str) -> Dict[str, Any]:
        """Return every key of ``domain`` as Python values.

        A domain that does not exist yet is returned as an empty dict.

        Raises:
            TransientError: The store could not be read or parsed
        """
        if self.mock:
            return dict(self._mock_domains.get(domain, {}))

        result = run_command(["defaults", "export", domain, "-"])
        if result.returncode != 0:
            stderr = result.stderr.strip()
            if "does not exist" in stderr:
                return {}
            raise TransientError(f"defaults export {domain} failed: {stderr}")

        if not result.stdout.strip():
            return {}

        try:
            data = plistlib.loads(result.stdout.encode("utf-8"))
        except (plistlib.InvalidFileException, ValueError) as e:
            raise TransientError(f"unreadable plist for {domain}: {e}") from e

        if not isinstance(data, dict):
            raise TransientError(f"unexpected plist root for {domain}: {type(data).__name__}")
        return data

    def read(self, domain: str, key: str) -> CurrentState:
        """Probe a single key."""
        data = self.export_domain(domain)
        if key not in data:
            return CurrentState.absent()
        return CurrentState.present(data[key])

    def list_domains(self) -> List[str]:
        """Return all preference domains, sorted."""
        if self.mock:
            return sorted(self._mock_domains)

        result = run_command(["defaults", "domains"], check=True)
        names = re.split(r",\s*", result.stdout.strip())
        return sorted(name for name in names if name)

    def dump_domain(self, domain: Optional[str] = None) -> str:
        """Return the `defaults read` text dump of a domain, or of every domain."""
        if self.mock:
            data = self._mock_domains if domain is None else self._mock_domains.get(domain, {})
            return plist_fragment(data)

        command = ["defaults", "read"] + ([domain] if domain else [])
        result = run_command(command, check=True)
        return result.stdout

    # ----------------------------
    # Writes
    # ----------------------------

    def write_command(self, domain: str, key: str, value: Any, value_type: str) -> List[str]:
        return ["defaults", "write", domain, key, *write_args(value, value_type)]

    def dict_add_command(self, domain: str, key: str, entry: str, value: Dict[str, Any]) -> List[str]:
        return ["defaults", "write", domain, key, "-dict-add", str(entry), plist_fragment(value)]

    def write(self, domain: str, key: str, value: Any, value_type: str) -> None:
        """Set ``domain key`` to ``value``."""
        command = self.write_command(domain, key, value, value_type)
        if self.mock:
            logger.info(f"MOCK: Would run {format_command(command)}")
            self._mock_domains.setdefault(domain, {})[key] = value
            return
        self._run_write(command)

    def dict_add(self, domain: str, key: str, entry: str, value: Dict[str, Any]) -> None:
        """Merge one entry into a dictionary-valued key."""
        command = self.dict_add_command(domain, key, entry, value)
        if self.mock:
            logger.info(f"MOCK: Would run {format_command(command)}")
            self._mock_domains.setdefault(domain, {}).setdefault(key, {})[str(entry)] = value
            return
        self._run_write(command)

    def _run_write(self, command: List[str]) -> None:
        result = run_command(command)
        if result.returncode == 0:
            return

        stderr = result.stderr.strip()
        message = f"{format_command(command[:4])} failed: {stderr or result.returncode}"
        for pattern in _PERMANENT_PATTERNS:
            if pattern.search(stderr):
                raise PermanentError(message, command=command)
        raise TransientError(message, command=command)


def split_preference_identifier(identifier: str) -> Optional[tuple]:
    """Split ``domain/key`` on the first slash."""
    if "/" not in identifier:
        return None
    domain, key = identifier.split("/", 1)
    if not domain or not key:
        return None
    return domain, key
