"""Thin subprocess wrapper shared by the host services."""
import shlex
import subprocess
from typing import List, Optional, Sequence

from slather.core.config import get_config
from slather.core.errors import TransientError
from slather.core.logger import get_logger

logger = get_logger(__name__)


def format_command(argv: Sequence[str]) -> str:
    """Render a command line the way a user would type it."""
    return " ".join(shlex.quote(str(part)) for part in argv)


def run_command(
    argv: Sequence[str],
    timeout: Optional[int] = None,
    check: bool = False,
    input_text: Optional[str] = None,
) -> subprocess.CompletedProcess:
    """Run ``argv`` and capture text output.

    Args:
        argv: Command and arguments
        timeout: Seconds before giving up (default: SlatherConfig.command_timeout)
        check: Raise TransientError on a non-zero exit
        input_text: Optional stdin

    Raises:
        TransientError: Executable missing, timeout, or (with check) non-zero exit
    """
    command: List[str] = [str(part) for part in argv]
    if timeout is None:
        timeout = get_config().command_timeout

    logger.debug(f"$ {format_command(command)}")

    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=timeout,
            input=input_text,
        )
    except FileNotFoundError as e:
        raise TransientError(f"{command[0]} not found", command=command) from e
    except subprocess.TimeoutExpired as e:
        raise TransientError(
            f"{format_command(command)} timed out after {timeout}s", command=command
        ) from e

    if check and result.returncode != 0:
        stderr = (result.stderr or "").strip()
        raise TransientError(
            f"{format_command(command)} exited {result.returncode}: {stderr}",
            command=command,
        )

    return result
