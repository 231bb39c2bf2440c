"""Process-level side effects used as post-apply actions."""
from typing import Callable, Sequence

from slather.core.config import mock_enabled
from slather.core.declarations import ActionRef
from slather.core.logger import get_logger
from slather.services.shell import format_command, run_command

logger = get_logger(__name__)

ACTIVATE_SETTINGS = (
    "/System/Library/PrivateFrameworks/SystemAdministration.framework"
    "/Resources/activateSettings"
)


def killall_command(process: str) -> list:
    return ["killall", process]


def quit_app_command(app: str) -> list:
    return ["osascript", "-e", f'tell application "{app}" to quit']


def command_runner(argv: Sequence[str]) -> Callable[[], None]:
    """Return a callable that runs ``argv`` and raises on failure."""
    command = [str(part) for part in argv]

    def _run() -> None:
        if mock_enabled():
            logger.info(f"MOCK: Would run {format_command(command)}")
            return
        logger.info(f"Running: {format_command(command)}")
        run_command(command, check=True)

    return _run


def command_action(
    name: str,
    argv: Sequence[str],
    disruptive: bool = False,
    description: str = "",
) -> ActionRef:
    """Build an ActionRef that runs a command line."""
    return ActionRef(
        name=name,
        run_fn=command_runner(argv),
        disruptive=disruptive,
        description=description or format_command(argv),
        command=tuple(str(part) for part in argv),
    )
