"""Unified logging for Slather with console and file output."""
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

console = Console()

ROOT_LOGGER = "slather"

# Log file configuration
LOG_DIR = Path.home() / "Library" / "Logs" / "slather"
LOG_FILE = LOG_DIR / "slather.log"

# Set once file logging has been attached to the slather logger
_file_handler: Optional[logging.FileHandler] = None


def _root_logger() -> logging.Logger:
    """Return the ``slather`` logger, attaching the console handler once.

    Module loggers stay at NOTSET and propagate here, so the level set on
    this logger governs every ``slather.*`` logger.
    """
    root_logger = logging.getLogger(ROOT_LOGGER)

    if not any(isinstance(h, RichHandler) for h in root_logger.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(handler)
        root_logger.setLevel(logging.INFO)

    return root_logger


def setup_file_logging(log_file: str = None, verbose: bool = False):
    """Set up file logging for Slather runs.

    Args:
        log_file: Path to log file (defaults to ~/Library/Logs/slather/slather.log)
        verbose: Enable debug-level logging

    Note:
        Creates log directory if it doesn't exist.
        Falls back to /tmp if the default location is not writable.
        A second call keeps the first file but can still raise the level.
    """
    global _file_handler

    root_logger = _root_logger()
    level = logging.DEBUG if verbose else logging.INFO

    if _file_handler is not None:
        if verbose:
            _file_handler.setLevel(level)
            root_logger.setLevel(level)
        return

    target_log_file = Path(log_file).expanduser() if log_file else LOG_FILE

    try:
        target_log_file.parent.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        target_log_file = Path("/tmp/slather.log")
        target_log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(target_log_file)
    file_handler.setLevel(level)

    file_formatter = logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler.setFormatter(file_formatter)
    root_logger.addHandler(file_handler)

    root_logger.setLevel(level)

    _file_handler = file_handler

    root_logger.info(f"Slather logging initialized: {target_log_file}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger that reports through the shared ``slather`` handlers.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger propagating to the Rich console handler

    Note:
        File logging must be enabled separately via setup_file_logging()
    """
    _root_logger()
    return logging.getLogger(name)
