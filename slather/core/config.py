"""Slather runtime configuration and settings."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class SlatherConfig:
    """Runtime configuration for Slather runs.

    Attributes:
        command_timeout: Timeout in seconds for probes, writes and actions (default: 60)
        install_timeout: Timeout in seconds for a single package install (default: 1800)
        install_attempts: Attempts per transient install failure within one run (default: 1)
        retry_delay: Initial delay in seconds between in-run retries (default: 2.0)
        expected_macos: macOS major version the declaration table targets (default: 14)
        lock_file: Lock file guarding live runs
    """

    command_timeout: int = 60
    install_timeout: int = 1800  # large casks take a while
    install_attempts: int = 1
    retry_delay: float = 2.0

    expected_macos: int = 14  # Sonoma

    lock_file: str = str(Path.home() / ".cache" / "slather" / "run.lock")

    @classmethod
    def from_env(cls) -> "SlatherConfig":
        """Create config from environment variables.

        Environment variables:
            SLATHER_COMMAND_TIMEOUT: Probe/write/action timeout in seconds
            SLATHER_INSTALL_TIMEOUT: Package install timeout in seconds
            SLATHER_INSTALL_ATTEMPTS: Attempts for transient install failures
            SLATHER_RETRY_DELAY: Initial retry delay in seconds
            SLATHER_EXPECTED_MACOS: Expected macOS major version
            SLATHER_LOCK_FILE: Run lock path

        Returns:
            SlatherConfig instance with values from environment or defaults
        """
        return cls(
            command_timeout=int(
                os.getenv("SLATHER_COMMAND_TIMEOUT", cls.command_timeout)
            ),
            install_timeout=int(
                os.getenv("SLATHER_INSTALL_TIMEOUT", cls.install_timeout)
            ),
            install_attempts=max(
                1, int(os.getenv("SLATHER_INSTALL_ATTEMPTS", cls.install_attempts))
            ),
            retry_delay=float(
                os.getenv("SLATHER_RETRY_DELAY", cls.retry_delay)
            ),
            expected_macos=int(
                os.getenv("SLATHER_EXPECTED_MACOS", cls.expected_macos)
            ),
            lock_file=os.getenv("SLATHER_LOCK_FILE", cls.lock_file),
        )


# Global config instance (can be overridden)
_config: Optional[SlatherConfig] = None


def get_config() -> SlatherConfig:
    """Get the global Slather configuration.

    Returns:
        SlatherConfig instance (creates from environment if not set)
    """
    global _config
    if _config is None:
        _config = SlatherConfig.from_env()
    return _config


def set_config(config: Optional[SlatherConfig]):
    """Set the global Slather configuration.

    Args:
        config: SlatherConfig instance to use globally (None re-reads the environment)
    """
    global _config
    _config = config


def mock_enabled() -> bool:
    """Return True when SLATHER_MOCK asks services to log instead of act."""
    return os.environ.get("SLATHER_MOCK", "").strip().lower() in ("1", "true", "yes")
