"""Concurrent access locking for Slather runs.

Prevents two live `slather run` invocations from writing preferences at the
same time.
"""
import fcntl
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from slather.core.config import get_config
from slather.core.errors import LockError
from slather.core.logger import get_logger

logger = get_logger(__name__)


class RunLock:
    """File-based lock for preventing concurrent runs."""

    def __init__(self, lock_file: Optional[Path] = None, timeout: int = 0):
        """Initialize lock.

        Args:
            lock_file: Path to lock file (default: SlatherConfig.lock_file)
            timeout: Seconds to wait for lock (0 = fail immediately)
        """
        self.lock_file = self._resolve_lock_path(lock_file)
        self.timeout = timeout
        self.lock_fd = None

    @staticmethod
    def _resolve_lock_path(lock_file: Optional[Path], create_parent: bool = True) -> Path:
        """Resolve the lock file path, creating the directory if needed."""
        resolved = Path(lock_file or get_config().lock_file).expanduser()
        if create_parent:
            resolved.parent.mkdir(parents=True, exist_ok=True)
        return resolved

    def acquire(self) -> bool:
        """Acquire the lock.

        Returns:
            True if lock acquired successfully

        Raises:
            LockError: If unable to acquire lock
        """
        self.lock_file.parent.mkdir(parents=True, exist_ok=True)

        # Append mode keeps the holder's PID readable until we own the lock
        self.lock_fd = open(self.lock_file, 'a+')

        start_time = time.time()
        while True:
            try:
                fcntl.flock(self.lock_fd.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)

                self.lock_fd.seek(0)
                self.lock_fd.truncate()
                self.lock_fd.write(f"{os.getpid()}\n")
                self.lock_fd.write(f"{time.strftime('%Y-%m-%d %H:%M:%S')}\n")
                self.lock_fd.flush()

                logger.debug(f"Acquired lock: {self.lock_file}")
                return True

            except OSError:
                if self.timeout == 0:
                    lock_info = self._read_lock_info()
                    self._close_fd()
                    raise LockError(
                        f"Another slather run is in progress.\n"
                        f"Lock held by PID {lock_info['pid']} since {lock_info['time']}\n"
                        f"Wait for the other run to complete, or remove {self.lock_file} if stale."
                    )

                elapsed = time.time() - start_time
                if elapsed >= self.timeout:
                    lock_info = self._read_lock_info()
                    self._close_fd()
                    raise LockError(
                        f"Timeout waiting for lock after {self.timeout}s.\n"
                        f"Lock held by PID {lock_info['pid']} since {lock_info['time']}"
                    )

                time.sleep(0.5)

    def _close_fd(self):
        if self.lock_fd is not None:
            self.lock_fd.close()
            self.lock_fd = None

    def release(self):
        """Release the lock."""
        if self.lock_fd is None:
            return

        try:
            fcntl.flock(self.lock_fd.fileno(), fcntl.LOCK_UN)
            self.lock_fd.close()
            logger.debug(f"Released lock: {self.lock_file}")
        except OSError as e:
            logger.warning(f"Error releasing lock: {e}")
        finally:
            self.lock_fd = None

        try:
            if self.lock_file.exists():
                self.lock_file.unlink()
        except OSError as e:
            logger.warning(f"Error removing lock file: {e}")

    def _read_lock_info(self) -> dict:
        """Read info from lock file about who holds it."""
        try:
            with open(self.lock_file) as f:
                lines = f.readlines()
        except OSError:
            lines = []

        if len(lines) >= 2:
            return {
                'pid': lines[0].strip(),
                'time': lines[1].strip()
            }
        return {'pid': 'unknown', 'time': 'unknown'}

    def __enter__(self):
        """Context manager entry."""
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.release()
        return False


@contextmanager
def run_lock(timeout: int = 0, lock_file: Optional[Path] = None):
    """Context manager for run locking.

    Args:
        timeout: Seconds to wait for lock (0 = fail immediately)
        lock_file: Optional custom lock file path

    Usage:
        with run_lock():
            reconciler.run()

    Raises:
        LockError: If unable to acquire lock
    """
    lock = RunLock(lock_file=lock_file, timeout=timeout)
    try:
        lock.acquire()
        yield lock
    finally:
        lock.release()


def check_lock_status(lock_file: Optional[Path] = None) -> Optional[dict]:
    """Check if the run lock is currently held.

    Args:
        lock_file: Optional lock file path to inspect.

    Returns:
        Dict with lock info if held, None if free
    """
    lock_path = RunLock._resolve_lock_path(lock_file, create_parent=False)
    if not lock_path.exists():
        return None

    try:
        with open(lock_path) as f:
            try:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                # Stale lock file
                return None
            except OSError:
                f.seek(0)
                lines = f.readlines()
                if len(lines) >= 2:
                    return {
                        'pid': lines[0].strip(),
                        'time': lines[1].strip(),
                        'lock_file': str(lock_path)
                    }
                return {'pid': 'unknown', 'time': 'unknown', 'lock_file': str(lock_path)}
    except OSError as e:
        logger.warning(f"Error checking lock status: {e}")
        return None
