"""Retry helpers for transient failures with exponential backoff."""
import time
from typing import Callable, Tuple, Type, TypeVar

from slather.core.errors import TransientError
from slather.core.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def call_with_retry(
    func: Callable[..., T],
    *args,
    max_attempts: int = 3,
    delay: float = 2.0,
    backoff: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (TransientError,),
    **kwargs,
) -> T:
    """Call ``func`` and retry on ``exceptions`` with exponential backoff.

    The last exception is re-raised once ``max_attempts`` is exhausted.
    """
    current_delay = delay
    name = getattr(func, "__name__", repr(func))

    for attempt in range(1, max_attempts + 1):
        try:
            return func(*args, **kwargs)
        except exceptions as e:
            if attempt == max_attempts:
                if max_attempts > 1:
                    logger.error(f"{name} failed after {max_attempts} attempts: {e}")
                raise

            logger.warning(f"{name} failed (attempt {attempt}/{max_attempts}): {e}")
            logger.info(f"Retrying in {current_delay:.1f}s...")
            time.sleep(current_delay)
            current_delay *= backoff

    raise RuntimeError("unreachable")
