"""Database utility functions."""
import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError

from ..errors import TransientProviderFailure

logger = logging.getLogger(__name__)

T = TypeVar('T')

TRANSIENT_MESSAGES = (
    "database is locked",
    "connection refused",
    "connection reset",
    "connection closed",
    "server closed",
    "timeout",
    "too many clients",
)


def is_transient_db_error(exc: Exception) -> bool:
    """True for lock contention and dropped-connection errors."""
    if not isinstance(exc, (OperationalError, InterfaceError)):
        return False
    error_str = str(exc).lower()
    return any(msg in error_str for msg in TRANSIENT_MESSAGES)


async def retry_on_lock(
    coro_func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 0.1,
) -> T:
    """Retry a short store call (usually a commit) on lock contention.

    This only smooths over SQLite lock waits and pool hiccups inside a single
    request. When the retries run out the failure surfaces as
    TransientProviderFailure so the event runtime decides about redelivery.

    Args:
        coro_func: Async function to call (a callable that returns a coroutine)
        max_retries: Maximum number of attempts
        base_delay: Base delay in seconds (doubles with each retry)
    """
    for attempt in range(max_retries):
        try:
            return await coro_func()
        except (OperationalError, InterfaceError) as e:
            if not is_transient_db_error(e):
                raise
            if attempt == max_retries - 1:
                raise TransientProviderFailure(f"Store unavailable: {e}") from e
            delay = base_delay * (2 ** attempt)
            logger.warning(f"Database transient error, retrying in {delay}s (attempt {attempt + 1}/{max_retries})")
            await asyncio.sleep(delay)
    raise TransientProviderFailure("Store unavailable")
