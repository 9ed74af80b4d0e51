"""
Bounded immediate retry for transient database failures.

Only errors the database reports as retryable (lost connection, serialization
failure, deadlock, lock timeout) are retried; integrity and programming errors
propagate on the first attempt.
"""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

from src.platform.exception.exceptions import ServiceUnavailableError


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger


_T = TypeVar('_T')

# serialization_failure, deadlock_detected, lock_not_available, admin_shutdown, connection_*
TRANSIENT_SQLSTATES = frozenset({'40001', '40P01', '55P03', '57P01', '08000', '08003', '08006'})


def is_transient_db_error(exc: BaseException) -> bool:
    if isinstance(exc, OperationalError):
        return True
    if isinstance(exc, DBAPIError):
        if exc.connection_invalidated:
            return True
        orig = exc.orig
        sqlstate = getattr(orig, 'sqlstate', None) or getattr(orig, 'pgcode', None)
        return sqlstate in TRANSIENT_SQLSTATES
    return isinstance(exc, (ConnectionError, TimeoutError))


async def retry_transient(
    operation: Callable[[], Awaitable[_T]],
    *,
    attempts: int,
    logger: 'LoguruLogger',
    label: str,
) -> _T:
    """Run `operation`, retrying ServiceUnavailableError up to `attempts` calls in total."""
    attempts = max(attempts, 1)
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except ServiceUnavailableError as e:
            if attempt == attempts:
                logger.error(f'❌ [RETRY] {label} failed after {attempts} attempts: {e}')
                raise
            logger.warning(f'🔁 [RETRY] {label} transient failure ({attempt}/{attempts}): {e}')
    raise AssertionError('unreachable')
