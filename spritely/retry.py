from __future__ import annotations

import asyncio
import errno
import logging
from typing import Awaitable, Callable, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_ERRNOS = {errno.EACCES, errno.EPERM, errno.EBUSY, errno.EAGAIN}


def is_transient_io_error(exc: BaseException) -> bool:
    """Lock contention and permission failures are worth another attempt."""
    if isinstance(exc, PermissionError):
        return True
    return isinstance(exc, OSError) and exc.errno in TRANSIENT_ERRNOS


async def retry(
    operation: Callable[[], Awaitable[T]],
    should_retry: Callable[[BaseException], bool] = is_transient_io_error,
    max_attempts: int = 5,
    delay: float = 0.25,
) -> T:
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= max_attempts or not should_retry(exc):
                raise
            logger.debug(
                "Attempt %s/%s failed (%s); retrying in %ss",
                attempt,
                max_attempts,
                exc,
                delay,
            )
        attempt += 1
        await asyncio.sleep(delay)
