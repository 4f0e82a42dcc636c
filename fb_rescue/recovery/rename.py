"""Rename a file that another process may still hold open."""

import asyncio
import errno
import logging
import os
from pathlib import Path
from typing import Callable, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_TRANSIENT_ERRNOS = {errno.EBUSY, errno.ETXTBSY}
# ERROR_SHARING_VIOLATION, ERROR_LOCK_VIOLATION
_TRANSIENT_WINERRORS = {32, 33}


def is_transient_lock_error(exc: OSError) -> bool:
    """True when the error means "in use by another process"."""
    if getattr(exc, "winerror", None) in _TRANSIENT_WINERRORS:
        return True
    return exc.errno in _TRANSIENT_ERRNOS


async def rename_with_retry(
    src: PathLike,
    dst: PathLike,
    max_attempts: int = 10,
    delay: float = 1.0,
    rename: Callable[[PathLike, PathLike], None] = os.replace,
) -> bool:
    """Rename src to dst, retrying while the source is locked.

    Returns False when every attempt failed with a lock error. Any other
    OSError is raised on the spot.
    """
    attempts = max(1, max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            rename(src, dst)
            return True
        except OSError as e:
            if not is_transient_lock_error(e):
                raise
            logger.warning(
                f"{src} is in use (attempt {attempt}/{attempts}): {e}"
            )
            if attempt < attempts:
                await asyncio.sleep(delay)
    return False
