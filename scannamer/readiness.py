"""
Readiness gate.

A scanner or copy tool may still be writing a file when it first shows up.
The file counts as ready once it can be opened with an exclusive lock and
has a non-zero length.
"""

import logging
import os
import sys
import time
from pathlib import Path
from typing import Callable, Union

if sys.platform == "win32":
    import msvcrt
else:
    import fcntl

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 5.0
DEFAULT_POLL_INTERVAL = 0.5


def try_exclusive_open(path: Union[str, Path]) -> bool:
    """
    Attempt one exclusive open of path.

    Returns:
        True if the lock was obtained and the file is non-empty, False on
        lock contention or zero length.

    Raises:
        OSError: For anything other than contention (missing file,
            directory, no permission to open, ...).
    """
    try:
        f = open(path, "rb")
    except PermissionError:
        # Windows reports another process's exclusive handle as a sharing
        # violation at open time
        if sys.platform == "win32":
            return False
        raise

    with f:
        fd = f.fileno()
        try:
            _lock(fd)
        except (BlockingIOError, PermissionError):
            return False
        try:
            return os.fstat(fd).st_size > 0
        finally:
            _unlock(fd)


if sys.platform == "win32":
    def _lock(fd: int) -> None:
        try:
            msvcrt.locking(fd, msvcrt.LK_NBLCK, 1)
        except OSError as e:
            raise BlockingIOError(*e.args) from e

    def _unlock(fd: int) -> None:
        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
else:
    def _lock(fd: int) -> None:
        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)

    def _unlock(fd: int) -> None:
        fcntl.flock(fd, fcntl.LOCK_UN)


class ReadinessGate:
    """
    Polls a file until it is ready or a timeout elapses.

    Never raises: unrecoverable I/O errors are logged and reported as
    not-ready.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            timeout: Seconds to keep polling.
            poll_interval: Seconds between attempts.
            sleep: Injectable sleep function (primarily for tests).
            clock: Injectable monotonic clock (primarily for tests).
        """
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._clock = clock

    def probe(self, path: Union[str, Path]) -> bool:
        """Single readiness check."""
        try:
            return try_exclusive_open(path)
        except OSError as e:
            logger.debug(f"Readiness probe failed for {path}: {type(e).__name__}")
            return False

    def wait_until_ready(self, path: Union[str, Path], timeout: float = None) -> bool:
        """
        Poll path until it is ready.

        Args:
            path: File to check.
            timeout: Override the gate's timeout for this call.

        Returns:
            True once ready, False on timeout or unrecoverable error.
        """
        timeout = self.timeout if timeout is None else timeout
        deadline = self._clock() + timeout

        while True:
            try:
                if try_exclusive_open(path):
                    return True
            except OSError as e:
                logger.warning(f"Cannot open {path} for readiness check: {type(e).__name__}: {e}")
                return False

            remaining = deadline - self._clock()
            if remaining <= 0:
                logger.debug(f"File not ready after {timeout:.1f}s: {path}")
                return False
            self._sleep(min(self.poll_interval, remaining))
