"""Advisory exclusive locks on files shared with other processes.

The transcript file is written by an external dictation tool, so the lock
has to be taken on the file itself (fcntl on Unix, msvcrt on Windows)
rather than on a sidecar lock file: that is the lock the writer honors.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any


class LockError(OSError):
    """Raised when an advisory lock cannot be acquired."""


def _lock(handle: IO[Any]) -> None:
    try:
        if sys.platform == "win32":
            import msvcrt

            # LK_LOCK retries for ~10s before giving up
            handle.seek(0)
            msvcrt.locking(handle.fileno(), msvcrt.LK_LOCK, 1)
        else:
            import fcntl

            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
    except OSError as e:
        raise LockError(e.errno, f"Failed to acquire lock on {handle.name}: {e.strerror}") from e


def _unlock(handle: IO[Any]) -> None:
    if sys.platform == "win32":
        import msvcrt

        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl

        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


@contextmanager
def exclusive_lock(handle: IO[Any]) -> Iterator[IO[Any]]:
    """Hold an exclusive advisory lock on an open file for the block.

    Raises:
        LockError: the lock could not be acquired.
    """
    _lock(handle)
    try:
        yield handle
    finally:
        try:
            _unlock(handle)
        except OSError:
            pass  # Closing the handle releases it anyway


def read_locked(path: Path) -> str:
    """Read a whole text file while holding an exclusive lock on it.

    Raises:
        FileNotFoundError: the file does not exist.
        LockError: the lock could not be acquired.
        OSError: any other read failure.
    """
    # msvcrt byte-range locks need a writable handle; flock does not
    mode = "r+" if sys.platform == "win32" else "r"
    with open(path, mode, encoding="utf-8", errors="replace") as f:
        with exclusive_lock(f):
            f.seek(0)
            return f.read()
