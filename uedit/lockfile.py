"""Advisory file locks kept in ``<name>.lock~`` files."""

from __future__ import annotations

import errno
import getpass
import os
import socket
import stat
from typing import Callable, List, Optional

LOCK_SUFFIX = ".lock~"
MAX_LOCKER_NAME = 128
DEFAULT_LOCK_LIMIT = 100


class LockError(Exception):
    """Locking or unlocking failed."""


def lock_path(fname: str) -> str:
    """Return the name of the lock file for *fname*."""
    return fname + LOCK_SUFFIX


def _login_name() -> str:
    try:
        return os.getlogin()
    except OSError:
        try:
            return getpass.getuser()
        except (KeyError, OSError):
            return "unknown"


def acquire(fname: str) -> Optional[str]:
    """Try to lock *fname*.

    Return None if the lock is now ours (or locking is not possible on
    this file system), or the ``user@host`` text of whoever holds it.
    Raise LockError when the lock file cannot be used.
    """
    lname = lock_path(fname)
    try:
        info = os.lstat(lname)
    except OSError:
        pass
    else:
        if not stat.S_ISREG(info.st_mode):
            raise LockError("LOCK ERROR: not a regular file")

    mask = os.umask(0)
    try:
        fd = os.open(lname, os.O_RDWR | os.O_CREAT, 0o666)
    except OSError as exc:
        if exc.errno in (errno.EACCES, errno.EROFS):
            return None
        raise LockError("LOCK ERROR: cannot access lock file") from exc
    finally:
        os.umask(mask)

    try:
        data = os.read(fd, MAX_LOCKER_NAME)
        if not data:
            os.lseek(fd, 0, os.SEEK_SET)
            locker = f"{_login_name()}@{socket.gethostname()[:64]}"
            os.write(fd, locker.encode("utf-8", "replace"))
            return None
        return data.decode("utf-8", "replace")
    finally:
        os.close(fd)


def release(fname: str) -> None:
    """Remove the lock on *fname*; a missing or unremovable-by-policy lock is ignored."""
    try:
        os.unlink(lock_path(fname))
    except OSError as exc:
        if exc.errno in (errno.EACCES, errno.ENOENT, errno.EROFS):
            return
        raise LockError(
            f"LOCK ERROR: cannot remove lock file - {os.strerror(exc.errno)}"
        ) from exc


class LockTable:
    """The set of files this editor has locked.

    *confirm* is asked whether to override a lock held by someone else and
    returns True to go ahead.
    """

    def __init__(self, confirm: Callable[[str], bool],
                 limit: int = DEFAULT_LOCK_LIMIT):
        self._confirm = confirm
        self._limit = limit
        self._names: List[str] = []

    @property
    def names(self) -> List[str]:
        return list(self._names)

    def check(self, fname: str) -> bool:
        """Lock *fname* if needed; return False if the user declines an override."""
        if fname in self._names:
            return True
        if len(self._names) >= self._limit:
            raise LockError("LOCK ERROR: Lock table full")
        locker = acquire(fname)
        if locker is not None:
            return bool(self._confirm(f"File in use by {locker}, override?"))
        self._names.append(fname)
        return True

    def release_all(self) -> None:
        """Release every lock held; raise LockError afterwards if any failed."""
        failure: Optional[LockError] = None
        for fname in self._names:
            try:
                release(fname)
            except LockError as exc:
                failure = failure or exc
        self._names.clear()
        if failure is not None:
            raise failure