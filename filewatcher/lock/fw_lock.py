"""
Single-instance lock per watch target.

Layout:
  <lock_dir>/<sanitized target>

The lock file is only a sentinel: its advisory lock state matters, its contents
do not. The lock is non-blocking, so a second watcher for the same target fails
immediately instead of queueing behind the first one.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from filelock import FileLock, Timeout

from filewatcher.common.fw_errors import CannotLockError, LockDirError, LockReleaseError


log = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]")


@dataclass
class TargetLock:
    target: str
    lock_path: Path
    file_lock: FileLock


def sanitize(target: str) -> str:
    # One replacement per character keeps the output length equal to the input length
    return _UNSAFE_CHARS.sub("_", target)


def lock_path_for(target: str, lock_dir: Path) -> Path:
    return lock_dir / sanitize(target)


def ensure_lock_dir(lock_dir: Path) -> Path:
    try:
        lock_dir.mkdir(parents=True, exist_ok=True)
    except OSError as ex:
        raise LockDirError(str(lock_dir), ex) from ex
    return lock_dir


def acquire_target_lock(target: str, lock_dir: Path) -> TargetLock:
    """
    Create and lock the lock file for a target.

    Raises CannotLockError if another process holds the lock (or the lock file
    cannot be opened), LockDirError if the lock directory cannot be created.
    """
    ensure_lock_dir(lock_dir)
    lock_path = lock_path_for(target, lock_dir)

    file_lock = FileLock(str(lock_path))
    try:
        file_lock.acquire(timeout=0)
    except (Timeout, OSError) as ex:
        raise CannotLockError(str(lock_path), ex) from ex

    log.info(f"Lock acquired for '{target}': {lock_path}")
    return TargetLock(target=target, lock_path=lock_path, file_lock=file_lock)


def release_target_lock(lock: TargetLock) -> None:
    """
    Delete the lock file while still holding it, then drop the OS lock.
    A lock file that is already gone is not an error.
    """
    try:
        lock.lock_path.unlink(missing_ok=True)
    except OSError as ex:
        lock.file_lock.release()
        raise LockReleaseError(str(lock.lock_path), ex) from ex
    lock.file_lock.release()
    log.debug(f"Lock file removed '{lock.lock_path}'")


def is_lock_held(lock_path: Path) -> bool:
    """
    Check whether some process currently holds the lock on lock_path.

    A lock file that cannot be opened counts as held, so callers never treat
    it as stale.
    """
    trial = FileLock(str(lock_path))
    try:
        trial.acquire(timeout=0)
    except Timeout:
        return True
    except OSError as ex:
        log.warning(f"Cannot check lock '{lock_path}': {ex}")
        return True
    trial.release()
    return False


def remove_if_stale(lock_path: Path) -> bool:
    """
    Delete lock_path if no process holds its lock.

    The file is unlinked while this call holds the lock, so a watcher starting
    concurrently either fails to lock the old file or creates a fresh one.
    Returns True if the file was removed.
    """
    trial = FileLock(str(lock_path))
    try:
        trial.acquire(timeout=0)
    except (Timeout, OSError):
        return False
    try:
        lock_path.unlink(missing_ok=True)
    finally:
        trial.release()
    log.debug(f"Stale lock file removed '{lock_path}'")
    return True
