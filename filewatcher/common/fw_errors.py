"""
Filewatcher error types.

Every error carries the process exit code it maps to, so main() can turn any
failure raised deep in the lock manager or wait engine into a stable exit code.
"""

from __future__ import annotations

from typing import Optional


RET_OK = 0
RET_CANNOT_LOCK = 1
RET_IS_DIR = 2
RET_FILE_MISSING = 3
RET_TIMEOUT = 4
RET_INFRASTRUCTURE = 5
RET_INVALID_TARGET = 6
RET_INTERRUPTED = 130


class FileWatcherError(Exception):
    """Base exception for all filewatcher failures."""

    exit_code = RET_INFRASTRUCTURE


class CannotLockError(FileWatcherError):
    """Raised when another process already holds the lock for a target."""

    exit_code = RET_CANNOT_LOCK

    def __init__(self, lock_path: str, reason: Optional[BaseException] = None):
        self.lock_path = lock_path
        self.reason = reason
        msg = f"Cannot obtain lock on '{lock_path}'"
        if reason is not None:
            msg += f": {reason}"
        super().__init__(msg)


class IsDirectoryError(FileWatcherError):
    """Raised when the target is a directory in update mode."""

    exit_code = RET_IS_DIR

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Cannot check file presence, '{path}' is a directory")


class FileMissingError(FileWatcherError):
    """Raised when the target disappears while waiting for an update."""

    exit_code = RET_FILE_MISSING

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"File '{path}' went missing, restart again if you want to wait for its arrival"
        )


class WaitTimeoutError(FileWatcherError):
    exit_code = RET_TIMEOUT

    def __init__(self, path: str, waited_seconds: float):
        self.path = path
        self.waited_seconds = waited_seconds
        super().__init__(f"Gave up waiting for '{path}' after {waited_seconds:g}s")


class InfrastructureError(FileWatcherError):
    """Filesystem or configuration failure outside the watched target."""

    exit_code = RET_INFRASTRUCTURE


class LockDirError(InfrastructureError):
    def __init__(self, lock_dir: str, reason: BaseException):
        self.lock_dir = lock_dir
        self.reason = reason
        super().__init__(f"Failed to create lock dir '{lock_dir}': {reason}")


class LockReleaseError(InfrastructureError):
    def __init__(self, lock_path: str, reason: BaseException):
        self.lock_path = lock_path
        self.reason = reason
        super().__init__(f"Failed to remove lock '{lock_path}': {reason}")


class ConfigError(InfrastructureError):
    pass


class InvalidTargetError(FileWatcherError):
    exit_code = RET_INVALID_TARGET


class TargetStatError(InfrastructureError):
    def __init__(self, path: str, reason: BaseException):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read metadata of '{path}': {reason}")
