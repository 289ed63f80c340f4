"""
Polling wait loops.

Two modes:
- appearance: block until the target (or the first name matching its
  single '*' wildcard) exists
- update: block until the target's modification time, truncated to whole
  seconds, moves past the value captured at start
"""

from __future__ import annotations

import logging
import os
import stat
import time
from typing import Callable, Optional

from filewatcher.common.fw_errors import (
    FileMissingError,
    IsDirectoryError,
    TargetStatError,
    WaitTimeoutError,
)


log = logging.getLogger(__name__)

WAIT_TIME = 10.0  # seconds between checks
WILDCARD = "*"


def get_seconds(modified: float) -> int:
    """Whole seconds since the epoch for an st_mtime value."""
    if modified < 0:
        log.warning(f"Modification time {modified} is before the epoch, using 0")
        return 0
    return int(modified)


def get_last_mod(path: str) -> int:
    """
    Modification time of path in whole seconds.

    Raises:
        FileMissingError: path or one of its parent directories is gone
        IsDirectoryError: path is a directory
        TargetStatError: any other stat failure (permissions, I/O)
    """
    try:
        st = os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        raise FileMissingError(path) from None
    except OSError as ex:
        raise TargetStatError(path, ex) from ex
    if stat.S_ISDIR(st.st_mode):
        raise IsDirectoryError(path)
    last_mod = get_seconds(st.st_mtime)
    log.debug(f"Last modification of '{path}': {last_mod}")
    return last_mod


def resolve_file_name(pattern: str) -> Optional[str]:
    """
    Resolve a single-wildcard pattern such as /dir/log-*.txt to an existing file.

    Only the final path segment may hold the wildcard. The first directory entry
    that starts with the prefix and ends with the suffix wins; the order of
    entries is whatever the filesystem returns, so with several matches the
    result is not deterministic.

    Returns None when the pattern has no '/' or no '*', when the directory
    cannot be read, or when nothing matches.
    """
    slash = pattern.rfind("/")
    if slash < 0:
        return None
    path, file = pattern[: slash + 1], pattern[slash + 1:]

    star = file.find(WILDCARD)
    if star < 0:
        return None
    prefix, suffix = file[:star], file[star + 1:]
    min_len = len(file) - 1
    log.debug(f"Search file len {min_len}, prefix '{prefix}', suffix '{suffix}'")

    try:
        names = os.listdir(path)
    except OSError as ex:
        log.debug(f"Cannot list '{path}': {ex}")
        return None

    for name in names:
        if len(name) < min_len:
            continue
        if name.startswith(prefix) and name.endswith(suffix):
            return path + name
    return None


def _next_interval(target: str, waited: float, poll_seconds: float, max_wait_seconds: float) -> float:
    """Seconds to sleep before the next check; the last sleep is cut to the remaining time."""
    if not max_wait_seconds:
        return poll_seconds
    remaining = max_wait_seconds - waited
    if remaining <= 0:
        raise WaitTimeoutError(target, waited)
    return min(poll_seconds, remaining)


def wait_for_file(
    filepath: str,
    poll_seconds: float = WAIT_TIME,
    max_wait_seconds: float = 0,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """
    Block until filepath exists and return the path that was found.

    A wildcard pattern is re-resolved on every pass until some entry matches.
    max_wait_seconds=0 waits forever.
    """
    temp_filepath = filepath
    waited = 0.0
    while True:
        if WILDCARD in filepath:
            resolved = resolve_file_name(filepath)
            if resolved is not None:
                temp_filepath = resolved
        if os.path.exists(temp_filepath):
            log.info(f"File '{temp_filepath}' is available")
            return temp_filepath

        interval = _next_interval(filepath, waited, poll_seconds, max_wait_seconds)
        sleep(interval)
        waited += interval


def wait_for_file_update(
    filename: str,
    poll_seconds: float = WAIT_TIME,
    max_wait_seconds: float = 0,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """
    Block until filename is modified; if it does not exist yet, wait for it to appear.

    Raises:
        IsDirectoryError: filename is (or becomes) a directory
        FileMissingError: filename disappears while waiting
        TargetStatError: filename cannot be stat'ed for another reason
        WaitTimeoutError: max_wait_seconds elapsed
    """
    if not os.path.exists(filename):
        log.warning(f"File '{filename}' does not exist. Waiting...")
        return wait_for_file(
            filename,
            poll_seconds=poll_seconds,
            max_wait_seconds=max_wait_seconds,
            sleep=sleep,
        )

    last_mod = get_last_mod(filename)
    waited = 0.0
    while True:
        latest_mod = get_last_mod(filename)
        if last_mod < latest_mod:
            log.info(f"File '{filename}' updated, exiting...")
            return filename

        interval = _next_interval(filename, waited, poll_seconds, max_wait_seconds)
        sleep(interval)
        waited += interval
