#!/usr/bin/env python3
"""
Filewatcher

Goals:
- Wait for a file to appear (optionally matched through one '*' wildcard)
- Or wait for an existing file to be modified (--update)
- Hold an exclusive lock per target so two watchers never watch the same path
- Remove the lock file when the run ends

Exit codes:
  0 = target appeared / was updated
  1 = lock held by another watcher
  2 = target is a directory (update mode)
  3 = target disappeared while waiting for an update
  4 = --max-wait-seconds exceeded
  5 = infrastructure error (config, lock dir, lock file, unreadable target)
  6 = invalid target pattern
  130 = interrupted
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Callable, List, Optional

from filewatcher import __version__
from filewatcher.common.fw_config import Settings, get_settings
from filewatcher.common.fw_errors import (
    RET_INFRASTRUCTURE,
    RET_INTERRUPTED,
    RET_OK,
    FileWatcherError,
    InvalidTargetError,
    LockReleaseError,
)
from filewatcher.common.fw_logging import setup_logging
from filewatcher.lock.fw_lock import TargetLock, acquire_target_lock, release_target_lock
from filewatcher.watcher.fw_wait import WILDCARD, wait_for_file, wait_for_file_update


log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="filewatcher",
        description="Wait for a file to appear or to be updated, one watcher per file.",
    )
    ap.add_argument("-f", "--filename", required=True,
                    help="File to wait for. The last path segment may contain one '*' wildcard.")
    ap.add_argument("-u", "--update", action="store_true",
                    help="Use if needed to wait for file to be updated.")
    ap.add_argument("--config", default=None, help="Optional path to config YAML.")
    ap.add_argument("--lock-dir", default=None, help="Directory holding the lock files.")
    ap.add_argument("--poll-seconds", type=float, default=None,
                    help="Interval between checks (default: 10).")
    ap.add_argument("--max-wait-seconds", type=float, default=None,
                    help="Give up after this many seconds (default: 0, wait forever).")
    ap.add_argument("--keep-lock-on-error", action="store_true",
                    help="Leave the lock file in place when the wait fails.")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug output on the console.")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def validate_target(filename: str) -> str:
    """Reject unusable targets; accepted targets are returned unchanged."""
    if not filename.strip():
        raise InvalidTargetError("Empty target")
    target = filename
    if WILDCARD in target:
        slash = target.rfind("/")
        if slash < 0:
            raise InvalidTargetError(
                f"Wildcard target '{target}' needs a directory, e.g. './{target}'"
            )
        if WILDCARD in target[:slash]:
            raise InvalidTargetError(
                f"Wildcard is only supported in the last path segment: '{target}'"
            )
    return target


def _release_after_failure(lock: TargetLock, settings: Settings) -> None:
    if not settings.release_lock_on_error:
        log.warning(f"Leaving lock file '{lock.lock_path}' in place")
        lock.file_lock.release()
        return
    try:
        release_target_lock(lock)
    except LockReleaseError as ex:
        # The wait error is the one the caller reports
        log.error(str(ex))


def run_watch(
    target: str,
    update: bool,
    settings: Settings,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """
    Lock the target, wait for it, and release the lock.

    Returns the path that satisfied the wait. Raises FileWatcherError subclasses.
    """
    lock = acquire_target_lock(target, settings.lock_dir)
    log.debug(
        f"target={target} mode={'update' if update else 'appearance'} "
        f"poll={settings.poll_seconds:g}s max_wait={settings.max_wait_seconds:g}s"
    )

    try:
        if update:
            found = wait_for_file_update(
                target,
                poll_seconds=settings.poll_seconds,
                max_wait_seconds=settings.max_wait_seconds,
                sleep=sleep,
            )
        else:
            found = wait_for_file(
                target,
                poll_seconds=settings.poll_seconds,
                max_wait_seconds=settings.max_wait_seconds,
                sleep=sleep,
            )
    except BaseException:
        _release_after_failure(lock, settings)
        raise

    release_target_lock(lock)
    return found


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings(
            config_path=args.config,
            lock_dir=args.lock_dir,
            poll_seconds=args.poll_seconds,
            max_wait_seconds=args.max_wait_seconds,
            release_lock_on_error=False if args.keep_lock_on_error else None,
        )
    except FileWatcherError as ex:
        setup_logging(verbose=args.verbose)
        log.error(f"{ex} (retcode={ex.exit_code})")
        return ex.exit_code

    try:
        setup_logging(settings.log_dir, verbose=args.verbose, level=settings.log_level)
    except OSError as ex:
        print(f"Failed to set up logging in '{settings.log_dir}': {ex}", file=sys.stderr)
        return RET_INFRASTRUCTURE

    if settings.config_path is not None:
        log.debug(f"config={settings.config_path}")
    log.debug(f"lock_dir={settings.lock_dir}")

    try:
        target = validate_target(args.filename)
        run_watch(target, args.update, settings)
    except FileWatcherError as ex:
        log.error(f"{ex}. Exiting (retcode={ex.exit_code})")
        return ex.exit_code
    except KeyboardInterrupt:
        log.warning(f"Interrupted while waiting for '{args.filename}'")
        return RET_INTERRUPTED
    except OSError as ex:
        log.error(f"Unexpected filesystem error: {ex}. Exiting (retcode={RET_INFRASTRUCTURE})")
        return RET_INFRASTRUCTURE

    return RET_OK


if __name__ == "__main__":
    raise SystemExit(main())
