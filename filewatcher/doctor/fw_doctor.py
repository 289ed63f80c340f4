#!/usr/bin/env python3
"""
Filewatcher Doctor (preflight checks)

Purpose:
- Validate settings and the lock directory before running watchers.
- List lock files and tell held locks (live watcher) from stale ones.
- Optionally remove stale lock files left behind by failed runs.

Exit codes:
  0 = OK
  2 = Config error (unreadable / invalid config or env values)
  3 = Lock dir error (cannot create, or not a directory)
  4 = Lock dir write test failed
"""

from __future__ import annotations

import argparse
import json
import os
import socket
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from filewatcher.common.fw_config import get_settings
from filewatcher.lock.fw_lock import ensure_lock_dir, is_lock_held, remove_if_stale


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def check_lock_dir(lock_dir: Path) -> None:
    ensure_lock_dir(lock_dir)
    if not lock_dir.is_dir():
        raise NotADirectoryError(f"lock_dir is not a directory: {lock_dir}")


def write_test(lock_dir: Path) -> None:
    # Write+delete a tiny file to validate permissions. The '.' keeps the name
    # outside the sanitized lock-name alphabet, so it can never shadow a lock.
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    test_file = lock_dir / f".doctor_write_test.{os.getpid()}.{stamp}"
    try:
        test_file.write_text(f"filewatcher doctor write test OK\nutc={utc_now_iso()}\n", encoding="utf-8")
    except OSError as ex:
        raise PermissionError(f"Failed to write test file: {test_file} ({ex})") from ex

    try:
        test_file.unlink(missing_ok=True)
    except OSError as ex:
        raise PermissionError(f"Failed to delete test file: {test_file} ({ex})") from ex


def scan_locks(lock_dir: Path) -> List[Dict[str, Any]]:
    """Describe every lock file in lock_dir; held=True means a watcher is running."""
    locks: List[Dict[str, Any]] = []
    for p in sorted(lock_dir.iterdir()):
        if not p.is_file() or p.name.startswith("."):
            continue
        st = p.stat()
        locks.append({
            "name": p.name,
            "path": str(p),
            "held": is_lock_held(p),
            "mtime_utc": datetime.fromtimestamp(st.st_mtime, tz=timezone.utc).isoformat(timespec="seconds"),
        })
    return locks


def clean_stale(locks: List[Dict[str, Any]]) -> List[str]:
    removed: List[str] = []
    for entry in locks:
        if entry["held"]:
            continue
        # A watcher may have started since the scan; it keeps its file
        if not remove_if_stale(Path(entry["path"])):
            entry["held"] = True
            continue
        removed.append(entry["path"])
    return removed


def _fail(summary: Dict[str, Any], as_json: bool, label: str, code: int) -> int:
    if as_json:
        print(json.dumps(summary, indent=2, sort_keys=True))
    else:
        eprint(f"[FAIL] {label}: {summary['error']}")
    return code


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="filewatcher-doctor", description="Filewatcher preflight checks (doctor).")
    ap.add_argument("--config", default=None, help="Optional path to config YAML.")
    ap.add_argument("--lock-dir", default=None, help="Override the lock directory.")
    ap.add_argument("--no-write-test", action="store_true", help="Skip lock dir write+delete test.")
    ap.add_argument("--clean-stale", action="store_true", help="Delete lock files no watcher holds.")
    ap.add_argument("--json", action="store_true", help="Print machine-readable JSON summary.")
    args = ap.parse_args(argv)

    summary: Dict[str, Any] = {
        "utc": utc_now_iso(),
        "hostname": socket.gethostname(),
        "ok": False,
        "checks": [],
    }

    try:
        settings = get_settings(config_path=args.config, lock_dir=args.lock_dir)
        summary["config_path"] = str(settings.config_path) if settings.config_path else None
        summary["lock_dir"] = str(settings.lock_dir)
        summary["poll_seconds"] = settings.poll_seconds
        summary["max_wait_seconds"] = settings.max_wait_seconds
        summary["checks"].append({"name": "config_load", "ok": True})
    except Exception as ex:
        summary["error"] = f"{type(ex).__name__}: {ex}"
        return _fail(summary, args.json, "Config", 2)

    lock_dir = settings.lock_dir
    try:
        check_lock_dir(lock_dir)
        summary["checks"].append({"name": "lock_dir", "ok": True})
    except Exception as ex:
        summary["error"] = f"{type(ex).__name__}: {ex}"
        return _fail(summary, args.json, "Lock dir", 3)

    if not args.no_write_test:
        try:
            write_test(lock_dir)
            summary["checks"].append({"name": "lock_dir_write_test", "ok": True})
        except Exception as ex:
            summary["error"] = f"{type(ex).__name__}: {ex}"
            return _fail(summary, args.json, "Lock dir write test", 4)

    locks = scan_locks(lock_dir)
    if args.clean_stale:
        summary["removed"] = clean_stale(locks)
    summary["locks"] = locks

    summary["ok"] = True
    if args.json:
        print(json.dumps(summary, indent=2, sort_keys=True))
        return 0

    print("[OK] filewatcher doctor checks passed")
    print(f"  config:   {summary.get('config_path') or '(defaults)'}")
    print(f"  lock dir: {lock_dir}")
    print(f"  poll:     {settings.poll_seconds:g}s")
    print("  write test: skipped" if args.no_write_test else "  write test: ok")
    held = [e for e in locks if e["held"]]
    stale = [e for e in locks if not e["held"]]
    print(f"  locks:    {len(held)} held, {len(stale)} stale")
    for e in locks:
        state = "held " if e["held"] else "stale"
        print(f"    [{state}] {e['name']} (since {e['mtime_utc']})")
    for p in summary.get("removed", []):
        print(f"  removed:  {p}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
