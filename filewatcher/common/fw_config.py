#!/usr/bin/env python3
"""
Filewatcher Settings

Purpose:
- Resolve runtime settings for the watcher and doctor commands
- Merge CLI overrides, environment variables and an optional YAML config

Configuration:
Reads from environment variables or config.yaml:
  - FILEWATCHER_CONFIG (path to the YAML file)
  - FILEWATCHER_LOCK_DIR (default: ~/filewatcher)
  - FILEWATCHER_POLL_SECONDS (default: 10)
  - FILEWATCHER_MAX_WAIT_SECONDS (default: 0, wait forever)
  - FILEWATCHER_RELEASE_LOCK_ON_ERROR (default: true)
  - FILEWATCHER_LOG_DIR (default: console only)
  - FILEWATCHER_LOG_LEVEL (default: INFO)

Priority: CLI flag > environment variable > config.yaml > default
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from filewatcher.common.fw_errors import ConfigError


DEFAULT_POLL_SECONDS = 10.0
DEFAULT_MAX_WAIT_SECONDS = 0.0
LOCK_DIR_NAME = "filewatcher"


@dataclass(frozen=True)
class Settings:
    lock_dir: Path
    poll_seconds: float
    max_wait_seconds: float
    release_lock_on_error: bool
    log_dir: Optional[Path]
    log_level: str
    config_path: Optional[Path]


def default_lock_dir() -> Path:
    return Path.home() / LOCK_DIR_NAME


def default_config_path() -> Path:
    return Path.home() / ".config" / "filewatcher" / "config.yaml"


def load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as ex:
        raise ConfigError(f"Failed to read config '{path}': {ex}") from ex
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping/dict: {path}")
    return data


def get_config(config_path: Optional[str]) -> tuple[Optional[Path], Dict[str, Any]]:
    """
    Locate and load the YAML config.

    An explicit path (--config or FILEWATCHER_CONFIG) must exist. The default
    per-user location is optional; when it is absent, built-in defaults apply.
    """
    explicit = config_path or os.environ.get("FILEWATCHER_CONFIG")
    if explicit:
        p = Path(explicit).expanduser()
        if not p.is_file():
            raise ConfigError(f"Config not found: {p}")
        return p, load_yaml(p)

    cfg = default_config_path()
    if cfg.is_file():
        return cfg, load_yaml(cfg)

    return None, {}


def _parse_bool(raw: Any, label: str) -> bool:
    if isinstance(raw, bool):
        return raw
    s = str(raw).strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{label} must be a boolean, got {raw!r}")


def _parse_seconds(raw: Any, label: str) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"{label} must be a number of seconds, got {raw!r}") from None


def get_settings(
    config_path: Optional[str] = None,
    lock_dir: Optional[str] = None,
    poll_seconds: Optional[float] = None,
    max_wait_seconds: Optional[float] = None,
    release_lock_on_error: Optional[bool] = None,
) -> Settings:
    """
    Build Settings from CLI overrides, environment and config file.

    Keyword arguments are CLI overrides; None means "not given on the command line".
    """
    cfg_path, cfg = get_config(config_path)
    log_cfg = cfg.get("logging", {})
    if not isinstance(log_cfg, dict):
        log_cfg = {}

    # Fallback chain: cli > env var > config section key > default
    def pick(cli_val: Any, env_key: str, section: Dict[str, Any], cfg_key: str, default: Any) -> Any:
        if cli_val is not None:
            return cli_val
        val = os.environ.get(env_key)
        if val is not None and val.strip():
            return val.strip()
        val = section.get(cfg_key)
        if isinstance(val, str):
            return val.strip() or default
        if val is not None:
            return val
        return default

    lock_dir_s = pick(lock_dir, "FILEWATCHER_LOCK_DIR", cfg, "lock_dir", None)
    resolved_lock_dir = Path(str(lock_dir_s)).expanduser() if lock_dir_s else default_lock_dir()

    poll = _parse_seconds(
        pick(poll_seconds, "FILEWATCHER_POLL_SECONDS", cfg, "poll_seconds", DEFAULT_POLL_SECONDS),
        "poll_seconds",
    )
    if poll <= 0:
        raise ConfigError(f"poll_seconds must be > 0, got {poll:g}")

    max_wait = _parse_seconds(
        pick(max_wait_seconds, "FILEWATCHER_MAX_WAIT_SECONDS", cfg, "max_wait_seconds", DEFAULT_MAX_WAIT_SECONDS),
        "max_wait_seconds",
    )
    if max_wait < 0:
        raise ConfigError(f"max_wait_seconds must be >= 0 (0 disables the limit), got {max_wait:g}")

    release = _parse_bool(
        pick(release_lock_on_error, "FILEWATCHER_RELEASE_LOCK_ON_ERROR", cfg, "release_lock_on_error", True),
        "release_lock_on_error",
    )

    log_dir_s = pick(None, "FILEWATCHER_LOG_DIR", log_cfg, "log_dir", None)
    log_level = str(pick(None, "FILEWATCHER_LOG_LEVEL", log_cfg, "level", "INFO")).strip().upper()

    return Settings(
        lock_dir=resolved_lock_dir,
        poll_seconds=poll,
        max_wait_seconds=max_wait,
        release_lock_on_error=release,
        log_dir=Path(str(log_dir_s)).expanduser() if log_dir_s else None,
        log_level=log_level,
        config_path=cfg_path,
    )
