"""
Settings resolution: CLI > environment > config.yaml > defaults
"""
from pathlib import Path

import pytest

from filewatcher.common.fw_config import get_config, get_settings
from filewatcher.common.fw_errors import ConfigError


def _write_cfg(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestDefaults:

    def test_defaults_without_config(self, isolated_home):
        s = get_settings()
        assert s.lock_dir == isolated_home / "filewatcher"
        assert s.poll_seconds == 10.0
        assert s.max_wait_seconds == 0.0
        assert s.release_lock_on_error is True
        assert s.log_dir is None
        assert s.log_level == "INFO"
        assert s.config_path is None

    def test_default_config_location_is_picked_up(self, isolated_home):
        cfg = _write_cfg(isolated_home / ".config" / "filewatcher" / "config.yaml", "poll_seconds: 3\n")
        s = get_settings()
        assert s.config_path == cfg
        assert s.poll_seconds == 3.0


class TestConfigFile:

    def test_values_from_yaml(self, tmp_path):
        cfg = _write_cfg(tmp_path / "cfg.yaml", (
            "lock_dir: /var/tmp/fw-locks\n"
            "poll_seconds: 2.5\n"
            "max_wait_seconds: 60\n"
            "release_lock_on_error: false\n"
            "logging:\n"
            "  log_dir: /var/tmp/fw-logs\n"
            "  level: debug\n"
        ))
        s = get_settings(config_path=str(cfg))
        assert s.lock_dir == Path("/var/tmp/fw-locks")
        assert s.poll_seconds == 2.5
        assert s.max_wait_seconds == 60.0
        assert s.release_lock_on_error is False
        assert s.log_dir == Path("/var/tmp/fw-logs")
        assert s.log_level == "DEBUG"

    def test_config_from_env_var(self, monkeypatch, tmp_path):
        cfg = _write_cfg(tmp_path / "cfg.yaml", "poll_seconds: 7\n")
        monkeypatch.setenv("FILEWATCHER_CONFIG", str(cfg))
        assert get_settings().poll_seconds == 7.0

    def test_tilde_in_lock_dir_expands(self, tmp_path, isolated_home):
        cfg = _write_cfg(tmp_path / "cfg.yaml", "lock_dir: ~/locks\n")
        assert get_settings(config_path=str(cfg)).lock_dir == isolated_home / "locks"

    def test_blank_log_dir_means_console_only(self, tmp_path):
        cfg = _write_cfg(tmp_path / "cfg.yaml", "logging:\n  log_dir: \"\"\n")
        assert get_settings(config_path=str(cfg)).log_dir is None

    def test_missing_explicit_config(self, tmp_path):
        with pytest.raises(ConfigError):
            get_config(str(tmp_path / "missing.yaml"))

    def test_non_mapping_config(self, tmp_path):
        cfg = _write_cfg(tmp_path / "cfg.yaml", "- a\n- b\n")
        with pytest.raises(ConfigError):
            get_settings(config_path=str(cfg))

    def test_broken_yaml(self, tmp_path):
        cfg = _write_cfg(tmp_path / "cfg.yaml", "poll_seconds: [1,\n")
        with pytest.raises(ConfigError):
            get_settings(config_path=str(cfg))

    def test_empty_config_uses_defaults(self, tmp_path):
        cfg = _write_cfg(tmp_path / "cfg.yaml", "")
        s = get_settings(config_path=str(cfg))
        assert s.poll_seconds == 10.0
        assert s.config_path == cfg


class TestPrecedence:

    def test_env_overrides_config(self, monkeypatch, tmp_path):
        cfg = _write_cfg(tmp_path / "cfg.yaml", "poll_seconds: 2\nlock_dir: /from/config\n")
        monkeypatch.setenv("FILEWATCHER_POLL_SECONDS", "4")
        monkeypatch.setenv("FILEWATCHER_LOCK_DIR", "/from/env")
        s = get_settings(config_path=str(cfg))
        assert s.poll_seconds == 4.0
        assert s.lock_dir == Path("/from/env")

    def test_cli_overrides_env(self, monkeypatch):
        monkeypatch.setenv("FILEWATCHER_POLL_SECONDS", "4")
        monkeypatch.setenv("FILEWATCHER_RELEASE_LOCK_ON_ERROR", "yes")
        s = get_settings(poll_seconds=1.0, lock_dir="/from/cli", release_lock_on_error=False)
        assert s.poll_seconds == 1.0
        assert s.lock_dir == Path("/from/cli")
        assert s.release_lock_on_error is False

    def test_env_bool_parsing(self, monkeypatch):
        monkeypatch.setenv("FILEWATCHER_RELEASE_LOCK_ON_ERROR", "off")
        assert get_settings().release_lock_on_error is False


class TestValidation:

    @pytest.mark.parametrize("value", ["0", "-1", "abc"])
    def test_bad_poll_seconds(self, monkeypatch, value):
        monkeypatch.setenv("FILEWATCHER_POLL_SECONDS", value)
        with pytest.raises(ConfigError):
            get_settings()

    def test_negative_max_wait(self, monkeypatch):
        monkeypatch.setenv("FILEWATCHER_MAX_WAIT_SECONDS", "-5")
        with pytest.raises(ConfigError):
            get_settings()

    def test_bad_bool(self, monkeypatch):
        monkeypatch.setenv("FILEWATCHER_RELEASE_LOCK_ON_ERROR", "maybe")
        with pytest.raises(ConfigError):
            get_settings()
