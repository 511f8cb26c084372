"""Unit tests for cmdgrab.config."""

import json
import stat

import pytest

from cmdgrab.config import CmdgrabConfig, load_config, parse_hotkey, save_config
from cmdgrab.errors import ConfigError


@pytest.fixture(autouse=True)
def isolated_config(cmdgrab_config_paths):
    """Apply shared config path isolation to every test in this module."""
    return cmdgrab_config_paths


# ---------------------------------------------------------------------------
# load_config
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_no_file_returns_defaults(self, config_file):
        assert not config_file.exists()
        assert load_config() == CmdgrabConfig()

    def test_loads_values_from_file(self, config_dir, config_file):
        config_dir.mkdir(parents=True)
        config_file.write_text(json.dumps({"hotkey": "ctrl-g", "max_scan_rows": 20}))

        result = load_config()

        assert result.hotkey == "ctrl-g"
        assert result.max_scan_rows == 20

    def test_malformed_json_falls_back_to_defaults(self, config_dir, config_file, caplog):
        config_dir.mkdir(parents=True)
        config_file.write_text("{ invalid json")

        with caplog.at_level("WARNING", logger="cmdgrab.config"):
            result = load_config()

        assert result == CmdgrabConfig()
        assert "falling back to defaults" in caplog.text

    def test_invalid_values_fall_back_to_defaults(self, config_dir, config_file, caplog):
        config_dir.mkdir(parents=True)
        config_file.write_text(json.dumps({"probe_timeout": -1}))

        with caplog.at_level("WARNING", logger="cmdgrab.config"):
            result = load_config()

        assert result == CmdgrabConfig()
        assert "invalid config values" in caplog.text

    def test_non_object_json_is_ignored(self, config_dir, config_file, caplog):
        config_dir.mkdir(parents=True)
        config_file.write_text(json.dumps(["ctrl-g"]))

        with caplog.at_level("WARNING", logger="cmdgrab.config"):
            result = load_config()

        assert result == CmdgrabConfig()
        assert "not a JSON object" in caplog.text

    def test_prompt_pattern_env_overrides_file(self, config_dir, config_file, monkeypatch):
        config_dir.mkdir(parents=True)
        config_file.write_text(json.dumps({"prompt_pattern": "^a> "}))
        monkeypatch.setenv("CMDGRAB_PROMPT_PATTERN", "^b> ")

        assert load_config().prompt_pattern == "^b> "

    @pytest.mark.parametrize(
        "raw,expected",
        [("1", True), ("yes", True), ("TRUE", True), ("0", False), ("off", False)],
    )
    def test_execute_env(self, monkeypatch, raw, expected):
        monkeypatch.setenv("CMDGRAB_EXECUTE", raw)
        assert load_config().execute_immediately is expected

    def test_unrecognized_execute_env_is_ignored(
        self, config_dir, config_file, monkeypatch, caplog
    ):
        config_dir.mkdir(parents=True)
        config_file.write_text(json.dumps({"execute_immediately": True}))
        monkeypatch.setenv("CMDGRAB_EXECUTE", "maybe")

        with caplog.at_level("WARNING", logger="cmdgrab.config"):
            result = load_config()

        assert result.execute_immediately is True
        assert "CMDGRAB_EXECUTE" in caplog.text

    def test_hotkey_and_editor_env(self, monkeypatch):
        monkeypatch.setenv("CMDGRAB_HOTKEY", "ctrl-o")
        monkeypatch.setenv("CMDGRAB_EDITOR", "nano")

        result = load_config()

        assert result.hotkey == "ctrl-o"
        assert result.editor == "nano"

    def test_tightens_config_file_permissions(self, config_dir, config_file, caplog):
        config_dir.mkdir(parents=True, mode=0o700)
        config_file.write_text("{}")
        config_file.chmod(0o644)

        with caplog.at_level("WARNING", logger="cmdgrab.config"):
            load_config()

        assert stat.S_IMODE(config_file.stat().st_mode) == 0o600
        assert "tightened permissions" in caplog.text


# ---------------------------------------------------------------------------
# save_config
# ---------------------------------------------------------------------------


class TestSaveConfig:
    def test_round_trips_through_load(self):
        save_config(CmdgrabConfig(hotkey="ctrl-g", editor="nano"))

        result = load_config()

        assert result.hotkey == "ctrl-g"
        assert result.editor == "nano"

    def test_omits_unset_values(self, config_file):
        save_config(CmdgrabConfig())

        saved = json.loads(config_file.read_text())

        assert "prompt_pattern" not in saved
        assert "editor" not in saved

    def test_file_and_directory_are_owner_only(self, config_dir, config_file):
        save_config(CmdgrabConfig())

        assert stat.S_IMODE(config_file.stat().st_mode) == 0o600
        assert stat.S_IMODE(config_dir.stat().st_mode) == 0o700

    def test_leaves_no_temp_files(self, config_dir):
        save_config(CmdgrabConfig())
        save_config(CmdgrabConfig(hotkey="ctrl-g"))

        assert [path.name for path in config_dir.iterdir()] == ["config.json"]


# ---------------------------------------------------------------------------
# parse_hotkey
# ---------------------------------------------------------------------------


class TestParseHotkey:
    @pytest.mark.parametrize(
        "name,expected",
        [("ctrl-x", b"\x18"), ("Ctrl+A", b"\x01"), ("c-g", b"\x07"), (" CTRL-o ", b"\x0f")],
    )
    def test_control_chords(self, name, expected):
        assert parse_hotkey(name) == expected

    @pytest.mark.parametrize("name", ["alt-x", "x", "ctrl-xx", "ctrl-[", "ctrl-?", ""])
    def test_rejects_other_keys(self, name):
        with pytest.raises(ConfigError):
            parse_hotkey(name)
