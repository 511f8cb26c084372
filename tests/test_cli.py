"""Tests for the cmdgrab command-line interface."""

import json
from unittest.mock import patch

import pytest

from cmdgrab.cli import main
from cmdgrab.config import load_config


@pytest.fixture(autouse=True)
def isolated_config(cmdgrab_config_paths):
    return cmdgrab_config_paths


class TestDispatch:
    @pytest.fixture(autouse=True)
    def quiet_shell_logging(self, config_dir, monkeypatch):
        monkeypatch.setattr("cmdgrab.cli.shell.CONFIG_DIR", config_dir)
        monkeypatch.setattr("cmdgrab.cli.shell.LOG_FILE", config_dir / "cmdgrab.log")
        with patch("cmdgrab.cli.shell.logging.basicConfig"):
            yield

    def test_defaults_to_shell(self, config_dir):
        with patch("cmdgrab.cli.shell.shell_loop", return_value=0) as shell_loop:
            assert main([]) == 0

        shell_loop.assert_called_once_with(None)
        assert config_dir.is_dir()

    def test_shell_subcommand_with_path(self):
        with patch("cmdgrab.cli.shell.shell_loop", return_value=3) as shell_loop:
            assert main(["shell", "--shell", "/bin/zsh"]) == 3

        shell_loop.assert_called_once_with("/bin/zsh")

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["--version"])

        assert excinfo.value.code == 0
        assert "cmdgrab" in capsys.readouterr().out


class TestScanCommand:
    def test_prints_command(self, tmp_path, capsys):
        recording = tmp_path / "typescript"
        recording.write_bytes(b"$ ls\r\nfoo\r\nuser@host:~$ git status")

        assert main(["scan", str(recording)]) == 0

        assert capsys.readouterr().out == "git status\n"

    def test_json_output(self, tmp_path, capsys):
        recording = tmp_path / "typescript"
        recording.write_bytes(b"$ echo \\\r\n> world")

        assert main(["scan", str(recording), "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["command"] == "echo \\\nworld"
        assert data["multi_line"] is True

    def test_nothing_found(self, tmp_path, capsys):
        recording = tmp_path / "typescript"
        recording.write_bytes(b"user@host:~$ ")

        assert main(["scan", str(recording)]) == 1
        assert "No command found" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["scan", str(tmp_path / "missing")]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_narrow_terminal(self, tmp_path, capsys):
        recording = tmp_path / "typescript"
        recording.write_bytes(b"$ echo abcdefghij")

        assert main(["scan", str(recording), "--columns", "10"]) == 0
        assert capsys.readouterr().out == "echo abcdefghij\n"

    def test_rejects_bad_size(self, tmp_path):
        recording = tmp_path / "typescript"
        recording.write_bytes(b"$ ls")

        assert main(["scan", str(recording), "--rows", "0"]) == 2


class TestConfigureCommand:
    def test_saves_options(self, capsys):
        assert main(["configure", "--hotkey", "ctrl-g", "--editor", "nano", "--execute"]) == 0

        config = load_config()
        assert config.hotkey == "ctrl-g"
        assert config.editor == "nano"
        assert config.execute_immediately is True
        assert "Configuration saved" in capsys.readouterr().out

    def test_prompt_pattern_set_and_clear(self):
        assert main(["configure", "--prompt-pattern", r"^\S+ :: "]) == 0
        assert load_config().prompt_pattern == r"^\S+ :: "

        assert main(["configure", "--clear-prompt-pattern"]) == 0
        assert load_config().prompt_pattern is None

    def test_invalid_prompt_pattern(self, capsys, config_file):
        assert main(["configure", "--prompt-pattern", "(unclosed"]) == 1
        assert "invalid prompt pattern" in capsys.readouterr().err
        assert not config_file.exists()

    def test_invalid_hotkey(self, capsys, config_file):
        assert main(["configure", "--hotkey", "alt-x"]) == 1
        assert "unsupported hotkey" in capsys.readouterr().err
        assert not config_file.exists()

    def test_conflicting_prompt_options(self, capsys):
        assert main(["configure", "--prompt-pattern", "x", "--clear-prompt-pattern"]) == 2
        assert "cannot be used together" in capsys.readouterr().err

    def test_no_options_shows_current_config(self, capsys, config_file):
        assert main(["configure"]) == 0

        out = capsys.readouterr().out
        assert "hotkey: ctrl-x" in out
        assert not config_file.exists()

    def test_execute_flags_are_exclusive(self):
        with pytest.raises(SystemExit):
            main(["configure", "--execute", "--no-execute"])
