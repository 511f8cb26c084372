"""Unit tests for the editor round trip helpers."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from cmdgrab.errors import EditorError
from cmdgrab.models import ExtractionResult
from cmdgrab.shell.editor import (
    INTERRUPT,
    KILL_LINE,
    clear_sequence,
    edit_text,
    insert_payload,
    resolve_editor,
)


def _result(command: str) -> ExtractionResult:
    return ExtractionResult(
        command=command,
        multi_line="\n" in command,
        start_row=0,
        end_row=command.count("\n"),
        confidence="high",
    )


def _editor_writing(text: str, returncode: int = 0, seen: list | None = None):
    def fake_run(argv, check):
        if seen is not None:
            seen.append(list(argv))
        Path(argv[-1]).write_text(text, encoding="utf-8")
        return subprocess.CompletedProcess(argv, returncode)

    return fake_run


class TestResolveEditor:
    def test_explicit_editor_wins(self, monkeypatch):
        monkeypatch.setenv("VISUAL", "nano")
        assert resolve_editor("code --wait") == ["code", "--wait"]

    def test_visual_before_editor(self, monkeypatch):
        monkeypatch.setenv("VISUAL", "nano")
        monkeypatch.setenv("EDITOR", "emacs")
        assert resolve_editor() == ["nano"]

    def test_falls_back_to_vi(self, monkeypatch):
        monkeypatch.delenv("VISUAL", raising=False)
        monkeypatch.delenv("EDITOR", raising=False)
        assert resolve_editor() == ["vi"]

    def test_invalid_command(self):
        with pytest.raises(EditorError):
            resolve_editor('"unterminated')


class TestEditText:
    def test_returns_edited_text(self):
        seen = []
        with patch("cmdgrab.shell.editor.subprocess.run", side_effect=_editor_writing("ls -l\n", seen=seen)):
            result = edit_text("ls", editor="myeditor --wait")

        assert result == "ls -l"
        assert seen[0][:2] == ["myeditor", "--wait"]
        assert not Path(seen[0][-1]).exists()

    def test_editor_receives_original_text(self):
        contents = []

        def fake_run(argv, check):
            contents.append(Path(argv[-1]).read_text(encoding="utf-8"))
            return subprocess.CompletedProcess(argv, 0)

        with patch("cmdgrab.shell.editor.subprocess.run", side_effect=fake_run):
            result = edit_text("echo \\\nworld", editor="ed")

        assert contents == ["echo \\\nworld\n"]
        assert result == "echo \\\nworld"

    def test_nonzero_exit_cancels(self):
        with patch("cmdgrab.shell.editor.subprocess.run", side_effect=_editor_writing("rm -rf /", 1)):
            assert edit_text("ls", editor="ed") is None

    def test_empty_file_cancels(self):
        with patch("cmdgrab.shell.editor.subprocess.run", side_effect=_editor_writing("\n\n")):
            assert edit_text("ls", editor="ed") is None

    def test_missing_editor(self):
        with patch("cmdgrab.shell.editor.subprocess.run", side_effect=FileNotFoundError("nope")):
            with pytest.raises(EditorError, match="could not run editor"):
                edit_text("ls", editor="no-such-editor")


class TestClearSequence:
    def test_single_row_is_killed_in_place(self):
        assert clear_sequence(_result("ls -la")) == KILL_LINE

    def test_multi_row_is_interrupted(self):
        assert clear_sequence(_result("echo \\\nworld")) == INTERRUPT


class TestInsertPayload:
    def test_single_line(self):
        assert insert_payload("ls -la") == b"ls -la"
        assert insert_payload("ls -la", bracketed_paste=True) == b"ls -la"

    def test_multi_line_with_bracketed_paste(self):
        payload = insert_payload("echo \\\nworld", bracketed_paste=True)
        assert payload == b"\x1b[200~echo \\\nworld\x1b[201~"

    def test_multi_line_without_bracketed_paste(self):
        assert insert_payload("echo \\\n  world") == b"echo world"
        assert insert_payload("cd /tmp\nls") == b"cd /tmp ls"

    def test_non_ascii(self):
        assert insert_payload("echo héllo") == "echo héllo".encode()
