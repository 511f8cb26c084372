"""Tests for the PTY shell bridge."""

from unittest.mock import MagicMock, patch

import pytest

from cmdgrab.errors import EditorError
from cmdgrab.models import CmdgrabConfig
from cmdgrab.shell.loop import ShellBridge

STDIN_FD = 0
MASTER_FD = 5


@pytest.fixture()
def bridge():
    bridge = ShellBridge.__new__(ShellBridge)
    bridge.stdin_fd = STDIN_FD
    bridge.master_fd = MASTER_FD
    bridge.saved_attrs = []
    bridge.config = CmdgrabConfig()
    bridge._loop = MagicMock()
    return bridge


@pytest.fixture()
def terminal_modes():
    with patch("cmdgrab.shell.loop.termios.tcsetattr"), patch("cmdgrab.shell.loop.tty.setraw"):
        yield


class TestRunEditor:
    @pytest.mark.asyncio
    async def test_shell_output_paused_while_editing(self, bridge, terminal_modes):
        seen = {}

        def fake_edit(text, editor):
            seen["removed"] = [call.args[0] for call in bridge._loop.remove_reader.call_args_list]
            seen["added"] = bridge._loop.add_reader.call_count
            return "ls -la"

        with patch("cmdgrab.shell.loop.edit_text", side_effect=fake_edit):
            assert await bridge._run_editor("ls") == "ls -la"

        assert sorted(seen["removed"]) == [STDIN_FD, MASTER_FD]
        assert seen["added"] == 0
        bridge._loop.add_reader.assert_any_call(MASTER_FD, bridge.on_shell_output)
        bridge._loop.add_reader.assert_any_call(STDIN_FD, bridge.on_user_input)

    @pytest.mark.asyncio
    async def test_readers_restored_when_editor_fails(self, bridge, terminal_modes):
        with patch("cmdgrab.shell.loop.edit_text", side_effect=EditorError("no editor")):
            with pytest.raises(EditorError):
                await bridge._run_editor("ls")

        assert bridge._loop.add_reader.call_count == 2
        bridge._loop.add_reader.assert_any_call(MASTER_FD, bridge.on_shell_output)
