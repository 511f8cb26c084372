"""PTY shell loop implementation."""

from __future__ import annotations

import asyncio
import fcntl
import logging
import os
import shutil
import signal
import struct
import sys
import termios
import tty

import pyte

from cmdgrab.config import load_config, parse_hotkey
from cmdgrab.errors import ConfigError, EditorError
from cmdgrab.extractor import CommandExtractor
from cmdgrab.models import CmdgrabConfig
from cmdgrab.shell.editor import clear_sequence, edit_text, insert_payload
from cmdgrab.shell.screen import ScreenSnapshot, TrackingScreen

log = logging.getLogger(__name__)

# Ctrl-C flushes the tty input queue; give it time before typing again.
INTERRUPT_SETTLE = 0.1
BELL = b"\x07"


def _winsize(fd: int) -> tuple[int, int, int, int]:
    """Return (rows, cols, xpixel, ypixel) for the given tty fd."""
    return struct.unpack("HHHH", fcntl.ioctl(fd, termios.TIOCGWINSZ, b"\x00" * 8))


def _set_winsize(fd: int, rows: int, cols: int, xp: int = 0, yp: int = 0) -> None:
    fcntl.ioctl(fd, termios.TIOCSWINSZ, struct.pack("HHHH", rows, cols, xp, yp))


def resolve_shell(path: str | None = None) -> str:
    """Return the shell to run: ``path``, then $SHELL, then /bin/sh."""
    shell = path or os.environ.get("SHELL") or "/bin/sh"
    resolved = shutil.which(shell)
    if resolved is None:
        raise RuntimeError(f"shell not found: {shell}")
    return resolved


def _spawn(shell: str, winsize: tuple[int, int, int, int]) -> tuple[int, int]:
    """Start ``shell`` on a new PTY and return (pid, master_fd)."""
    master_fd, slave_fd = os.openpty()
    _set_winsize(slave_fd, *winsize)

    pid = os.fork()
    if pid == 0:
        # Child process: exec the shell attached to the slave PTY.
        os.close(master_fd)
        os.setsid()
        fcntl.ioctl(slave_fd, termios.TIOCSCTTY, 0)
        os.dup2(slave_fd, 0)
        os.dup2(slave_fd, 1)
        os.dup2(slave_fd, 2)
        if slave_fd > 2:
            os.close(slave_fd)
        env = dict(os.environ, CMDGRAB_ACTIVE="1")
        os.execvpe(shell, [shell], env)
        os._exit(1)

    os.close(slave_fd)
    return pid, master_fd


class ShellBridge:
    """Shuttles bytes between the real terminal and the shell's PTY.

    Shell output is mirrored into a ``TrackingScreen`` so the extractor can
    read the display. The hotkey is swallowed and opens the command at the
    prompt in the user's editor.
    """

    def __init__(
        self,
        pid: int,
        master_fd: int,
        stdin_fd: int,
        stdout_fd: int,
        config: CmdgrabConfig,
        saved_attrs: list,
    ) -> None:
        self.pid = pid
        self.master_fd = master_fd
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self.config = config
        self.saved_attrs = saved_attrs
        self.hotkey = parse_hotkey(config.hotkey)

        rows, cols, _, _ = _winsize(stdin_fd)
        self.screen = TrackingScreen(cols, rows)
        self.stream = pyte.ByteStream(self.screen)
        self.snapshot = ScreenSnapshot(self.screen)

        self.extractor = CommandExtractor(config)
        self.session_id = f"pty-{pid}"
        self.handle = self.extractor.attach(self.session_id, self.snapshot)

        self.editing = False
        self._task: asyncio.Task | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._closed: asyncio.Future | None = None

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        self._loop = loop
        self._closed = loop.create_future()
        loop.add_reader(self.master_fd, self.on_shell_output)
        loop.add_reader(self.stdin_fd, self.on_user_input)
        loop.add_signal_handler(signal.SIGWINCH, self.on_resize)
        try:
            await self._closed
        finally:
            loop.remove_reader(self.master_fd)
            loop.remove_reader(self.stdin_fd)
            loop.remove_signal_handler(signal.SIGWINCH)
            if self._task is not None:
                self._task.cancel()
            self.handle.dispose()

    def inject(self, data: bytes) -> None:
        os.write(self.master_fd, data)

    def on_shell_output(self) -> None:
        try:
            data = os.read(self.master_fd, 4096)
        except OSError:
            data = b""
        if not data:
            self._finish()
            return

        self.stream.feed(data)
        os.write(self.stdout_fd, data)
        if b"\n" in data:
            self.extractor.on_line_feed(self.session_id)
        self.extractor.on_write_parsed(self.session_id)

    def on_user_input(self) -> None:
        try:
            data = os.read(self.stdin_fd, 1024)
        except OSError:
            data = b""
        if not data:
            self._finish()
            return
        # Keystrokes during a probe would land in the middle of the command.
        if self.editing:
            return

        index = data.find(self.hotkey)
        if index < 0:
            os.write(self.master_fd, data)
            return
        if index:
            os.write(self.master_fd, data[:index])
        self.editing = True
        self._task = asyncio.ensure_future(self.edit_current_command())

    def on_resize(self) -> None:
        try:
            rows, cols, xp, yp = _winsize(self.stdin_fd)
            _set_winsize(self.master_fd, rows, cols, xp, yp)
            os.kill(self.pid, signal.SIGWINCH)
        except OSError as e:
            log.debug("could not forward window size: %s", e)
            return
        self.screen.resize(rows, cols)

    async def edit_current_command(self) -> None:
        """Extract the command at the prompt, edit it, and type it back."""
        try:
            result = await self.extractor.extract(self.session_id, self.snapshot, self.inject)
            if result is None:
                os.write(self.stdout_fd, BELL)
                return

            edited = await self._run_editor(result.command)
            if edited is None or edited == result.command:
                return

            self.inject(clear_sequence(result))
            if result.multi_line:
                await asyncio.sleep(INTERRUPT_SETTLE)
            payload = insert_payload(edited, self.snapshot.bracketed_paste)
            if self.config.execute_immediately:
                payload += b"\r"
            self.inject(payload)
        except EditorError as e:
            os.write(self.stdout_fd, f"\r\ncmdgrab error: {e}\r\n".encode())
        finally:
            self.editing = False

    async def _run_editor(self, command: str) -> str | None:
        # The editor owns the terminal; shell output waits in the PTY until it exits.
        self._loop.remove_reader(self.stdin_fd)
        self._loop.remove_reader(self.master_fd)
        termios.tcsetattr(self.stdin_fd, termios.TCSADRAIN, self.saved_attrs)
        try:
            return await asyncio.to_thread(edit_text, command, self.config.editor)
        finally:
            tty.setraw(self.stdin_fd)
            self._loop.add_reader(self.master_fd, self.on_shell_output)
            self._loop.add_reader(self.stdin_fd, self.on_user_input)

    def _finish(self) -> None:
        if self._closed is not None and not self._closed.done():
            self._closed.set_result(None)


def shell_loop(shell: str | None = None) -> int:
    """Run the PTY-based interactive shell loop."""
    if not sys.stdin.isatty():
        print("Error: stdin must be a terminal", file=sys.stderr)
        return 1
    if not hasattr(os, "fork"):
        print("Error: interactive shell mode requires a POSIX environment", file=sys.stderr)
        return 1

    config = load_config()
    try:
        parse_hotkey(config.hotkey)
        executable = resolve_shell(shell)
    except (ConfigError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    stdin_fd = sys.stdin.fileno()
    stdout_fd = sys.stdout.fileno()
    pid, master_fd = _spawn(executable, _winsize(stdin_fd))
    log.debug("started %s as pid %d", executable, pid)

    # Put the real terminal into raw mode so keystrokes pass through directly.
    old_attrs = termios.tcgetattr(stdin_fd)
    tty.setraw(stdin_fd)
    try:
        bridge = ShellBridge(pid, master_fd, stdin_fd, stdout_fd, config, old_attrs)
        asyncio.run(bridge.run())
    finally:
        termios.tcsetattr(stdin_fd, termios.TCSAFLUSH, old_attrs)
        os.close(master_fd)

    _, status = os.waitpid(pid, 0)
    return os.waitstatus_to_exitcode(status)
