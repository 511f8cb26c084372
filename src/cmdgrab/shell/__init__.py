"""Terminal host: a PTY shell wrapper that edits the typed command on a hotkey.

Usage:
    cmdgrab shell

Spawns the user's shell inside a PTY. All I/O passes through transparently;
shell output is also replayed into a virtual screen. Pressing the hotkey
(Ctrl-X by default) lifts the command being typed out of that screen, opens
it in $VISUAL/$EDITOR, and types the edited text back at the prompt.
"""

from cmdgrab.shell.loop import shell_loop

__all__ = ["shell_loop"]
