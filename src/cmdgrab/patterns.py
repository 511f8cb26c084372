"""Prompt pattern catalogue.

Classifies a display row as a main prompt, a continuation prompt, or plain
text. Patterns are tried in catalogue order and the first match wins, so the
more specific shapes are listed before the generic ones.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Literal

log = logging.getLogger(__name__)

ShellFamily = Literal["bash", "zsh", "fish", "powershell"]

# Characters that end a prompt in common shells and themes.
PROMPT_GLYPHS = frozenset("❯›➜➤⟩»$#%>")

MAIN_PROMPT_PATTERNS: tuple[re.Pattern[str], ...] = (
    # Minimal prompt: the terminator is the first thing on the row.
    re.compile(r"^\s*[$#%](?:\s+|$)"),
    # Kali-style two-line prompt, second row.
    re.compile(r"^[└╰]─+(?:[$#]|PS>)(?:\s+|$)"),
    # oh-my-zsh robbyrussell: arrow, directory, optional git segment.
    re.compile(r"^\s*➜\s+\S+(?:\s+git:\([^)]*\))?(?:\s+[✗✔])?(?:\s+|$)"),
    # Starship, powerlevel10k and similar: glyph at the start of the row.
    re.compile(r"^\s*[❯›➜➤⟩»](?:\s+|$)"),
    # PowerShell, including remoting sessions: [host]: PS C:\path>
    re.compile(r"^(?:\[[^\]]+\]:\s*)?PS(?:\s+[^>]*)?>(?:\s+|$)"),
    # user@host:~$, [user@host dir]#, host ~ $
    re.compile(r"^.*?[\w~/\])}:]\s?[$#](?:\s+|$)"),
    # zsh %, but not a percentage like 100%.
    re.compile(r"^.*?(?:[^\W\d]|[~/\])}:])\s?%(?:\s+|$)"),
    # Theme glyph ending a longer prompt: ~/src main ❯
    re.compile(r"^.*?[❯›➜➤⟩»](?:\s+|$)"),
    # fish default: user@host ~/src>
    re.compile(r"^.*?[\w~/\])]>(?:\s+|$)"),
)

_ZSH_CONTINUATION_TAGS = (
    "dquote|quote|bquote|pipe|cmdsubst|heredoc|for|foreach|while|until|if|then|"
    "else|elif|case|select|function|subsh|cursh|cmdand|cmdor|math|mathsubst|"
    "array|brace|braceparam"
)

CONTINUATION_PATTERNS: tuple[re.Pattern[str], ...] = (
    # zsh names the open construct, possibly stacked: "for dquote> "
    re.compile(rf"^(?:(?:{_ZSH_CONTINUATION_TAGS})\s*)+>(?:\s|$)", re.IGNORECASE),
    # PowerShell
    re.compile(r"^>>(?:\s|$)"),
    # fish and Python-style
    re.compile(r"^\.\.\.(?:\s|$)"),
    # bash/sh PS2
    re.compile(r"^>(?:\s|$)"),
)

_OUTPUT_PATTERNS: tuple[re.Pattern[str], ...] = (
    # ls -l summary line
    re.compile(r"^total \d+"),
    # file permission strings
    re.compile(r"^-?[rwxdlsStT-]{9,}"),
    # version triples
    re.compile(r"^\d+\.\d+\.\d+"),
    # labels such as "Error:" or "Warning:"
    re.compile(r"^[A-Z][a-z]+:?\s"),
)

_POWERSHELL_PROMPT = re.compile(r"^(?:\[[^\]]+\]:\s*)?PS[\s>]")


@dataclass(frozen=True)
class PromptMatch:
    """Span of a prompt on a row; the command starts at ``end``."""

    offset: int
    length: int
    text: str

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass(frozen=True)
class PromptCatalogue:
    """Ordered main-prompt and continuation-prompt patterns."""

    main_patterns: tuple[re.Pattern[str], ...] = MAIN_PROMPT_PATTERNS
    continuation_patterns: tuple[re.Pattern[str], ...] = CONTINUATION_PATTERNS

    def with_custom(self, pattern: str | None) -> PromptCatalogue:
        """Return a catalogue that tries ``pattern`` before the built-in prompts.

        An empty pattern returns the catalogue unchanged; an invalid regex is
        logged and ignored.
        """
        if not pattern:
            return self
        try:
            compiled = re.compile(pattern)
        except re.error as exc:
            log.warning("ignoring invalid prompt pattern %r: %s", pattern, exc)
            return self
        log.debug("using custom prompt pattern %r", pattern)
        return replace(self, main_patterns=(compiled, *self.main_patterns))

    def detect_main_prompt(self, text: str) -> PromptMatch | None:
        """Return the first main-prompt match on ``text``, in catalogue order."""
        for pattern in self.main_patterns:
            match = pattern.search(text)
            if match:
                return PromptMatch(
                    offset=match.start(),
                    length=match.end() - match.start(),
                    text=match.group(0),
                )
        return None

    def detect_continuation(self, text: str) -> bool:
        trimmed = text.lstrip()
        return any(pattern.match(trimmed) for pattern in self.continuation_patterns)

    def continuation_length(self, text: str) -> int:
        """Return the width of the continuation prefix, or 0 if there is none."""
        trimmed = text.lstrip()
        for pattern in self.continuation_patterns:
            match = pattern.match(trimmed)
            if match:
                return len(text) - len(trimmed) + match.end()
        return 0

    def strip_continuation(self, text: str) -> str:
        return text[self.continuation_length(text):]

    def command_start(self, text: str) -> int | None:
        """Return the column where typed text begins on a prompt row.

        Continuation prompts are checked first because several of them (for
        example ``dquote>``) also look like a fish prompt.
        """
        if self.detect_continuation(text):
            return self.continuation_length(text)
        match = self.detect_main_prompt(text)
        if match:
            return match.end
        return None


DEFAULT_CATALOGUE = PromptCatalogue()


def looks_like_output(text: str) -> bool:
    """Return whether a plain row reads like command output."""
    trimmed = text.lstrip()
    return any(pattern.match(trimmed) for pattern in _OUTPUT_PATTERNS)


def looks_like_prompt(text: str, column: int) -> bool:
    """Return whether the text before ``column`` ends like a rendered prompt."""
    before = text[:column]
    if not any(glyph in before for glyph in PROMPT_GLYPHS):
        return False
    trimmed = before.rstrip()
    if not trimmed:
        return False
    if trimmed[-1] in PROMPT_GLYPHS:
        return True
    return len(trimmed) > 1 and trimmed[-2] in PROMPT_GLYPHS


def detect_shell_family(prompt_text: str) -> ShellFamily | None:
    """Guess the shell family from the prompt portion of a row."""
    prompt_text = prompt_text.rstrip()
    if _POWERSHELL_PROMPT.match(prompt_text):
        return "powershell"
    if re.search(r"[❯›]", prompt_text) or prompt_text.endswith(">"):
        return "fish"
    if prompt_text.endswith("%"):
        return "zsh"
    if prompt_text.endswith("$"):
        return "bash"
    return None
