"""Configuration model for cmdgrab."""

from pydantic import BaseModel, Field

DEFAULT_HOTKEY = "ctrl-x"


class CmdgrabConfig(BaseModel):
    """Runtime configuration for cmdgrab."""

    probe_timeout: float = Field(
        default=0.5,
        gt=0,
        description="Seconds to wait for the cursor to settle after one probe sequence.",
    )
    probe_interval: float = Field(
        default=0.02,
        gt=0,
        description="Seconds between cursor samples while probing.",
    )
    stable_readings: int = Field(
        default=3,
        ge=1,
        description="Consecutive identical cursor samples that count as settled.",
    )
    settle_delay: float = Field(
        default=0.05,
        ge=0,
        description=(
            "Seconds to wait after a line feed before checking for a new prompt. "
            "Prompts are often drawn in several writes."
        ),
    )
    max_scan_rows: int = Field(
        default=50,
        ge=1,
        description="Rows the heuristic scan and the boundary expander may walk back.",
    )
    max_prompt_column: int = Field(
        default=100,
        ge=1,
        description="Cursor columns beyond this are never taken as the end of a prompt.",
    )
    max_markers: int = Field(
        default=100,
        ge=1,
        description="Prompt markers kept per session; the oldest is dropped first.",
    )
    prompt_pattern: str | None = Field(
        default=None,
        description=(
            "Custom prompt regex for non-standard prompts (e.g. '❯\\s*$'), tried "
            "before the built-in patterns. Overridden by CMDGRAB_PROMPT_PATTERN."
        ),
    )
    execute_immediately: bool = Field(
        default=False,
        description=(
            "Press Enter after inserting the edited command. "
            "Overridden by CMDGRAB_EXECUTE."
        ),
    )
    hotkey: str = Field(
        default=DEFAULT_HOTKEY,
        description="Key that opens the current command in the editor (e.g. 'ctrl-x').",
    )
    editor: str | None = Field(
        default=None,
        description=(
            "Editor command line. Falls back to $VISUAL, then $EDITOR, then vi. "
            "Overridden by CMDGRAB_EDITOR."
        ),
    )
