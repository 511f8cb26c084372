"""Result model for command extraction."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from cmdgrab.patterns import ShellFamily

Confidence = Literal["high", "medium", "low"]


class ExtractionResult(BaseModel):
    """A command lifted from the terminal display."""

    model_config = ConfigDict(frozen=True)

    command: str = Field(description=(
        "Command text with prompt and continuation decoration removed. "
        "Rows that are genuine line breaks are joined with a newline; "
        "width-wrapped rows are joined with nothing."
    ))
    multi_line: bool = Field(
        default=False,
        description="True when the command spans more than one logical line.",
    )
    start_row: int = Field(description="Absolute row where the command starts.")
    end_row: int = Field(description="Absolute row where the command ends.")
    confidence: Confidence = Field(description=(
        "How the boundary was derived: 'high' for cursor probing or a live prompt "
        "marker, 'medium' for a recognized prompt row, 'low' when the start was "
        "inferred from a plain row."
    ))
    shell: ShellFamily | None = Field(
        default=None,
        description="Shell family guessed from the prompt, when recognizable.",
    )
