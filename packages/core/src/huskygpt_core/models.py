"""Data models shared by the reader, prompt generator and reviewer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class HuskyGPTMode(str, Enum):
    """Selects which OpenAI call shape a run uses."""

    TEST = "test"  # single-turn text completion
    REVIEW = "review"  # chat completion


@dataclass
class ReadFileResult:
    """One changed file as seen by the prompt generator.

    ``hunks`` holds the staged diff split on ``@@`` headers. It is empty when
    the file was read directly from disk rather than from the git index.
    """

    file_path: str
    file_content: str
    hunks: list[str] = field(default_factory=list)
