"""Prompt construction for review and test generation."""

from __future__ import annotations

from pathlib import PurePath

from huskygpt_core.models import HuskyGPTMode, ReadFileResult

# A review answer containing this token is rendered as passing.
PERFECT_KEYWORD = "PERFECT"


def _language(file_path: str) -> str:
    suffix = PurePath(file_path).suffix.lstrip(".")
    return suffix or "text"


def build_review_prompt(file_path: str, code: str, is_diff: bool) -> str:
    kind = "diff hunk" if is_diff else "file"
    return f"""You are a strict and precise senior code reviewer.
Review the following {kind} from `{file_path}`.

Point out bugs, security problems, missing error handling and unclear code.
Be concise and actionable; quote the relevant line before each comment.
If nothing needs to change, reply with the single word {PERFECT_KEYWORD} and nothing else.

```{_language(file_path)}
{code}
```"""


def build_test_prompt(file_path: str, code: str) -> str:
    return f"""You are an experienced engineer writing unit tests.
Write a complete unit test file for `{file_path}` using the test framework
most common for its language. Cover normal behaviour and edge cases.
Reply with the test code only.

```{_language(file_path)}
{code}
```"""


def generate_prompts(file_result: ReadFileResult, mode: HuskyGPTMode) -> list[str]:
    """Return the ordered prompt list for one file.

    Test mode produces a single prompt over the whole file. Review mode
    produces one prompt per staged hunk, falling back to the whole file
    when it was read from disk.
    """
    if not file_result.file_content.strip() and not file_result.hunks:
        return []

    if mode == HuskyGPTMode.TEST:
        return [build_test_prompt(file_result.file_path, file_result.file_content)]

    if file_result.hunks:
        return [build_review_prompt(file_result.file_path, hunk, is_diff=True) for hunk in file_result.hunks]
    return [build_review_prompt(file_result.file_path, file_result.file_content, is_diff=False)]
