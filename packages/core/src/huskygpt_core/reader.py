"""Read changed files from the git index or from disk."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from huskygpt_core.exceptions import ReadError
from huskygpt_core.models import ReadFileResult
from huskygpt_core.utils.code import is_code_file, is_excluded

logger = logging.getLogger(__name__)

_GIT_TIMEOUT = 30


def _git(*args: str) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=_GIT_TIMEOUT,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        raise ReadError(f"Could not run git {args[0]}: {e}") from e
    if result.returncode != 0:
        raise ReadError(f"git {' '.join(args)} failed: {result.stderr.strip()}")
    return result.stdout


def _truncate(text: str, max_chars: int, label: str) -> str:
    if max_chars and len(text) > max_chars:
        return text[:max_chars] + f"\n... [{label} truncated]"
    return text


def split_hunks(patch: str) -> list[str]:
    """Split a unified diff into hunks, one string per ``@@`` header.

    File headers (``diff --git``, ``---``, ``+++``, ``index``) before the
    first hunk are dropped.
    """
    hunks: list[str] = []
    current: list[str] | None = None
    for line in patch.splitlines():
        if line.startswith("@@"):
            if current:
                hunks.append("\n".join(current))
            current = [line]
        elif current is not None:
            current.append(line)
    if current:
        hunks.append("\n".join(current))
    return hunks


def list_staged_files() -> list[str]:
    """Return paths of added, copied or modified files in the git index."""
    output = _git("diff", "--cached", "--name-only", "--diff-filter=ACM")
    return [line.strip() for line in output.splitlines() if line.strip()]


def read_staged_files(config: dict) -> list[ReadFileResult]:
    """Read every staged code file that is not excluded by the config."""
    max_chars = config.get("max_chars_per_file", 20000)
    exclude_patterns = config.get("exclude", [])

    results = []
    for path in list_staged_files():
        if is_excluded(path, exclude_patterns) or not is_code_file(path):
            logger.debug("Skipping staged file %s", path)
            continue
        content = _git("show", f":{path}")
        patch = _git("diff", "--cached", "-U3", "--", path)
        hunks = [_truncate(hunk, max_chars, "diff") for hunk in split_hunks(patch)]
        results.append(
            ReadFileResult(
                file_path=path,
                file_content=_truncate(content, max_chars, "file"),
                hunks=hunks,
            )
        )
    return results


def read_file(path: str, config: dict) -> ReadFileResult:
    """Read a single file from disk; the result carries no hunks."""
    p = Path(path)
    try:
        content = p.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ReadError(f"Could not read {path}: {e}") from e
    return ReadFileResult(
        file_path=str(p),
        file_content=_truncate(content, config.get("max_chars_per_file", 20000), "file"),
    )
