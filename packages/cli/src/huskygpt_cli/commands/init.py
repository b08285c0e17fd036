"""init command: write .huskygpt.yml and install the pre-commit hook."""

from __future__ import annotations

import logging
import stat
import subprocess
from pathlib import Path

import click
import yaml
from rich.console import Console

console = Console()
logger = logging.getLogger(__name__)

HOOK_MARKER = "# installed by huskygpt"

_HOOK_TEMPLATE = """\
#!/bin/sh
{marker}
# Run huskygpt on staged changes before every commit.
huskygpt {command}
"""


@click.command("init")
@click.option(
    "--mode",
    type=click.Choice(["review", "test"]),
    default=None,
    help="What the pre-commit hook runs. Prompted for when omitted.",
)
@click.option("--no-hook", "no_hook", is_flag=True, help="Only write .huskygpt.yml; do not touch git hooks.")
@click.option("--force", is_flag=True, help="Overwrite an existing pre-commit hook not written by huskygpt.")
@click.pass_context
def init_cmd(ctx, mode: str | None, no_hook: bool, force: bool):
    """Set up huskygpt in the current repository.

    Creates .huskygpt.yml and installs a git pre-commit hook that runs
    `huskygpt review` (or `huskygpt test`) on every commit.
    """
    console.print("\n[bold cyan]huskygpt init[/bold cyan]\n")

    if mode is None:
        mode = click.prompt("Hook mode", type=click.Choice(["review", "test"]), default="review")

    config_path = Path((ctx.obj or {}).get("config_path", ".huskygpt.yml"))
    _write_config(config_path, {"mode": mode})
    console.print(f"[green]Wrote {config_path}[/green]")

    if not no_hook:
        hooks_dir = _git_hooks_dir()
        if hooks_dir is None:
            raise click.ClickException("Not inside a git repository; run `git init` first or pass --no-hook.")
        hook_path = _install_hook(hooks_dir, mode, force)
        console.print(f"[green]Installed {hook_path}[/green]")

    console.print(
        "\n[yellow]Remember to export [bold]OPENAI_API_KEY[/bold] in the shell you commit from.[/yellow]"
    )


def _git_hooks_dir() -> Path | None:
    """Return the hooks directory git uses for this repository, or None outside a repo."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--git-path", "hooks"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return Path(result.stdout.strip())


def _install_hook(hooks_dir: Path, mode: str, force: bool) -> Path:
    """Write an executable pre-commit hook; refuse to clobber a foreign one."""
    hook_path = hooks_dir / "pre-commit"
    if hook_path.exists() and HOOK_MARKER not in hook_path.read_text() and not force:
        raise click.ClickException(f"{hook_path} already exists. Re-run with --force to replace it.")

    hooks_dir.mkdir(parents=True, exist_ok=True)
    hook_path.write_text(_HOOK_TEMPLATE.format(marker=HOOK_MARKER, command=mode))
    hook_path.chmod(hook_path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    logger.debug("Wrote pre-commit hook to %s", hook_path)
    return hook_path


def _write_config(path: Path, config: dict) -> None:
    """Write or update the config file, preserving any existing keys."""
    existing: dict = {}
    if path.exists():
        try:
            existing = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise click.ClickException(f"Invalid YAML in {path}: {e}")
        if not isinstance(existing, dict):
            raise click.ClickException(f"Expected a mapping at the top of {path}; fix or remove it first.")
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))
