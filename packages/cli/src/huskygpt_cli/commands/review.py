"""review and test commands: run the model over changed files."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click
from rich.console import Console

from huskygpt_core.config import HuskyGPTOptions, build_options, load_config
from huskygpt_core.exceptions import ConfigError, ReadError
from huskygpt_core.models import HuskyGPTMode, ReadFileResult
from huskygpt_core.reader import read_file, read_staged_files
from huskygpt_core.reviewer import RUN_FAILED_MESSAGE, ReviewRunner
from huskygpt_core.utils.code import replace_code_block

console = Console()


def _load(ctx: click.Context, mode: HuskyGPTMode, cli_overrides: dict) -> tuple[dict, HuskyGPTOptions]:
    obj = ctx.obj or {}
    try:
        config = load_config(obj.get("config_path", ".huskygpt.yml"), cli_overrides=cli_overrides)
        if obj.get("debug"):
            config["debug"] = True
        if not config.get("openai_key"):
            raise click.UsageError("OPENAI_API_KEY environment variable is not set.")
        options = build_options(config, mode=mode)
    except ConfigError as e:
        raise click.ClickException(str(e))
    return config, options


def _read(files: tuple[str, ...], config: dict) -> list[ReadFileResult]:
    try:
        if files:
            return [read_file(path, config) for path in files]
        return read_staged_files(config)
    except ReadError as e:
        raise click.ClickException(str(e))


async def _run_all_files(runner: ReviewRunner, file_results: list[ReadFileResult]) -> list[str]:
    # One file at a time, so spinners and typed output never interleave.
    outputs = []
    try:
        for file_result in file_results:
            console.print(f"\n[bold cyan]{file_result.file_path}[/bold cyan]")
            outputs.append(await runner.run(file_result))
    finally:
        await runner.aclose()
    return outputs


def _print_output(file_path: str, output: str) -> None:
    if output == RUN_FAILED_MESSAGE:
        console.print(f"{file_path}: {RUN_FAILED_MESSAGE}", style="red", markup=False, highlight=False)
        return
    console.print(f"\n[bold]{file_path}[/bold]")
    console.print(replace_code_block(output), markup=False, highlight=False)


def generated_test_path(source_path: str, config: dict) -> Path:
    """Where a generated test for ``source_path`` is written.

    src/utils/math.ts -> src/utils/__tests__/math.test.ts
    """
    source = Path(source_path)
    name = f"{source.stem}{config.get('test_file_extension', '.test')}{source.suffix}"
    return source.parent / config.get("test_file_dir", "__tests__") / name


@click.command("review")
@click.option("--file", "files", multiple=True, type=click.Path(), help="Review these files instead of staged changes.")
@click.option(
    "--typing/--no-typing",
    "typing_flag",
    default=None,
    help="Type out each answer with a spinner. Overrides review_typing in the config file.",
)
@click.pass_context
def review_cmd(ctx, files: tuple[str, ...], typing_flag: bool | None):
    """Review staged changes with an OpenAI chat model.

    \b
    Required environment variables:
      OPENAI_API_KEY       OpenAI API key
    """
    review_typing = None if typing_flag is None else str(typing_flag).lower()
    config, options = _load(ctx, HuskyGPTMode.REVIEW, {"review_typing": review_typing})

    file_results = _read(files, config)
    if not file_results:
        console.print("[yellow]No staged code files to review.[/yellow]")
        return

    runner = ReviewRunner(options)
    outputs = asyncio.run(_run_all_files(runner, file_results))

    for file_result, output in zip(file_results, outputs):
        # Typed answers are already on screen; a failure message never is.
        if not options.typing_enabled or output == RUN_FAILED_MESSAGE:
            _print_output(file_result.file_path, output)


@click.command("test")
@click.option("--file", "files", multiple=True, type=click.Path(), help="Generate tests for these files.")
@click.option("--write/--no-write", default=True, show_default=True, help="Save generated tests next to the sources.")
@click.pass_context
def test_cmd(ctx, files: tuple[str, ...], write: bool):
    """Generate unit tests for staged changes with an OpenAI completion model.

    \b
    Required environment variables:
      OPENAI_API_KEY       OpenAI API key
    """
    config, options = _load(ctx, HuskyGPTMode.TEST, {})

    file_results = _read(files, config)
    if not file_results:
        console.print("[yellow]No staged code files to generate tests for.[/yellow]")
        return

    runner = ReviewRunner(options)
    outputs = asyncio.run(_run_all_files(runner, file_results))

    for file_result, output in zip(file_results, outputs):
        if output == RUN_FAILED_MESSAGE:
            _print_output(file_result.file_path, output)
            continue
        if not write:
            if not options.typing_enabled:
                _print_output(file_result.file_path, output)
            continue
        if not output.strip():
            continue
        target = generated_test_path(file_result.file_path, config)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(replace_code_block(output).strip() + "\n", encoding="utf-8")
        console.print(f"[green]Wrote {target}[/green]")
