"""CLI entry point for huskygpt.

Commands:
  review   review staged changes (or given files) with a chat model
  test     generate unit tests for staged changes (or given files)
  init     write .huskygpt.yml and install the pre-commit hook
"""

from __future__ import annotations

import importlib.metadata
import logging
import os

import click
from rich.console import Console
from rich.logging import RichHandler

from huskygpt_cli.commands.init import init_cmd
from huskygpt_cli.commands.review import review_cmd, test_cmd

console = Console()


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
    )
    # The SDK's own HTTP logging is noise even in debug mode.
    for name in ("httpx", "httpcore", "openai"):
        logging.getLogger(name).setLevel(logging.WARNING)


@click.group()
@click.version_option(
    version=importlib.metadata.version("huskygpt"),
    prog_name="huskygpt",
)
@click.option(
    "--config",
    "config_path",
    default=".huskygpt.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="HUSKYGPT_CONFIG",
)
@click.option("--debug", is_flag=True, help="Log prompts and API usage. Also enabled by the DEBUG env var.")
@click.pass_context
def main(ctx: click.Context, config_path: str, debug: bool):
    """Review staged code or generate unit tests with OpenAI from a git hook."""
    _setup_logging(debug or bool(os.environ.get("DEBUG")))

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["debug"] = debug


main.add_command(review_cmd)
main.add_command(test_cmd)
main.add_command(init_cmd)
