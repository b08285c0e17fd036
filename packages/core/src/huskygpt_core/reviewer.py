"""Core review orchestration: prompts in, joined model answers out."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from huskygpt_core.config import HuskyGPTOptions
from huskygpt_core.display import ReviewSpinner, TypingSpinner
from huskygpt_core.models import HuskyGPTMode, ReadFileResult
from huskygpt_core.prompt import PERFECT_KEYWORD, generate_prompts
from huskygpt_core.providers.base import BaseCompletionClient
from huskygpt_core.providers.openai import OpenAIChatClient, OpenAICompletionClient
from huskygpt_core.utils.code import replace_code_block

logger = logging.getLogger(__name__)

RESULT_SEPARATOR = "\n\n---\n\n"
RUN_FAILED_MESSAGE = "[huskygpt] Call OpenAI API failed!"

START_TEXT = "[huskygpt] Start review your code:"
SUCCEED_TEXT = "[huskygpt] Review your code successfully as follow: "
FAIL_TEXT = "[huskygpt] Review your code failed!"


def get_client(options: HuskyGPTOptions) -> BaseCompletionClient:
    mode = options.mode
    if mode == HuskyGPTMode.TEST:
        return OpenAICompletionClient(options)
    if mode == HuskyGPTMode.REVIEW:
        return OpenAIChatClient(options)
    raise ValueError(f"Unknown mode: {mode!r}. Choose 'test' or 'review'.")


def classify_message(message: str, keyword: str = PERFECT_KEYWORD) -> str:
    """Return "succeed" if ``keyword`` is one of the whitespace-separated words, else "fail"."""
    return "succeed" if keyword in message.split() else "fail"


class ReviewRunner:
    """Run every prompt for one file and render the answers.

    Usage:
        runner = ReviewRunner(options)
        output = asyncio.run(runner.run(file_result))

    Collaborators are injectable so tests can swap the OpenAI client, the
    prompt generator and the spinners for stubs.
    """

    def __init__(
        self,
        options: HuskyGPTOptions,
        client: BaseCompletionClient | None = None,
        prompt_builder: Callable[[ReadFileResult, HuskyGPTMode], list[str]] = generate_prompts,
        spinner_factory: Callable[[str], ReviewSpinner] = ReviewSpinner,
        typing_spinner: TypingSpinner | None = None,
    ):
        self.options = options
        self.client = client if client is not None else get_client(options)
        self.prompt_builder = prompt_builder
        self.spinner_factory = spinner_factory
        self.typing_spinner = typing_spinner if typing_spinner is not None else TypingSpinner()

    async def aclose(self) -> None:
        await self.client.aclose()

    def expand(self, file_result: ReadFileResult) -> list[str]:
        return self.prompt_builder(file_result, self.options.mode)

    async def _complete(self, prompt: str) -> str:
        if self.options.debug:
            logger.debug("prompt ===> %s", prompt)
        return await self.client.complete(prompt)

    async def run_all(self, prompts: list[str]) -> list[str]:
        """Issue every completion at once and wait for all of them.

        Results keep the order of ``prompts``. The first failure propagates;
        calls already in flight are left to finish and their results dropped.
        """
        return list(await asyncio.gather(*(self._complete(prompt) for prompt in prompts)))

    async def render(self, messages: list[str]) -> None:
        """Type out each message in turn, one finishing before the next starts."""
        if not self.options.typing_enabled:
            return

        for message in messages:
            text = replace_code_block(message)
            await self.typing_spinner.run(text, classify_message(text))

    async def run(self, file_result: ReadFileResult) -> str:
        """Review one file and return the joined answers, or RUN_FAILED_MESSAGE."""
        prompts = self.expand(file_result)

        spinner = self.spinner_factory(START_TEXT)
        spinner.start()

        try:
            messages = await self.run_all(prompts)
        except Exception as e:
            logger.error("run error: %s", e)
            spinner.fail(FAIL_TEXT)
            return RUN_FAILED_MESSAGE

        spinner.succeed(SUCCEED_TEXT)
        await self.render(messages)
        return RESULT_SEPARATOR.join(messages)
