from __future__ import annotations

from typing import Any

from openai import AsyncOpenAI

from huskygpt_core.config import HuskyGPTOptions, chat_completion_params
from huskygpt_core.providers.base import BaseCompletionClient


def _make_sdk_client(options: HuskyGPTOptions) -> AsyncOpenAI:
    # max_retries=0: a failed call surfaces immediately and fails the whole run.
    return AsyncOpenAI(api_key=options.api_key, base_url=options.base_url, max_retries=0)


class OpenAICompletionClient(BaseCompletionClient):
    """Single-turn text completion, used in test mode."""

    def __init__(self, options: HuskyGPTOptions):
        super().__init__(dict(options.completion_params), debug=options.debug)
        self.client = _make_sdk_client(options)

    async def _request(self, prompt: str) -> Any:
        return await self.client.completions.create(**self._request_kwargs(self.params), prompt=prompt)

    def _extract(self, response: Any) -> str | None:
        if not response.choices:
            return None
        return response.choices[0].text

    async def aclose(self) -> None:
        await self.client.close()


class OpenAIChatClient(BaseCompletionClient):
    """Chat completion with a single user message, used in review mode."""

    def __init__(self, options: HuskyGPTOptions):
        super().__init__(chat_completion_params(options.completion_params), debug=options.debug)
        self.client = _make_sdk_client(options)

    async def _request(self, prompt: str) -> Any:
        kwargs = self._request_kwargs(self.params)
        kwargs["messages"] = [{"role": "user", "content": prompt}]
        return await self.client.chat.completions.create(**kwargs)

    def _extract(self, response: Any) -> str | None:
        if not response.choices:
            return None
        message = response.choices[0].message
        return message.content if message is not None else None

    async def aclose(self) -> None:
        await self.client.close()
