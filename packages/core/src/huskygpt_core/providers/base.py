"""Base completion client.

Both OpenAI call shapes expose the same coroutine:

    complete(prompt) -> str

Subclasses implement _request (one raw SDK call) and _extract (pull the
text out of the response). complete() is concrete here so usage logging
and the empty-result normalisation are defined once.

No retries and no error handling live at this level: any exception from
the SDK propagates unchanged to ReviewRunner.run, the only recovery point.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class BaseCompletionClient(ABC):
    def __init__(self, params: dict, debug: bool = False):
        self.params = params
        self.debug = debug

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    async def complete(self, prompt: str) -> str:
        """Send one prompt and return the model's text, or "" when absent."""
        response = await self._request(prompt)
        if self.debug:
            logger.debug("%s usage ===> %s", self.__class__.__name__, getattr(response, "usage", None))
        return self._extract(response) or ""

    async def aclose(self) -> None:
        """Release the underlying HTTP client. Clients without one need not override."""

    # ------------------------------------------------------------------ #
    # Abstract, implemented in each call shape                            #
    # ------------------------------------------------------------------ #

    @abstractmethod
    async def _request(self, prompt: str) -> Any:
        """Make a single API call and return the raw SDK response."""

    @abstractmethod
    def _extract(self, response: Any) -> str | None:
        """Return the generated text from a raw response, or None."""

    # ------------------------------------------------------------------ #
    # Shared helpers                                                       #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _request_kwargs(params: dict) -> dict:
        # The SDK treats an explicit None differently from an omitted field.
        return {key: value for key, value in params.items() if value is not None}
