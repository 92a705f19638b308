"""One model turn: pull stream events, re-parse the text buffer after each delta, sum usage."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from toolstream.models.base import ApiHandler
from toolstream.models.errors import ProviderError
from toolstream.models.messages import Message
from toolstream.models.stream import ReasoningEvent, TextEvent, UsageEvent, UsageTotals
from toolstream.parsing.content import ContentBlock
from toolstream.parsing.parser import parse_assistant_message
from toolstream.parsing.vocabulary import DEFAULT_VOCABULARY, ToolVocabulary

logger = logging.getLogger(__name__)

UpdateCallback = Callable[["Turn"], Awaitable[None]]


class Turn:
    """State of a single turn. Safe to read at any point, including after cancellation.

    ``blocks`` is replaced (never mutated) on every text delta, so the last
    value is always a complete parse of ``text`` as received so far.
    """

    def __init__(
        self,
        handler: ApiHandler,
        system_prompt: str,
        messages: list[Message],
        *,
        vocabulary: ToolVocabulary = DEFAULT_VOCABULARY,
        on_update: Optional[UpdateCallback] = None,
    ) -> None:
        self._handler = handler
        self._system_prompt = system_prompt
        self._messages = messages
        self._vocabulary = vocabulary
        self._on_update = on_update
        self.text = ""
        self.reasoning = ""
        self.blocks: list[ContentBlock] = []
        self.usage = UsageTotals()
        self.error: Optional[ProviderError] = None
        self.completed = False

    @property
    def failed(self) -> bool:
        return self.error is not None

    async def run(self) -> "Turn":
        """Consume the provider stream to the end.

        A ProviderError ends the turn: content received so far is kept and
        ``error`` is set. Cancellation propagates; state stays as it was.
        """
        try:
            async for event in self._handler.create_message(self._system_prompt, self._messages):
                if isinstance(event, TextEvent):
                    self.text += event.text
                    self.blocks = parse_assistant_message(self.text, self._vocabulary)
                elif isinstance(event, ReasoningEvent):
                    self.reasoning += event.text
                elif isinstance(event, UsageEvent):
                    self.usage.add(event)
                else:
                    continue
                if self._on_update:
                    await self._on_update(self)
        except ProviderError as e:
            logger.exception("turn failed after %d chars: %s", len(self.text), e)
            self.error = e
            return self
        self.completed = True
        logger.debug(
            "turn done: blocks=%d input_tokens=%d output_tokens=%d",
            len(self.blocks),
            self.usage.input_tokens,
            self.usage.output_tokens,
        )
        return self
