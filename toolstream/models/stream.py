"""Streaming contract for provider responses.

Every handler turns its vendor's wire format into one ordered iteration of
StreamEvent values:

- TextEvent: narrative text delta; the only payload fed to the tool-use parser.
- ReasoningEvent: provider "thinking" delta, shown separately and never parsed.
- UsageEvent: token accounting delta. Several may arrive per turn and the
  consumer sums them (see UsageTotals). A counter the provider does not report
  is None rather than 0.

There is no explicit "done" event: exhausting the iterator is the done signal.
"""

from __future__ import annotations

from typing import Annotated, AsyncIterator, Literal, Optional, Union

from pydantic import BaseModel, Field


class TextEvent(BaseModel):
    type: Literal["text"] = "text"
    text: str = ""


class ReasoningEvent(BaseModel):
    type: Literal["reasoning"] = "reasoning"
    text: str = ""


class UsageEvent(BaseModel):
    type: Literal["usage"] = "usage"
    input_tokens: int = 0
    output_tokens: int = 0
    cache_write_tokens: Optional[int] = Field(default=None, description="None when not reported")
    cache_read_tokens: Optional[int] = Field(default=None, description="None when not reported")


StreamEvent = Annotated[Union[TextEvent, ReasoningEvent, UsageEvent], Field(discriminator="type")]

EventStream = AsyncIterator[StreamEvent]


def _add_optional(total: Optional[int], delta: Optional[int]) -> Optional[int]:
    if delta is None:
        return total
    return (total or 0) + delta


class UsageTotals(BaseModel):
    """Running sum of the usage events of one turn."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_write_tokens: Optional[int] = None
    cache_read_tokens: Optional[int] = None

    def add(self, event: UsageEvent) -> None:
        self.input_tokens += event.input_tokens
        self.output_tokens += event.output_tokens
        self.cache_write_tokens = _add_optional(self.cache_write_tokens, event.cache_write_tokens)
        self.cache_read_tokens = _add_optional(self.cache_read_tokens, event.cache_read_tokens)
