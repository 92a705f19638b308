"""Base interface for provider handlers. One implementation per provider family."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from toolstream.models.catalog import ModelInfo
from toolstream.models.messages import Message
from toolstream.models.stream import EventStream


@dataclass
class ResolvedModel:
    """Model variant picked from settings, with the request options derived from it."""

    id: str
    info: ModelInfo
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    thinking: Optional[dict[str, Any]] = None


class ApiHandler(ABC):
    """Provider exchange: create_message(system_prompt, messages) -> StreamEvent iteration."""

    @abstractmethod
    def create_message(self, system_prompt: str, messages: list[Message]) -> EventStream:
        """Async generator of stream events; raises ProviderError on failure."""
        pass

    @abstractmethod
    def get_model(self) -> ResolvedModel:
        pass

    @abstractmethod
    async def complete_prompt(self, prompt: str) -> str:
        """Single non-streaming completion. Returns the text content or ""."""
        pass
