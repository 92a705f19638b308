"""Anthropic Messages API handler: prompt caching, extended thinking, streamed events."""

from __future__ import annotations

import logging
import math
from typing import Any

import anthropic
import httpx
from anthropic import AsyncAnthropic

from toolstream.config.loader import ModelSettings
from toolstream.models.base import ApiHandler, ResolvedModel
from toolstream.models.catalog import (
    ANTHROPIC_DEFAULT_MODEL_ID,
    ANTHROPIC_MODELS,
    ANTHROPIC_PROMPT_CACHING_BETA_MODELS,
    ANTHROPIC_THINKING_SUFFIX,
)
from toolstream.models.errors import ProviderError
from toolstream.models.messages import Message
from toolstream.models.stream import EventStream, ReasoningEvent, TextEvent, UsageEvent
from toolstream.models.transform import (
    CACHE_CONTROL_EPHEMERAL,
    mark_cache_breakpoints,
    to_anthropic_messages,
)

logger = logging.getLogger(__name__)

ANTHROPIC_DEFAULT_TEMPERATURE = 0.0
ANTHROPIC_DEFAULT_MAX_TOKENS = 8192
# Thinking models only accept temperature 1.0.
THINKING_TEMPERATURE = 1.0
THINKING_BUDGET_FRACTION = 0.8
THINKING_MIN_BUDGET_TOKENS = 1024

PROMPT_CACHING_BETA_HEADER = {"anthropic-beta": "prompt-caching-2024-07-31"}


def clamp_thinking_budget(max_tokens: int, requested: int | None) -> int:
    """At most 80% of max_tokens, at least 1024 tokens."""
    ceiling = math.floor(max_tokens * THINKING_BUDGET_FRACTION)
    budget = requested if requested is not None else ceiling
    return max(min(budget, ceiling), THINKING_MIN_BUDGET_TOKENS)


def _wrap_error(e: anthropic.APIError | httpx.TransportError) -> ProviderError:
    return ProviderError("anthropic", str(e), getattr(e, "status_code", None))


class AnthropicHandler(ApiHandler):
    """Claude models over the Anthropic SDK. One client per handler."""

    def __init__(self, options: ModelSettings) -> None:
        self._options = options
        self._client = AsyncAnthropic(
            api_key=options.api_key or None,
            base_url=options.anthropic_base_url or None,
        )

    def get_model(self) -> ResolvedModel:
        opts = self._options
        temperature = opts.temperature if opts.temperature is not None else ANTHROPIC_DEFAULT_TEMPERATURE
        model_id = opts.api_model_id
        if not model_id or model_id not in ANTHROPIC_MODELS:
            if model_id:
                logger.warning("unknown anthropic model %s, using %s", model_id, ANTHROPIC_DEFAULT_MODEL_ID)
            model_id = ANTHROPIC_DEFAULT_MODEL_ID
        info = ANTHROPIC_MODELS[model_id]
        max_tokens = opts.max_tokens or info.max_tokens or ANTHROPIC_DEFAULT_MAX_TOKENS
        thinking = None
        if info.thinking:
            temperature = THINKING_TEMPERATURE
            budget = clamp_thinking_budget(max_tokens, opts.max_thinking_tokens)
            thinking = {"type": "enabled", "budget_tokens": budget}
        if model_id.endswith(ANTHROPIC_THINKING_SUFFIX):
            model_id = model_id[: -len(ANTHROPIC_THINKING_SUFFIX)]
        return ResolvedModel(
            id=model_id,
            info=info,
            temperature=temperature,
            max_tokens=max_tokens,
            thinking=thinking,
        )

    def _build_request(self, system_prompt: str, messages: list[Message]) -> dict[str, Any]:
        model = self.get_model()
        converted = to_anthropic_messages(messages)
        request: dict[str, Any] = {
            "model": model.id,
            "max_tokens": model.max_tokens,
            "temperature": model.temperature,
            "stream": True,
        }
        if model.thinking:
            request["thinking"] = model.thinking
        if model.info.supports_prompt_cache:
            # Breakpoint on the system prompt lets new tasks reuse it.
            request["system"] = [
                {"type": "text", "text": system_prompt, "cache_control": CACHE_CONTROL_EPHEMERAL}
            ]
            request["messages"] = mark_cache_breakpoints(converted)
            if model.id in ANTHROPIC_PROMPT_CACHING_BETA_MODELS:
                request["extra_headers"] = dict(PROMPT_CACHING_BETA_HEADER)
        else:
            request["system"] = [{"type": "text", "text": system_prompt}]
            request["messages"] = converted
        return request

    async def create_message(self, system_prompt: str, messages: list[Message]) -> EventStream:
        request = self._build_request(system_prompt, messages)
        logger.debug(
            "anthropic request model=%s max_tokens=%s thinking=%s",
            request["model"],
            request["max_tokens"],
            bool(request.get("thinking")),
        )
        try:
            stream = await self._client.messages.create(**request)
            async for chunk in stream:
                for event in self._convert_chunk(chunk):
                    yield event
        # A dropped connection while reading the body surfaces as a raw httpx error.
        except (anthropic.APIError, httpx.TransportError) as e:
            logger.warning("anthropic stream failed: %s", e, exc_info=True)
            raise _wrap_error(e) from e

    @staticmethod
    def _convert_chunk(chunk: Any) -> list[Any]:
        kind = chunk.type
        if kind == "message_start":
            # Cache reads/writes and input tokens arrive once, up front.
            usage = chunk.message.usage
            return [
                UsageEvent(
                    input_tokens=usage.input_tokens or 0,
                    output_tokens=usage.output_tokens or 0,
                    cache_write_tokens=getattr(usage, "cache_creation_input_tokens", None) or None,
                    cache_read_tokens=getattr(usage, "cache_read_input_tokens", None) or None,
                )
            ]
        if kind == "message_delta":
            return [UsageEvent(input_tokens=0, output_tokens=chunk.usage.output_tokens or 0)]
        if kind == "content_block_start":
            block = chunk.content_block
            if block.type == "thinking":
                event_cls, text = ReasoningEvent, block.thinking
            elif block.type == "text":
                event_cls, text = TextEvent, block.text
            else:
                return []
            out = []
            # Several blocks of the same kind are separated by a line break.
            if chunk.index > 0:
                out.append(event_cls(text="\n"))
            if text:
                out.append(event_cls(text=text))
            return out
        if kind == "content_block_delta":
            delta = chunk.delta
            if delta.type == "thinking_delta":
                return [ReasoningEvent(text=delta.thinking)]
            if delta.type == "text_delta":
                return [TextEvent(text=delta.text)]
        # message_stop, content_block_stop, ping carry nothing
        return []

    async def complete_prompt(self, prompt: str) -> str:
        model = self.get_model()
        request: dict[str, Any] = {
            "model": model.id,
            "max_tokens": model.max_tokens,
            "temperature": model.temperature,
            "messages": [{"role": "user", "content": prompt}],
            "stream": False,
        }
        if model.thinking:
            request["thinking"] = model.thinking
        try:
            message = await self._client.messages.create(**request)
        except anthropic.APIError as e:
            raise _wrap_error(e) from e
        for block in message.content:
            if block.type == "text":
                return block.text
        return ""
