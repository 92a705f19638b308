"""Model Gateway: pick the provider handler once, from configuration.

Streaming contract: see toolstream.models.stream. Every handler yields the same
StreamEvent shapes, so callers never branch on the provider after this point."""

from __future__ import annotations

import logging
from typing import Callable

from toolstream.config.loader import ModelSettings
from toolstream.models.anthropic import AnthropicHandler
from toolstream.models.base import ApiHandler
from toolstream.models.openai import OpenAiHandler

logger = logging.getLogger(__name__)

HANDLERS: dict[str, Callable[[ModelSettings], ApiHandler]] = {
    "anthropic": AnthropicHandler,
    "openai": OpenAiHandler,
}


def build_api_handler(options: ModelSettings) -> ApiHandler:
    """Construct the handler for options.provider. Unknown provider -> ValueError."""
    provider = (options.provider or "").strip().lower()
    factory = HANDLERS.get(provider)
    if factory is None:
        raise ValueError(f"unknown provider: {options.provider!r} (expected one of {sorted(HANDLERS)})")
    handler = factory(options)
    logger.info("model handler: provider=%s model=%s", provider, handler.get_model().id)
    return handler
