"""Declared model capabilities per provider. Prices are per million tokens and informational only."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class ModelInfo(BaseModel):
    max_tokens: Optional[int] = None
    context_window: int = 128_000
    supports_images: bool = False
    supports_prompt_cache: bool = False
    thinking: bool = False
    input_price: Optional[float] = None
    output_price: Optional[float] = None
    cache_writes_price: Optional[float] = None
    cache_reads_price: Optional[float] = None


ANTHROPIC_DEFAULT_MODEL_ID = "claude-3-7-sonnet-20250219"

# Virtual id for claude-3-7-sonnet with a thinking budget.
ANTHROPIC_THINKING_SUFFIX = ":thinking"

ANTHROPIC_MODELS: dict[str, ModelInfo] = {
    "claude-3-7-sonnet-20250219:thinking": ModelInfo(
        max_tokens=64_000,
        context_window=200_000,
        supports_images=True,
        supports_prompt_cache=True,
        thinking=True,
        input_price=3.0,
        output_price=15.0,
        cache_writes_price=3.75,
        cache_reads_price=0.3,
    ),
    "claude-3-7-sonnet-20250219": ModelInfo(
        max_tokens=8192,
        context_window=200_000,
        supports_images=True,
        supports_prompt_cache=True,
        input_price=3.0,
        output_price=15.0,
        cache_writes_price=3.75,
        cache_reads_price=0.3,
    ),
    "claude-3-5-sonnet-20241022": ModelInfo(
        max_tokens=8192,
        context_window=200_000,
        supports_images=True,
        supports_prompt_cache=True,
        input_price=3.0,
        output_price=15.0,
        cache_writes_price=3.75,
        cache_reads_price=0.3,
    ),
    "claude-3-5-haiku-20241022": ModelInfo(
        max_tokens=8192,
        context_window=200_000,
        supports_prompt_cache=True,
        input_price=1.0,
        output_price=5.0,
        cache_writes_price=1.25,
        cache_reads_price=0.1,
    ),
    "claude-3-opus-20240229": ModelInfo(
        max_tokens=4096,
        context_window=200_000,
        supports_images=True,
        supports_prompt_cache=True,
        input_price=15.0,
        output_price=75.0,
        cache_writes_price=18.75,
        cache_reads_price=1.5,
    ),
    "claude-3-haiku-20240307": ModelInfo(
        max_tokens=4096,
        context_window=200_000,
        supports_images=True,
        supports_prompt_cache=True,
        input_price=0.25,
        output_price=1.25,
        cache_writes_price=0.3,
        cache_reads_price=0.03,
    ),
}

# These ids still need the prompt-caching beta header.
ANTHROPIC_PROMPT_CACHING_BETA_MODELS = frozenset(
    (
        "claude-3-5-sonnet-20241022",
        "claude-3-5-haiku-20241022",
        "claude-3-opus-20240229",
        "claude-3-haiku-20240307",
    )
)

OPENAI_DEFAULT_BASE_URL = "https://api.openai.com/v1"
AZURE_OPENAI_DEFAULT_API_VERSION = "2024-08-01-preview"

OPENAI_MODEL_INFO_SANE_DEFAULTS = ModelInfo(
    max_tokens=-1,
    context_window=128_000,
    supports_images=True,
    supports_prompt_cache=False,
    input_price=0,
    output_price=0,
)

# Models without streaming, system role or non-default temperature.
OPENAI_NON_STREAMING_MODELS = frozenset(("o1", "o1-preview", "o1-mini"))
