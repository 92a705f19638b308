"""OpenAI-compatible Chat Completions handler (OpenAI, Azure OpenAI, DeepSeek, Ark, local servers)."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator
from urllib.parse import urlparse

import httpx
import openai
from openai import AsyncAzureOpenAI, AsyncOpenAI

from toolstream.config.loader import ModelSettings
from toolstream.models.base import ApiHandler, ResolvedModel
from toolstream.models.catalog import (
    AZURE_OPENAI_DEFAULT_API_VERSION,
    OPENAI_DEFAULT_BASE_URL,
    OPENAI_MODEL_INFO_SANE_DEFAULTS,
    OPENAI_NON_STREAMING_MODELS,
    ModelInfo,
)
from toolstream.models.errors import ProviderError
from toolstream.models.messages import Message
from toolstream.models.stream import EventStream, ReasoningEvent, TextEvent, UsageEvent
from toolstream.models.transform import to_openai_messages, to_r1_messages, to_simple_messages

logger = logging.getLogger(__name__)

OPENAI_DEFAULT_TEMPERATURE = 0.0
DEEPSEEK_DEFAULT_TEMPERATURE = 0.6


def _url_host(url: str | None) -> str:
    try:
        return urlparse(url or "").hostname or ""
    except ValueError:
        return ""


def is_azure_url(url: str | None) -> bool:
    host = _url_host(url)
    return host == "azure.com" or host.endswith(".azure.com")


def usage_event(usage: Any) -> UsageEvent:
    """Chat Completions usage -> UsageEvent. Cache counters are not reported."""
    return UsageEvent(
        input_tokens=getattr(usage, "prompt_tokens", None) or 0,
        output_tokens=getattr(usage, "completion_tokens", None) or 0,
    )


def _wrap_error(e: openai.APIError | httpx.TransportError) -> ProviderError:
    return ProviderError("openai", str(e), getattr(e, "status_code", None))


class OpenAiHandler(ApiHandler):
    """OpenAI SDK client; request shape chosen from model id and base URL."""

    def __init__(self, options: ModelSettings) -> None:
        self._options = options
        base_url = options.openai_base_url or OPENAI_DEFAULT_BASE_URL
        api_key = options.openai_api_key or "not-provided"
        if options.openai_use_azure or is_azure_url(options.openai_base_url):
            # Azure routes by deployment and api-version
            self._client: AsyncOpenAI = AsyncAzureOpenAI(
                base_url=base_url,
                api_key=api_key,
                api_version=options.azure_api_version or AZURE_OPENAI_DEFAULT_API_VERSION,
            )
        else:
            self._client = AsyncOpenAI(
                base_url=base_url,
                api_key=api_key,
                default_headers=options.openai_headers or None,
            )

    def get_model(self) -> ResolvedModel:
        custom = self._options.openai_custom_model_info
        info = ModelInfo(**custom) if custom else OPENAI_MODEL_INFO_SANE_DEFAULTS
        return ResolvedModel(id=self._options.openai_model_id or "", info=info)

    def _is_deepseek_reasoner(self, model_id: str) -> bool:
        return "deepseek-reasoner" in model_id

    def _is_ark(self) -> bool:
        return ".volces.com" in (self._options.openai_base_url or "")

    def _streaming_enabled(self, model_id: str) -> bool:
        return self._options.openai_streaming_enabled and model_id not in OPENAI_NON_STREAMING_MODELS

    def _convert_messages(self, system_prompt: str, messages: list[Message]) -> list[dict[str, Any]]:
        model_id = self.get_model().id
        if self._is_deepseek_reasoner(model_id):
            return to_r1_messages([Message(role="user", content=system_prompt), *messages])
        system = {"role": "system", "content": system_prompt}
        if self._is_ark():
            return [system, *to_simple_messages(messages)]
        return [system, *to_openai_messages(messages)]

    async def create_message(self, system_prompt: str, messages: list[Message]) -> EventStream:
        model = self.get_model()
        try:
            if self._streaming_enabled(model.id):
                async for event in self._stream(model, system_prompt, messages):
                    yield event
            else:
                logger.debug("model %s without streaming, using single round trip", model.id)
                async for event in self._single_round_trip(model, system_prompt, messages):
                    yield event
        # A dropped connection while reading the body surfaces as a raw httpx error.
        except (openai.APIError, httpx.TransportError) as e:
            logger.warning("openai request failed: %s", e, exc_info=True)
            raise _wrap_error(e) from e

    async def _stream(
        self, model: ResolvedModel, system_prompt: str, messages: list[Message]
    ) -> AsyncIterator[Any]:
        temperature = self._options.temperature
        if temperature is None:
            temperature = (
                DEEPSEEK_DEFAULT_TEMPERATURE
                if self._is_deepseek_reasoner(model.id)
                else OPENAI_DEFAULT_TEMPERATURE
            )
        request: dict[str, Any] = {
            "model": model.id,
            "temperature": temperature,
            "messages": self._convert_messages(system_prompt, messages),
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        # -1 in the sane defaults means "let the server decide"
        if self._options.include_max_tokens and model.info.max_tokens and model.info.max_tokens > 0:
            request["max_tokens"] = model.info.max_tokens
        stream = await self._client.chat.completions.create(**request)
        async for chunk in stream:
            delta = chunk.choices[0].delta if chunk.choices else None
            if delta is not None:
                if getattr(delta, "content", None):
                    yield TextEvent(text=delta.content)
                reasoning = getattr(delta, "reasoning_content", None)
                if reasoning:
                    yield ReasoningEvent(text=reasoning)
            if getattr(chunk, "usage", None):
                yield usage_event(chunk.usage)

    async def _single_round_trip(
        self, model: ResolvedModel, system_prompt: str, messages: list[Message]
    ) -> AsyncIterator[Any]:
        # No system role here: the prompt goes in as the first user message.
        if self._is_deepseek_reasoner(model.id):
            converted = to_r1_messages([Message(role="user", content=system_prompt), *messages])
        else:
            converted = [{"role": "user", "content": system_prompt}, *to_openai_messages(messages)]
        response = await self._client.chat.completions.create(model=model.id, messages=converted)
        text = ""
        if response.choices:
            text = response.choices[0].message.content or ""
        yield TextEvent(text=text)
        yield usage_event(response.usage)

    async def complete_prompt(self, prompt: str) -> str:
        try:
            resp = await self._client.chat.completions.create(
                model=self.get_model().id,
                messages=[{"role": "user", "content": prompt}],
            )
        except openai.APIError as e:
            raise _wrap_error(e) from e
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""


async def list_openai_models(base_url: str | None, api_key: str | None = None) -> list[str]:
    """GET {base_url}/models. Unique ids in server order; [] on bad URL or any failure."""
    if not base_url or not _url_host(base_url):
        return []
    headers = {}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    url = f"{base_url.rstrip('/')}/models"
    try:
        async with httpx.AsyncClient(timeout=30.0) as client:
            r = await client.get(url, headers=headers)
            r.raise_for_status()
            data = r.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("listing models at %s failed: %s", url, e)
        return []
    if not isinstance(data, dict):
        return []
    ids = [m.get("id") for m in (data.get("data") or []) if isinstance(m, dict) and m.get("id")]
    return list(dict.fromkeys(ids))
