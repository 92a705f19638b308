"""Convert Message history into each provider's request shape."""

from __future__ import annotations

from typing import Any

from toolstream.models.messages import ImagePart, Message, TextPart

CACHE_CONTROL_EPHEMERAL: dict[str, str] = {"type": "ephemeral"}


def _data_url(part: ImagePart) -> str:
    return f"data:{part.media_type};base64,{part.data}"


# --- Anthropic ---


def to_anthropic_messages(messages: list[Message]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for m in messages:
        if isinstance(m.content, str):
            out.append({"role": m.role, "content": m.content})
            continue
        blocks: list[dict[str, Any]] = []
        for part in m.content:
            if isinstance(part, TextPart):
                blocks.append({"type": "text", "text": part.text})
            else:
                blocks.append(
                    {
                        "type": "image",
                        "source": {"type": "base64", "media_type": part.media_type, "data": part.data},
                    }
                )
        out.append({"role": m.role, "content": blocks})
    return out


def mark_cache_breakpoints(
    messages: list[dict[str, Any]],
    cache_control: dict[str, str] = CACHE_CONTROL_EPHEMERAL,
) -> list[dict[str, Any]]:
    """Mark the last and second-to-last user messages as cache boundaries.

    The newest user message is cached for the next request; the previous one
    tells the server where the cached prefix of this request ends. String
    content becomes a single text block; list content gets the marker on its
    last block. Returns new dicts, the input is not modified.
    """
    user_indices = [i for i, m in enumerate(messages) if m.get("role") == "user"]
    marked = set(user_indices[-2:])
    out: list[dict[str, Any]] = []
    for i, m in enumerate(messages):
        if i not in marked:
            out.append(m)
            continue
        content = m["content"]
        if isinstance(content, str):
            new_content = [{"type": "text", "text": content, "cache_control": cache_control}]
        else:
            new_content = [
                {**block, "cache_control": cache_control} if j == len(content) - 1 else block
                for j, block in enumerate(content)
            ]
        out.append({**m, "content": new_content})
    return out


# --- OpenAI-compatible ---


def _openai_parts(parts: list[Any]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for part in parts:
        if isinstance(part, TextPart):
            out.append({"type": "text", "text": part.text})
        else:
            out.append({"type": "image_url", "image_url": {"url": _data_url(part)}})
    return out


def to_openai_messages(messages: list[Message]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for m in messages:
        if isinstance(m.content, str):
            out.append({"role": m.role, "content": m.content})
        elif m.role == "assistant":
            # assistant content must be plain text
            out.append({"role": "assistant", "content": m.text()})
        else:
            out.append({"role": m.role, "content": _openai_parts(m.content)})
    return out


def to_r1_messages(messages: list[Message]) -> list[dict[str, Any]]:
    """DeepSeek reasoner rejects consecutive messages with the same role: merge them."""
    out: list[dict[str, Any]] = []
    for m in messages:
        parts: list[Any] = [TextPart(text=m.content)] if isinstance(m.content, str) else list(m.content)
        if out and out[-1]["role"] == m.role:
            out[-1]["_parts"].extend(parts)
        else:
            out.append({"role": m.role, "_parts": parts})
    result: list[dict[str, Any]] = []
    for entry in out:
        parts = entry.pop("_parts")
        if all(isinstance(p, TextPart) for p in parts):
            content: Any = "\n".join(p.text for p in parts)
        else:
            content = _openai_parts(parts)
        result.append({"role": entry["role"], "content": content})
    return result


def to_simple_messages(messages: list[Message]) -> list[dict[str, str]]:
    """Text-only format for endpoints without multimodal content arrays."""
    out: list[dict[str, str]] = []
    for m in messages:
        if isinstance(m.content, str):
            out.append({"role": m.role, "content": m.content})
            continue
        pieces = [
            p.text if isinstance(p, TextPart) else f"[Image: {p.media_type}]" for p in m.content
        ]
        out.append({"role": m.role, "content": "\n".join(pieces)})
    return out
