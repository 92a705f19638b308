"""Content blocks produced by parsing one turn's accumulated text."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union


@dataclass
class TextContent:
    content: str
    partial: bool
    type: Literal["text"] = "text"


@dataclass
class ToolUse:
    name: str
    params: dict[str, str] = field(default_factory=dict)
    partial: bool = True
    type: Literal["tool_use"] = "tool_use"


ContentBlock = Union[TextContent, ToolUse]
