"""Incremental tool-use parser.

The model writes tool calls inline as XML-like tags::

    Let me look at that file.
    <read_file>
    <path>src/main.py</path>
    </read_file>

``parse_assistant_message`` turns the text accumulated so far in a turn into
an ordered list of TextContent / ToolUse blocks. It holds no state between
calls: the caller re-parses the whole buffer after every streamed delta, and
any block whose closing tag has not arrived yet is returned with
``partial=True``. Blocks with ``partial=False`` never change when the buffer
grows.

Tag-shaped text whose name is not in the vocabulary is plain text; there is no
failure mode for malformed input.
"""

from __future__ import annotations

from toolstream.parsing.content import ContentBlock, TextContent, ToolUse
from toolstream.parsing.vocabulary import DEFAULT_VOCABULARY, ToolVocabulary


def _append_text(blocks: list[ContentBlock], raw: str, partial: bool) -> None:
    content = raw.strip()
    if content:
        blocks.append(TextContent(content=content, partial=partial))


def _apply_last_closing_tag(buffer: str, tool: ToolUse, name: str, start: int, end: int) -> None:
    """Value of ``name`` = text between its first opening and last closing tag in the tool span.

    Used for parameters such as file contents, which may legitimately contain
    their own closing tag.
    """
    closing = f"</{name}>"
    if not buffer.endswith(closing, start, end):
        return
    opening = f"<{name}>"
    value_start = buffer.find(opening, start, end)
    if value_start == -1:
        return
    value_start += len(opening)
    value_end = buffer.rfind(closing, start, end)
    if value_end > value_start:
        tool.params[name] = buffer[value_start:value_end].strip()


def parse_assistant_message(
    buffer: str,
    vocabulary: ToolVocabulary = DEFAULT_VOCABULARY,
) -> list[ContentBlock]:
    """Parse one turn's full text into content blocks. Pure and deterministic."""
    blocks: list[ContentBlock] = []
    tool_tags = [(f"<{name}>", name) for name in vocabulary.tool_names]
    param_tags = [(f"<{name}>", name) for name in vocabulary.param_names]

    text_start: int | None = None
    tool: ToolUse | None = None
    tool_start = 0
    param: str | None = None
    param_start = 0

    for i in range(len(buffer)):
        end = i + 1

        if tool is not None and param is not None:
            closing = f"</{param}>"
            if buffer.endswith(closing, param_start, end):
                tool.params[param] = buffer[param_start : end - len(closing)].strip()
                param = None
            continue

        if tool is not None:
            closing = f"</{tool.name}>"
            if buffer.endswith(closing, tool_start, end):
                tool.partial = False
                blocks.append(tool)
                tool = None
                continue
            for tag, name in param_tags:
                if buffer.endswith(tag, tool_start, end):
                    param = name
                    param_start = end
                    break
            special = vocabulary.last_close_param(tool.name)
            if special is not None:
                _apply_last_closing_tag(buffer, tool, special, tool_start, end)
            continue

        for tag, name in tool_tags:
            if buffer.endswith(tag, 0, end):
                if text_start is not None:
                    # the tag itself was scanned as text; cut it off
                    _append_text(blocks, buffer[text_start : end - len(tag)], partial=False)
                    text_start = None
                tool = ToolUse(name=name, params={}, partial=True)
                tool_start = end
                break
        else:
            if text_start is None:
                text_start = i

    # Only one of an open tool or an open text span can remain.
    if tool is not None:
        if param is not None:
            tool.params[param] = buffer[param_start:].strip()
        blocks.append(tool)
    elif text_start is not None:
        _append_text(blocks, buffer[text_start:], partial=True)

    return blocks
