"""Tool vocabulary: the closed set of tag names the parser recognizes.

Names are matched as literal ``<name>`` / ``</name>`` tags in enumeration
order. Callers must keep the set free of ambiguous opening tags.
"""

from __future__ import annotations

from dataclasses import dataclass

TOOL_USE_NAMES: tuple[str, ...] = (
    "execute_command",
    "read_file",
    "write_to_file",
    "apply_diff",
    "insert_content",
    "search_and_replace",
    "search_files",
    "list_files",
    "list_code_definition_names",
    "browser_action",
    "use_mcp_tool",
    "access_mcp_resource",
    "ask_followup_question",
    "attempt_completion",
    "switch_mode",
    "new_task",
)

TOOL_PARAM_NAMES: tuple[str, ...] = (
    "command",
    "path",
    "content",
    "line_count",
    "regex",
    "file_pattern",
    "recursive",
    "action",
    "url",
    "coordinate",
    "text",
    "server_name",
    "tool_name",
    "arguments",
    "uri",
    "question",
    "result",
    "diff",
    "start_line",
    "end_line",
    "mode_slug",
    "reason",
    "operations",
    "mode",
    "message",
    "cwd",
)


@dataclass(frozen=True)
class ToolVocabulary:
    tool_names: tuple[str, ...] = TOOL_USE_NAMES
    param_names: tuple[str, ...] = TOOL_PARAM_NAMES
    # (tool, param) pairs whose value may contain its own closing tag
    last_close_params: tuple[tuple[str, str], ...] = (("write_to_file", "content"),)

    def last_close_param(self, tool_name: str) -> str | None:
        for tool, param in self.last_close_params:
            if tool == tool_name:
                return param
        return None


DEFAULT_VOCABULARY = ToolVocabulary()


def vocabulary_from_names(
    tool_names: list[str] | None = None,
    param_names: list[str] | None = None,
) -> ToolVocabulary:
    """Build a vocabulary from configured name lists; empty lists keep the defaults."""
    return ToolVocabulary(
        tool_names=tuple(tool_names) if tool_names else TOOL_USE_NAMES,
        param_names=tuple(param_names) if param_names else TOOL_PARAM_NAMES,
    )
