"""Tests for the incremental tool-use parser."""

import pytest

from toolstream.parsing import (
    DEFAULT_VOCABULARY,
    TextContent,
    ToolUse,
    ToolVocabulary,
    parse_assistant_message,
)

MESSAGE = (
    "I'll check the config first.\n\n"
    "<read_file>\n<path>src/config.py</path>\n</read_file>\n\n"
    "Now writing the fix.\n"
    "<write_to_file>\n<path>src/config.py</path>\n"
    "<content>\nVALUE = 1\n# </content> inside a comment\n</content>\n"
    "<line_count>2</line_count>\n</write_to_file>\n"
    "<execute_command>\n<command>pytest -q</command>\n</execute_command>\n"
    "Done."
)


def test_round_trip_well_formed():
    vocab = ToolVocabulary(tool_names=("toolA",), param_names=("p1",))
    blocks = parse_assistant_message("before text <toolA><p1>v1</p1></toolA> after text", vocab)
    assert blocks == [
        TextContent(content="before text", partial=False),
        ToolUse(name="toolA", params={"p1": "v1"}, partial=False),
        TextContent(content="after text", partial=True),
    ]


def test_round_trip_default_vocabulary():
    blocks = parse_assistant_message("Let me look. <read_file><path>a.py</path></read_file> ok")
    assert blocks == [
        TextContent(content="Let me look.", partial=False),
        ToolUse(name="read_file", params={"path": "a.py"}, partial=False),
        TextContent(content="ok", partial=True),
    ]


def test_partial_tail_without_tool_close():
    vocab = ToolVocabulary(tool_names=("toolA",), param_names=("p1",))
    assert parse_assistant_message("<toolA><p1>v1</p1>", vocab) == [
        ToolUse(name="toolA", params={"p1": "v1"}, partial=True)
    ]


def test_partial_param_gets_trailing_text():
    blocks = parse_assistant_message("<execute_command>\n<command>npm ins")
    assert blocks == [ToolUse(name="execute_command", params={"command": "npm ins"}, partial=True)]


def test_partial_opening_tag_stays_text():
    assert parse_assistant_message("Hello <read_fi") == [
        TextContent(content="Hello <read_fi", partial=True)
    ]


def test_embedded_closing_tag_in_file_content():
    buffer = (
        "<write_to_file><path>notes.txt</path>"
        "<content>line1\n</content>\nline2</content></write_to_file>"
    )
    blocks = parse_assistant_message(buffer)
    assert len(blocks) == 1
    tool = blocks[0]
    assert tool.name == "write_to_file"
    assert tool.partial is False
    assert tool.params["content"] == "line1\n</content>\nline2"
    assert tool.params["path"] == "notes.txt"


def test_last_closing_tag_rule_scoped_to_write_to_file():
    buffer = "<insert_content><content>x</content>y</content></insert_content>"
    blocks = parse_assistant_message(buffer)
    assert blocks == [ToolUse(name="insert_content", params={"content": "x"}, partial=False)]


def test_unknown_tag_is_text():
    buffer = "<notARealTool>hi</notARealTool>"
    assert parse_assistant_message(buffer) == [TextContent(content=buffer, partial=True)]


def test_unknown_param_tag_inside_tool_is_ignored():
    blocks = parse_assistant_message("<read_file><bogus>x</bogus><path>a</path></read_file>")
    assert blocks == [ToolUse(name="read_file", params={"path": "a"}, partial=False)]


def test_tool_tag_inside_param_value_is_literal():
    blocks = parse_assistant_message(
        "<execute_command><command>echo <read_file></command></execute_command>"
    )
    assert blocks == [
        ToolUse(name="execute_command", params={"command": "echo <read_file>"}, partial=False)
    ]


def test_repeated_param_last_write_wins():
    blocks = parse_assistant_message("<read_file><path>a</path><path>b</path></read_file>")
    assert blocks[0].params == {"path": "b"}


def test_leading_tool_has_no_empty_text_block():
    blocks = parse_assistant_message("<list_files><path>.</path></list_files>\n\n")
    assert blocks == [ToolUse(name="list_files", params={"path": "."}, partial=False)]


def test_empty_buffer():
    assert parse_assistant_message("") == []
    assert parse_assistant_message("   \n") == []


def test_params_keep_insertion_order():
    blocks = parse_assistant_message(
        "<search_files><regex>TODO</regex><path>src</path><file_pattern>*.py</file_pattern></search_files>"
    )
    assert list(blocks[0].params) == ["regex", "path", "file_pattern"]


def test_full_message():
    blocks = parse_assistant_message(MESSAGE)
    assert [type(b).__name__ for b in blocks] == [
        "TextContent",
        "ToolUse",
        "TextContent",
        "ToolUse",
        "ToolUse",
        "TextContent",
    ]
    assert blocks[1].params == {"path": "src/config.py"}
    assert blocks[3].params["content"] == "VALUE = 1\n# </content> inside a comment"
    assert blocks[3].params["line_count"] == "2"
    assert blocks[4].params == {"command": "pytest -q"}
    assert blocks[5] == TextContent(content="Done.", partial=True)
    assert all(not b.partial for b in blocks[:5])


def test_idempotent():
    assert parse_assistant_message(MESSAGE) == parse_assistant_message(MESSAGE)
    half = MESSAGE[: len(MESSAGE) // 2]
    assert parse_assistant_message(half) == parse_assistant_message(half)


def test_closed_blocks_never_change_as_buffer_grows():
    final = parse_assistant_message(MESSAGE)
    for n in range(len(MESSAGE) + 1):
        blocks = parse_assistant_message(MESSAGE[:n])
        closed = [b for b in blocks if not b.partial]
        assert closed == final[: len(closed)], MESSAGE[:n]
        # only the last block may still be open
        assert all(not b.partial for b in blocks[:-1])


def test_custom_vocabulary_without_last_close_params():
    vocab = ToolVocabulary(
        tool_names=("write_to_file",), param_names=("content",), last_close_params=()
    )
    blocks = parse_assistant_message(
        "<write_to_file><content>a</content>b</content></write_to_file>", vocab
    )
    assert blocks[0].params == {"content": "a"}


def test_default_vocabulary_is_immutable_and_hashable():
    assert hash(ToolVocabulary()) == hash(DEFAULT_VOCABULARY)
    assert DEFAULT_VOCABULARY.last_close_param("write_to_file") == "content"
    assert DEFAULT_VOCABULARY.last_close_param("read_file") is None
    with pytest.raises(AttributeError):
        DEFAULT_VOCABULARY.last_close_params = ()
