"""Tests for Turn: re-parse per delta, usage totals, failure and cancellation."""

import asyncio
import logging

import pytest

from toolstream.core.turn import Turn
from toolstream.models.errors import ProviderError
from toolstream.models.messages import Message
from toolstream.models.stream import ReasoningEvent, TextEvent, UsageEvent
from toolstream.parsing import TextContent, ToolUse, ToolVocabulary
from toolstream.tests.fakes import FakeHandler

HISTORY = [Message(role="user", content="read main.py")]


@pytest.mark.asyncio
async def test_turn_sums_usage():
    handler = FakeHandler(
        [
            UsageEvent(input_tokens=10),
            UsageEvent(output_tokens=5),
            UsageEvent(output_tokens=7, cache_read_tokens=3),
        ]
    )
    turn = await Turn(handler, "sys", HISTORY).run()
    assert turn.usage.input_tokens == 10
    assert turn.usage.output_tokens == 12
    assert turn.usage.cache_read_tokens == 3
    assert turn.usage.cache_write_tokens is None
    assert turn.completed is True
    assert handler.calls == [("sys", HISTORY)]


@pytest.mark.asyncio
async def test_turn_reparses_whole_buffer_on_each_delta():
    handler = FakeHandler(
        [
            ReasoningEvent(text="User wants a file."),
            TextEvent(text="Reading <read_"),
            TextEvent(text="file><path>src/"),
            TextEvent(text="main.py</path></read_file> done"),
        ]
    )
    snapshots = []

    async def on_update(turn):
        snapshots.append(list(turn.blocks))

    turn = await Turn(handler, "sys", HISTORY, on_update=on_update).run()
    assert turn.reasoning == "User wants a file."
    assert snapshots[0] == []
    assert snapshots[1] == [TextContent(content="Reading <read_", partial=True)]
    assert snapshots[2] == [
        TextContent(content="Reading", partial=False),
        ToolUse(name="read_file", params={"path": "src/"}, partial=True),
    ]
    assert turn.blocks == [
        TextContent(content="Reading", partial=False),
        ToolUse(name="read_file", params={"path": "src/main.py"}, partial=False),
        TextContent(content="done", partial=True),
    ]


@pytest.mark.asyncio
async def test_turn_uses_injected_vocabulary():
    vocab = ToolVocabulary(tool_names=("toolA",), param_names=("p1",))
    handler = FakeHandler([TextEvent(text="<toolA><p1>v1</p1></toolA><read_file>")])
    turn = await Turn(handler, "sys", HISTORY, vocabulary=vocab).run()
    assert turn.blocks == [
        ToolUse(name="toolA", params={"p1": "v1"}, partial=False),
        TextContent(content="<read_file>", partial=True),
    ]


@pytest.mark.asyncio
async def test_turn_provider_error_keeps_partial_content():
    handler = FakeHandler(
        [TextEvent(text="Working on it <execute_command><command>ls")],
        error=ProviderError("openai", "rate limited", 429),
    )
    turn = await Turn(handler, "sys", HISTORY).run()
    assert turn.failed is True
    assert turn.completed is False
    assert turn.error.status_code == 429
    assert turn.blocks == [
        TextContent(content="Working on it", partial=False),
        ToolUse(name="execute_command", params={"command": "ls"}, partial=True),
    ]


@pytest.mark.asyncio
async def test_turn_other_errors_propagate():
    handler = FakeHandler([TextEvent(text="x")], error=RuntimeError("bug"))
    with pytest.raises(RuntimeError, match="bug"):
        await Turn(handler, "sys", HISTORY).run()


@pytest.mark.asyncio
async def test_turn_cancel_keeps_last_blocks():
    handler = FakeHandler(
        [TextEvent(text="Let me check. <list_files><path>src"), TextEvent(text="never")],
        block_after=1,
    )
    first_update = asyncio.Event()

    async def on_update(_turn):
        first_update.set()

    turn = Turn(handler, "sys", HISTORY, on_update=on_update)
    task = asyncio.create_task(turn.run())
    await asyncio.wait_for(first_update.wait(), timeout=5)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert turn.completed is False
    assert turn.error is None
    assert turn.blocks == [
        TextContent(content="Let me check.", partial=False),
        ToolUse(name="list_files", params={"path": "src"}, partial=True),
    ]


@pytest.mark.asyncio
async def test_turn_logs_provider_error_with_traceback(caplog):
    handler = FakeHandler([], error=ProviderError("anthropic", "connection reset"))
    with caplog.at_level(logging.ERROR, logger="toolstream.core.turn"):
        await Turn(handler, "sys", HISTORY).run()
    record = next(r for r in caplog.records if r.name == "toolstream.core.turn")
    assert record.exc_info is not None
    assert record.exc_info[0] is ProviderError
