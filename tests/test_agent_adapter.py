import asyncio

import pytest

from ccdiscord.agent.adapter import NO_RESPONSE, ClaudeCodeAdapter
from ccdiscord.agent.cancel import CancelToken, QueryAbortedError
from ccdiscord.providers.claude_transport import (
    AssistantText,
    OtherEvent,
    SessionInit,
    ToolResult,
    TurnResult,
)


class FakeTransport:
    model = "claude-test"

    def __init__(self, turns=None):
        self.turns = list(turns or [])
        self.calls = []

    async def stream(self, prompt, options):
        self.calls.append({"prompt": prompt, "options": options})
        events = self.turns.pop(0) if self.turns else [SessionInit("s-1"), TurnResult("s-1")]
        for event in events:
            if isinstance(event, asyncio.Event):
                await event.wait()
                continue
            yield event


@pytest.mark.asyncio
async def test_first_turn_is_fresh_and_later_turns_continue():
    transport = FakeTransport(
        [
            [SessionInit("s-1"), AssistantText("Hello"), AssistantText(" world"), TurnResult("s-1")],
            [SessionInit("s-1"), AssistantText("again"), TurnResult("s-2")],
        ]
    )
    adapter = ClaudeCodeAdapter(transport)

    assert await adapter.query("hi") == "Hello world"
    assert adapter.session.is_first_turn is False
    assert await adapter.query("more") == "again"

    first, second = (call["options"] for call in transport.calls)
    assert first.continue_conversation is False and first.resume is None
    assert second.continue_conversation is True and second.resume is None
    assert adapter.current_session_id == "s-2"
    assert adapter.has_active_session is True


@pytest.mark.asyncio
async def test_resume_target_only_applies_to_first_turn():
    transport = FakeTransport()
    adapter = ClaudeCodeAdapter(transport, resume="abc")

    await adapter.query("one")
    await adapter.query("two")

    first, second = (call["options"] for call in transport.calls)
    assert first.resume == "abc"
    assert second.resume is None
    assert second.continue_conversation is True


@pytest.mark.asyncio
async def test_continue_mode_continues_from_the_first_turn():
    transport = FakeTransport()
    adapter = ClaudeCodeAdapter(transport, continue_session=True)

    await adapter.query("hi")

    assert transport.calls[0]["options"].continue_conversation is True


@pytest.mark.asyncio
async def test_reset_session_restores_first_turn_state():
    transport = FakeTransport()
    adapter = ClaudeCodeAdapter(transport, resume="abc")
    await adapter.query("hi")

    adapter.reset_session()

    assert adapter.session.is_first_turn is True
    assert adapter.current_session_id is None
    assert adapter.session.resume_target is None
    await adapter.query("fresh")
    options = transport.calls[-1]["options"]
    assert options.continue_conversation is False and options.resume is None


@pytest.mark.asyncio
async def test_tool_results_are_previewed_and_prepended():
    long_output = "x" * 400
    transport = FakeTransport(
        [[SessionInit("s"), ToolResult("ls output"), ToolResult(long_output), AssistantText("Done."), TurnResult("s")]]
    )
    adapter = ClaudeCodeAdapter(transport)
    progress = []

    async def on_progress(text):
        progress.append(text)

    reply = await adapter.query("list files", on_progress=on_progress)

    assert progress[0] == "📋 Tool execution result:\n```\nls output\n```"
    assert "x" * 300 + "..." in progress[1]
    assert "x" * 301 not in progress[1]
    assert reply.startswith("\n📋 Tool execution result:\n```\nls output\n```\n")
    assert reply.endswith("\nDone.")


@pytest.mark.asyncio
async def test_empty_reply_and_ignored_events():
    transport = FakeTransport([[OtherEvent("stream_event", "{}"), TurnResult("s")]])
    adapter = ClaudeCodeAdapter(transport)

    assert await adapter.query("anything") == NO_RESPONSE
    assert adapter.session.is_first_turn is True


@pytest.mark.asyncio
async def test_external_cancel_aborts_in_flight_query():
    gate = asyncio.Event()
    transport = FakeTransport([[SessionInit("s"), AssistantText("partial"), gate, AssistantText("never")]])
    adapter = ClaudeCodeAdapter(transport)
    token = CancelToken()

    task = asyncio.create_task(adapter.query("long job", cancel=token))
    await asyncio.sleep(0.01)
    assert adapter.in_flight is True
    token.cancel()

    with pytest.raises(QueryAbortedError):
        await asyncio.wait_for(task, timeout=1.0)
    assert adapter.in_flight is False


@pytest.mark.asyncio
async def test_new_query_cancels_the_superseded_one():
    gate = asyncio.Event()
    transport = FakeTransport([[SessionInit("s"), gate], [AssistantText("second")]])
    adapter = ClaudeCodeAdapter(transport)

    first = asyncio.create_task(adapter.query("first"))
    await asyncio.sleep(0.01)
    second = await adapter.query("second")

    assert second == "second"
    with pytest.raises(QueryAbortedError):
        await asyncio.wait_for(first, timeout=1.0)


@pytest.mark.asyncio
async def test_stop_aborts_active_query():
    gate = asyncio.Event()
    transport = FakeTransport([[gate]])
    adapter = ClaudeCodeAdapter(transport)

    task = asyncio.create_task(adapter.query("hang"))
    await asyncio.sleep(0.01)
    await adapter.stop()

    with pytest.raises(QueryAbortedError):
        await asyncio.wait_for(task, timeout=1.0)
