import asyncio
from datetime import datetime, timedelta

import pytest

from ccdiscord.actors.base import Actor
from ccdiscord.actors.user import AUTO_RESPONDER
from ccdiscord.agent.cancel import QueryAbortedError
from ccdiscord.bus.events import MessageType
from ccdiscord.channels.base import BaseChannel, InboundChat
from ccdiscord.config.schema import Config
from ccdiscord.providers.factory import build_bus
from ccdiscord.agent.relay import Relay


class FakeChannel(BaseChannel):
    name = "fake"

    def __init__(self, fail_edits=False):
        super().__init__()
        self.sent: list[str] = []
        self.edits: list[tuple[int, str]] = []
        self.deleted: list[int] = []
        self.fail_edits = fail_edits

    async def start(self):
        self._running = True

    async def stop(self):
        self._running = False

    async def send_text(self, text):
        self.sent.append(text)
        return len(self.sent) - 1

    async def edit_text(self, handle, text):
        if self.fail_edits:
            raise RuntimeError("message gone")
        self.edits.append((handle, text))

    async def delete(self, handle):
        self.deleted.append(handle)

    def said(self, index):
        return self.sent[index]


class ProgressAssistant(Actor):
    """Assistant that reports two tool results, then answers; can hang until cancelled."""

    def __init__(self, name="assistant", hang_on=None, fail_on=None):
        super().__init__(name)
        self.hang_on = hang_on or set()
        self.fail_on = fail_on or set()
        self.seen = []

    def handlers(self):
        return {MessageType.USER_MESSAGE: self._query, MessageType.RESET_SESSION: self._reset}

    async def _query(self, message):
        text = message.text
        self.seen.append(text)
        on_progress = message.payload["on_progress"]
        token = message.payload["cancel_token"]
        await on_progress("tool 1")
        await on_progress("tool 2")
        if text in self.hang_on:
            await token.wait()
            return self.error(message, str(QueryAbortedError()), aborted=True)
        if text in self.fail_on:
            return self.error(message, "agent exploded")
        return self.reply(message, MessageType.ASSISTANT_RESPONSE, {"text": f"answer to {text}"})

    def _reset(self, message):
        self.seen.append("<reset>")
        return self.reply(message, MessageType.SESSION_RESET)


def _config(**overrides):
    config = Config(debug=True)
    config.discord.send_interval_seconds = 0
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


def _relay(assistant=None, channel=None, config=None, executor=None):
    config = config or _config()
    channel = channel or FakeChannel()
    bus = build_bus(config, assistant)
    return Relay(bus, channel, config, executor=executor), channel


def _chat(text):
    return InboundChat(text=text, author_id="42", channel_id="7")


@pytest.mark.asyncio
async def test_two_turns_complete_in_order_without_interleaving():
    relay, channel = _relay()

    await relay.handle_inbound(_chat("hello"))
    await relay.handle_inbound(_chat("status"))
    await relay.wait_idle()

    done_positions = [i for i, text in enumerate(channel.sent) if text == "(done)"]
    thinking_positions = [i for i, text in enumerate(channel.sent) if text == "🤔 Thinking..."]
    assert len(done_positions) == 2
    assert thinking_positions[0] < done_positions[0] < thinking_positions[1] < done_positions[1]
    assert channel.said(thinking_positions[0] + 1) == "Hello! How are you?"
    assert sorted(channel.deleted) == thinking_positions


@pytest.mark.asyncio
async def test_progress_is_edited_in_place_then_removed():
    assistant = ProgressAssistant()
    relay, channel = _relay(assistant)

    await relay.handle_inbound(_chat("build it"))
    await relay.wait_idle()

    assert channel.sent == ["🤔 Thinking...", "tool 1", "answer to build it", "(done)"]
    assert channel.edits == [(1, "tool 2")]
    assert channel.deleted == [1, 0]
    assert relay.last_reply == "answer to build it"


@pytest.mark.asyncio
async def test_failed_edit_falls_back_to_a_new_progress_message():
    relay, channel = _relay(ProgressAssistant(), channel=FakeChannel(fail_edits=True))

    await relay.handle_inbound(_chat("build it"))
    await relay.wait_idle()

    assert channel.sent[:3] == ["🤔 Thinking...", "tool 1", "tool 2"]
    assert 2 in channel.deleted


@pytest.mark.asyncio
async def test_stop_aborts_current_turn_and_clears_queue():
    assistant = ProgressAssistant(hang_on={"slow"})
    relay, channel = _relay(assistant)

    await relay.handle_inbound(_chat("slow"))
    await asyncio.sleep(0.01)
    await relay.handle_inbound(_chat("queued one"))
    await relay.handle_inbound(_chat("!stop"))
    await relay.wait_idle()

    assert "📝 Added to queue (waiting: 1)" in channel.sent
    assert "⛔ Stopped running tasks." in channel.sent
    assert "⛔ Task was aborted." in channel.sent
    assert assistant.seen == ["slow"]
    assert "(done)" not in channel.sent

    await relay.handle_inbound(_chat("after"))
    await relay.wait_idle()
    assert channel.sent[-1] == "(done)"
    assert assistant.seen == ["slow", "after"]


@pytest.mark.asyncio
async def test_error_response_is_reported_and_queue_continues():
    relay, channel = _relay(ProgressAssistant(fail_on={"bad"}))

    await relay.handle_inbound(_chat("bad"))
    await relay.handle_inbound(_chat("good"))
    await relay.wait_idle()

    assert "❌ An error occurred: agent exploded" in channel.sent
    assert channel.sent[-2:] == ["answer to good", "(done)"]


@pytest.mark.asyncio
async def test_commands_are_handled_without_queueing():
    assistant = ProgressAssistant()
    relay, channel = _relay(assistant)

    await relay.handle_inbound(_chat("!reset"))
    await relay.handle_inbound(_chat("!help"))
    await relay.handle_inbound(_chat("!ls -la"))
    await relay.handle_inbound(_chat("!"))
    await relay.handle_inbound(_chat("!exit"))

    assert assistant.seen == ["<reset>"]
    assert channel.sent[0] == "💫 Conversation reset. Let's start a new conversation!"
    assert channel.sent[1].startswith("Available commands:\n!reset / !clear")
    assert channel.sent[2] == "❌ Shell commands are disabled: ls -la"
    assert channel.sent[3] == "❌ No command specified."
    assert channel.sent[4] == "👋 (exit) - Shutting down bot"
    assert relay.shutdown_event.is_set()
    assert relay.queue.size == 0


@pytest.mark.asyncio
async def test_command_executor_output_is_delivered():
    calls = []

    async def executor(command):
        calls.append(command)
        return "file-a\nfile-b"

    relay, channel = _relay(executor=executor)

    await relay.handle_inbound(_chat("!ls"))

    assert calls == ["ls"]
    assert channel.sent == ["file-a\nfile-b"]


@pytest.mark.asyncio
async def test_long_reply_is_chunked_on_line_boundaries():
    config = _config()
    config.discord.max_message_chars = 10
    relay, channel = _relay(config=config)

    await relay.deliver_long("aaaa\nbbbb\ncccc\n" + "x" * 25)

    assert channel.sent == ["aaaa\nbbbb", "cccc", "x" * 25]


@pytest.mark.asyncio
async def test_never_sleep_queues_suggestion_after_idle():
    config = _config()
    config.never_sleep.enabled = True
    relay, channel = _relay(ProgressAssistant(), config=config)
    relay.last_activity = datetime.now() - timedelta(minutes=6)
    relay.last_reply = "now write the test cases"

    assert await relay.check_never_sleep() is True
    await relay.wait_idle()

    assert channel.sent[0].startswith("⏰ No activity for 6 min")
    assert channel.sent[0].endswith("Run unit tests")
    assert channel.sent[-2:] == ["answer to Run unit tests", "(done)"]


@pytest.mark.asyncio
async def test_never_sleep_does_nothing_while_recently_active():
    config = _config()
    config.never_sleep.enabled = True
    relay, channel = _relay(ProgressAssistant(), config=config)

    assert await relay.check_never_sleep() is True
    assert channel.sent == []
    assert relay.queue.size == 0


@pytest.mark.asyncio
async def test_never_sleep_stops_when_budget_is_spent():
    config = _config()
    config.never_sleep.enabled = True
    relay, channel = _relay(config=config)
    relay.started_at = datetime.now() - timedelta(hours=7)

    assert await relay.check_never_sleep() is False
    assert channel.sent == ["⏱️ Maximum execution time reached. Never Sleep mode paused."]


@pytest.mark.asyncio
async def test_start_and_stop_drive_actor_lifecycle():
    config = _config()
    config.never_sleep.enabled = True
    config.never_sleep.check_interval_seconds = 60
    relay, _ = _relay(config=config)

    await relay.start()
    assert relay.bus.get(AUTO_RESPONDER).is_running is True
    await relay.stop()
    assert relay.bus.get(AUTO_RESPONDER).is_running is False
