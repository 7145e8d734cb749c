"""Assistant factory to keep actor selection isolated from CLI logic."""

from __future__ import annotations

from datetime import timedelta

from ccdiscord.actors.assistant import AgentActor
from ccdiscord.actors.auto_responder import AutoResponderActor
from ccdiscord.actors.base import Actor
from ccdiscord.actors.debug import DebugActor
from ccdiscord.actors.user import ASSISTANT, DEBUG, UserActor
from ccdiscord.agent.adapter import ClaudeCodeAdapter
from ccdiscord.bus.queue import MessageBus
from ccdiscord.config.schema import Config
from ccdiscord.providers.claude_transport import ClaudeTransport


def create_assistant(config: Config, name: str = ASSISTANT) -> Actor:
    """Create the assistant actor: the debug responder in debug mode, else Claude Code."""
    if config.debug:
        return DebugActor(name=name)

    agent = config.agent
    transport = ClaudeTransport(
        model=agent.model,
        max_turns=agent.max_turns,
        permission_mode=agent.permission_mode,
        cwd=agent.cwd,
        api_key=agent.api_key,
    )
    adapter = ClaudeCodeAdapter(
        transport,
        resume=config.session.resume,
        continue_session=config.session.continue_session,
        tool_result_preview_chars=agent.tool_result_preview_chars,
    )
    return AgentActor(adapter, name=name)


def build_bus(config: Config, assistant: Actor | None = None) -> MessageBus:
    """Register the user, auto-responder, assistant and debug actors."""
    bus = MessageBus()
    bus.register(UserActor(command_prefix=config.discord.command_prefix))
    bus.register(
        AutoResponderActor(
            idle_timeout=timedelta(seconds=config.never_sleep.idle_timeout_seconds),
            max_execution_time=timedelta(seconds=config.never_sleep.max_execution_seconds),
        )
    )
    bus.register(assistant or create_assistant(config))
    bus.register(DebugActor(name=DEBUG))
    return bus
