"""Actors that exchange envelopes through the message bus."""

from ccdiscord.actors.assistant import AgentActor
from ccdiscord.actors.auto_responder import AutoResponderActor
from ccdiscord.actors.base import Actor
from ccdiscord.actors.debug import DebugActor
from ccdiscord.actors.user import UserActor

__all__ = ["Actor", "AgentActor", "AutoResponderActor", "DebugActor", "UserActor"]
