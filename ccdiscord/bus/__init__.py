"""Message bus module for routing envelopes between actors."""

from ccdiscord.bus.events import BROADCAST, Envelope, MessageType
from ccdiscord.bus.queue import MessageBus

__all__ = ["BROADCAST", "Envelope", "MessageBus", "MessageType"]
