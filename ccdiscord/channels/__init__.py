"""Chat channels module."""

from ccdiscord.channels.base import BaseChannel, InboundChat

__all__ = ["BaseChannel", "InboundChat"]
