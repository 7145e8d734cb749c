"""Conversation continuity state for the agent adapter."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SessionState:
    """
    Continuity flags for one adapter.

    ``resume_target`` only applies while ``is_first_turn`` is true; after the
    first session-init every turn continues the current session.
    """

    is_first_turn: bool = True
    current_session_id: str | None = None
    resume_target: str | None = None

    def reset(self) -> None:
        self.is_first_turn = True
        self.current_session_id = None
        self.resume_target = None
