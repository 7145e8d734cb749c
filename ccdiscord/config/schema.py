"""Configuration schema using Pydantic."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class Base(BaseModel):
    """Base model that accepts both camelCase and snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DiscordConfig(Base):
    """Discord bot connection and delivery settings."""

    token: str = ""
    channel_id: str = ""
    user_id: str = ""  # Only this user's messages are relayed
    thread_auto_archive_minutes: Literal[60, 1440, 4320, 10080] = 1440
    max_message_chars: int = Field(default=1900, gt=0)
    send_interval_seconds: float = Field(default=1.0, ge=0)
    command_prefix: str = "!"


class AgentConfig(Base):
    """Claude Code agent settings."""

    model: str = "claude-opus-4-20250514"
    max_turns: int = Field(default=300, gt=0)
    permission_mode: Literal["default", "acceptEdits", "plan", "bypassPermissions"] = "bypassPermissions"
    api_key: str | None = None
    cwd: str | None = None
    tool_result_preview_chars: int = Field(default=300, gt=0)


class SessionConfig(Base):
    """How the first turn relates to earlier Claude Code sessions."""

    continue_session: bool = False
    resume: str | None = None
    select: bool = False

    @model_validator(mode="after")
    def _check_exclusive(self):
        if self.continue_session and self.resume:
            raise ValueError("--continue and --resume cannot be used together")
        if self.select and (self.continue_session or self.resume):
            raise ValueError("--select cannot be used with --continue or --resume")
        return self


class NeverSleepConfig(Base):
    """Auto-trigger turns after inactivity."""

    enabled: bool = False
    idle_timeout_seconds: float = Field(default=300, gt=0)
    max_execution_seconds: float = Field(default=21600, gt=0)
    check_interval_seconds: float = Field(default=30, gt=0)


class Config(Base):
    """Root configuration for ccdiscord."""

    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    never_sleep: NeverSleepConfig = Field(default_factory=NeverSleepConfig)
    debug: bool = False
    locale: Literal["en", "ja"] = "en"
