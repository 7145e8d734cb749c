import pytest
from pydantic import ValidationError

from ccdiscord.config.schema import AgentConfig, Config, DiscordConfig, SessionConfig


def test_defaults():
    cfg = Config()
    assert cfg.agent.model == "claude-opus-4-20250514"
    assert cfg.agent.max_turns == 300
    assert cfg.agent.permission_mode == "bypassPermissions"
    assert cfg.agent.tool_result_preview_chars == 300
    assert cfg.discord.thread_auto_archive_minutes == 1440
    assert cfg.discord.max_message_chars == 1900
    assert cfg.never_sleep.enabled is False
    assert cfg.never_sleep.idle_timeout_seconds == 300
    assert cfg.never_sleep.max_execution_seconds == 6 * 60 * 60
    assert cfg.locale == "en"


def test_accepts_camel_case_keys():
    cfg = Config.model_validate(
        {
            "discord": {"channelId": "123", "userId": "456"},
            "neverSleep": {"enabled": True, "idleTimeoutSeconds": 60},
        }
    )

    assert cfg.discord.channel_id == "123"
    assert cfg.discord.user_id == "456"
    assert cfg.never_sleep.enabled is True
    assert cfg.never_sleep.idle_timeout_seconds == 60


@pytest.mark.parametrize(
    "kwargs",
    [
        {"continue_session": True, "resume": "abc"},
        {"select": True, "continue_session": True},
        {"select": True, "resume": "abc"},
    ],
)
def test_session_options_are_mutually_exclusive(kwargs):
    with pytest.raises(ValidationError):
        SessionConfig(**kwargs)


def test_session_options_alone_are_fine():
    assert SessionConfig(resume="abc").resume == "abc"
    assert SessionConfig(continue_session=True).continue_session is True
    assert SessionConfig(select=True).select is True


def test_invalid_values_are_rejected():
    with pytest.raises(ValidationError):
        AgentConfig(permission_mode="yolo")
    with pytest.raises(ValidationError):
        DiscordConfig(thread_auto_archive_minutes=5)
    with pytest.raises(ValidationError):
        Config(locale="fr")
