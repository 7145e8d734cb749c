import json

from ccdiscord.config.loader import (
    _migrate_config,
    apply_env_overrides,
    load_config,
    save_config,
    validate_config,
)
from ccdiscord.config.schema import Config


def test_migrate_moves_flat_keys_into_sections():
    data = {
        "discordToken": "tok",
        "channelId": "123",
        "userId": "456",
        "claudeApiKey": "sk",
        "neverSleep": True,
        "debugMode": False,
    }

    migrated = _migrate_config(data)

    assert migrated["discord"] == {"token": "tok", "channelId": "123", "userId": "456"}
    assert migrated["agent"] == {"apiKey": "sk"}
    assert migrated["neverSleep"] == {"enabled": True}
    assert migrated["debug"] is False
    assert "discordToken" not in migrated


def test_migrate_does_not_override_existing_section_values():
    data = {"discordToken": "old", "discord": {"token": "new"}}

    migrated = _migrate_config(data)

    assert migrated["discord"]["token"] == "new"


def test_load_missing_file_uses_defaults(tmp_path, monkeypatch):
    for var in ("CC_DISCORD_TOKEN", "CC_DISCORD_CHANNEL_ID", "CC_DISCORD_USER_ID", "CC_CLAUDE_API_KEY", "CC_ANTHROPIC_API_KEY"):
        monkeypatch.delenv(var, raising=False)

    cfg = load_config(tmp_path / "missing.json")

    assert cfg == Config()


def test_load_applies_env_over_file(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"discord": {"token": "file-token", "channelId": "1"}}), encoding="utf-8")
    monkeypatch.setenv("CC_DISCORD_TOKEN", "env-token")
    monkeypatch.delenv("CC_DISCORD_CHANNEL_ID", raising=False)

    cfg = load_config(path)

    assert cfg.discord.token == "env-token"
    assert cfg.discord.channel_id == "1"


def test_load_invalid_json_falls_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("CC_DISCORD_TOKEN", raising=False)
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")

    assert load_config(path).discord.token == ""


def test_claude_key_wins_over_anthropic_key():
    cfg = apply_env_overrides(
        Config(),
        {"CC_ANTHROPIC_API_KEY": "anthropic", "CC_CLAUDE_API_KEY": "claude"},
    )

    assert cfg.agent.api_key == "claude"


def test_save_round_trips_with_camel_case(tmp_path, monkeypatch):
    monkeypatch.delenv("CC_DISCORD_USER_ID", raising=False)
    path = tmp_path / "nested" / "config.json"
    cfg = Config()
    cfg.discord.user_id = "42"

    save_config(cfg, path)

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["discord"]["userId"] == "42"
    assert "session" not in raw
    assert load_config(path).discord.user_id == "42"


def test_validate_reports_missing_discord_credentials():
    cfg = Config()
    cfg.discord.token = "tok"

    errors = validate_config(cfg)

    assert errors == ["CC_DISCORD_CHANNEL_ID is not set", "CC_DISCORD_USER_ID is not set"]
