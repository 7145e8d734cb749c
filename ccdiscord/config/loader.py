"""Configuration loading utilities."""

import json
import os
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from ccdiscord.config.schema import Config

# Environment variable -> (section, field)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "CC_DISCORD_TOKEN": ("discord", "token"),
    "CC_DISCORD_CHANNEL_ID": ("discord", "channel_id"),
    "CC_DISCORD_USER_ID": ("discord", "user_id"),
    "CC_ANTHROPIC_API_KEY": ("agent", "api_key"),
    "CC_CLAUDE_API_KEY": ("agent", "api_key"),
}


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".ccdiscord" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file, then apply environment overrides.

    A missing or unreadable file falls back to defaults.
    """
    path = config_path or get_config_path()
    data: dict = {}

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = _migrate_config(json.load(f))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Using default configuration.")
            data = {}

    try:
        config = Config.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Invalid config in {path}: {e}")
        logger.warning("Using default configuration.")
        config = Config()

    return apply_env_overrides(config)


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Save configuration to file."""
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(by_alias=True, exclude={"session"})
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def apply_env_overrides(config: Config, environ: dict[str, str] | None = None) -> Config:
    """Copy CC_* environment variables over file values. Later keys in ``ENV_OVERRIDES`` win."""
    env = os.environ if environ is None else environ
    for var, (section, field) in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            setattr(getattr(config, section), field, value)
    return config


def validate_config(config: Config) -> list[str]:
    """Return the problems that prevent connecting to Discord."""
    errors: list[str] = []
    if not config.discord.token:
        errors.append("CC_DISCORD_TOKEN is not set")
    if not config.discord.channel_id:
        errors.append("CC_DISCORD_CHANNEL_ID is not set")
    if not config.discord.user_id:
        errors.append("CC_DISCORD_USER_ID is not set")
    if not config.debug and not config.agent.api_key:
        logger.warning("No Claude API key configured; relying on the Claude Code CLI login")
    return errors


def _migrate_config(data: dict) -> dict:
    """Migrate old flat config formats to the current one."""
    discord = data.setdefault("discord", {})
    for old, new in (
        ("discordToken", "token"),
        ("channelId", "channelId"),
        ("userId", "userId"),
    ):
        if old in data and new not in discord:
            discord[new] = data.pop(old)

    agent = data.setdefault("agent", {})
    for old, new in (("claudeApiKey", "apiKey"), ("model", "model"), ("maxTurns", "maxTurns")):
        if old in data and new not in agent:
            agent[new] = data.pop(old)

    if "neverSleep" in data and isinstance(data["neverSleep"], bool):
        data["neverSleep"] = {"enabled": data["neverSleep"]}
    if "debugMode" in data and "debug" not in data:
        data["debug"] = data.pop("debugMode")
    return data
