"""Configuration module for ccdiscord."""

from ccdiscord.config.loader import get_config_path, load_config
from ccdiscord.config.schema import Config

__all__ = ["Config", "load_config", "get_config_path"]
