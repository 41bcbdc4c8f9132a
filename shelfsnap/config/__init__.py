"""Configuration management module."""

from shelfsnap.config.config_manager import ConfigManager

__all__ = ["ConfigManager"]
