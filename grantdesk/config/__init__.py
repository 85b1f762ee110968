"""Configuration module - exports Settings and load_config."""

from grantdesk.config.loader import load_config
from grantdesk.config.settings import Settings

__all__ = ["Settings", "load_config"]
