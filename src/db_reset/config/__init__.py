"""Configuration management: profiles, checkpoint options, TOML loading.

Usage:
    >>> from db_reset.config import load_reset_config, CheckpointOptions, DatabaseProfile
"""

from db_reset.config.loader import load_reset_config
from db_reset.config.models import CheckpointOptions, DatabaseProfile, ResetConfig

__all__ = ["load_reset_config", "CheckpointOptions", "DatabaseProfile", "ResetConfig"]
