"""TOML configuration loader for db-reset profiles and checkpoint options."""

import tomllib
from pathlib import Path

from pydantic import ValidationError

from db_reset.config.models import CheckpointOptions, DatabaseProfile, ResetConfig
from db_reset.errors import ConfigurationError

DEFAULT_CONFIG_FILE = "db-reset.toml"


def load_reset_config(config_path: Path | str | None = None) -> ResetConfig:
    """Load profiles and checkpoint options from a TOML file.

    Args:
        config_path: Path to the config file (default: ``./db-reset.toml``).

    Returns:
        ResetConfig with all profiles and the ``[checkpoint]`` options.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ConfigurationError: If the file content is invalid.
    """
    if config_path is None:
        config_path = Path.cwd() / DEFAULT_CONFIG_FILE
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(
            f"Reset config not found: {config_path}\n"
            f"Create {DEFAULT_CONFIG_FILE} with at least one [profiles.<name>] table."
        )

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {config_path.name}: {e}") from e

    try:
        profiles = {
            name: DatabaseProfile(**profile_data)
            for name, profile_data in data.get("profiles", {}).items()
        }
        checkpoint = CheckpointOptions(**data.get("checkpoint", {}))
    except (TypeError, ValidationError) as e:
        raise ConfigurationError(f"Invalid configuration in {config_path.name}: {e}") from e

    checkpoint.check()

    return ResetConfig(profiles=profiles, checkpoint=checkpoint)
