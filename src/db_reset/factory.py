"""Profile resolution and connection factory.

Profiles live in ``db-reset.toml``.  The active profile comes from an
explicit argument or the ``{prefix}DB_PROFILE`` environment variable.

Usage:
    from db_reset.factory import open_connection

    conn, dialect = await open_connection("local")
    try:
        checkpoint = await create_checkpoint(conn, dialect)
    finally:
        await conn.close()
"""

import logging
import os
from urllib.parse import quote

from db_reset.config.loader import load_reset_config
from db_reset.config.models import DatabaseProfile, ResetConfig
from db_reset.connection import SQLAlchemyConnection
from db_reset.dialects import SQLDialect, get_dialect
from db_reset.errors import ProfileNotFoundError

logger = logging.getLogger(__name__)


# ============================================================================
# Profile Resolution
# ============================================================================


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get the active profile name from ``{env_prefix}DB_PROFILE``.

    Args:
        env_prefix: Prefix for the environment variable (e.g. ``"APP_"``
            reads ``APP_DB_PROFILE``).

    Returns:
        Profile name.

    Raises:
        ProfileNotFoundError: If the variable is unset or empty.
    """
    env_var = f"{env_prefix}DB_PROFILE"
    profile_name = os.environ.get(env_var)
    if profile_name:
        return profile_name

    raise ProfileNotFoundError(
        "No database profile selected.\n"
        f"Pass --profile <name> or set {env_var}=<name>"
    )


def get_profile(config: ResetConfig, profile_name: str) -> DatabaseProfile:
    """Look up *profile_name* in *config*.

    Raises:
        ProfileNotFoundError: If the profile is not defined.
    """
    if profile_name not in config.profiles:
        available = ", ".join(config.profiles) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found. Available: {available}"
        )
    return config.profiles[profile_name]


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Example:
        >>> p = DatabaseProfile(url="postgresql://app:[YOUR-PASSWORD]@db/app", db_password="p@ss")
        >>> resolve_url(p)
        'postgresql://app:p%40ss@db/app'
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


def resolve_dialect(profile: DatabaseProfile) -> SQLDialect:
    """The profile's explicit dialect, else the one implied by its URL."""
    return get_dialect(profile.dialect or profile.url)


# ============================================================================
# Connection Factory
# ============================================================================


async def open_connection(
    profile_name: str | None = None,
    config: ResetConfig | None = None,
    env_prefix: str = "",
) -> tuple[SQLAlchemyConnection, SQLDialect]:
    """Open a connection for a configured profile.

    Args:
        profile_name: Profile from ``db-reset.toml``.  If None, uses the
            ``{env_prefix}DB_PROFILE`` environment variable.
        config: Loaded configuration (default: ``load_reset_config()``).
        env_prefix: Prefix for environment variable lookup.

    Returns:
        ``(connection, dialect)``.  The caller closes the connection.

    Raises:
        ProfileNotFoundError: If no profile is selected or it is unknown.
        ConfigurationError: If the profile's dialect is unknown.

    Example:
        >>> conn, dialect = await open_connection("docker")
        >>> dialect.name
        'postgres'
    """
    if profile_name is None:
        profile_name = get_active_profile_name(env_prefix)
    if config is None:
        config = load_reset_config()

    profile = get_profile(config, profile_name)
    dialect = resolve_dialect(profile)

    logger.debug(f"Connecting to profile '{profile_name}' ({dialect.name})")
    connection = await SQLAlchemyConnection.connect(resolve_url(profile))
    return connection, dialect
