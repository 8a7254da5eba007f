"""Pydantic models for reset options and database profiles."""

from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from db_reset.errors import ConfigurationError
from db_reset.graph.models import TableRef


# ============================================================================
# Checkpoint Options
# ============================================================================


class CheckpointOptions(BaseModel):
    """Which tables a checkpoint covers and how it resets them.

    Include and exclude are mutually exclusive per axis: use either
    ``schemas_to_include`` or ``schemas_to_exclude``, and either
    ``tables_to_include`` or ``tables_to_ignore``.

    Table entries accept ``"schema.table"``, ``"table"`` (any schema) or
    ``TableRef`` values.

    Example:
        >>> opts = CheckpointOptions(
        ...     schemas_to_include=["public"],
        ...     tables_to_ignore=["schema_migrations"],
        ... )
        >>> opts.tables_to_ignore[0].name
        'schema_migrations'
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    schemas_to_include: list[str] = Field(default_factory=list)
    schemas_to_exclude: list[str] = Field(default_factory=list)
    tables_to_include: list[TableRef] = Field(default_factory=list)
    tables_to_ignore: list[TableRef] = Field(default_factory=list)
    with_reseed: bool = False
    # Overrides the dialect's DELETE text, e.g. for soft-delete tables
    format_delete_statement: Callable[[TableRef], str] | None = Field(
        default=None, exclude=True
    )

    @field_validator("tables_to_include", "tables_to_ignore", mode="before")
    @classmethod
    def _parse_tables(cls, value: object) -> object:
        if isinstance(value, (list, tuple)):
            return [TableRef.parse(v) if isinstance(v, str) else v for v in value]
        return value

    def check(self) -> None:
        """Reject contradictory filter combinations.

        Raises:
            ConfigurationError: If include and exclude are both set on the
                schema axis or the table axis.
        """
        if self.schemas_to_include and self.schemas_to_exclude:
            raise ConfigurationError(
                "schemas_to_include and schemas_to_exclude are mutually exclusive"
            )
        if self.tables_to_include and self.tables_to_ignore:
            raise ConfigurationError(
                "tables_to_include and tables_to_ignore are mutually exclusive"
            )
        for schema in self.schemas_to_include + self.schemas_to_exclude:
            if not schema or not schema.strip():
                raise ConfigurationError("Schema names must be non-empty")


# ============================================================================
# Configuration Models
# ============================================================================


class DatabaseProfile(BaseModel):
    """Database connection profile from db-reset.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    dialect: str | None = None  # Inferred from the URL scheme when unset


class ResetConfig(BaseModel):
    """Complete configuration from db-reset.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    checkpoint: CheckpointOptions = Field(default_factory=CheckpointOptions)
