"""Models for catalog snapshots and deletion steps.

This module contains the planner's data model:
- Catalog models: TableRef, Relationship, CatalogSnapshot
- Step models: NullOutStep, DeleteStep, ReseedStep

Catalog models are frozen pydantic models (they arrive from catalog
readers and user configuration).  Steps are frozen dataclasses built by
the planner and rendered by a dialect.
"""

from dataclasses import dataclass
from typing import Union

from pydantic import BaseModel, ConfigDict, Field

from db_reset.errors import ConfigurationError


# ============================================================================
# Catalog Models
# ============================================================================


class TableRef(BaseModel):
    """Identity of a table: ``(schema_name, name)``.

    ``schema_name`` is ``None`` when a dialect has no schema concept or the
    caller does not care which schema a table lives in.

    Example:
        >>> TableRef.parse("public.users").schema_name
        'public'
        >>> TableRef.parse("users").schema_name is None
        True
    """

    model_config = ConfigDict(frozen=True)

    schema_name: str | None = None
    name: str

    @classmethod
    def parse(cls, value: "str | TableRef") -> "TableRef":
        """Build a TableRef from ``"schema.name"``, ``"name"`` or a TableRef."""
        if isinstance(value, TableRef):
            return value
        if not isinstance(value, str) or not value.strip():
            raise ConfigurationError(f"Invalid table name: {value!r}")
        parts = value.strip().split(".")
        if len(parts) == 1:
            return cls(name=parts[0])
        if len(parts) == 2 and all(parts):
            return cls(schema_name=parts[0], name=parts[1])
        raise ConfigurationError(f"Invalid table name: {value!r}")

    @property
    def qualified_name(self) -> str:
        if self.schema_name:
            return f"{self.schema_name}.{self.name}"
        return self.name

    def key(self, case_sensitive: bool = False) -> tuple[str, str]:
        """Comparison key honoring the dialect's case rules."""
        schema = self.schema_name or ""
        if case_sensitive:
            return (schema, self.name)
        return (schema.casefold(), self.name.casefold())

    def __str__(self) -> str:
        return self.qualified_name


class Relationship(BaseModel):
    """A foreign key from ``child.child_column`` to ``parent.parent_column``.

    ``nullable`` tells whether the child column may be set to NULL, which
    is required to break a cycle through this relationship.
    """

    model_config = ConfigDict(frozen=True)

    child: TableRef
    child_column: str
    parent: TableRef
    parent_column: str
    nullable: bool = True
    name: str | None = None  # FK constraint name, when the catalog has one

    def is_self_reference(self, case_sensitive: bool = False) -> bool:
        return self.child.key(case_sensitive) == self.parent.key(case_sensitive)

    def describe(self) -> str:
        """Human-readable ``child.col -> parent.col`` form."""
        return (
            f"{self.child.qualified_name}.{self.child_column} -> "
            f"{self.parent.qualified_name}.{self.parent_column}"
        )


class CatalogSnapshot(BaseModel):
    """Tables and foreign keys read from a live database.

    ``tables`` keeps catalog enumeration order, which the planner uses as
    its tie-break.  ``identity_columns`` maps a table's qualified name to
    its auto-increment/identity column (used only for reseeding), and
    ``identity_seeds`` to its ``(seed, increment)`` where the engine
    reports them.
    """

    tables: list[TableRef] = Field(default_factory=list)
    relationships: list[Relationship] = Field(default_factory=list)
    identity_columns: dict[str, str] = Field(default_factory=dict)
    identity_seeds: dict[str, tuple[int, int]] = Field(default_factory=dict)


# ============================================================================
# Deletion Steps
# ============================================================================


@dataclass(frozen=True)
class NullOutStep:
    """Clear one nullable FK column on every row to break a cycle.

    Example:
        step = NullOutStep(relationship=rel)
        step.table.qualified_name
        # 'public.parent'
    """

    relationship: Relationship

    @property
    def table(self) -> TableRef:
        return self.relationship.child

    @property
    def column(self) -> str:
        return self.relationship.child_column


@dataclass(frozen=True)
class DeleteStep:
    """Delete every row of one table."""

    table: TableRef


@dataclass(frozen=True)
class ReseedStep:
    """Restart a table's identity/sequence counter after it was emptied."""

    table: TableRef
    column: str
    seed: int = 1
    increment: int = 1


DeletionStep = Union[NullOutStep, DeleteStep, ReseedStep]
