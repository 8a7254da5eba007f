"""Dialect protocol and shared SQL rendering.

A dialect pairs a catalog reader (``read_catalog``) with a statement
renderer (``render``).  The planner never builds SQL itself; new engines
are added by implementing this interface.

Usage:
    from db_reset.dialects.base import Dialect

    async def plan(conn: DatabaseConnection, dialect: Dialect) -> list[str]:
        snapshot = await dialect.read_catalog(conn)
        ...
        return [dialect.render(step) for step in steps]
"""

from typing import Any, Protocol

from db_reset.connection import DatabaseConnection
from db_reset.graph.models import (
    CatalogSnapshot,
    DeleteStep,
    DeletionStep,
    NullOutStep,
    Relationship,
    ReseedStep,
    TableRef,
)


class Dialect(Protocol):
    """Engine-specific catalog reading and statement rendering."""

    name: str
    case_sensitive: bool
    supports_transactional_reset: bool

    def quote_identifier(self, identifier: str) -> str:
        """Quote a single identifier (schema, table or column name)."""
        ...

    def render(self, step: DeletionStep) -> str:
        """Render one deletion step as SQL text (no trailing semicolon)."""
        ...

    async def read_catalog(self, connection: DatabaseConnection) -> CatalogSnapshot:
        """Read all user tables, foreign keys and identity columns.

        Tables must come back in a stable order (schema, then name) so
        plans are reproducible.
        """
        ...


class SQLDialect:
    """Base class with the rendering shared by all bundled dialects.

    Subclasses set the class attributes, implement ``read_catalog`` and
    ``render_reseed``, and override ``quote_identifier`` when the engine
    does not use ANSI double quotes.
    """

    name: str = "sql"
    case_sensitive: bool = False
    supports_transactional_reset: bool = True

    def quote_identifier(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def quote_literal(self, value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    def qualify(self, table: TableRef) -> str:
        """Quoted ``schema.table`` (or just ``table`` without a schema)."""
        if table.schema_name:
            return f"{self.quote_identifier(table.schema_name)}.{self.quote_identifier(table.name)}"
        return self.quote_identifier(table.name)

    def render(self, step: DeletionStep) -> str:
        if isinstance(step, NullOutStep):
            return (
                f"UPDATE {self.qualify(step.table)} "
                f"SET {self.quote_identifier(step.column)} = NULL"
            )
        if isinstance(step, DeleteStep):
            return f"DELETE FROM {self.qualify(step.table)}"
        if isinstance(step, ReseedStep):
            return self.render_reseed(step)
        raise TypeError(f"Unknown deletion step: {step!r}")

    def render_reseed(self, step: ReseedStep) -> str:
        raise NotImplementedError(f"{self.name} does not support reseeding")

    async def read_catalog(self, connection: DatabaseConnection) -> CatalogSnapshot:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


# ------------------------------------------------------------------
# Row helpers shared by information_schema-style readers
# ------------------------------------------------------------------


def tables_from_rows(rows: list[dict[str, Any]]) -> list[TableRef]:
    """Rows with ``table_schema``/``table_name`` -> TableRefs, order kept."""
    return [TableRef(schema_name=r["table_schema"], name=r["table_name"]) for r in rows]


def relationships_from_rows(rows: list[dict[str, Any]]) -> list[Relationship]:
    """Rows from a foreign-key catalog query -> Relationships.

    Expected keys: ``constraint_name``, ``child_schema``, ``child_table``,
    ``child_column``, ``parent_schema``, ``parent_table``,
    ``parent_column``, ``is_nullable``.  ``is_nullable`` may be a bool, an
    int, or a ``"YES"``/``"NO"`` string.
    """
    relationships: list[Relationship] = []
    for r in rows:
        nullable = r["is_nullable"]
        if isinstance(nullable, str):
            nullable = nullable.upper() in ("YES", "Y", "TRUE", "1")
        relationships.append(
            Relationship(
                child=TableRef(schema_name=r["child_schema"], name=r["child_table"]),
                child_column=r["child_column"],
                parent=TableRef(schema_name=r["parent_schema"], name=r["parent_table"]),
                parent_column=r["parent_column"] or "",
                nullable=bool(nullable),
                name=r.get("constraint_name"),
            )
        )
    return relationships


def identity_columns_from_rows(rows: list[dict[str, Any]]) -> dict[str, str]:
    """First identity column per table, keyed by qualified name."""
    identity: dict[str, str] = {}
    for r in rows:
        table = TableRef(schema_name=r["table_schema"], name=r["table_name"])
        identity.setdefault(table.qualified_name, r["column_name"])
    return identity
