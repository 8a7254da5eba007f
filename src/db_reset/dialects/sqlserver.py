"""Microsoft SQL Server dialect.

Reads the catalog from the ``sys`` views and quotes with brackets.
Reseeding uses ``DBCC CHECKIDENT``.  Its effect depends on whether the
table ever held a row: ``RESEED, n`` makes the next value ``n`` on a
never-used table (``last_value IS NULL``) and ``n + increment``
otherwise.  The rendered statement checks ``last_value`` when it runs, so
the next identity is the declared seed in both cases.
"""

from db_reset.connection import DatabaseConnection
from db_reset.dialects.base import (
    SQLDialect,
    identity_columns_from_rows,
    relationships_from_rows,
    tables_from_rows,
)
from db_reset.graph.models import CatalogSnapshot, ReseedStep, TableRef

_TABLES_SQL = """
    SELECT s.name AS table_schema, t.name AS table_name
    FROM sys.tables t
    JOIN sys.schemas s ON s.schema_id = t.schema_id
    WHERE t.is_ms_shipped = 0
    ORDER BY s.name, t.name
"""

_FOREIGN_KEYS_SQL = """
    SELECT
        fk.name AS constraint_name,
        cs.name AS child_schema,
        ct.name AS child_table,
        cc.name AS child_column,
        cc.is_nullable AS is_nullable,
        ps.name AS parent_schema,
        pt.name AS parent_table,
        pc.name AS parent_column
    FROM sys.foreign_key_columns fkc
    JOIN sys.foreign_keys fk ON fk.object_id = fkc.constraint_object_id
    JOIN sys.tables ct ON ct.object_id = fkc.parent_object_id
    JOIN sys.schemas cs ON cs.schema_id = ct.schema_id
    JOIN sys.columns cc
        ON cc.object_id = fkc.parent_object_id AND cc.column_id = fkc.parent_column_id
    JOIN sys.tables pt ON pt.object_id = fkc.referenced_object_id
    JOIN sys.schemas ps ON ps.schema_id = pt.schema_id
    JOIN sys.columns pc
        ON pc.object_id = fkc.referenced_object_id AND pc.column_id = fkc.referenced_column_id
    ORDER BY cs.name, ct.name, fk.name, fkc.constraint_column_id
"""

_IDENTITY_SQL = """
    SELECT
        s.name AS table_schema,
        t.name AS table_name,
        c.name AS column_name,
        CAST(c.seed_value AS bigint) AS seed_value,
        CAST(c.increment_value AS bigint) AS increment_value
    FROM sys.identity_columns c
    JOIN sys.tables t ON t.object_id = c.object_id
    JOIN sys.schemas s ON s.schema_id = t.schema_id
    WHERE t.is_ms_shipped = 0
    ORDER BY s.name, t.name
"""


class SQLServerDialect(SQLDialect):
    """SQL Server catalog reader and statement renderer."""

    name = "sqlserver"
    case_sensitive = False
    supports_transactional_reset = True

    def quote_identifier(self, identifier: str) -> str:
        return "[" + identifier.replace("]", "]]") + "]"

    async def read_catalog(self, connection: DatabaseConnection) -> CatalogSnapshot:
        tables = tables_from_rows(await connection.fetch_all(_TABLES_SQL))
        relationships = relationships_from_rows(await connection.fetch_all(_FOREIGN_KEYS_SQL))
        identity_rows = await connection.fetch_all(_IDENTITY_SQL)
        identity = identity_columns_from_rows(identity_rows)
        seeds = {
            TableRef(schema_name=r["table_schema"], name=r["table_name"]).qualified_name: (
                int(r["seed_value"]),
                int(r["increment_value"]),
            )
            for r in identity_rows
        }
        return CatalogSnapshot(
            tables=tables,
            relationships=relationships,
            identity_columns=identity,
            identity_seeds=seeds,
        )

    def render_reseed(self, step: ReseedStep) -> str:
        table = "N" + self.quote_literal(self.qualify(step.table))
        return (
            "IF EXISTS (SELECT 1 FROM sys.identity_columns "
            f"WHERE object_id = OBJECT_ID({table}) AND last_value IS NOT NULL) "
            f"DBCC CHECKIDENT ({table}, RESEED, {step.seed - step.increment}) "
            f"ELSE DBCC CHECKIDENT ({table}, RESEED, {step.seed})"
        )
