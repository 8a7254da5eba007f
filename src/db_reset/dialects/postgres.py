"""PostgreSQL dialect.

Reads the catalog via ``information_schema`` and ``pg_catalog``; renders
ANSI-quoted statements.  Reseeding restarts the sequence behind each
serial/identity column with ``setval``.

Identifiers are case-sensitive once quoted, so table identity is
compared case-sensitively.
"""

from db_reset.connection import DatabaseConnection
from db_reset.dialects.base import (
    SQLDialect,
    identity_columns_from_rows,
    relationships_from_rows,
    tables_from_rows,
)
from db_reset.graph.models import CatalogSnapshot, ReseedStep

_TABLES_SQL = """
    SELECT table_schema, table_name
    FROM information_schema.tables
    WHERE table_type = 'BASE TABLE'
      AND table_schema NOT IN ('pg_catalog', 'information_schema')
      AND table_schema NOT LIKE 'pg_toast%'
    ORDER BY table_schema, table_name
"""

_FOREIGN_KEYS_SQL = """
    SELECT
        con.conname AS constraint_name,
        cn.nspname AS child_schema,
        cl.relname AS child_table,
        ca.attname AS child_column,
        NOT ca.attnotnull AS is_nullable,
        pn.nspname AS parent_schema,
        pl.relname AS parent_table,
        pa.attname AS parent_column
    FROM pg_constraint con
    JOIN LATERAL unnest(con.conkey, con.confkey)
        WITH ORDINALITY AS k(child_attnum, parent_attnum, ord) ON TRUE
    JOIN pg_class cl ON cl.oid = con.conrelid
    JOIN pg_namespace cn ON cn.oid = cl.relnamespace
    JOIN pg_attribute ca ON ca.attrelid = con.conrelid AND ca.attnum = k.child_attnum
    JOIN pg_class pl ON pl.oid = con.confrelid
    JOIN pg_namespace pn ON pn.oid = pl.relnamespace
    JOIN pg_attribute pa ON pa.attrelid = con.confrelid AND pa.attnum = k.parent_attnum
    WHERE con.contype = 'f'
    ORDER BY cn.nspname, cl.relname, con.conname, k.ord
"""

_IDENTITY_SQL = """
    SELECT table_schema, table_name, column_name
    FROM information_schema.columns
    WHERE (column_default LIKE 'nextval(%' OR is_identity = 'YES')
      AND table_schema NOT IN ('pg_catalog', 'information_schema')
    ORDER BY table_schema, table_name, ordinal_position
"""


class PostgresDialect(SQLDialect):
    """PostgreSQL catalog reader and statement renderer."""

    name = "postgres"
    case_sensitive = True
    supports_transactional_reset = True

    async def read_catalog(self, connection: DatabaseConnection) -> CatalogSnapshot:
        tables = tables_from_rows(await connection.fetch_all(_TABLES_SQL))
        relationships = relationships_from_rows(await connection.fetch_all(_FOREIGN_KEYS_SQL))
        identity = identity_columns_from_rows(await connection.fetch_all(_IDENTITY_SQL))
        return CatalogSnapshot(
            tables=tables,
            relationships=relationships,
            identity_columns=identity,
        )

    def render_reseed(self, step: ReseedStep) -> str:
        # pg_get_serial_sequence parses the table name as SQL, the column literally
        table = self.quote_literal(self.qualify(step.table))
        column = self.quote_literal(step.column)
        return f"SELECT setval(pg_get_serial_sequence({table}, {column}), 1, false)"
