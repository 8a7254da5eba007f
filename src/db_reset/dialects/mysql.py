"""MySQL / MariaDB dialect.

MySQL schemas are databases; every non-system database visible to the
connection is read.  ``ALTER TABLE ... AUTO_INCREMENT`` commits
implicitly, so resets run statement by statement rather than inside one
transaction.
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
    SELECT table_schema AS table_schema, table_name AS table_name
    FROM information_schema.tables
    WHERE table_type = 'BASE TABLE'
      AND table_schema NOT IN ('mysql', 'information_schema', 'performance_schema', 'sys')
    ORDER BY table_schema, table_name
"""

_FOREIGN_KEYS_SQL = """
    SELECT
        k.constraint_name AS constraint_name,
        k.table_schema AS child_schema,
        k.table_name AS child_table,
        k.column_name AS child_column,
        c.is_nullable AS is_nullable,
        k.referenced_table_schema AS parent_schema,
        k.referenced_table_name AS parent_table,
        k.referenced_column_name AS parent_column
    FROM information_schema.key_column_usage k
    JOIN information_schema.columns c
        ON c.table_schema = k.table_schema
        AND c.table_name = k.table_name
        AND c.column_name = k.column_name
    WHERE k.referenced_table_name IS NOT NULL
    ORDER BY k.table_schema, k.table_name, k.constraint_name, k.ordinal_position
"""

_IDENTITY_SQL = """
    SELECT table_schema AS table_schema, table_name AS table_name, column_name AS column_name
    FROM information_schema.columns
    WHERE extra LIKE '%auto_increment%'
      AND table_schema NOT IN ('mysql', 'information_schema', 'performance_schema', 'sys')
    ORDER BY table_schema, table_name, ordinal_position
"""


class MySQLDialect(SQLDialect):
    """MySQL/MariaDB catalog reader and statement renderer."""

    name = "mysql"
    case_sensitive = False
    supports_transactional_reset = False

    def quote_identifier(self, identifier: str) -> str:
        return "`" + identifier.replace("`", "``") + "`"

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
        return f"ALTER TABLE {self.qualify(step.table)} AUTO_INCREMENT = 1"
