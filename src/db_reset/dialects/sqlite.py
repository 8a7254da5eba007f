"""SQLite dialect.

Each attached database (``main`` plus any ``ATTACH``-ed file) is treated
as a schema.  Foreign keys and nullability come from the
``pragma_foreign_key_list`` / ``pragma_table_info`` table-valued
functions; SQLite foreign keys never cross databases, so a parent always
lives in its child's schema.

Shadow tables that back virtual tables (FTS5 ``docs_data``, R-tree
``geo_node``, ...) are owned by their virtual table and never listed;
the virtual table itself is reset with a plain ``DELETE``.  Shadow
detection uses ``PRAGMA table_list`` (SQLite 3.37+).

FK enforcement is per connection (``PRAGMA foreign_keys = ON``); the
reset plan is valid either way.

Reseeding clears the table's row in ``sqlite_sequence``, which only
exists once a table declares ``INTEGER PRIMARY KEY AUTOINCREMENT``.
"""

import re

from db_reset.connection import DatabaseConnection
from db_reset.dialects.base import SQLDialect
from db_reset.graph.models import CatalogSnapshot, Relationship, ReseedStep, TableRef

_SCHEMAS_SQL = """
    SELECT name FROM pragma_database_list
    WHERE name != 'temp'
    ORDER BY seq
"""

_FOREIGN_KEYS_SQL = """
    SELECT id, seq, "table" AS parent_table, "from" AS child_column, "to" AS parent_column
    FROM pragma_foreign_key_list(:table, :schema)
    ORDER BY id, seq
"""

_COLUMNS_SQL = """
    SELECT name, "notnull" AS not_null, pk
    FROM pragma_table_info(:table, :schema)
    ORDER BY cid
"""

# column-constraint: PRIMARY KEY [ASC|DESC] [ON CONFLICT ...] AUTOINCREMENT
_AUTOINCREMENT = re.compile(
    r"\bPRIMARY\s+KEY(?:\s+(?:ASC|DESC))?(?:\s+ON\s+CONFLICT\s+\w+)?\s+AUTOINCREMENT\b",
    re.IGNORECASE,
)


class SQLiteDialect(SQLDialect):
    """SQLite catalog reader and statement renderer."""

    name = "sqlite"
    case_sensitive = False
    supports_transactional_reset = True

    async def read_catalog(self, connection: DatabaseConnection) -> CatalogSnapshot:
        snapshot = CatalogSnapshot()

        for schema_row in await connection.fetch_all(_SCHEMAS_SQL):
            schema = schema_row["name"]
            quoted = self.quote_identifier(schema)

            shadow = {
                row["name"]
                for row in await connection.fetch_all(f"PRAGMA {quoted}.table_list")
                if row["type"] == "shadow"
            }
            table_rows = await connection.fetch_all(
                f"SELECT name, sql FROM {quoted}.sqlite_master "
                "WHERE type = 'table' ORDER BY name"
            )
            has_sequence = any(row["name"] == "sqlite_sequence" for row in table_rows)

            for table_row in table_rows:
                name = table_row["name"]
                if name.lower().startswith("sqlite_") or name in shadow:
                    continue
                table = TableRef(schema_name=schema, name=name)
                snapshot.tables.append(table)
                autoincrement = has_sequence and bool(
                    _AUTOINCREMENT.search(table_row["sql"] or "")
                )
                await self._read_table(connection, table, autoincrement, snapshot)

        return snapshot

    async def _read_table(
        self,
        connection: DatabaseConnection,
        table: TableRef,
        autoincrement: bool,
        snapshot: CatalogSnapshot,
    ) -> None:
        params = {"table": table.name, "schema": table.schema_name}
        columns = await connection.fetch_all(_COLUMNS_SQL, params)
        not_null = {c["name"].casefold(): bool(c["not_null"]) for c in columns}

        if autoincrement:
            pk_columns = [c["name"] for c in columns if c["pk"]]
            if pk_columns:
                snapshot.identity_columns[table.qualified_name] = pk_columns[0]

        for fk in await connection.fetch_all(_FOREIGN_KEYS_SQL, params):
            child_column = fk["child_column"]
            snapshot.relationships.append(
                Relationship(
                    child=table,
                    child_column=child_column,
                    parent=TableRef(schema_name=table.schema_name, name=fk["parent_table"]),
                    parent_column=fk["parent_column"] or "",
                    nullable=not not_null.get(child_column.casefold(), False),
                    name=f"fk_{table.name}_{fk['id']}",
                )
            )

    def render_reseed(self, step: ReseedStep) -> str:
        sequence = "sqlite_sequence"
        if step.table.schema_name:
            sequence = f"{self.quote_identifier(step.table.schema_name)}.sqlite_sequence"
        return f"DELETE FROM {sequence} WHERE name = {self.quote_literal(step.table.name)}"
