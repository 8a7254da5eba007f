"""Schema and table filtering for catalog snapshots.

Applies ``CheckpointOptions`` include/exclude/ignore rules to a raw
catalog snapshot.  Relationships survive only when both of their tables
survive.  Matching follows the dialect's case rules.

Pure logic -- no I/O.

Usage:
    from db_reset.filters import apply_filters

    filtered = apply_filters(snapshot, options, case_sensitive=False)
"""

from db_reset.config.models import CheckpointOptions
from db_reset.graph.models import CatalogSnapshot, TableRef


def _fold(value: str | None, case_sensitive: bool) -> str:
    value = value or ""
    return value if case_sensitive else value.casefold()


def table_matches(table: TableRef, pattern: TableRef, case_sensitive: bool = False) -> bool:
    """True if *table* matches *pattern*.

    A pattern without a schema matches a same-named table in any schema.
    """
    if _fold(table.name, case_sensitive) != _fold(pattern.name, case_sensitive):
        return False
    if pattern.schema_name is None:
        return True
    return _fold(table.schema_name, case_sensitive) == _fold(pattern.schema_name, case_sensitive)


def is_included(
    table: TableRef,
    options: CheckpointOptions,
    case_sensitive: bool = False,
) -> bool:
    """Decide whether a single table is covered by *options*."""
    schema = _fold(table.schema_name, case_sensitive)

    if options.schemas_to_include:
        allowed = {_fold(s, case_sensitive) for s in options.schemas_to_include}
        if schema not in allowed:
            return False
    if options.schemas_to_exclude:
        denied = {_fold(s, case_sensitive) for s in options.schemas_to_exclude}
        if schema in denied:
            return False

    if options.tables_to_include and not any(
        table_matches(table, p, case_sensitive) for p in options.tables_to_include
    ):
        return False
    if any(table_matches(table, p, case_sensitive) for p in options.tables_to_ignore):
        return False

    return True


def apply_filters(
    snapshot: CatalogSnapshot,
    options: CheckpointOptions,
    case_sensitive: bool = False,
) -> CatalogSnapshot:
    """Return a new snapshot restricted to the tables *options* covers.

    Table order is preserved.  Relationships with a filtered-out child or
    parent are dropped, as are identity columns of filtered-out tables.

    Args:
        snapshot: Raw snapshot from a catalog reader.
        options: Filter rules.
        case_sensitive: Compare names case-sensitively.

    Returns:
        The filtered ``CatalogSnapshot``.
    """
    tables = [t for t in snapshot.tables if is_included(t, options, case_sensitive)]
    keys = {t.key(case_sensitive) for t in tables}

    relationships = [
        r
        for r in snapshot.relationships
        if r.child.key(case_sensitive) in keys and r.parent.key(case_sensitive) in keys
    ]

    names = {t.qualified_name for t in tables}
    identity_columns = {
        name: column for name, column in snapshot.identity_columns.items() if name in names
    }

    return CatalogSnapshot(
        tables=tables,
        relationships=relationships,
        identity_columns=identity_columns,
        identity_seeds={
            name: seed for name, seed in snapshot.identity_seeds.items() if name in names
        },
    )
