"""Tests for schema/table filtering of catalog snapshots."""

from db_reset.config.models import CheckpointOptions
from db_reset.filters import apply_filters, is_included, table_matches
from db_reset.graph.models import CatalogSnapshot, Relationship, TableRef


def _t(name: str, schema: str | None = "public") -> TableRef:
    return TableRef(schema_name=schema, name=name)


def _snapshot() -> CatalogSnapshot:
    users, orders = _t("users"), _t("orders")
    audit_log, audit_users = _t("log", "audit"), _t("users", "audit")
    return CatalogSnapshot(
        tables=[audit_log, audit_users, orders, users],
        relationships=[
            Relationship(child=orders, child_column="user_id", parent=users, parent_column="id"),
            Relationship(
                child=audit_log, child_column="user_id", parent=audit_users, parent_column="id"
            ),
        ],
        identity_columns={"public.users": "id", "audit.log": "id"},
        identity_seeds={"public.users": (1, 1), "audit.log": (100, 1)},
    )


def _qualified(snapshot: CatalogSnapshot) -> list[str]:
    return [t.qualified_name for t in snapshot.tables]


class TestTableMatches:
    """Test single-pattern matching."""

    def test_pattern_without_schema_matches_any_schema(self):
        pattern = TableRef.parse("users")
        assert table_matches(_t("users"), pattern)
        assert table_matches(_t("users", "audit"), pattern)
        assert not table_matches(_t("orders"), pattern)

    def test_pattern_with_schema(self):
        pattern = TableRef.parse("audit.users")
        assert table_matches(_t("users", "audit"), pattern)
        assert not table_matches(_t("users", "public"), pattern)

    def test_case_folding(self):
        pattern = TableRef.parse("PUBLIC.Users")
        assert table_matches(_t("users"), pattern, case_sensitive=False)
        assert not table_matches(_t("users"), pattern, case_sensitive=True)


class TestIsIncluded:
    """Test the combined include/exclude/ignore decision."""

    def test_defaults_include_everything(self):
        assert is_included(_t("anything", "anywhere"), CheckpointOptions())

    def test_schema_include(self):
        options = CheckpointOptions(schemas_to_include=["public"])
        assert is_included(_t("users"), options)
        assert not is_included(_t("log", "audit"), options)

    def test_schema_exclude(self):
        options = CheckpointOptions(schemas_to_exclude=["audit"])
        assert is_included(_t("users"), options)
        assert not is_included(_t("log", "audit"), options)

    def test_schema_case_folding(self):
        options = CheckpointOptions(schemas_to_include=["PUBLIC"])
        assert is_included(_t("users"), options, case_sensitive=False)
        assert not is_included(_t("users"), options, case_sensitive=True)

    def test_schema_and_table_rules_combine(self):
        options = CheckpointOptions(
            schemas_to_include=["public"],
            tables_to_ignore=["orders"],
        )
        assert is_included(_t("users"), options)
        assert not is_included(_t("orders"), options)
        assert not is_included(_t("users", "audit"), options)


class TestApplyFilters:
    """Test snapshot filtering."""

    def test_no_options_keeps_snapshot(self):
        snapshot = _snapshot()
        filtered = apply_filters(snapshot, CheckpointOptions())
        assert filtered.tables == snapshot.tables
        assert filtered.relationships == snapshot.relationships
        assert filtered.identity_columns == snapshot.identity_columns

    def test_ignore_bare_name_hits_every_schema(self):
        filtered = apply_filters(_snapshot(), CheckpointOptions(tables_to_ignore=["users"]))
        assert _qualified(filtered) == ["audit.log", "public.orders"]
        # Both relationships lose their parent
        assert filtered.relationships == []
        assert filtered.identity_columns == {"audit.log": "id"}

    def test_ignore_qualified_name(self):
        filtered = apply_filters(
            _snapshot(), CheckpointOptions(tables_to_ignore=["audit.users"])
        )
        assert _qualified(filtered) == ["audit.log", "public.orders", "public.users"]
        assert len(filtered.relationships) == 1
        assert filtered.relationships[0].child.name == "orders"

    def test_tables_to_include(self):
        filtered = apply_filters(
            _snapshot(),
            CheckpointOptions(tables_to_include=["public.orders", "public.users"]),
        )
        assert _qualified(filtered) == ["public.orders", "public.users"]
        assert len(filtered.relationships) == 1

    def test_schema_exclude_drops_relationships(self):
        filtered = apply_filters(_snapshot(), CheckpointOptions(schemas_to_exclude=["audit"]))
        assert _qualified(filtered) == ["public.orders", "public.users"]
        assert [r.child.name for r in filtered.relationships] == ["orders"]
        assert filtered.identity_columns == {"public.users": "id"}
        assert filtered.identity_seeds == {"public.users": (1, 1)}

    def test_input_snapshot_unchanged(self):
        snapshot = _snapshot()
        apply_filters(snapshot, CheckpointOptions(schemas_to_include=["public"]))
        assert len(snapshot.tables) == 4
        assert len(snapshot.relationships) == 2
