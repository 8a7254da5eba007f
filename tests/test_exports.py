"""Tests for the public API surface and module layering.

Verifies that:
- Every name in ``db_reset.__all__`` is importable from the package root
- The planning core (``db_reset.graph``) and ``filters`` import no database
  driver or SQLAlchemy module (checked by AST inspection)
- Library modules configure no logging handlers
"""

import ast
from pathlib import Path

import pytest

import db_reset

SRC_ROOT = Path(__file__).resolve().parent.parent / "src" / "db_reset"

PURE_MODULES = [
    SRC_ROOT / "graph" / "models.py",
    SRC_ROOT / "graph" / "builder.py",
    SRC_ROOT / "graph" / "cycles.py",
    SRC_ROOT / "graph" / "planner.py",
    SRC_ROOT / "filters.py",
]

FORBIDDEN_IMPORTS = ("sqlalchemy", "asyncpg", "aiosqlite", "aiomysql", "aioodbc", "asyncio")


def _imported_modules(path: Path) -> set[str]:
    tree = ast.parse(path.read_text())
    names: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            names.add(node.module)
    return names


class TestPublicAPI:
    """Test package-level exports."""

    def test_version(self):
        assert db_reset.__version__ == "0.1.0"

    @pytest.mark.parametrize("name", db_reset.__all__)
    def test_export_resolves(self, name):
        assert getattr(db_reset, name) is not None

    def test_core_entry_points(self):
        for name in ("create_checkpoint", "reset", "CheckpointOptions", "get_dialect"):
            assert name in db_reset.__all__


class TestLayering:
    """Test that the planning core stays free of I/O."""

    @pytest.mark.parametrize("path", PURE_MODULES, ids=lambda p: p.name)
    def test_no_database_imports(self, path):
        imported = _imported_modules(path)
        offending = sorted(
            name for name in imported if name.split(".")[0] in FORBIDDEN_IMPORTS
        )
        assert offending == [], f"{path.name} imports {offending}"

    def test_library_adds_no_log_handlers(self):
        for path in SRC_ROOT.rglob("*.py"):
            if path.parent.name == "cli":
                continue
            source = path.read_text()
            assert "basicConfig" not in source, path
            assert "addHandler" not in source, path
