"""Dependency graph planning: models, graph building, cycles, ordering.

Everything in this package is pure, synchronous logic with no database
access.  Catalog readers feed it a ``CatalogSnapshot``; it returns an
ordered ``DeletionPlan``.

Usage:
    from db_reset.graph import CatalogSnapshot, TableRef, Relationship, plan_steps
"""

from db_reset.graph.builder import DependencyGraph, build_graph
from db_reset.graph.cycles import (
    CycleResolution,
    find_strongly_connected_components,
    resolve_cycles,
)
from db_reset.graph.models import (
    CatalogSnapshot,
    DeleteStep,
    DeletionStep,
    NullOutStep,
    Relationship,
    ReseedStep,
    TableRef,
)
from db_reset.graph.planner import DeletionPlan, order_deletions, plan_steps

__all__ = [
    "TableRef",
    "Relationship",
    "CatalogSnapshot",
    "DeletionStep",
    "NullOutStep",
    "DeleteStep",
    "ReseedStep",
    "DependencyGraph",
    "build_graph",
    "CycleResolution",
    "find_strongly_connected_components",
    "resolve_cycles",
    "DeletionPlan",
    "order_deletions",
    "plan_steps",
]
