"""Deletion order planning.

Orders tables so that every table is emptied before any table it
references, i.e. for each remaining edge ``child -> parent`` the child is
deleted first.  Cycles must already be broken (see ``cycles``).

Ties are broken by catalog order: when several tables are eligible at
once, the one that came first in the catalog snapshot is deleted first.
Repeated planning against an unchanged snapshot therefore yields the
same order and the same script.

Pure logic -- no I/O.

Usage:
    from db_reset.graph.planner import plan_steps

    plan = plan_steps(snapshot, with_reseed=True)
    for step in plan.steps:
        print(step)
"""

import heapq
from dataclasses import dataclass, field

from db_reset.errors import PlannerInvariantError
from db_reset.graph.builder import DependencyGraph, build_graph
from db_reset.graph.cycles import resolve_cycles
from db_reset.graph.models import (
    CatalogSnapshot,
    DeleteStep,
    DeletionStep,
    NullOutStep,
    ReseedStep,
    TableRef,
)


@dataclass
class DeletionPlan:
    """Ordered reset steps for one catalog snapshot.

    Attributes:
        steps: Null-out steps (grouped per broken cycle), then delete
            steps in deletion order, then reseed steps.
        deletion_order: Tables in the order they are emptied.
        cycles: Tables of each broken cycle, one list per cycle.
    """

    steps: list[DeletionStep] = field(default_factory=list)
    deletion_order: list[TableRef] = field(default_factory=list)
    cycles: list[list[TableRef]] = field(default_factory=list)

    @property
    def null_out_count(self) -> int:
        return sum(1 for s in self.steps if isinstance(s, NullOutStep))


def order_deletions(
    graph: DependencyGraph,
    broken: frozenset[int] = frozenset(),
) -> list[int]:
    """Topologically sort the residual graph into deletion order.

    Kahn's algorithm over reversed edges: a table becomes eligible once
    every table that references it has been deleted.  Eligible tables are
    taken smallest node id first.

    Args:
        graph: The dependency graph.
        broken: Relationship indexes removed by cycle resolution.

    Returns:
        Node ids in deletion order.

    Raises:
        PlannerInvariantError: If a cycle remains in the residual graph.
    """
    n = graph.node_count
    # Number of live referencing edges per parent; parallel FKs count each
    pending = [0] * n
    for rel_index, (child, parent) in enumerate(graph.edges):
        if rel_index in broken or child == parent:
            continue
        pending[parent] += 1

    ready = [node for node in range(n) if pending[node] == 0]
    heapq.heapify(ready)

    order: list[int] = []
    while ready:
        node = heapq.heappop(ready)
        order.append(node)
        for rel_index in graph.parents_of(node):
            if rel_index in broken:
                continue
            parent = graph.edges[rel_index][1]
            if parent == node:
                continue
            pending[parent] -= 1
            if pending[parent] == 0:
                heapq.heappush(ready, parent)

    if len(order) != n:
        stuck = [graph.tables[i].qualified_name for i in range(n) if pending[i] > 0]
        raise PlannerInvariantError(
            f"Residual cycle prevents ordering of: {', '.join(stuck)}"
        )

    unbroken_self_loops = [
        graph.tables[child].qualified_name
        for rel_index, (child, parent) in enumerate(graph.edges)
        if child == parent and rel_index not in broken
    ]
    if unbroken_self_loops:
        raise PlannerInvariantError(
            f"Unbroken self-reference on: {', '.join(unbroken_self_loops)}"
        )

    return order


def plan_steps(
    snapshot: CatalogSnapshot,
    with_reseed: bool = False,
    case_sensitive: bool = False,
) -> DeletionPlan:
    """Build the full step list for a (filtered) catalog snapshot.

    Args:
        snapshot: Filtered tables and relationships.
        with_reseed: Append a reseed step for each table with an identity
            column.
        case_sensitive: Compare table identities case-sensitively.

    Returns:
        ``DeletionPlan`` with ordered steps.

    Raises:
        ConfigurationError: If the snapshot has duplicate tables.
        UnresolvableCycleError: If a cycle has a non-nullable edge.
    """
    graph = build_graph(snapshot.tables, snapshot.relationships, case_sensitive)
    resolution = resolve_cycles(graph)
    order = order_deletions(graph, resolution.broken)

    plan = DeletionPlan()

    for component, group in zip(resolution.cyclic_components, resolution.null_out_groups):
        plan.cycles.append([graph.tables[i] for i in component])
        for rel_index in group:
            plan.steps.append(NullOutStep(relationship=graph.relationships[rel_index]))

    for node in order:
        table = graph.tables[node]
        plan.deletion_order.append(table)
        plan.steps.append(DeleteStep(table=table))

    if with_reseed:
        for table in plan.deletion_order:
            column = snapshot.identity_columns.get(table.qualified_name)
            if column:
                seed, increment = snapshot.identity_seeds.get(table.qualified_name, (1, 1))
                plan.steps.append(
                    ReseedStep(table=table, column=column, seed=seed, increment=increment)
                )

    return plan
