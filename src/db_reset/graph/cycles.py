"""Cycle detection and resolution over the FK dependency graph.

Finds strongly connected components (Tarjan, iterative so deep FK chains
cannot hit the recursion limit) and breaks every cyclic component by
nulling its nullable foreign-key columns.

A component is cyclic when it has more than one table, or a single table
that references itself.  Every relationship with both ends inside a
cyclic component is broken.  If any of them is non-nullable the cycle
cannot be broken without DDL, so resolution fails.

Pure logic -- no I/O.

Usage:
    from db_reset.graph.builder import build_graph
    from db_reset.graph.cycles import resolve_cycles

    graph = build_graph(tables, relationships)
    resolution = resolve_cycles(graph)
    for group in resolution.null_out_groups:
        ...
"""

from dataclasses import dataclass, field

from db_reset.errors import PlannerInvariantError, UnresolvableCycleError
from db_reset.graph.builder import DependencyGraph


@dataclass
class CycleResolution:
    """Outcome of cycle resolution.

    Attributes:
        components: All SCCs, each a sorted list of node ids, ordered by
            their smallest member.
        cyclic_components: The SCCs that needed breaking.
        null_out_groups: Relationship indexes to null, one group per
            entry of ``cyclic_components``.
        broken: Every relationship index removed from the graph for
            ordering purposes.
    """

    components: list[list[int]] = field(default_factory=list)
    cyclic_components: list[list[int]] = field(default_factory=list)
    null_out_groups: list[list[int]] = field(default_factory=list)
    broken: frozenset[int] = frozenset()


def find_strongly_connected_components(
    graph: DependencyGraph,
    broken: frozenset[int] = frozenset(),
) -> list[list[int]]:
    """Compute SCCs with an iterative Tarjan's algorithm.

    Args:
        graph: The dependency graph.
        broken: Relationship indexes to ignore.

    Returns:
        Components as sorted node-id lists, ordered by smallest member so
        the result does not depend on traversal order.
    """
    n = graph.node_count
    index_of: list[int] = [-1] * n
    lowlink: list[int] = [0] * n
    on_stack: list[bool] = [False] * n
    stack: list[int] = []
    components: list[list[int]] = []
    counter = 0

    for root in range(n):
        if index_of[root] != -1:
            continue

        # Each frame: (node, successor list, next successor position)
        work: list[tuple[int, list[int], int]] = []
        index_of[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack[root] = True
        work.append((root, graph.successors(root, broken), 0))

        while work:
            node, succ, pos = work[-1]
            if pos < len(succ):
                work[-1] = (node, succ, pos + 1)
                nxt = succ[pos]
                if index_of[nxt] == -1:
                    index_of[nxt] = lowlink[nxt] = counter
                    counter += 1
                    stack.append(nxt)
                    on_stack[nxt] = True
                    work.append((nxt, graph.successors(nxt, broken), 0))
                elif on_stack[nxt]:
                    lowlink[node] = min(lowlink[node], index_of[nxt])
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])

            if lowlink[node] == index_of[node]:
                component: list[int] = []
                while True:
                    member = stack.pop()
                    on_stack[member] = False
                    component.append(member)
                    if member == node:
                        break
                components.append(sorted(component))

    components.sort(key=lambda c: c[0])
    return components


def _has_self_loop(graph: DependencyGraph, node: int, broken: frozenset[int]) -> bool:
    return any(
        graph.edges[r][1] == node for r in graph.parents_of(node) if r not in broken
    )


def is_cyclic(
    graph: DependencyGraph,
    component: list[int],
    broken: frozenset[int] = frozenset(),
) -> bool:
    """True if *component* needs breaking (size > 1 or a self-loop)."""
    if len(component) > 1:
        return True
    return _has_self_loop(graph, component[0], broken)


def resolve_cycles(graph: DependencyGraph) -> CycleResolution:
    """Break every FK cycle by nulling its nullable relationships.

    Args:
        graph: The dependency graph.

    Returns:
        ``CycleResolution`` with per-SCC null-out groups and the broken
        relationship set.

    Raises:
        UnresolvableCycleError: If a cyclic SCC contains a relationship
            whose child column is not nullable.
        PlannerInvariantError: If a cycle survives resolution.
    """
    components = find_strongly_connected_components(graph)
    resolution = CycleResolution(components=components)

    broken: set[int] = set()
    for component in components:
        if not is_cyclic(graph, component):
            continue

        members = set(component)
        internal = sorted(
            r
            for node in component
            for r in graph.parents_of(node)
            if graph.edges[r][1] in members
        )

        blocking = [r for r in internal if not graph.relationships[r].nullable]
        if blocking:
            raise UnresolvableCycleError(
                tables=[graph.tables[i] for i in component],
                relationships=[graph.relationships[r] for r in blocking],
            )

        resolution.cyclic_components.append(component)
        resolution.null_out_groups.append(internal)
        broken.update(internal)

    resolution.broken = frozenset(broken)
    verify_acyclic(graph, resolution.broken)
    return resolution


def verify_acyclic(graph: DependencyGraph, broken: frozenset[int]) -> None:
    """Assert the residual graph has no cycles.

    Raises:
        PlannerInvariantError: If any SCC of size > 1 or any self-loop
            remains once *broken* edges are removed.
    """
    for component in find_strongly_connected_components(graph, broken):
        if is_cyclic(graph, component, broken):
            names = ", ".join(graph.tables[i].qualified_name for i in component)
            raise PlannerInvariantError(
                f"Residual cycle after resolution between: {names}"
            )
