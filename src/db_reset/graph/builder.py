"""Dependency graph construction.

Turns a filtered list of tables and relationships into an arena-style
graph: every table gets an integer id (its position in catalog order) and
every edge is a relationship index.  An edge ``child -> parent`` means
rows in ``child`` reference rows in ``parent``.

Pure logic -- no I/O, no database connections.

Usage:
    from db_reset.graph.builder import build_graph

    graph = build_graph(snapshot.tables, snapshot.relationships)
    for rel_index in graph.children_of(graph.index_of(users)):
        print(graph.relationships[rel_index].describe())
"""

from dataclasses import dataclass, field

from db_reset.errors import ConfigurationError
from db_reset.graph.models import Relationship, TableRef


@dataclass
class DependencyGraph:
    """Directed FK graph with integer node ids.

    Attributes:
        tables: Node list; a table's id is its index here.
        relationships: Edge list; only edges whose endpoints are both nodes.
        edges: ``(child_id, parent_id)`` per relationship, same indexing.
        case_sensitive: Whether table identity is case-sensitive.
    """

    tables: list[TableRef] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    edges: list[tuple[int, int]] = field(default_factory=list)
    case_sensitive: bool = False
    _index: dict[tuple[str, str], int] = field(default_factory=dict, repr=False)
    _outgoing: list[list[int]] = field(default_factory=list, repr=False)
    _incoming: list[list[int]] = field(default_factory=list, repr=False)

    @property
    def node_count(self) -> int:
        return len(self.tables)

    def index_of(self, table: TableRef) -> int:
        """Node id for *table*; raises ``KeyError`` if absent."""
        return self._index[table.key(self.case_sensitive)]

    def __contains__(self, table: object) -> bool:
        if not isinstance(table, TableRef):
            return False
        return table.key(self.case_sensitive) in self._index

    def parents_of(self, node: int) -> list[int]:
        """Relationship indexes where *node* is the child (forward lookup)."""
        return self._outgoing[node]

    def children_of(self, node: int) -> list[int]:
        """Relationship indexes where *node* is the parent (reverse lookup)."""
        return self._incoming[node]

    def successors(self, node: int, broken: frozenset[int] = frozenset()) -> list[int]:
        """Parent node ids reachable over edges not in *broken*."""
        return [self.edges[r][1] for r in self._outgoing[node] if r not in broken]


def build_graph(
    tables: list[TableRef],
    relationships: list[Relationship],
    case_sensitive: bool = False,
) -> DependencyGraph:
    """Build a ``DependencyGraph`` from tables and relationships.

    Relationships whose child or parent is not in *tables* are dropped
    (their other end was filtered out).  Self-references are kept as
    self-loops.

    Args:
        tables: Tables in catalog order (post-filter).
        relationships: Foreign keys (may reference tables not in *tables*).
        case_sensitive: Compare table identities case-sensitively.

    Returns:
        The populated ``DependencyGraph``.

    Raises:
        ConfigurationError: If two tables share the same identity.

    Example:
        >>> users = TableRef(name="users")
        >>> orders = TableRef(name="orders")
        >>> rel = Relationship(child=orders, child_column="user_id",
        ...                    parent=users, parent_column="id")
        >>> graph = build_graph([users, orders], [rel])
        >>> graph.edges
        [(1, 0)]
    """
    graph = DependencyGraph(case_sensitive=case_sensitive)

    for table in tables:
        key = table.key(case_sensitive)
        if key in graph._index:
            raise ConfigurationError(
                f"Duplicate table in catalog snapshot: {table.qualified_name}"
            )
        graph._index[key] = len(graph.tables)
        graph.tables.append(table)
        graph._outgoing.append([])
        graph._incoming.append([])

    for rel in relationships:
        child_id = graph._index.get(rel.child.key(case_sensitive))
        parent_id = graph._index.get(rel.parent.key(case_sensitive))
        if child_id is None or parent_id is None:
            continue

        rel_index = len(graph.relationships)
        graph.relationships.append(rel)
        graph.edges.append((child_id, parent_id))
        graph._outgoing[child_id].append(rel_index)
        graph._incoming[parent_id].append(rel_index)

    return graph
