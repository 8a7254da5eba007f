"""Error taxonomy for checkpoint creation and reset execution.

Every user-facing error derives from ``ResetError`` so callers (and the
CLI) can catch the whole family in one place.

Usage:
    from db_reset.errors import ResetError, UnresolvableCycleError

    try:
        checkpoint = await create_checkpoint(conn, dialect, options)
    except UnresolvableCycleError as e:
        print(e.tables)
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from db_reset.graph.models import Relationship, TableRef


class ResetError(Exception):
    """Base class for all db-reset errors."""

    pass


class ConfigurationError(ResetError):
    """Raised for invalid or contradictory options or a malformed catalog.

    Covers include/exclude used together on the same axis, unparseable
    table names, duplicate tables in a catalog snapshot, and unknown
    dialects or profiles.
    """

    pass


class ProfileNotFoundError(ConfigurationError):
    """Raised when no database profile is configured or selected."""

    pass


class UnresolvableCycleError(ResetError):
    """Raised when a foreign-key cycle has a non-nullable edge.

    Such a cycle cannot be broken by nulling columns, so no safe deletion
    order exists.  Fatal for the checkpoint: the caller must change the
    schema or the filters.

    Attributes:
        tables: Tables in the offending cycle, in catalog order.
        relationships: The non-nullable relationships inside the cycle.
    """

    def __init__(
        self,
        tables: "list[TableRef]",
        relationships: "list[Relationship]",
    ) -> None:
        self.tables = list(tables)
        self.relationships = list(relationships)
        names = ", ".join(t.qualified_name for t in self.tables)
        edges = ", ".join(r.describe() for r in self.relationships)
        super().__init__(
            f"Foreign-key cycle between {names} cannot be broken: "
            f"non-nullable relationship(s) {edges}"
        )


class ExecutionError(ResetError):
    """Raised when the database rejects a reset statement.

    Execution halts at the failing statement.  The underlying driver
    error is chained as ``__cause__``.

    Attributes:
        statement: SQL text of the failing statement.
        step_index: Zero-based position of the statement in the checkpoint.
    """

    def __init__(self, statement: str, step_index: int, error: BaseException) -> None:
        self.statement = statement
        self.step_index = step_index
        super().__init__(
            f"Reset failed at step {step_index}: {statement}\n  {error}"
        )


class PlannerInvariantError(RuntimeError):
    """Internal planner failure (e.g. a cycle survived resolution).

    A programming error, not a user-facing condition.  Not a ``ResetError``
    subclass, so CLI error handling lets it propagate.
    """

    pass
