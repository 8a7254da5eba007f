"""Checkpoint creation: build a reusable reset plan once, replay it often.

``create_checkpoint()`` reads the catalog, filters it, resolves FK cycles,
orders deletions and renders every step to SQL.  The resulting
``Checkpoint`` is frozen: it can be shared between test workers and
replayed against any number of connections without re-reading the
catalog.

Usage:
    from db_reset import CheckpointOptions, create_checkpoint

    checkpoint = await create_checkpoint(
        conn,
        "postgres",
        CheckpointOptions(schemas_to_include=["public"], tables_to_ignore=["schema_migrations"]),
    )
    print(checkpoint.script_text)

    # In each test's setup
    await checkpoint.reset(conn)
"""

import logging
from dataclasses import dataclass

from db_reset.config.models import CheckpointOptions
from db_reset.connection import DatabaseConnection
from db_reset.dialects import Dialect, get_dialect
from db_reset.errors import ConfigurationError
from db_reset.filters import apply_filters
from db_reset.graph.models import DeleteStep, DeletionStep, ReseedStep, TableRef
from db_reset.graph.planner import plan_steps

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Checkpoint:
    """Immutable, replayable reset plan.

    Attributes:
        dialect_name: Dialect the statements were rendered for.
        transactional: Whether replay runs inside one transaction.
        steps: Null-out, delete and reseed steps, in execution order.
        statements: Rendered SQL, one entry per step.
        deletion_order: Tables in the order they are emptied.
        cycles: Tables of each FK cycle broken by null-out steps.
    """

    dialect_name: str
    transactional: bool
    steps: tuple[DeletionStep, ...]
    statements: tuple[str, ...]
    deletion_order: tuple[TableRef, ...]
    cycles: tuple[tuple[TableRef, ...], ...] = ()

    @property
    def script_text(self) -> str:
        """Full SQL script, one semicolon-terminated statement per line."""
        return "".join(f"{s};\n" for s in self.statements)

    @property
    def delete_sql(self) -> str:
        """Null-out and delete statements only (no reseeding)."""
        return "".join(
            f"{sql};\n"
            for step, sql in zip(self.steps, self.statements)
            if not isinstance(step, ReseedStep)
        )

    @property
    def reseed_sql(self) -> str:
        """Reseed statements only; empty unless built ``with_reseed``."""
        return "".join(
            f"{sql};\n"
            for step, sql in zip(self.steps, self.statements)
            if isinstance(step, ReseedStep)
        )

    @property
    def tables(self) -> tuple[TableRef, ...]:
        return self.deletion_order

    async def reset(self, connection: DatabaseConnection) -> None:
        """Replay this checkpoint against *connection*.

        See ``db_reset.executor.reset``.
        """
        from db_reset.executor import reset

        await reset(self, connection)


def _render(
    dialect: Dialect,
    step: DeletionStep,
    options: CheckpointOptions,
) -> str:
    if isinstance(step, DeleteStep) and options.format_delete_statement is not None:
        return options.format_delete_statement(step.table)
    try:
        return dialect.render(step)
    except NotImplementedError as e:
        raise ConfigurationError(str(e)) from e


async def create_checkpoint(
    connection: DatabaseConnection,
    dialect: Dialect | str,
    options: CheckpointOptions | None = None,
) -> Checkpoint:
    """Build a checkpoint for the database behind *connection*.

    Args:
        connection: Live connection used to read the catalog.
        dialect: A ``Dialect`` instance, or a dialect name / database URL
            for ``get_dialect``.
        options: Filters and reset options (default: every user table).

    Returns:
        A frozen ``Checkpoint``.

    Raises:
        ConfigurationError: Contradictory options, duplicate tables in
            the catalog, or an unknown dialect.
        UnresolvableCycleError: A FK cycle has a non-nullable edge.

    Example:
        checkpoint = await create_checkpoint(
            conn, "sqlite", CheckpointOptions(tables_to_ignore=["audit_log"])
        )
        await checkpoint.reset(conn)
    """
    options = options or CheckpointOptions()
    options.check()
    if isinstance(dialect, str):
        dialect = get_dialect(dialect)

    snapshot = await dialect.read_catalog(connection)
    filtered = apply_filters(snapshot, options, dialect.case_sensitive)
    logger.debug(
        f"Catalog: {len(snapshot.tables)} tables, {len(snapshot.relationships)} FKs; "
        f"{len(filtered.tables)} tables after filtering"
    )

    plan = plan_steps(
        filtered,
        with_reseed=options.with_reseed,
        case_sensitive=dialect.case_sensitive,
    )
    statements = tuple(_render(dialect, step, options) for step in plan.steps)

    for cycle in plan.cycles:
        logger.debug(
            f"Breaking FK cycle: {', '.join(t.qualified_name for t in cycle)}"
        )
    logger.debug(
        f"Checkpoint ready: {len(plan.deletion_order)} deletes, "
        f"{plan.null_out_count} null-outs, {len(statements)} statements"
    )

    return Checkpoint(
        dialect_name=dialect.name,
        transactional=dialect.supports_transactional_reset,
        steps=tuple(plan.steps),
        statements=statements,
        deletion_order=tuple(plan.deletion_order),
        cycles=tuple(tuple(c) for c in plan.cycles),
    )
