"""Checkpoint replay.

Runs a checkpoint's statements in order against a live connection,
inside one transaction when the dialect allows it.  Stops at the first
failing statement; there is no retry.

Usage:
    from db_reset.executor import reset

    await reset(checkpoint, conn)
"""

import logging
from typing import TYPE_CHECKING

from db_reset.connection import DatabaseConnection
from db_reset.errors import ExecutionError

if TYPE_CHECKING:
    from db_reset.checkpoint import Checkpoint

logger = logging.getLogger(__name__)


async def _run_statements(checkpoint: "Checkpoint", connection: DatabaseConnection) -> None:
    for index, statement in enumerate(checkpoint.statements):
        try:
            await connection.execute(statement)
        except Exception as e:
            raise ExecutionError(statement, index, e) from e


async def reset(checkpoint: "Checkpoint", connection: DatabaseConnection) -> None:
    """Empty every table covered by *checkpoint*.

    Transactional dialects run all statements in one unit of work, so a
    failure rolls everything back.  Otherwise statements run one by one
    and those before the failure stay applied.

    Args:
        checkpoint: Plan from ``create_checkpoint()``.
        connection: Connection to reset.  Each concurrent reset needs its
            own connection.

    Raises:
        ExecutionError: If a statement fails.  Carries the statement text
            and its index; the driver error is the ``__cause__``.
    """
    logger.debug(
        f"Resetting {len(checkpoint.deletion_order)} tables "
        f"({len(checkpoint.statements)} statements, "
        f"{'transactional' if checkpoint.transactional else 'statement-level'})"
    )

    if checkpoint.transactional:
        async with connection.transaction():
            await _run_statements(checkpoint, connection)
    else:
        await _run_statements(checkpoint, connection)
