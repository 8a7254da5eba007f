"""CLI for planning and running database resets.

Usage:
    db-reset profiles
    DB_PROFILE=local db-reset plan
    db-reset plan --profile local --ignore schema_migrations --schema public
    db-reset plan --url sqlite:///test.db --sql > reset.sql
    db-reset reset --profile local --reseed --confirm

Commands:
    profiles  - List profiles from db-reset.toml
    plan      - Build a checkpoint and show its steps and SQL
    reset     - Build a checkpoint and run it (requires --confirm)
"""

import argparse
import asyncio
import logging
import os
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from db_reset.checkpoint import Checkpoint, create_checkpoint
from db_reset.config.loader import load_reset_config
from db_reset.config.models import CheckpointOptions, ResetConfig
from db_reset.connection import SQLAlchemyConnection
from db_reset.dialects import SQLDialect, get_dialect
from db_reset.errors import ExecutionError, ResetError
from db_reset.factory import open_connection, resolve_dialect
from db_reset.graph.models import DeleteStep, NullOutStep, TableRef

console = Console()


# ============================================================================
# Helpers
# ============================================================================


def _load_config(args: argparse.Namespace) -> ResetConfig:
    """Load db-reset.toml; a missing default file is fine with ``--url``."""
    try:
        return load_reset_config(args.config)
    except FileNotFoundError:
        if getattr(args, "url", None) and args.config is None:
            return ResetConfig()
        raise


def _build_options(args: argparse.Namespace, config: ResetConfig) -> CheckpointOptions:
    """Start from ``[checkpoint]`` and apply command-line overrides.

    A flag given on the command line replaces the whole config axis it
    belongs to, so ``--ignore`` never combines with a configured
    ``tables_to_include``.
    """
    base = config.checkpoint.model_dump()
    if args.schema or args.exclude_schema:
        base["schemas_to_include"] = args.schema or []
        base["schemas_to_exclude"] = args.exclude_schema or []
    if args.table or args.ignore:
        base["tables_to_include"] = [TableRef.parse(t) for t in args.table or []]
        base["tables_to_ignore"] = [TableRef.parse(t) for t in args.ignore or []]
    if args.reseed:
        base["with_reseed"] = True
    return CheckpointOptions(**base)


async def _open(
    args: argparse.Namespace,
    config: ResetConfig,
) -> tuple[SQLAlchemyConnection, SQLDialect]:
    if args.url:
        return await SQLAlchemyConnection.connect(args.url), get_dialect(args.url)
    return await open_connection(
        args.profile, config, env_prefix=getattr(args, "env_prefix", "")
    )


async def _checkpoint_for(args: argparse.Namespace) -> tuple[Checkpoint, SQLAlchemyConnection]:
    """Connect and build a checkpoint.  The caller closes the connection."""
    config = _load_config(args)
    options = _build_options(args, config)
    options.check()

    conn, dialect = await _open(args, config)
    try:
        checkpoint = await create_checkpoint(conn, dialect, options)
    except BaseException:
        await conn.close()
        raise
    return checkpoint, conn


def _print_sql(sql: str) -> None:
    # Brackets in SQL Server identifiers must not be read as rich markup
    console.print(sql, markup=False, highlight=False, soft_wrap=True, end="")


def _print_plan(checkpoint: Checkpoint) -> None:
    table = Table(title="Reset Plan", show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Step")
    table.add_column("Table")
    table.add_column("Column", style="dim")

    for i, step in enumerate(checkpoint.steps):
        if isinstance(step, NullOutStep):
            kind, column = "[yellow]null-out[/yellow]", step.column
        elif isinstance(step, DeleteStep):
            kind, column = "[red]delete[/red]", ""
        else:
            kind, column = "[cyan]reseed[/cyan]", step.column
        table.add_row(str(i), kind, escape(step.table.qualified_name), escape(column))

    console.print(table)

    if checkpoint.cycles:
        console.print("\n[bold]Foreign-key cycles broken:[/bold]")
        for cycle in checkpoint.cycles:
            names = ", ".join(t.qualified_name for t in cycle)
            console.print(f"  - {escape(names)}")

    console.print(
        f"\n{len(checkpoint.deletion_order)} tables, "
        f"{len(checkpoint.statements)} statements ({checkpoint.dialect_name})"
    )


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_plan(args: argparse.Namespace) -> int:
    """Async implementation for plan command.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        checkpoint, conn = await _checkpoint_for(args)
    except (OSError, SQLAlchemyError, ResetError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1
    await conn.close()

    if not args.sql:
        _print_plan(checkpoint)
        console.print()
    _print_sql(checkpoint.script_text)
    return 0


async def _async_reset(args: argparse.Namespace) -> int:
    """Async implementation for reset command.

    Without ``--confirm`` only the plan is shown.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        checkpoint, conn = await _checkpoint_for(args)
    except (OSError, SQLAlchemyError, ResetError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    try:
        _print_plan(checkpoint)

        if not args.confirm:
            console.print(
                "\n[yellow]Dry run: no rows deleted.[/yellow] "
                "[dim]Re-run with[/dim] [cyan]--confirm[/cyan] [dim]to reset.[/dim]"
            )
            return 0

        try:
            await checkpoint.reset(conn)
        except ExecutionError as e:
            console.print(f"\n[bold red]x[/bold red] Reset failed at step {e.step_index}")
            _print_sql(f"  {e.statement}\n")
            console.print(f"  [dim]{escape(str(e.__cause__))}[/dim]")
            return 1

        console.print(
            f"\n[bold green]v[/bold green] Reset "
            f"{len(checkpoint.deletion_order)} tables"
        )
        return 0
    finally:
        await conn.close()


# ============================================================================
# Sync command wrappers
# ============================================================================


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from db-reset.toml.

    Reads only local TOML config -- no database calls.

    Returns:
        0 on success, 1 if the config is missing or invalid.
    """
    try:
        config = load_reset_config(args.config)
    except (FileNotFoundError, ResetError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    current = os.environ.get(f"{getattr(args, 'env_prefix', '')}DB_PROFILE")

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Dialect")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        try:
            dialect_name = resolve_dialect(profile).name
        except ResetError:
            dialect_name = "[red]unknown[/red]"
        marker = "[bold green]*[/bold green]" if name == current else " "
        table.add_row(
            marker,
            f"[bold cyan]{escape(name)}[/bold cyan]" if name == current else escape(name),
            dialect_name,
            escape(profile.description or ""),
        )

    console.print(table)

    if current:
        console.print("\n[bold green]*[/bold green] = current profile")

    return 0


def cmd_plan(args: argparse.Namespace) -> int:
    """Show the reset plan.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_plan(args))


def cmd_reset(args: argparse.Namespace) -> int:
    """Reset the database.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_reset(args))


# ============================================================================
# Main entry point
# ============================================================================


def _add_checkpoint_arguments(parser: argparse.ArgumentParser) -> None:
    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--profile",
        "-p",
        help="Profile from db-reset.toml (default: $DB_PROFILE)",
    )
    target.add_argument(
        "--url",
        help="Database URL to use instead of a profile",
    )
    parser.add_argument(
        "--schema",
        action="append",
        metavar="NAME",
        help="Only reset this schema (repeatable)",
    )
    parser.add_argument(
        "--exclude-schema",
        action="append",
        metavar="NAME",
        help="Never reset this schema (repeatable)",
    )
    parser.add_argument(
        "--table",
        action="append",
        metavar="[SCHEMA.]TABLE",
        help="Only reset this table (repeatable)",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        metavar="[SCHEMA.]TABLE",
        help="Never reset this table (repeatable)",
    )
    parser.add_argument(
        "--reseed",
        action="store_true",
        help="Restart identity/sequence counters after deleting",
    )


def main() -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="db-reset",
        description="Reset test databases in foreign-key-safe order",
    )

    # Global options
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="Path to the config file (default: ./db-reset.toml)",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_PROFILE)"
        ),
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log planner and executor details",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    # plan command
    p_plan = subparsers.add_parser(
        "plan",
        help="Show the reset plan and its SQL",
    )
    _add_checkpoint_arguments(p_plan)
    p_plan.add_argument(
        "--sql",
        action="store_true",
        help="Print only the SQL script",
    )
    p_plan.set_defaults(func=cmd_plan)

    # reset command
    p_reset = subparsers.add_parser(
        "reset",
        help="Delete all rows from the covered tables",
    )
    _add_checkpoint_arguments(p_reset)
    p_reset.add_argument(
        "--confirm",
        action="store_true",
        help="Actually delete (otherwise only the plan is shown)",
    )
    p_reset.set_defaults(func=cmd_reset)

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
