"""db-reset: Foreign-key-aware database reset for integration tests.

Reads a database's catalog once, plans a deletion order that respects
foreign keys (breaking cycles by nulling nullable columns), and replays
the resulting checkpoint between tests.

Usage:
    from db_reset import create_checkpoint, CheckpointOptions, SQLAlchemyConnection
    from db_reset import get_dialect, load_reset_config, open_connection
    from db_reset import ResetError, UnresolvableCycleError, ExecutionError
"""

__version__ = "0.1.0"

# Checkpoints
from db_reset.checkpoint import Checkpoint, create_checkpoint
from db_reset.executor import reset

# Config
from db_reset.config.loader import load_reset_config
from db_reset.config.models import CheckpointOptions, DatabaseProfile, ResetConfig

# Connections and dialects
from db_reset.connection import DatabaseConnection, SQLAlchemyConnection
from db_reset.dialects import Dialect, SQLDialect, get_dialect

# Factory
from db_reset.factory import open_connection, resolve_url

# Errors
from db_reset.errors import (
    ConfigurationError,
    ExecutionError,
    PlannerInvariantError,
    ProfileNotFoundError,
    ResetError,
    UnresolvableCycleError,
)

# Graph models
from db_reset.graph.models import (
    CatalogSnapshot,
    DeleteStep,
    NullOutStep,
    Relationship,
    ReseedStep,
    TableRef,
)

__all__ = [
    # Checkpoints
    "Checkpoint",
    "create_checkpoint",
    "reset",
    # Config
    "load_reset_config",
    "CheckpointOptions",
    "DatabaseProfile",
    "ResetConfig",
    # Connections and dialects
    "DatabaseConnection",
    "SQLAlchemyConnection",
    "Dialect",
    "SQLDialect",
    "get_dialect",
    # Factory
    "open_connection",
    "resolve_url",
    # Errors
    "ResetError",
    "ConfigurationError",
    "ProfileNotFoundError",
    "UnresolvableCycleError",
    "ExecutionError",
    "PlannerInvariantError",
    # Graph models
    "TableRef",
    "Relationship",
    "CatalogSnapshot",
    "NullOutStep",
    "DeleteStep",
    "ReseedStep",
]
