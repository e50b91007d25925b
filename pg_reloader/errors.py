"""
Error taxonomy for pg_reloader.

Nothing here is retried automatically: replaying a failed SQL batch
against a partially mutated database is unsafe.
"""

from typing import Optional


class ReloaderError(Exception):
    """Base class for all pg_reloader errors."""
    pass


class ConfigError(ReloaderError):
    """Configuration could not be loaded or is invalid."""
    pass


class DatabaseConnectionError(ReloaderError, ConnectionError):
    """A database session could not be established or re-established."""
    pass


class QueryError(ReloaderError):
    """A SQL statement failed on the server."""

    def __init__(
        self,
        message: str,
        sql: Optional[str] = None,
        pgcode: Optional[str] = None,
    ):
        super().__init__(message)
        self.sql = sql
        self.pgcode = pgcode


class IntrospectionError(QueryError):
    """Catalog query listing tables or sequences failed."""
    pass


class BatchExecutionError(QueryError):
    """A generated statement batch failed (including on replay)."""
    pass


class UnsupportedTypeError(ReloaderError):
    """A column type has no escaping rule. Always fatal."""

    def __init__(self, type_name: str, table: str = "", column: str = "", value=None):
        location = f"{table}.{column}" if table else column
        message = f"Unsupported field type '{type_name}'"
        if location:
            message += f" in {location}"
        if value is not None:
            message += f" (value {value!r})"
        super().__init__(message)
        self.type_name = type_name
        self.table = table
        self.column = column
        self.value = value


class NoBackupFoundError(ReloaderError):
    """restore_production() called while no production backup exists."""
    pass


class InvalidFixtureError(ReloaderError):
    """A builder returned without a nested restore or clean."""
    pass
