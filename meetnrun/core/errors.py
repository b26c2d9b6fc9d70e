"""
Error classification for the MeetNRun database tooling.

Two tiers exist:

- fatal: the process cannot continue without its database (configuration,
  pool open, ping, migration handler construction). These propagate to the
  CLI entry point, which logs them and exits with status 1.
- logged-and-abort: a migration step or version query failed. The migration
  handler logs it and returns without further action.

NilVersionError and NoChangeError are not failures; the migration engine
raises them so callers can branch on "nothing recorded yet" and "nothing to
do" without string matching.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Standardized error categories used in log extras."""

    CONFIG = "config"                       # Missing/invalid environment
    DB_OPEN = "db_open"                     # Pool could not be created/opened
    DB_CONNECTION = "db_connection"         # Ping failed
    MIGRATION_SETUP = "migration_setup"     # Migration engine construction
    MIGRATION = "migration"                 # Step or version query failed
    NIL_VERSION = "nil_version"
    NO_CHANGE = "no_change"


class MeetNRunError(Exception):
    kind: ErrorKind = ErrorKind.MIGRATION
    fatal: bool = False

    def __init__(self, message: str, cause: Optional[BaseException] = None, **details: Any):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Flat dict for the `extra` argument of logging calls."""
        d = {
            "error_kind": self.kind.value,
            "fatal": self.fatal,
            "error": str(self),
        }
        if self.cause is not None:
            d["exception_type"] = type(self.cause).__name__
        if self.details:
            d.update(self.details)
        return d


class ConfigurationError(MeetNRunError):
    kind = ErrorKind.CONFIG
    fatal = True


class DatabaseOpenError(MeetNRunError):
    kind = ErrorKind.DB_OPEN
    fatal = True


class DatabaseUnreachableError(MeetNRunError):
    kind = ErrorKind.DB_CONNECTION
    fatal = True


class MigrationSetupError(MeetNRunError):
    kind = ErrorKind.MIGRATION_SETUP
    fatal = True


class MigrationError(MeetNRunError):
    kind = ErrorKind.MIGRATION


class NilVersionError(MeetNRunError):
    kind = ErrorKind.NIL_VERSION

    def __init__(self, message: str = "no migration version recorded", **kwargs: Any):
        super().__init__(message, **kwargs)


class NoChangeError(MeetNRunError):
    kind = ErrorKind.NO_CHANGE

    def __init__(self, message: str = "no change", **kwargs: Any):
        super().__init__(message, **kwargs)
