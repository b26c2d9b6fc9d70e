from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from meetnrun.core.config import Settings
from meetnrun.core.errors import MeetNRunError, NilVersionError, NoChangeError
from meetnrun.core.logger import setup_logger
from meetnrun.migrate.engine import AlembicMigrator, MigrationState, Migrator

logger = setup_logger(__name__, include_location=True)

UP = "up"
DOWN = "down"


@dataclass(frozen=True)
class MigrationResult:
    direction: str
    previous_version: int
    state: MigrationState
    initialized: bool = False

    @property
    def changed(self) -> bool:
        if self.direction == UP:
            return self.state.version > self.previous_version
        return self.state.version < self.previous_version


class MigrateHandler:
    """
    Status-reporting wrapper around a Migrator.

    up() and down() never raise for migration failures: the error is logged
    and None is returned. A completed run returns a MigrationResult.
    """

    def __init__(self, migrator: Migrator):
        self.migrator = migrator

    @classmethod
    def create(cls, settings: Settings, migration_dir: Union[str, Path]) -> "MigrateHandler":
        """Build the Alembic-backed handler. MigrationSetupError propagates to the caller."""
        return cls(AlembicMigrator.from_settings(settings, migration_dir))

    def _log_error(self, message: str, error: MeetNRunError) -> None:
        logger.error(message, extra=error.to_dict())

    def _current_state(self) -> tuple[Optional[MigrationState], bool]:
        """
        Return (state, initialized). A fresh database gets exactly one
        initialization step and reports version 0. (None, False) means the
        run must abort; the error has already been logged.
        """
        try:
            return self.migrator.version(), False
        except NilVersionError:
            try:
                self.migrator.steps(1)
            except MeetNRunError as e:
                self._log_error("Error initializing first migration", e)
                return None, False
            return MigrationState(version=0), True
        except MeetNRunError as e:
            self._log_error("Error getting migration version", e)
            return None, False

    def _report(self, direction: str, previous: int, state: MigrationState, initialized: bool) -> MigrationResult:
        result = MigrationResult(
            direction=direction,
            previous_version=previous,
            state=state,
            initialized=initialized,
        )
        if result.changed:
            logger.success("Successfully migrated", extra={"version": state.version, "dirty": state.dirty})
        else:
            logger.info("Nothing to migrate")
        return result

    def up(self) -> Optional[MigrationResult]:
        state, initialized = self._current_state()
        if state is None:
            return None
        logger.info("Got current migration state", extra={"version": state.version, "dirty": state.dirty})

        try:
            self.migrator.up()
        except NoChangeError:
            pass
        except MeetNRunError as e:
            self._log_error("Error migrating up", e)
            return None

        try:
            new_state = self.migrator.version()
        except MeetNRunError as e:
            self._log_error("Error getting new migration version", e)
            return None

        return self._report(UP, state.version, new_state, initialized)

    def down(self) -> Optional[MigrationResult]:
        state, initialized = self._current_state()
        if state is None:
            return None
        if initialized:
            logger.warning("No migration version recorded; applied the first migration before rolling back")
        logger.info("Got current migration state", extra={"version": state.version, "dirty": state.dirty})

        try:
            self.migrator.down()
        except NoChangeError:
            pass
        except MeetNRunError as e:
            self._log_error("Error migrating down", e)
            return None

        try:
            new_state = self.migrator.version()
        except NilVersionError:
            new_state = MigrationState(version=0)
        except MeetNRunError as e:
            self._log_error("Error getting new migration version", e)
            return None

        return self._report(DOWN, state.version, new_state, initialized)

    def run(self, down: bool = False) -> Optional[MigrationResult]:
        return self.down() if down else self.up()
