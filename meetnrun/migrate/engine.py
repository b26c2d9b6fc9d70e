from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from alembic.script.revision import RevisionError
from alembic.util.exc import CommandError
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from meetnrun.core.config import Settings
from meetnrun.core.errors import MigrationError, MigrationSetupError, NilVersionError, NoChangeError

SCRIPT_LOCATION = Path(__file__).resolve().parent / "script"


@dataclass(frozen=True)
class MigrationState:
    version: int
    dirty: bool = False


class Migrator(ABC):
    """
    Migration engine contract.

    version() raises NilVersionError when nothing is recorded; up() and down()
    raise NoChangeError when there is nothing to apply. Anything else is a
    MigrationError.
    """

    @abstractmethod
    def version(self) -> MigrationState:
        ...

    @abstractmethod
    def steps(self, n: int) -> None:
        """Apply n steps forward (n > 0) or backward (n < 0)."""

    @abstractmethod
    def up(self) -> None:
        """Apply all pending forward migrations."""

    @abstractmethod
    def down(self) -> None:
        """Revert one migration."""


def _ini_escape(value: str) -> str:
    return value.replace("%", "%%")


def revision_to_version(revision: str) -> int:
    try:
        version = int(revision)
    except (TypeError, ValueError):
        raise MigrationError(f"revision id {revision!r} is not a numeric version")
    if version < 0:
        raise MigrationError(f"revision id {revision!r} is negative")
    return version


class AlembicMigrator(Migrator):
    """
    Alembic-backed Migrator.

    migration_dir is used as Alembic's version location; revision ids must be
    integers ("0001", "0002", ...). The Alembic environment (env.py) ships
    with this package.
    """

    def __init__(self, engine: Engine, migration_dir: Union[str, Path]):
        self.engine = engine
        self.migration_dir = Path(migration_dir)
        if not self.migration_dir.is_dir():
            raise MigrationSetupError(f"migration directory {self.migration_dir} does not exist")
        self.config = Config()
        self.config.set_main_option("script_location", _ini_escape(str(SCRIPT_LOCATION)))
        self.config.set_main_option("path_separator", "os")
        self.config.set_main_option("version_path_separator", "os")
        self.config.set_main_option("version_locations", _ini_escape(str(self.migration_dir.resolve())))
        try:
            self.script = ScriptDirectory.from_config(self.config)
        except CommandError as e:
            raise MigrationSetupError("could not create migration script directory", cause=e) from e

    @classmethod
    def from_settings(cls, settings: Settings, migration_dir: Union[str, Path]) -> "AlembicMigrator":
        try:
            engine = create_engine(settings.sqlalchemy_url, poolclass=NullPool)
        except (SQLAlchemyError, ImportError) as e:
            raise MigrationSetupError("could not create migration database engine", cause=e) from e
        return cls(engine, migration_dir)

    def _current_revision(self) -> Optional[str]:
        try:
            with self.engine.connect() as connection:
                return MigrationContext.configure(connection).get_current_revision()
        except (SQLAlchemyError, CommandError) as e:
            raise MigrationError("could not read migration version", cause=e) from e

    def _is_known(self, revision: str) -> bool:
        try:
            return self.script.get_revision(revision) is not None
        except (CommandError, RevisionError):
            return False

    def _head(self) -> Optional[str]:
        try:
            return self.script.get_current_head()
        except (CommandError, RevisionError) as e:
            raise MigrationError("could not resolve head revision", cause=e) from e

    def _run(self, fn: Callable[[Config, str], None], target: str) -> None:
        try:
            with self.engine.begin() as connection:
                self.config.attributes["connection"] = connection
                try:
                    fn(self.config, target)
                finally:
                    self.config.attributes.pop("connection", None)
        except (SQLAlchemyError, CommandError, RevisionError) as e:
            raise MigrationError(f"migration to {target} failed", cause=e) from e

    def version(self) -> MigrationState:
        revision = self._current_revision()
        if revision is None:
            raise NilVersionError()
        return MigrationState(
            version=revision_to_version(revision),
            dirty=not self._is_known(revision),
        )

    def steps(self, n: int) -> None:
        if n == 0:
            raise NoChangeError()
        if n > 0:
            self._run(command.upgrade, f"+{n}")
        else:
            self._run(command.downgrade, str(n))

    def up(self) -> None:
        if self._current_revision() == self._head():
            raise NoChangeError()
        self._run(command.upgrade, "head")

    def down(self) -> None:
        if self._current_revision() is None:
            raise NoChangeError()
        self._run(command.downgrade, "-1")
