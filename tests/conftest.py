import pytest

from meetnrun.core.config import Settings
from meetnrun.core.errors import MigrationError, NilVersionError, NoChangeError
from meetnrun.migrate.engine import MigrationState, Migrator


@pytest.fixture
def database_env():
    return {
        "MEETNRUN_DATABASE_USER": "runner",
        "MEETNRUN_DATABASE_PASSWORD": "s3cret pass",
        "MEETNRUN_DATABASE_DATABASE": "meetnrun",
        "MEETNRUN_DATABASE_HOST": "db.internal",
        "MEETNRUN_DATABASE_PORT": "5432",
    }


@pytest.fixture
def settings(database_env):
    return Settings.model_validate(database_env)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Process environment without any MeetNRun variables, cwd in an empty dir."""
    for name in (
        "MEETNRUN_DATABASE_USER",
        "MEETNRUN_DATABASE_PASSWORD",
        "MEETNRUN_DATABASE_DATABASE",
        "MEETNRUN_DATABASE_HOST",
        "MEETNRUN_DATABASE_PORT",
        "MIGRATION_DIR",
        "MEETNRUN_ENV_FILE",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        # setenv first so the variable is restored (or removed) on teardown
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.fixture
def handler_logs(caplog):
    # meetnrun loggers do not propagate to root, so attach caplog directly
    from meetnrun.migrate import handler
    handler.logger.addHandler(caplog.handler)
    yield caplog
    handler.logger.removeHandler(caplog.handler)


class FakeMigrator(Migrator):
    """In-memory migrator over versions 1..available."""

    def __init__(self, available=2, current=None):
        self.available = available
        self.current = current
        self.calls = []
        self.fail_on = set()

    def _maybe_fail(self, op):
        if op in self.fail_on:
            raise MigrationError(f"{op} exploded")

    def version(self):
        self.calls.append("version")
        self._maybe_fail("version")
        if self.current is None:
            raise NilVersionError()
        return MigrationState(version=self.current)

    def steps(self, n):
        self.calls.append(f"steps({n})")
        self._maybe_fail("steps")
        target = (self.current or 0) + n
        if target < 0 or target > self.available:
            raise MigrationError("file does not exist")
        self.current = target or None

    def up(self):
        self.calls.append("up")
        self._maybe_fail("up")
        if (self.current or 0) == self.available:
            raise NoChangeError()
        self.current = self.available

    def down(self):
        self.calls.append("down")
        self._maybe_fail("down")
        if self.current is None:
            raise NoChangeError()
        self.current = self.current - 1 or None


@pytest.fixture
def make_migrator():
    return FakeMigrator
