import pytest

from meetnrun.core.errors import MigrationSetupError
from meetnrun.migrate import handler as handler_module
from meetnrun.migrate.engine import MigrationState
from meetnrun.migrate.handler import MigrateHandler


def test_up_on_fresh_database_initializes_exactly_once(make_migrator, handler_logs):
    migrator = make_migrator(available=3)
    result = MigrateHandler(migrator).up()

    assert migrator.calls.count("steps(1)") == 1
    assert migrator.calls.index("steps(1)") < migrator.calls.index("up")
    assert result.initialized
    assert result.previous_version == 0
    assert result.state == MigrationState(version=3)
    assert result.changed
    assert "Successfully migrated" in handler_logs.messages


def test_up_with_single_migration_treats_no_change_as_success(make_migrator):
    migrator = make_migrator(available=1)
    result = MigrateHandler(migrator).up()

    assert result.changed
    assert result.state.version == 1


def test_second_up_reports_nothing_to_migrate(make_migrator, handler_logs):
    migrator = make_migrator(available=2)
    handler = MigrateHandler(migrator)

    first = handler.up()
    handler_logs.clear()
    second = handler.up()

    assert first.changed
    assert not second.changed
    assert not second.initialized
    assert second.previous_version == second.state.version == 2
    assert "Nothing to migrate" in handler_logs.messages
    assert "Successfully migrated" not in handler_logs.messages


def test_up_logs_current_state_with_version_and_dirty(make_migrator, handler_logs):
    MigrateHandler(make_migrator(available=2, current=1)).up()

    state_records = [r for r in handler_logs.records if r.getMessage() == "Got current migration state"]
    assert len(state_records) == 1
    assert state_records[0].version == 1
    assert state_records[0].dirty is False


def test_down_at_version_one_reduces_version(make_migrator, handler_logs):
    migrator = make_migrator(available=2, current=1)
    result = MigrateHandler(migrator).down()

    assert "steps(1)" not in migrator.calls
    assert result.previous_version == 1
    assert result.state.version == 0
    assert result.changed
    assert "Successfully migrated" in handler_logs.messages


def test_down_reverts_a_single_step(make_migrator):
    migrator = make_migrator(available=3, current=3)
    result = MigrateHandler(migrator).down()

    assert migrator.calls.count("down") == 1
    assert result.state.version == 2


def test_down_without_version_takes_initialization_branch(make_migrator, handler_logs):
    migrator = make_migrator(available=2)
    result = MigrateHandler(migrator).down()

    assert result is not None
    assert result.initialized
    assert migrator.calls.count("steps(1)") == 1
    assert migrator.current is None
    assert not result.changed
    assert "Nothing to migrate" in handler_logs.messages
    assert any(r.levelname == "WARNING" for r in handler_logs.records)


def test_version_query_failure_aborts_without_migrating(make_migrator, handler_logs):
    migrator = make_migrator(current=1)
    migrator.fail_on.add("version")

    assert MigrateHandler(migrator).up() is None
    assert "up" not in migrator.calls
    assert "Error getting migration version" in handler_logs.messages
    record = handler_logs.records[-1]
    assert record.levelname == "ERROR"
    assert record.error_kind == "migration"


def test_initialization_failure_aborts(make_migrator, handler_logs):
    migrator = make_migrator(available=0)

    assert MigrateHandler(migrator).up() is None
    assert "up" not in migrator.calls
    assert "Error initializing first migration" in handler_logs.messages


@pytest.mark.parametrize("direction, message", [
    ("up", "Error migrating up"),
    ("down", "Error migrating down"),
])
def test_step_failure_is_logged_not_raised(make_migrator, handler_logs, direction, message):
    migrator = make_migrator(available=2, current=1)
    migrator.fail_on.add(direction)

    assert getattr(MigrateHandler(migrator), direction)() is None
    assert message in handler_logs.messages
    assert migrator.current == 1


def test_new_version_failure_after_up_aborts(make_migrator, handler_logs, monkeypatch):
    migrator = make_migrator(available=2, current=1)
    original = migrator.up

    def up_then_break():
        original()
        migrator.fail_on.add("version")

    monkeypatch.setattr(migrator, "up", up_then_break)

    assert MigrateHandler(migrator).up() is None
    assert "Error getting new migration version" in handler_logs.messages


@pytest.mark.parametrize("down, expected", [(True, "down"), (False, "up")])
def test_run_routes_by_direction(make_migrator, down, expected):
    migrator = make_migrator(available=2, current=1)
    MigrateHandler(migrator).run(down=down)

    assert expected in migrator.calls
    assert ({"up", "down"} - {expected}).isdisjoint(migrator.calls)


def test_create_propagates_setup_errors(settings, tmp_path, handler_logs):
    with pytest.raises(MigrationSetupError) as exc_info:
        MigrateHandler.create(settings, tmp_path / "missing")
    assert exc_info.value.fatal
    assert handler_logs.records == []


def test_create_builds_alembic_migrator(settings, tmp_path, monkeypatch):
    created = {}

    def fake_from_settings(cls, settings, migration_dir):
        created["args"] = (settings, migration_dir)
        return "migrator"

    monkeypatch.setattr(handler_module.AlembicMigrator, "from_settings", classmethod(fake_from_settings))
    handler = MigrateHandler.create(settings, tmp_path)

    assert handler.migrator == "migrator"
    assert created["args"] == (settings, tmp_path)
