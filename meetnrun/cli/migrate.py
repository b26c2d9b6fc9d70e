import typer

from meetnrun.cli.common import bootstrap_settings, fail
from meetnrun.core.config import load_migration_settings
from meetnrun.core.db import connect
from meetnrun.core.errors import MeetNRunError
from meetnrun.migrate.handler import MigrateHandler

cli_app = typer.Typer(add_completion=False)


@cli_app.command()
def main(
    down: bool = typer.Option(False, "-d", "--down", help="Is migration going down"),
):
    """
    Apply pending migrations from MIGRATION_DIR, or roll back one with -d.
    Migration step failures are logged and do not change the exit code.
    """
    try:
        settings = bootstrap_settings()
        with connect(settings):
            migration_settings = load_migration_settings()
            handler = MigrateHandler.create(settings, migration_settings.migration_dir)
            handler.run(down=down)
    except MeetNRunError as e:
        fail(e)


if __name__ == "__main__":
    cli_app()
