import typer

from meetnrun.cli.common import bootstrap_settings, fail
from meetnrun.core.db import connect
from meetnrun.core.errors import MeetNRunError

cli_app = typer.Typer(add_completion=False)


@cli_app.command()
def main():
    """Open the database connection pool and verify the database is reachable."""
    try:
        settings = bootstrap_settings()
        with connect(settings):
            pass
    except MeetNRunError as e:
        fail(e)


if __name__ == "__main__":
    cli_app()
