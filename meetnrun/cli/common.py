from typing import NoReturn

import typer

from meetnrun.core.config import Settings, load_env_if_present, load_settings
from meetnrun.core.errors import MeetNRunError
from meetnrun.core.logger import configure_loggers, setup_logger

logger = setup_logger(__name__, include_location=True)


def bootstrap_settings() -> Settings:
    """Load .env (if any), apply its log settings and build the database settings."""
    load_env_if_present()
    configure_loggers()
    return load_settings()


def fail(error: MeetNRunError) -> NoReturn:
    """Single exit point for fatal errors."""
    logger.critical(error.message, extra=error.to_dict())
    raise typer.Exit(code=1)
