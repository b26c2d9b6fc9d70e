import os
from pathlib import Path
from typing import Mapping, Optional

from psycopg.conninfo import make_conninfo
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from sqlalchemy.engine import URL

from meetnrun.core.errors import ConfigurationError
from meetnrun.core.logger import setup_logger

logger = setup_logger(__name__, include_location=True)

ENV_FILE_VAR = "MEETNRUN_ENV_FILE"
DEFAULT_ENV_FILE = ".env"

DATABASE_ENV_VARS = (
    "MEETNRUN_DATABASE_USER",
    "MEETNRUN_DATABASE_PASSWORD",
    "MEETNRUN_DATABASE_DATABASE",
    "MEETNRUN_DATABASE_HOST",
    "MEETNRUN_DATABASE_PORT",
)
MIGRATION_ENV_VARS = ("MIGRATION_DIR",)


def _load_env_file(path: str, allow_override: bool = False) -> list[str]:
    """
    Minimal .env loader: loads KEY=VALUE pairs into os.environ.
    - Ignores empty lines and lines starting with '#'
    - Supports values wrapped in single or double quotes
    - By default, does not override existing environment variables
    Returns the keys that were set.
    """
    loaded = []
    if not path or not os.path.isfile(path):
        return loaded
    with open(path, "r", encoding="utf-8") as f:
        for raw_line in f:
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[len("export "):].strip()
            if "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip()
            if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                value = value[1:-1]
            if allow_override or key not in os.environ:
                os.environ[key] = value
                loaded.append(key)
    return loaded


def load_env_if_present(path: Optional[str] = None) -> list[str]:
    """
    Load a .env file into the process environment if it exists.

    Lookup order: explicit path, then MEETNRUN_ENV_FILE, then ./.env.
    Variables already present in the environment win.
    """
    env_file = path or os.environ.get(ENV_FILE_VAR) or DEFAULT_ENV_FILE
    try:
        loaded = _load_env_file(env_file)
    except OSError as e:
        raise ConfigurationError(f"could not read environment file {env_file}", cause=e) from e
    if loaded:
        logger.debug(f"Loaded {len(loaded)} variables from {env_file}")
    return loaded


def _missing(environ: Mapping[str, str], names) -> list[str]:
    return [name for name in names if not (environ.get(name) or "").strip()]


class Settings(BaseModel):
    """
    Database connection settings. All five values are required; there are no defaults.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user: str = Field(..., alias="MEETNRUN_DATABASE_USER")
    password: str = Field(..., alias="MEETNRUN_DATABASE_PASSWORD", repr=False)
    database: str = Field(..., alias="MEETNRUN_DATABASE_DATABASE")
    host: str = Field(..., alias="MEETNRUN_DATABASE_HOST")
    port: str = Field(..., alias="MEETNRUN_DATABASE_PORT")

    @field_validator('user', 'password', 'database', 'host', 'port', mode='before')
    def validate_not_empty_str(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Value cannot be empty or whitespace only")
        return v

    @field_validator('port')
    def validate_port(cls, v):
        try:
            port = int(v)
        except ValueError:
            raise ValueError(f"Invalid port number: {v}")
        if port < 1 or port > 65535:
            raise ValueError(f"Invalid port number: {port}")
        return v

    @property
    def conninfo(self) -> str:
        """libpq connection string for psycopg."""
        return make_conninfo(
            "",
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            dbname=self.database,
            sslmode="disable",
        )

    @property
    def sqlalchemy_url(self) -> URL:
        """Same target as conninfo, for the SQLAlchemy engine used by migrations."""
        return URL.create(
            "postgresql+psycopg",
            username=self.user,
            password=self.password,
            host=self.host,
            port=int(self.port),
            database=self.database,
            query={"sslmode": "disable"},
        )


class MigrationSettings(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    migration_dir: Path = Field(..., alias="MIGRATION_DIR")

    @field_validator('migration_dir', mode='before')
    def validate_not_empty_str(cls, v):
        if isinstance(v, str):
            if not v.strip():
                raise ValueError("Value cannot be empty or whitespace only")
            return v.strip()
        return v


def _build(model, environ: Mapping[str, str], names):
    missing = _missing(environ, names)
    if missing:
        raise ConfigurationError(
            f"Missing environment variables: {', '.join(missing)}",
            missing=missing,
        )
    try:
        return model.model_validate({name: environ[name] for name in names})
    except ValidationError as e:
        raise ConfigurationError("could not parse environment variables", cause=e) from e


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environ (default os.environ).
    Raises ConfigurationError if any variable is missing, empty or invalid.
    """
    return _build(Settings, os.environ if environ is None else environ, DATABASE_ENV_VARS)


def load_migration_settings(environ: Optional[Mapping[str, str]] = None) -> MigrationSettings:
    return _build(MigrationSettings, os.environ if environ is None else environ, MIGRATION_ENV_VARS)
