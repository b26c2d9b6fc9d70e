from meetnrun.core.config import Settings, load_env_if_present, load_settings
from meetnrun.core.logger import setup_logger

__all__ = [
    "Settings",
    "load_env_if_present",
    "load_settings",
    "setup_logger",
]
