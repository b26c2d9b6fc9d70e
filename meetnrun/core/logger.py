from datetime import datetime
import os
import re
import sys
import json
import logging
import traceback


SUCCESS_LEVEL = 25
LOG_SEVERITY = {
    "DEBUG": "DEBUG",
    "INFO": "INFO",
    "SUCCESS": "SUCCESS",
    "WARNING": "WARNING",
    "ERROR": "ERROR",
    "CRITICAL": "CRITICAL"
}

# LogRecord attributes that are never printed as extras
_RESERVED_ATTRS = frozenset([
    "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "exc_info", "exc_text", "stack_info",
    "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "process", "processName", "scope", "name", "taskName",
    "message", "asctime",
])

logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")

# logger name -> (stdout handler, include_location, use_json or None to follow LOG_FORMAT)
_CONFIGURED = {}


class CustomLogger(logging.Logger):
    def success(self, message, *args, **kwargs):
        if self.isEnabledFor(SUCCESS_LEVEL):
            kwargs.setdefault("stacklevel", 2)
            self._log(SUCCESS_LEVEL, message, args, **kwargs)


def get_log_level() -> int:
    return getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)


def use_json_logs() -> bool:
    return os.environ.get("LOG_FORMAT", "text").strip().lower() == "json"


def stringify_extra(value):
    if isinstance(value, (list, dict)):
        return str(value)
    else:
        return value


def record_extras(record: logging.LogRecord) -> dict:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS
    }


class CustomFormatter(logging.Formatter):

    def __init__(self, fmt="%(message)s", include_location=False):
        super().__init__(fmt)
        self.include_location = include_location

    def format(self, record):
        level_name = LOG_SEVERITY.get(record.levelname, record.levelname)
        scope_highlight = f"{record.scope}" if hasattr(record, "scope") else ""
        location = ""
        if self.include_location:
            location = f"{record.pathname}:{record.lineno}\n({record.module}:{record.funcName}:{record.lineno})"

        metadata_line = f"{datetime.now().isoformat()} [{level_name}] {scope_highlight} {location}".strip()

        message = record.getMessage()
        message_split = message.splitlines()
        if len(message_split) > 1:
            message_line = f"     Message: {message_split[0]}"
            for line in message_split[1:]:
                message_line += f"\n             {line}"
        else:
            message_line = f"     Message: {message}"

        extra_items = [
            f"{key}: {stringify_extra(value)}"
            for key, value in record_extras(record).items()
        ]
        extra_info = ""
        if extra_items:
            extra_info = f"\n     {' '.join(extra_items)}"
        formatted_log = f"{metadata_line}\n{message_line}{extra_info}"
        if record.exc_info:
            # clickable "path:line" frames for editors
            format_exception = traceback.format_exception(*record.exc_info)
            format_exception = "".join(
                re.sub(r'File "([^"]+)", line (\d+),', r'File "\1:\2"', line)
                for line in format_exception
            )
            formatted_log += f"\n{format_exception}"
        return formatted_log


class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_dict = {
            "level": record.levelname,
            "message": record.getMessage(),
            "time": self.formatTime(record, self.datefmt),
            "logger": record.name,
        }
        if hasattr(record, "scope"):
            log_dict["scope"] = record.scope
        log_dict["location"] = {
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        extras = record_extras(record)
        if extras:
            log_dict["extra"] = {key: stringify_extra(value) for key, value in extras.items()}
        if record.exc_info:
            log_dict["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_dict, ensure_ascii=False, default=str)


def _make_formatter(include_location: bool, use_json) -> logging.Formatter:
    if use_json is None:
        use_json = use_json_logs()
    if use_json:
        return JSONFormatter()
    return CustomFormatter(include_location=include_location)


def setup_logger(name: str, include_location=False, use_json=None):
    """
    Return a stdout logger with the SUCCESS level available.

    use_json=None follows LOG_FORMAT; the level follows LOG_LEVEL. Both are
    read again by configure_loggers().
    """
    logging.setLoggerClass(CustomLogger)
    logger = logging.getLogger(name)

    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setLevel(logging.DEBUG)
        stream_handler.setFormatter(_make_formatter(include_location, use_json))
        logger.addHandler(stream_handler)
        _CONFIGURED[name] = (stream_handler, include_location, use_json)
    logger.setLevel(get_log_level())
    logger.propagate = False
    return logger


def configure_loggers():
    """
    Re-apply LOG_LEVEL and LOG_FORMAT to every logger built by setup_logger.

    Loggers are created at import time, so call this once the environment is
    final (after a .env file has been loaded).
    """
    level = get_log_level()
    for name, (stream_handler, include_location, use_json) in _CONFIGURED.items():
        logging.getLogger(name).setLevel(level)
        stream_handler.setFormatter(_make_formatter(include_location, use_json))
