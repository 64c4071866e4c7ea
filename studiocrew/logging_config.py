"""
Logging for Studio Crew.

Everything logs under the 'studiocrew' logger: engine and store modules use
child loggers (studiocrew.engine.slots, studiocrew.db.store, ...) which
propagate to the one rotating file handler attached here.

Environment
-----------
    LOG_LEVEL : DEBUG / INFO / WARNING / ERROR / CRITICAL, default INFO
    LOG_DIR   : directory for studiocrew.log, default <repo>/logs

CLI commands are traced with @log_call:

    2026-10-19 14:32:01 | DEBUG    | CALL crew_assign | args=(event_id='ev-1', person_id='asha', ...)
    2026-10-19 14:32:01 | INFO     | OK   crew_assign | 42ms
    2026-10-19 14:32:01 | WARNING  | STOP crew_assign | All Photographer slots on day 1 are filled | 3ms
    2026-10-19 14:32:01 | ERROR    | FAIL crew_assign | OperationalError: server closed the connection | 3ms
"""

import functools
import logging
import logging.handlers
import os
import time
from pathlib import Path

import click

LOGGER_NAME = "studiocrew"
LOG_FILE_NAME = "studiocrew.log"

_DEFAULT_LOG_DIR = Path(__file__).parent.parent / "logs"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 3

# Events and slot lists have long reprs; CALL lines stay readable
_MAX_ARG_REPR = 80


def log_dir() -> Path:
    return Path(os.environ.get("LOG_DIR") or _DEFAULT_LOG_DIR)


def _level_from_env() -> int:
    name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, name, None)
    return level if isinstance(level, int) else logging.INFO


def configure_logging() -> logging.Logger:
    """
    Attach the rotating file handler to the studiocrew logger, once.
    Later calls return the already configured logger untouched.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    directory = log_dir()
    directory.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        directory / LOG_FILE_NAME,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(_level_from_env())
    return logger


def _short_repr(value) -> str:
    text = repr(value)
    if len(text) > _MAX_ARG_REPR:
        return text[:_MAX_ARG_REPR - 3] + "..."
    return text


def _describe_args(args, kwargs) -> str:
    parts = [_short_repr(a) for a in args]
    parts += [f"{k}={_short_repr(v)}" for k, v in kwargs.items()]
    return ", ".join(parts) or "-"


def log_call(func):
    """
    Trace a CLI command: CALL on entry (DEBUG), OK with duration on success.

    A click.ClickException is a refusal reported to the user and is logged as
    STOP at WARNING; any other exception is logged as FAIL at ERROR. Both
    re-raise.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(LOGGER_NAME)
        name = func.__name__
        start = time.perf_counter()
        logger.debug(f"CALL {name} | args=({_describe_args(args, kwargs)})")

        def elapsed():
            return int((time.perf_counter() - start) * 1000)

        try:
            result = func(*args, **kwargs)
        except click.ClickException as exc:
            logger.warning(f"STOP {name} | {exc.format_message()} | {elapsed()}ms")
            raise
        except Exception as exc:
            logger.error(f"FAIL {name} | {type(exc).__name__}: {exc} | {elapsed()}ms")
            raise
        logger.info(f"OK   {name} | {elapsed()}ms")
        return result

    return wrapper
