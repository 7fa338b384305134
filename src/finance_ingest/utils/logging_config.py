"""Logging setup shared by the CLI and the import pipeline.

Everything logs under the ``finance_ingest`` logger. Identifiers that tie a
record to a person (owner ids, account and card numbers) are masked before
they are written, because log files outlive the import run.
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional

DEFAULT_LOG_FILE = "finance_ingest.log"
PACKAGE_LOGGER = "finance_ingest"

SENSITIVE_FIELDS = frozenset({"owner_id", "account_number", "sort_code", "card_number", "token", "api_key"})
MASK = "***"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def describe_context(context: dict[str, object]) -> str:
    """Render context as ``key=value`` pairs with sensitive values masked."""
    return ", ".join(
        f"{key}={MASK if key.lower() in SENSITIVE_FIELDS else value}" for key, value in context.items()
    )


def _build_handlers(log_file: str, console_output: bool) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    if console_output:
        handlers.append(logging.StreamHandler(sys.stderr))
    return handlers


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    console_output: bool = True,
) -> logging.Logger:
    """(Re)configure the package logger.

    Calling this again replaces the handlers from the previous call, so the
    CLI can start with console-only logging and switch to the configured
    file once settings are loaded.

    Args:
        level: Level name; unknown names fall back to INFO.
        log_file: Log file path. None means DEFAULT_LOG_FILE, "" means no file.
        console_output: Also log to stderr.

    Returns:
        The ``finance_ingest`` logger.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(numeric_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in _build_handlers(DEFAULT_LOG_FILE if log_file is None else log_file, console_output):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a module logger nested under ``finance_ingest``."""
    if name == PACKAGE_LOGGER or name.startswith(f"{PACKAGE_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


class LogContext:
    """Time an operation and log how it ended.

    Exceptions are logged with their traceback and then re-raised.

    Example:
        with LogContext(logger, "import source", source="april.csv", owner_id=owner):
            ...
    """

    def __init__(self, logger: logging.Logger, operation: str, **context: object):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.elapsed: Optional[float] = None
        self._started = 0.0

    def __enter__(self) -> "LogContext":
        self._started = time.perf_counter()
        self.logger.debug(f"{self.operation} started ({describe_context(self.context)})")
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: object,
    ) -> bool:
        self.elapsed = time.perf_counter() - self._started
        if exc_type is None:
            self.logger.debug(f"{self.operation} finished in {self.elapsed:.3f}s")
        else:
            self.logger.error(
                f"{self.operation} failed after {self.elapsed:.3f}s "
                f"({describe_context(self.context)}): {exc_type.__name__}: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
        return False
