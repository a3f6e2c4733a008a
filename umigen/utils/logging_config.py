"""
umigen Logging Configuration.

Aggregation runs over many archetypes and zone types, so log records carry
that context through ``extra=``::

    logger = logging.getLogger(__name__)
    logger.warning("No such column", extra={"archetype": "B1", "table": "NominalPeople"})

The console shows it as a ``[archetype=B1, table=NominalPeople]`` suffix;
the optional log file holds one JSON object per record.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Union


DEFAULT_LOG_LEVEL = os.environ.get("UMIGEN_LOG_LEVEL", "INFO").upper()

LOG_DIR = Path(os.environ.get("UMIGEN_LOG_DIR", "logs"))

# Keys picked up from ``extra=`` on log calls, in display order
CONTEXT_KEYS = ["archetype", "zone_type", "table", "profile_type"]

# Libraries that log chatter at INFO while pandas evaluates expressions
QUIET_LOGGERS = ["numexpr", "numexpr.utils"]


def record_context(record: logging.LogRecord) -> Dict[str, object]:
    """Context values attached to a record, in ``CONTEXT_KEYS`` order."""
    return {key: getattr(record, key) for key in CONTEXT_KEYS if hasattr(record, key)}


class UmigenFormatter(logging.Formatter):
    """Console formatter: level colours and a context suffix."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )
        self.use_colors = use_colors and sys.stdout.isatty()

    def formatMessage(self, record: logging.LogRecord) -> str:
        context = record_context(record)
        if context:
            suffix = ", ".join(f"{key}={value}" for key, value in context.items())
            record = logging.makeLogRecord({**record.__dict__, "message": f"{record.message} [{suffix}]"})
        formatted = super().formatMessage(record)
        if self.use_colors:
            return f"{self.COLORS.get(record.levelname, '')}{formatted}{self.RESET}"
        return formatted


class FileFormatter(logging.Formatter):
    """One JSON object per line, context keys as fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_context(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(
    level: Union[str, int] = DEFAULT_LOG_LEVEL,
    log_to_file: bool = False,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """
    Configure the root logger for a umigen run.

    Args:
        level: Log level name (any case) or number
        log_to_file: Also write JSON lines to a file at DEBUG level
        log_file: File path (default: ``$UMIGEN_LOG_DIR/umigen_YYYYMMDD.log``)
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(UmigenFormatter())
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_to_file:
        if log_file is None:
            LOG_DIR.mkdir(parents=True, exist_ok=True)
            log_file = LOG_DIR / f"umigen_{datetime.now():%Y%m%d}.log"
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(FileFormatter())
        file_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)
        # The file gets everything even when the console is quieter
        root_logger.setLevel(logging.DEBUG)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
