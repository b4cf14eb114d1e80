# storefront/config/logging_config.py

"""Per-run logging for the storefront client.

Every launch writes a full DEBUG trace to ``logs/run_<timestamp>.log``
while the console only shows ``Settings.LOG_CONSOLE_LEVEL`` and above.
Chatty modules can be turned down individually through
``Settings.LOGGER_LEVELS`` (``"storefront.catalog=INFO,..."``), which
keeps stale-response discards and cache traffic out of long runs.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from storefront.config.settings import Settings

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(funcName)s:%(lineno)d | %(message)s"
)
_CONSOLE_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER = "storefront"


def _to_level(name: str) -> int | None:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else None


def parse_logger_levels(spec: str) -> dict[str, int]:
    """Parse ``name=LEVEL`` pairs separated by commas.

    Entries outside the ``storefront`` tree or with an unknown level
    are ignored.
    """
    levels: dict[str, int] = {}
    for chunk in spec.split(","):
        name, sep, raw_level = chunk.partition("=")
        name = name.strip()
        level = _to_level(raw_level) if sep else None
        if level is None or not (
            name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + ".")
        ):
            continue
        levels[name] = level
    return levels


def _file_handler(log_file: Path) -> logging.Handler:
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, _DATE_FORMAT))
    return handler


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    return handler


def setup_logging(console_level: str | None = None) -> Path:
    """Configure the ``storefront`` logger tree for this run.

    ``console_level`` overrides ``Settings.LOG_CONSOLE_LEVEL``. Handlers
    are attached once; later calls only re-apply per-module levels.

    Returns:
        The path of this run's log file.
    """
    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(logging.DEBUG)
    for name, level in parse_logger_levels(Settings.LOGGER_LEVELS).items():
        logging.getLogger(name).setLevel(level)

    if root_logger.handlers:
        return log_file

    threshold = _to_level(console_level or Settings.LOG_CONSOLE_LEVEL)
    root_logger.addHandler(_file_handler(log_file))
    root_logger.addHandler(_console_handler(threshold or logging.WARNING))
    root_logger.info("Logging initialised, log file: %s", log_file)
    return log_file
