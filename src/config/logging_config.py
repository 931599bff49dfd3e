# src/config/logging_config.py

"""Per-run timestamped logging configuration for the GearZone engine.

Every launch writes to its own file inside ``logs/`` named after the
launch time (e.g. ``logs/run_20261019_101500.log``).  The ``gearzone``
logger is the root for the engine; its children (``gearzone.catalog``,
``gearzone.ratings``, ``gearzone.notifications``, ``gearzone.filters``,
``gearzone.store``, ``gearzone.payments``, ``gearzone.cli``) all land in
that file.

Only WARNING and above reach the console, so a silently recovered
rating or subscription failure is still visible to an operator without
drowning the CLI output.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

ROOT_LOGGER_NAME = "gearzone"

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _log_file_for_now(logs_dir: Path) -> Path:
    """Build the per-run log file path."""
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return logs_dir / f"run_{stamp}.log"


def setup_logging(console_level: int = logging.WARNING) -> Path:
    """Initialise the ``gearzone`` logger for the current run.

    Repeated calls (tests, embedded use) keep the handlers that are
    already attached instead of stacking duplicates.

    Returns:
        The :class:`~pathlib.Path` of the log file for this run.
    """
    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = _log_file_for_now(logs_dir)

    engine_logger = logging.getLogger(ROOT_LOGGER_NAME)
    engine_logger.setLevel(logging.DEBUG)

    if engine_logger.handlers:
        return log_file

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    engine_logger.addHandler(file_handler)
    engine_logger.addHandler(console_handler)

    # curl_cffi is chatty at DEBUG when the payment client retries
    logging.getLogger("curl_cffi").setLevel(logging.WARNING)

    engine_logger.info("Logging initialised, log file: %s", log_file)
    return log_file
