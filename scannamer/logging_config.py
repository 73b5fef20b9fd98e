"""
Logging setup for the command-line application.
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
FILE_LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOG_FILE_NAME = "scannamer.log"
ERROR_LOG_FILE_NAME = "errors.log"


def configure_logging(
    level: Union[int, str] = logging.INFO,
    log_directory: Optional[Union[str, Path]] = None,
    retention_days: int = 30,
) -> list[logging.Handler]:
    """
    Configure the root logger.

    Always logs to stderr. With a log directory, also writes a daily
    rotating ``scannamer.log`` kept for ``retention_days`` and an
    ``errors.log`` with warnings and errors kept three times as long.

    Returns:
        The handlers that were installed.
    """
    root = logging.getLogger()
    root.setLevel(level)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handlers: list[logging.Handler] = [console]

    if log_directory is not None:
        log_directory = Path(log_directory)
        log_directory.mkdir(parents=True, exist_ok=True)
        file_formatter = logging.Formatter(FILE_LOG_FORMAT, datefmt=DATE_FORMAT)

        main_file = TimedRotatingFileHandler(
            log_directory / LOG_FILE_NAME,
            when="midnight",
            backupCount=retention_days,
            encoding="utf-8",
        )
        main_file.setFormatter(file_formatter)
        handlers.append(main_file)

        error_file = TimedRotatingFileHandler(
            log_directory / ERROR_LOG_FILE_NAME,
            when="midnight",
            backupCount=retention_days * 3,
            encoding="utf-8",
        )
        error_file.setLevel(logging.WARNING)
        error_file.setFormatter(file_formatter)
        handlers.append(error_file)

    for handler in handlers:
        root.addHandler(handler)

    # Suppress noisy logs from third-party libraries
    for name in ("pdfminer", "PIL", "watchdog"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return handlers
