"""
Logging setup shared by every catalog export component
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class LocalTimeFormatter(logging.Formatter):
    """Formatter that stamps records with the machine's local time."""

    def formatTime(self, record, datefmt=None):
        created = datetime.fromtimestamp(record.created)
        return created.strftime(datefmt or self.default_time_format)


def _resolve_level(log_level: Optional[str]) -> int:
    # Explicit argument wins, then LOG_LEVEL, then INFO
    level_name = (log_level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    return getattr(logging, level_name, logging.INFO)


def setup_logger(
    name: str = "catalog_export",
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None
) -> logging.Logger:
    """
    Configure and return a named logger.

    Args:
        name: Logger name (one per component, e.g. 'xml_exporter')
        log_level: Logging level name; falls back to LOG_LEVEL env var, then INFO
        log_file: Optional file that receives the same records as stdout

    Returns:
        Configured logger instance
    """
    level = _resolve_level(log_level)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = LocalTimeFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
