"""
Error handler module for tracking and logging catalog export failures
"""

import csv
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, List, Dict, Any
from enum import Enum

from catalog_export.catalog.source import CatalogSourceError
from catalog_export.exporters.errors import (
    EmptyInputWarning,
    EncodingError,
    SinkWriteError,
    WriterStateError,
)
from catalog_export.utils.logger import setup_logger

CSV_HEADERS = ['target', 'error_type', 'error_message', 'timestamp', 'context']


class ErrorType(Enum):
    """Types of errors that can occur during an export"""
    SINK_WRITE_ERROR = "sink_write_error"
    ENCODING_ERROR = "encoding_error"
    WRITER_STATE_ERROR = "writer_state_error"
    SOURCE_ERROR = "source_error"
    EMPTY_INPUT = "empty_input"
    UNKNOWN_ERROR = "unknown_error"

    @classmethod
    def from_exception(cls, error: BaseException) -> 'ErrorType':
        """Classify an exception raised by a source, serializer or exporter."""
        if isinstance(error, SinkWriteError):
            return cls.SINK_WRITE_ERROR
        if isinstance(error, EncodingError):
            return cls.ENCODING_ERROR
        if isinstance(error, WriterStateError):
            return cls.WRITER_STATE_ERROR
        if isinstance(error, CatalogSourceError):
            return cls.SOURCE_ERROR
        if isinstance(error, EmptyInputWarning):
            return cls.EMPTY_INPUT
        return cls.UNKNOWN_ERROR


class ErrorHandler:
    """
    Handler for tracking and logging export errors.
    Records errors to a CSV ledger and logs each one.
    """

    def __init__(self, errors_csv_path: Optional[Path] = None):
        """
        Initialize error handler.

        Args:
            errors_csv_path: Path to CSV file for storing errors.
                            Default: data/export_errors.csv
        """
        if errors_csv_path is None:
            errors_csv_path = Path("data/export_errors.csv")

        self.errors_csv_path = Path(errors_csv_path)
        self.logger = setup_logger(name="error_handler")

        self.errors_csv_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_csv()

    def _initialize_csv(self):
        """Write the header row if the ledger does not exist yet."""
        if self.errors_csv_path.exists():
            return
        with open(self.errors_csv_path, 'w', newline='', encoding='utf-8') as f:
            csv.writer(f).writerow(CSV_HEADERS)
        self.logger.debug(f"Initialized errors CSV file: {self.errors_csv_path}")

    def record_error(
        self,
        target: str,
        error_type: ErrorType,
        error_message: str,
        context: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Record an error to CSV file and log it.

        Args:
            target: Export destination (file path) or source the error belongs to
            error_type: Type of error (ErrorType enum)
            error_message: Error message description
            context: Optional context dictionary with additional information

        Returns:
            True if error was recorded successfully, False otherwise
        """
        timestamp = datetime.now(timezone.utc).isoformat()
        context_str = str(context) if context else ""

        log_message = f"Export of {target} failed: [{error_type.value}] {error_message}"
        if context:
            log_message += f" | Context: {context}"

        if error_type is ErrorType.EMPTY_INPUT:
            self.logger.warning(log_message)
        else:
            self.logger.error(log_message)

        try:
            with open(self.errors_csv_path, 'a', newline='', encoding='utf-8') as f:
                csv.writer(f).writerow([target, error_type.value, error_message, timestamp, context_str])
        except OSError as e:
            self.logger.error(f"Failed to record error to CSV: {e}")
            return False

        self.logger.debug(f"Recorded error for {target} to {self.errors_csv_path}")
        return True

    def record_exception(
        self,
        target: str,
        error: BaseException,
        mode: Optional[str] = None
    ) -> bool:
        """
        Record an exception, classifying it by its type.

        Args:
            target: Export destination or source the exception belongs to
            error: The exception (or warning) that was raised
            mode: Serialization mode in use, if any

        Returns:
            True if error was recorded successfully
        """
        context = {'exception': type(error).__name__}
        if mode:
            context['mode'] = mode
        return self.record_error(target, ErrorType.from_exception(error), str(error), context)

    def get_errors(self, target: Optional[str] = None, error_type: Optional[ErrorType] = None) -> List[Dict[str, Any]]:
        """
        Get errors from CSV file.

        Args:
            target: Filter by target (None = all targets)
            error_type: Filter by error type (None = all types)

        Returns:
            List of error dictionaries
        """
        if not self.errors_csv_path.exists():
            return []

        errors = []
        with open(self.errors_csv_path, 'r', newline='', encoding='utf-8') as f:
            for row in csv.DictReader(f):
                if target and row['target'] != target:
                    continue
                if error_type and row['error_type'] != error_type.value:
                    continue
                errors.append({key: row[key] for key in CSV_HEADERS})

        return errors

    def get_error_count(self, target: Optional[str] = None, error_type: Optional[ErrorType] = None) -> int:
        """Get count of errors matching the filters."""
        return len(self.get_errors(target=target, error_type=error_type))

    def get_error_summary(self) -> Dict[str, Any]:
        """
        Get summary of all errors.

        Returns:
            Dictionary with totals per type and per target
        """
        errors = self.get_errors()

        summary = {
            'total_errors': len(errors),
            'by_type': {},
            'by_target': {},
        }

        for error in errors:
            error_type = error['error_type']
            summary['by_type'][error_type] = summary['by_type'].get(error_type, 0) + 1

            target = error['target']
            summary['by_target'][target] = summary['by_target'].get(target, 0) + 1

        summary['unique_targets_with_errors'] = len(summary['by_target'])

        return summary

    def clear_errors(self) -> bool:
        """
        Clear all errors from CSV file (reinitialize).

        Returns:
            True if cleared successfully
        """
        try:
            if self.errors_csv_path.exists():
                self.errors_csv_path.unlink()
            self._initialize_csv()
        except OSError as e:
            self.logger.error(f"Failed to clear errors: {e}")
            return False

        self.logger.info("Cleared all errors from CSV file")
        return True
