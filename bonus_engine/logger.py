"""
Structured JSON logging for bonus engine runs.

Provides JSON log records with run correlation for scoring and allocation
audit trails, plus a helper to configure the module loggers used by the
library components.
"""

import json
import logging
import sys
import uuid
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union


class JSONFormatter(logging.Formatter):
    """Custom formatter that outputs structured JSON logs"""

    def __init__(self, run_id: str):
        super().__init__()
        self.run_id = run_id

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON"""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "run_id": self.run_id,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread": record.threadName,
        }

        if record.exc_info:
            exc_info = (
                record.exc_info if isinstance(record.exc_info, tuple) else sys.exc_info()
            )
            if exc_info and exc_info[0] is not None:
                log_data["exception"] = {
                    "type": exc_info[0].__name__,
                    "message": str(exc_info[1]) if exc_info[1] else None,
                    "traceback": self.formatException(exc_info),
                }

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ProductionLogger:
    """
    Run-scoped logger with structured JSON output.

    Features:
    - Run ID correlation for tracing one allocation or scoring run
    - Human-readable console output
    - Optional rotating JSON file output when ``log_dir`` is given
    - Structured fields passed as keyword arguments
    """

    def __init__(
        self,
        run_id: Optional[str] = None,
        log_level: str = "INFO",
        log_dir: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize the run logger

        Args:
            run_id: Unique identifier for this run. Generated if not provided.
            log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for the rotating JSON log file. No file output if None.
        """
        self.run_id = run_id or self._generate_run_id()
        self.log_level = getattr(logging, log_level.upper())
        self.log_dir = Path(log_dir) if log_dir else None
        self._setup_logging()

    def _generate_run_id(self) -> str:
        """Generate unique run ID with timestamp and UUID"""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{timestamp}-{str(uuid.uuid4())[:8]}"

    def _setup_logging(self) -> None:
        self.logger = logging.getLogger(f"bonus_engine.run.{self.run_id}")
        self.logger.setLevel(self.log_level)

        if self.logger.handlers:
            return

        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            json_handler = RotatingFileHandler(
                self.log_dir / "bonus_engine.log",
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
            )
            json_handler.setFormatter(JSONFormatter(self.run_id))
            json_handler.setLevel(self.log_level)
            self.logger.addHandler(json_handler)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] [%(name)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        console_handler.setLevel(self.log_level)
        self.logger.addHandler(console_handler)

        self.logger.propagate = False

    def log_event(self, level: str, message: str, **kwargs) -> None:
        """
        Log structured event with additional context

        Args:
            level: Log level name
            message: Human-readable log message
            **kwargs: Structured fields merged into the JSON record
        """
        record = self.logger.makeRecord(
            name=self.logger.name,
            level=getattr(logging, level.upper()),
            fn="",
            lno=0,
            msg=message,
            args=(),
            exc_info=None,
        )
        record.extra_data = kwargs
        self.logger.handle(record)

    def debug(self, message: str, **kwargs) -> None:
        self.log_event("DEBUG", message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self.log_event("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self.log_event("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self.log_event("ERROR", message, **kwargs)

    def close(self) -> None:
        """Close all handlers and cleanup"""
        for handler in self.logger.handlers[:]:
            handler.close()
            self.logger.removeHandler(handler)


def get_logger(
    run_id: Optional[str] = None,
    log_level: str = "INFO",
    log_dir: Optional[Union[str, Path]] = None,
) -> ProductionLogger:
    """
    Factory function to get a configured run logger

    Args:
        run_id: Optional run ID. Generated if not provided.
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Optional directory for JSON log files

    Returns:
        Configured ProductionLogger instance
    """
    return ProductionLogger(run_id=run_id, log_level=log_level, log_dir=log_dir)


def configure_logging(level: str = "INFO") -> None:
    """Set the level of the ``bonus_engine`` package logger tree."""
    package_logger = logging.getLogger("bonus_engine")
    package_logger.setLevel(getattr(logging, level.upper()))
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] [%(name)s] %(message)s")
        )
        package_logger.addHandler(handler)
