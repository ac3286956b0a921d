"""Structured logging for import runs.

Provides consistent logging with:
- Timestamps
- Log levels (DEBUG, INFO, WARNING, ERROR)
- Structured key=value data
- Optional per-import file output for later analysis

Loggers are cached per component and shared by concurrent imports. State
that belongs to one import (start time, log file) lives in the ImportRun
returned by start_import, never on the logger.
"""

import logging
import sys
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

ROOT_LOGGER_NAME = "docimport"

# Id of the import running in the current task
_active_run: ContextVar[str | None] = ContextVar("docimport_active_run", default=None)


@dataclass
class ImportRun:
    """Handle for one import, from start_import to end_import."""

    run_id: str
    source: str
    started_at: float
    log_file: Path | None = None
    handler: logging.FileHandler | None = None

    @property
    def elapsed(self) -> float:
        return time.time() - self.started_at


class RunFilter(logging.Filter):
    """Passes only records emitted while the given run is active in this task."""

    def __init__(self, run_id: str):
        super().__init__()
        self.run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        return _active_run.get() == self.run_id


class ImportLogger:
    """Structured logger for one component of the import pipeline."""

    def __init__(self, name: str = ROOT_LOGGER_NAME, verbose: bool = False, log_dir: str | Path | None = None):
        """Initialize the import logger.

        Args:
            name: Logger name. Names outside the docimport tree are nested under it.
            verbose: If True, show DEBUG level logs.
            log_dir: Directory for log files. If None, no file logging.
        """
        if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
            name = f"{ROOT_LOGGER_NAME}.{name}"
        self.logger = logging.getLogger(name)
        self.verbose = verbose
        self._log_dir = Path(log_dir) if log_dir else None

        # Console output is configured once, on the root docimport logger
        root = logging.getLogger(ROOT_LOGGER_NAME)
        if not root.handlers:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(ConsoleFormatter())
            console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
            root.addHandler(console_handler)
            root.setLevel(logging.DEBUG)

    def set_verbose(self, verbose: bool):
        """Update verbose setting on the shared console handler."""
        self.verbose = verbose
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                handler.setLevel(logging.DEBUG if verbose else logging.INFO)

    def _ts(self) -> str:
        return datetime.now().strftime("%H:%M:%S")

    def start_import(self, source: str, **data) -> ImportRun:
        """Mark the start of an import in the current task.

        With log_dir set, the run gets its own file. The file only receives
        records logged from the task that started the run.
        """
        run = ImportRun(run_id=uuid.uuid4().hex[:8], source=source, started_at=time.time())
        _active_run.set(run.run_id)

        if self._log_dir:
            self._log_dir.mkdir(parents=True, exist_ok=True)
            stem = Path(source).stem or "import"
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            run.log_file = self._log_dir / f"{stem}_{timestamp}_{run.run_id}.log"

            run.handler = logging.FileHandler(run.log_file, encoding="utf-8")
            run.handler.setFormatter(FileFormatter())
            run.handler.setLevel(logging.DEBUG)
            run.handler.addFilter(RunFilter(run.run_id))
            self.logger.addHandler(run.handler)

        self.info(f"Starting import: {source}", run_id=run.run_id, **data)
        return run

    def end_import(self, run: ImportRun, success: bool = True, stats: dict | None = None):
        """Mark the end of an import and close its log file."""
        status = "COMPLETE" if success else "FAILED"
        if stats:
            self.summary(stats)
        self.logger.info(f"  Import {status} [{run.elapsed:.1f}s]")

        if run.handler:
            self.logger.info(f"  Log: {run.log_file}")
            self.logger.removeHandler(run.handler)
            run.handler.close()
            run.handler = None
        if _active_run.get() == run.run_id:
            _active_run.set(None)

    def debug(self, message: str, **data):
        """Log debug message (only in verbose mode)."""
        if data:
            message = f"{message} | {_format_data(data)}"
        self.logger.debug(f"[{self._ts()}] {message}")

    def info(self, message: str, **data):
        if data:
            message = f"{message} | {_format_data(data)}"
        self.logger.info(f"  {message}")

    def warning(self, message: str, **data):
        if data:
            message = f"{message} | {_format_data(data)}"
        self.logger.warning(f"[{self._ts()}] WARN: {message}")

    def error(self, message: str, exc: BaseException | None = None, **data):
        if data:
            message = f"{message} | {_format_data(data)}"
        if exc:
            message = f"{message} | {type(exc).__name__}: {exc}"
        self.logger.error(f"[{self._ts()}] ERROR: {message}")

    def summary(self, stats: dict):
        """Log a summary block for end-of-import stats."""
        lines = ["SUMMARY"]
        for key, value in stats.items():
            if isinstance(value, dict):
                lines.append(f"  {key}:")
                for k, v in value.items():
                    lines.append(f"    {k}: {v}")
            else:
                lines.append(f"  {key}: {value}")
        self.logger.info("\n".join(lines))


class ConsoleFormatter(logging.Formatter):
    """Console formatter - concise."""

    def format(self, record: logging.LogRecord) -> str:
        # The message already includes timestamp from our methods
        return record.getMessage()


class FileFormatter(logging.Formatter):
    """File formatter - includes full details for analysis."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        level = record.levelname[:4]
        return f"{ts} [{level}] {record.name}: {record.getMessage()}"


def _format_data(data: dict[str, Any]) -> str:
    """Format structured data for logging."""
    parts = []
    for k, v in data.items():
        if isinstance(v, str) and len(v) > 50:
            v = v[:47] + "..."
        elif isinstance(v, list) and len(v) > 5:
            v = f"[{len(v)} items]"
        parts.append(f"{k}={v}")
    return ", ".join(parts)


_loggers: dict[str, ImportLogger] = {}


def get_logger(name: str = ROOT_LOGGER_NAME, verbose: bool = False, log_dir: str | Path | None = None) -> ImportLogger:
    """Get or create the named import logger.

    Args:
        name: Component name, e.g. "workflow" or "body-measurements-import".
        verbose: If True, show DEBUG level logs in console.
        log_dir: Directory for per-import log files.
    """
    logger = _loggers.get(name)
    if logger is None:
        logger = ImportLogger(name=name, verbose=verbose, log_dir=log_dir)
        _loggers[name] = logger
    else:
        if verbose and not logger.verbose:
            logger.set_verbose(True)
        if log_dir and not logger._log_dir:
            logger._log_dir = Path(log_dir)
    return logger


def reset_loggers():
    """Reset all import loggers (for testing)."""
    for logger in _loggers.values():
        for handler in logger.logger.handlers[:]:
            if isinstance(handler, logging.FileHandler):
                logger.logger.removeHandler(handler)
                handler.close()
    _loggers.clear()
    _active_run.set(None)
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)
