# ============================================================================
# CloudShift -- Structured Logger (cloudshift/monitoring/logger.py)
# ============================================================================
#
# WHAT THIS FILE DOES:
#   Sets up logging for the migration. Every significant event (run
#   start/end, file migrated, file skipped, file failed, dehydrate
#   refused) becomes one timestamped, leveled JSON line.
#
# WHY "STRUCTURED" LOGGING?
#   Normal logging: "Copied Reports/Q1.pdf (2.3 MB)"
#   Structured logging: {"event": "file_migrated", "path": "Reports/Q1.pdf",
#                        "bytes": 2411724, "level": "info",
#                        "timestamp": "2026-10-19T14:30:00.123Z"}
#
#   After an overnight run with 30,000 files you can answer "which files
#   failed and why?" with one jq or grep command instead of scrolling.
#
# LOG FILE TYPES:
#   - migration_YYYY-MM-DD.log: everything (info and up)
#   - error_YYYY-MM-DD.log:     per-file errors and warnings only
#
# HOW TO USE (from other code):
#   from cloudshift.monitoring.logger import get_app_logger
#   logger = get_app_logger("orchestrator")
#   logger.info("file_migrated", path="Reports/Q1.pdf", bytes=2411724)
#
#   The orchestrator takes its logger as a constructor argument, so tests
#   pass a MagicMock and nothing is written to disk.
#
# DEPENDENCIES:
#   - structlog: structured logging library that outputs JSON
#   - Python's built-in logging module (structlog builds on top of it)
#
# INTERNET ACCESS: None -- writes to local files only
# ============================================================================

import sys
import logging
from pathlib import Path
from typing import Optional, Dict, Any
import structlog
from datetime import datetime


# ============================================================================
# LOGGER CONFIGURATION
# ============================================================================

class LoggerSetup:
    """Initialize and configure structlog for CloudShift"""

    def __init__(self, log_dir: str = "logs", console_level: str = "WARNING"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.console_level = getattr(logging, str(console_level).upper(), logging.WARNING)
        self._configured = False
        self._file_handlers: Dict[str, logging.Handler] = {}

    def setup(self) -> None:
        """Configure structlog with timestamped JSON output"""
        if self._configured:
            return

        # Console gets warnings and above; files get everything they ask for
        logging.basicConfig(
            format="%(message)s",
            stream=sys.stderr,
            level=self.console_level,
        )
        # File loggers run at DEBUG and propagate to the root handler;
        # the level on the handler keeps info lines off the console
        for handler in logging.getLogger().handlers:
            handler.setLevel(self.console_level)

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                structlog.processors.JSONRenderer(),
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self._configured = True

    def get_file_logger(
        self, name: str, log_type: str = "migration", level: int = logging.INFO,
    ) -> structlog.BoundLogger:
        """
        Get a logger that also writes to a specific log file.
        log_type: "migration" or "error"
        """
        self.setup()
        logger = structlog.get_logger(name)

        # One handler per (logger, file); asking twice must not duplicate lines
        key = f"{name}:{log_type}"
        if key not in self._file_handlers:
            log_file = self.log_dir / f"{log_type}_{self._get_date_str()}.log"
            handler = logging.FileHandler(log_file, encoding="utf-8")
            handler.setFormatter(logging.Formatter("%(message)s"))
            handler.setLevel(level)

            py_logger = logging.getLogger(name)
            py_logger.addHandler(handler)
            py_logger.setLevel(logging.DEBUG)
            self._file_handlers[key] = handler

        return logger

    def close(self) -> None:
        """Flush and detach file handlers (end of run)"""
        for key, handler in self._file_handlers.items():
            name = key.split(":", 1)[0]
            logging.getLogger(name).removeHandler(handler)
            handler.close()
        self._file_handlers.clear()

    @staticmethod
    def _get_date_str() -> str:
        """Get current date as YYYY-MM-DD string"""
        return datetime.now().strftime("%Y-%m-%d")


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================

_logger_setup: Optional[LoggerSetup] = None


def initialize_logging(log_dir: str = "logs", console_level: str = "WARNING") -> LoggerSetup:
    """Initialize logging (call once at app startup)"""
    global _logger_setup
    if _logger_setup is None:
        _logger_setup = LoggerSetup(log_dir, console_level)
        _logger_setup.setup()
    return _logger_setup


def get_app_logger(name: str = "migration") -> structlog.BoundLogger:
    """Get app logger (writes to migration_YYYY-MM-DD.log)"""
    if _logger_setup is None:
        initialize_logging()
    return _logger_setup.get_file_logger(name, "migration")


def get_error_logger(name: str = "migration") -> structlog.BoundLogger:
    """Get error logger (writes warnings and errors to error_YYYY-MM-DD.log)"""
    if _logger_setup is None:
        initialize_logging()
    return _logger_setup.get_file_logger(name, "error", level=logging.WARNING)


# ============================================================================
# LOG ENTRY BUILDERS (for consistent structured data)
# ============================================================================

class MigrationLogEntry:
    """Builder for the structured end-of-run log entry"""

    @staticmethod
    def build(summary, source_root: str, dest_root: str, mode: str) -> Dict[str, Any]:
        """Build a structured migration summary entry"""
        entry: Dict[str, Any] = {
            "source_root": source_root,
            "dest_root": dest_root,
            "dehydrate_mode": mode,
            "timestamp": datetime.now().isoformat(),
        }
        entry.update(summary.to_dict())
        # Error lines are logged one per event; keep the summary line short
        entry["errors"] = len(summary.errors)
        return entry


class FileErrorLogEntry:
    """Builder for a structured per-file error entry"""

    @staticmethod
    def build(index: int, total: int, relative_path: str, error: BaseException) -> Dict[str, Any]:
        """Build a structured per-file error entry"""
        entry: Dict[str, Any] = {
            "index": index,
            "total": total,
            "path": relative_path,
            "error_type": type(error).__name__,
            "message": str(error),
        }
        code = getattr(error, "error_code", None)
        if code:
            entry["error_code"] = code
        return entry
