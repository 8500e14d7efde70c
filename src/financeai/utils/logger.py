"""Logging infrastructure with user context."""
import logging
import sys
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from typing import Optional

from financeai.config.settings import AppSettings, get_settings

_user_id: ContextVar[Optional[str]] = ContextVar("financeai_user_id", default=None)


class UserContextFilter(logging.Filter):
    """Add user context to log records."""

    def filter(self, record):
        """Add user_id to record."""
        record.user_id = _user_id.get() or "system"
        return True


class FinanceAILogger:
    """Centralized logging manager."""

    def __init__(self, settings: AppSettings, log_level: Optional[str] = None):
        self.user_filter = UserContextFilter()

        # Configure package logger
        self.logger = logging.getLogger("financeai")
        self.logger.setLevel(getattr(logging, (log_level or settings.log_level).upper()))
        self.logger.propagate = False

        # Remove existing handlers
        self.logger.handlers.clear()

        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] [user:%(user_id)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(self.user_filter)
        self.logger.addHandler(console_handler)

        self.log_file = None
        if settings.log_to_file:
            try:
                self._add_file_handler(settings, formatter)
            except OSError as e:
                self.logger.warning(f"File logging disabled, cannot write to {settings.logs_path}: {e}")

    def _add_file_handler(self, settings: AppSettings, formatter: logging.Formatter):
        """Rotating file handler (10MB per file by default)."""
        log_dir = settings.logs_path
        log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = log_dir / settings.log_file

        file_handler = RotatingFileHandler(
            self.log_file,
            maxBytes=settings.log_max_file_size_mb * 1024 * 1024,
            backupCount=settings.log_backup_count,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(self.user_filter)
        self.logger.addHandler(file_handler)

    def get_logger(self) -> logging.Logger:
        """Get the configured logger."""
        return self.logger


# Global logger instance
_logger_instance: Optional[FinanceAILogger] = None


def get_logger(log_level: Optional[str] = None) -> logging.Logger:
    """Get or create global logger instance."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = FinanceAILogger(get_settings(), log_level)
    return _logger_instance.get_logger()


def set_user_context(user_id: Optional[str]):
    """Set user context for logging in the current task."""
    _user_id.set(user_id)
