"""Utility modules."""
from .logger import get_logger, set_user_context
from .exceptions import (
    FinanceAIError,
    ConfigError,
    NetworkError,
    LLMError,
    StorageError,
    ValidationError,
    ExtractionError,
    RequestInFlightError
)

__all__ = [
    "get_logger",
    "set_user_context",
    "FinanceAIError",
    "ConfigError",
    "NetworkError",
    "LLMError",
    "StorageError",
    "ValidationError",
    "ExtractionError",
    "RequestInFlightError"
]
