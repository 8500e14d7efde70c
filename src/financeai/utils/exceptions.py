"""Custom exception classes for FinanceAI."""


class FinanceAIError(Exception):
    """Base exception for FinanceAI."""
    pass


class ConfigError(FinanceAIError):
    """Configuration-related errors."""
    pass


class NetworkError(FinanceAIError):
    """Network and API-related errors."""
    pass


class LLMError(FinanceAIError):
    """LLM request and response errors."""
    pass


class StorageError(FinanceAIError):
    """Record persistence errors."""
    pass


class ValidationError(FinanceAIError):
    """Data validation errors."""
    pass


class ExtractionError(ValidationError):
    """Transaction payload in a model response could not be used."""
    pass


class RequestInFlightError(FinanceAIError):
    """A request for the same action is still pending."""

    def __init__(self, action: str):
        super().__init__(f"A '{action}' request is already in progress")
        self.action = action
