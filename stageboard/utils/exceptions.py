"""
Centralized exception hierarchy and error handling patterns.
Provides consistent error handling across the application.
"""
import logging
import re
from typing import Optional, Any, Dict

__all__ = [
    'StageboardError', 'ValidationError', 'UnknownStageError', 'NotFoundError',
    'ConfigurationError', 'LLMProviderError', 'AnthropicError', 'OpenAIError',
    'sanitize_error_message', 'sanitize_log_message',
    'log_and_reraise', 'ErrorContext'
]


class StageboardError(Exception):
    """
    Base exception for all Stageboard errors.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
            details: Optional additional context
            cause: Optional underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None
        }


class ValidationError(StageboardError):
    """Raised when input validation fails."""
    pass


class UnknownStageError(ValidationError):
    """Raised when a stage key is not part of a stage model."""
    pass


class NotFoundError(StageboardError):
    """Raised when a pipeline or entity does not exist."""
    pass


class ConfigurationError(StageboardError):
    """Raised when configuration is invalid or incomplete."""
    pass


class LLMProviderError(StageboardError):
    """Raised when LLM provider operations fail."""
    pass


class AnthropicError(LLMProviderError):
    """Raised when Anthropic API calls fail."""
    pass


class OpenAIError(LLMProviderError):
    """Raised when OpenAI API calls fail."""
    pass


_KEY_PATTERNS = [
    (re.compile(r'sk-ant-[a-zA-Z0-9_-]{20,}'), 'sk-ant-***MASKED***'),
    (re.compile(r'sk-proj-[a-zA-Z0-9_-]{20,}'), 'sk-proj-***MASKED***'),
    (re.compile(r'sk-[a-zA-Z0-9]{20,}'), 'sk-***MASKED***'),
    (re.compile(r're_[a-zA-Z0-9_]{20,}'), 're_***MASKED***'),
]


def sanitize_log_message(message: str) -> str:
    """
    Mask API keys and strip control characters from a log message.

    Newlines are escaped so a single record cannot forge extra log lines.
    """
    sanitized = message.replace('\r', '\\r').replace('\n', '\\n')
    for pattern, replacement in _KEY_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def sanitize_error_message(message: str) -> str:
    """
    Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    path_patterns = [
        r'[A-Za-z]:\\[^:\n]*\\([^\\:\n]+)',  # Windows paths
        r'/[^:\n ]*/([^/:\n ]+)',             # Unix paths
    ]

    sanitized = message
    for pattern in path_patterns:
        sanitized = re.sub(pattern, r'<path>/\1', sanitized)

    for pattern, replacement in _KEY_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)

    return sanitized


def log_and_reraise(
    logger: logging.Logger,
    error: Exception,
    operation: str,
    error_type: type = StageboardError
) -> None:
    """
    Log an error and re-raise it as a specific type.

    Args:
        logger: Logger instance
        error: Original exception
        operation: Description of failed operation
        error_type: Type of exception to raise

    Raises:
        Exception of specified type
    """
    message = f"Failed to {operation}: {sanitize_error_message(str(error))}"

    logger.error(
        message,
        extra={
            "operation": operation,
            "error_type": error.__class__.__name__
        }
    )

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Full traceback:", exc_info=error)

    if issubclass(error_type, StageboardError):
        raise error_type(message, cause=error) from error
    raise error_type(message) from error


class ErrorContext:
    """
    Context manager for handling errors in a specific operation.

    Errors that are already ``StageboardError`` instances pass through
    untouched; anything else is logged and converted to ``reraise_as``.
    """

    def __init__(
        self,
        operation: str,
        logger: logging.Logger,
        reraise_as: Optional[type] = None
    ):
        self.operation = operation
        self.logger = logger
        self.reraise_as = reraise_as or StageboardError

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None or isinstance(exc_val, StageboardError):
            return False
        if not isinstance(exc_val, Exception):
            return False
        log_and_reraise(self.logger, exc_val, self.operation, self.reraise_as)
        return False
