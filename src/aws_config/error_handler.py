"""
Error taxonomy and result values for configuration and credential resolution.
"""
import errno
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorKind(Enum):
    """Standard error kinds reported by the resolvers."""
    NOT_FOUND = "enoent"
    UNDEFINED = "undefined"
    MALFORMED = "malformed"


class ConfigError(Exception):
    """Base exception class for all configuration resolution errors."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNDEFINED,
        original_error: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.kind = kind
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)


class ConfigNotFoundError(ConfigError):
    """Exception raised when a configuration file does not exist."""

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorKind.NOT_FOUND, original_error, context)


class ValueUndefinedError(ConfigError):
    """Exception raised when a source exists but holds no usable value."""

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorKind.UNDEFINED, original_error, context)


class ConfigMalformedError(ConfigError):
    """Exception raised when a source cannot be read or decoded."""

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorKind.MALFORMED, original_error, context)


_ERROR_CLASSES = {
    ErrorKind.NOT_FOUND: ConfigNotFoundError,
    ErrorKind.UNDEFINED: ValueUndefinedError,
    ErrorKind.MALFORMED: ConfigMalformedError,
}


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a resolution step: either a value or an error kind.

    Exactly one of ``value`` and ``error`` is meaningful; ``is_ok`` tells
    which.
    """
    value: Optional[T] = None
    error: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: ErrorKind) -> "Result[T]":
        return cls(error=kind)

    @classmethod
    def from_error(cls, error: ConfigError) -> "Result[T]":
        return cls(error=error.kind)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """
        Return the value or raise the exception matching the error kind.

        Raises:
            ConfigError: subclass matching ``error``
        """
        if self.error is not None:
            raise error_for_kind(self.error)
        return self.value


def error_for_kind(kind: ErrorKind, message: Optional[str] = None) -> ConfigError:
    """Build the exception that represents an error kind."""
    error_class = _ERROR_CLASSES[kind]
    return error_class(message or f"Configuration value {kind.value}")


def handle_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    log_level: int = logging.DEBUG
) -> ConfigError:
    """
    Centralized error handling function.

    Args:
        error: The original exception
        context: Additional context information (path, profile, source)
        log_level: Logging level for the error

    Returns:
        Standardized ConfigError
    """
    if isinstance(error, ConfigError):
        logger.log(log_level, f"[{error.kind.value}] {error.message}")
        return error

    kind = _classify_error(error)
    error_context = dict(context or {})
    error_context["exception_type"] = type(error).__name__

    config_error = _ERROR_CLASSES[kind](
        _describe(kind, error_context),
        original_error=error,
        context=error_context
    )

    logger.log(log_level, f"[{kind.value}] {error}", extra={
        "error_kind": kind.value,
        "context": error_context
    })

    return config_error


def _classify_error(error: Exception) -> ErrorKind:
    """Classify error based on exception type and errno."""
    if isinstance(error, FileNotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(error, OSError) and error.errno == errno.ENOENT:
        return ErrorKind.NOT_FOUND
    if isinstance(error, (OSError, UnicodeDecodeError, ValueError)):
        return ErrorKind.MALFORMED
    return ErrorKind.UNDEFINED


def _describe(kind: ErrorKind, context: Dict[str, Any]) -> str:
    path = context.get("path")
    if kind is ErrorKind.NOT_FOUND:
        return f"File not found: {path}" if path else "File not found"
    if kind is ErrorKind.MALFORMED:
        return f"Unable to read {path}" if path else "Unreadable configuration source"
    return "No usable value"
