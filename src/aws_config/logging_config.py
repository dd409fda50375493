"""
Standardized logging configuration for applications using the resolver.
"""
import json
import logging
import os
import re
import sys
from datetime import datetime, timezone
from typing import Optional

import structlog


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'service_name'):
            log_entry["service"] = record.service_name

        if hasattr(record, 'error_kind'):
            log_entry["error_kind"] = record.error_kind

        return json.dumps(log_entry, default=str)


class ContextFilter(logging.Filter):
    """Filter to add the service name to log records."""

    def __init__(self, service_name: str = "aws-config"):
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self.service_name
        return True


class SecurityFilter(logging.Filter):
    """Filter to mask AWS key material that slips into log messages."""

    SENSITIVE_PATTERNS = [
        re.compile(r'\b(?:AKIA|ASIA)[A-Z0-9]{16}\b'),
        re.compile(r'(?<![A-Za-z0-9/+=])[A-Za-z0-9/+=]{40}(?![A-Za-z0-9/+=])'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Replace key ids and secret keys with a placeholder."""
        message = record.getMessage()
        redacted = message
        for pattern in self.SENSITIVE_PATTERNS:
            redacted = pattern.sub('[REDACTED]', redacted)

        if redacted != message:
            record.msg = redacted
            record.args = ()

        return True


def setup_logging(
    service_name: str = "aws-config",
    log_level: Optional[str] = None,
    enable_json: Optional[bool] = None,
    enable_structlog: bool = True
) -> logging.Logger:
    """
    Set up standardized logging configuration.

    Args:
        service_name: Name of the service for logging context
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_json: Enable JSON formatting (auto-detected for Lambda)
        enable_structlog: Enable structured logging with structlog

    Returns:
        Configured logger instance
    """
    is_lambda = bool(os.environ.get('AWS_LAMBDA_FUNCTION_NAME'))

    if log_level is None:
        log_level = os.environ.get('LOG_LEVEL', 'INFO')

    if enable_json is None:
        enable_json = is_lambda

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)

    if enable_json:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter(service_name))
    handler.addFilter(SecurityFilter())
    root_logger.addHandler(handler)

    _configure_aws_loggers()

    if enable_structlog:
        _setup_structlog(enable_json)

    logger = logging.getLogger(service_name)
    logger.debug(f"Logging configured for {service_name} (level={log_level}, json={enable_json})")

    return logger


def _configure_aws_loggers():
    """Reduce boto3/botocore/urllib3 verbosity."""
    logging.getLogger('boto3').setLevel(logging.WARNING)
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def _setup_structlog(json_enabled: bool):
    """Set up structlog for structured logging."""
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_enabled:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    """
    Get a structlog logger bound to the standard library logger ``name``.

    Args:
        name: Logger name (usually __name__)
    """
    return structlog.get_logger(name)
