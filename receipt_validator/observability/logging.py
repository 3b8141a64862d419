"""
Structured Logging with Structlog.

Provides JSON-formatted logs with context bound per validation call.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from receipt_validator import __version__
from receipt_validator.config import ValidatorSettings


def add_app_context(service_name: str) -> Processor:
    """Build a processor that adds service-level context to all log entries."""

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict["service"] = service_name
        event_dict["version"] = __version__
        return event_dict

    return processor


def setup_logging(settings: ValidatorSettings) -> None:
    """
    Configure structured logging with structlog.

    Logs are formatted as JSON for machine parsing with the following structure:
    {
        "event": "receipt_verification_attempt",
        "level": "info",
        "timestamp": "2025-01-08T12:00:00.123456Z",
        "logger": "receipt_validator.services.verification_client",
        "service": "receipt-validator",
        "version": "0.1.0",
        "operation": "validate_subscription",
        ...additional context
    }
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper()),
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_app_context(settings.service_name),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.log_level.upper() == "DEBUG":
        processors.append(structlog.processors.ExceptionRenderer())
    else:
        processors.append(structlog.processors.format_exc_info)

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("receipt_validated", product_id=product_id, environment="Sandbox")
    """
    return structlog.get_logger(name)  # type: ignore[no-any-return]


# Context manager for adding per-call context
class log_context:
    """
    Context manager for adding structured logging context.

    Usage:
        with log_context(operation="validate_purchase", product_id="com.app.pro"):
            logger.info("validation_started")
            # All logs within this context will include operation and product_id
    """

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs

    def __enter__(self) -> None:
        """Enter context - bind context variables."""
        structlog.contextvars.bind_contextvars(**self.context)

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit context - clear context variables."""
        structlog.contextvars.unbind_contextvars(*self.context.keys())
