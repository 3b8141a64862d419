"""
Metrics Collection with Prometheus.

Exposes verification and validation metrics for monitoring.
"""

from enum import Enum
from typing import Callable

from prometheus_client import Counter, Histogram, Info

from receipt_validator import __version__


class MetricLabels(str, Enum):
    """Standard metric label names."""

    ENVIRONMENT = "environment"
    OUTCOME = "outcome"
    OPERATION = "operation"
    ERROR_TYPE = "error_type"


class ValidatorMetrics:
    """
    Centralized metrics for receipt validation.

    Covers:
    - verifyReceipt round trips (rate, duration, outcome per environment)
    - Validation operations (rate, success/failure by error type)
    """

    def __init__(self) -> None:
        """Initialize all Prometheus metrics."""

        # ====================================================================
        # Service Info
        # ====================================================================
        self.service_info = Info(
            "receipt_validator",
            "Receipt validator information",
        )
        self.service_info.info({"version": __version__})

        # ====================================================================
        # verifyReceipt Metrics
        # ====================================================================
        self.verification_attempts_total = Counter(
            "receipt_validator_verification_attempts_total",
            "Total verifyReceipt requests sent",
            [MetricLabels.ENVIRONMENT.value, MetricLabels.OUTCOME.value],
        )

        self.verification_duration_seconds = Histogram(
            "receipt_validator_verification_duration_seconds",
            "verifyReceipt round trip duration in seconds",
            [MetricLabels.ENVIRONMENT.value],
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0),
        )

        # ====================================================================
        # Validation Metrics
        # ====================================================================
        self.validations_total = Counter(
            "receipt_validator_validations_total",
            "Total validation operations",
            [
                MetricLabels.OPERATION.value,
                MetricLabels.OUTCOME.value,
                MetricLabels.ERROR_TYPE.value,
            ],
        )

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def record_verification_attempt(self, environment: str, outcome: str, duration: float) -> None:
        """Record a single verifyReceipt round trip."""
        self.verification_attempts_total.labels(environment=environment, outcome=outcome).inc()
        self.verification_duration_seconds.labels(environment=environment).observe(duration)

    def record_validation(self, operation: str, error_type: str | None = None) -> None:
        """Record the outcome of a validation operation."""
        self.validations_total.labels(
            operation=operation,
            outcome="success" if error_type is None else "failure",
            error_type=error_type or "none",
        ).inc()


# Global metrics instance
metrics = ValidatorMetrics()


def get_metrics_handler() -> Callable[[], bytes]:
    """
    Get a Prometheus exposition handler for the host application.

    Usage:
        handler = get_metrics_handler()
        body = handler()
    """
    from prometheus_client import REGISTRY, generate_latest

    def metrics_endpoint() -> bytes:
        return generate_latest(REGISTRY)

    return metrics_endpoint
