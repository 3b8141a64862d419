"""
Receipt Validator - fetch, verify and validate in one call.

Collaborators are injected; the validator never constructs them itself,
except through the ``from_settings`` convenience constructor.
"""

from datetime import UTC, datetime

import httpx
from structlog import get_logger

from receipt_validator.config import ValidatorSettings
from receipt_validator.exceptions import FetchFailedError, ReceiptValidationError
from receipt_validator.models.outcome import ValidationOutcome
from receipt_validator.models.receipt import ReceiptResponse, SubscriptionValidationResponse
from receipt_validator.observability.logging import log_context
from receipt_validator.observability.metrics import metrics
from receipt_validator.services.receipt_fetcher import ReceiptFetcher
from receipt_validator.services.response_validator import (
    DefaultResponseValidator,
    ResponseValidator,
    require_aware,
)
from receipt_validator.services.verification_client import AppStoreReceiptClient, ReceiptClient

logger = get_logger(__name__)


class ReceiptValidator:
    """
    Validates App Store receipts.

    Each operation runs fetch -> verify -> validate and stops at the first
    failing stage. The failing stage's error is returned unchanged inside
    the ValidationOutcome.
    """

    def __init__(
        self,
        settings: ValidatorSettings,
        receipt_fetcher: ReceiptFetcher,
        receipt_client: ReceiptClient,
        response_validator: ResponseValidator,
    ) -> None:
        """
        Initialize the receipt validator.

        Args:
            settings: Immutable validator settings (bundle id, timeout, ...)
            receipt_fetcher: Source of the raw receipt bytes
            receipt_client: verifyReceipt client
            response_validator: Business rule checks
        """
        self.settings = settings
        self.receipt_fetcher = receipt_fetcher
        self.receipt_client = receipt_client
        self.response_validator = response_validator

    @classmethod
    def from_settings(
        cls,
        settings: ValidatorSettings,
        receipt_fetcher: ReceiptFetcher,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ReceiptValidator":
        """Build a validator wired to Apple's verifyReceipt endpoints."""
        return cls(
            settings=settings,
            receipt_fetcher=receipt_fetcher,
            receipt_client=AppStoreReceiptClient(settings, transport=transport),
            response_validator=DefaultResponseValidator(),
        )

    async def _fetch_receipt(self, force_refresh: bool) -> bytes:
        try:
            return await self.receipt_fetcher.fetch(force_refresh)
        except ReceiptValidationError:
            raise
        except Exception as exc:
            logger.error("local_receipt_fetch_failed", error=str(exc))
            raise FetchFailedError(str(exc) or type(exc).__name__) from exc

    async def _verify(
        self,
        shared_secret: str | None,
        refresh_local_receipt_if_needed: bool,
        exclude_old_transactions: bool,
    ) -> ReceiptResponse:
        receipt_data = await self._fetch_receipt(refresh_local_receipt_if_needed)
        return await self.receipt_client.validate(
            receipt_data,
            shared_secret,
            exclude_old_transactions=exclude_old_transactions,
        )

    def _failure(self, operation: str, exc: ReceiptValidationError) -> ValidationOutcome:
        error_type = type(exc).__name__
        metrics.record_validation(operation, error_type)
        logger.warning(
            "receipt_validation_failed",
            error_type=error_type,
            status=int(exc.status_code) if exc.status_code is not None else None,
            error=str(exc),
        )
        return ValidationOutcome.failure(exc)

    async def validate_purchase(
        self,
        product_id: str,
        shared_secret: str | None = None,
        *,
        transaction_id: str | None = None,
    ) -> ValidationOutcome[ReceiptResponse]:
        """
        Validate that the local receipt proves a purchase of ``product_id``.

        Args:
            product_id: Product that must appear in the receipt
            shared_secret: App-specific shared secret
            transaction_id: Optional transaction id the purchase must carry

        Returns:
            Outcome with the verified response, or the first stage's error
        """
        operation = "validate_purchase"
        with log_context(operation=operation, product_id=product_id):
            try:
                response = await self._verify(shared_secret, False, False)
                self.response_validator.validate_purchase(
                    response,
                    self.settings.bundle_id,
                    product_id=product_id,
                    transaction_id=transaction_id,
                )
            except ReceiptValidationError as exc:
                return self._failure(operation, exc)

            metrics.record_validation(operation)
            logger.info(
                "purchase_validated",
                environment=response.environment.value,
            )
            return ValidationOutcome.success(response)

    async def validate_subscription(
        self,
        shared_secret: str | None = None,
        refresh_local_receipt_if_needed: bool = False,
        exclude_old_transactions: bool = False,
        *,
        now: datetime | None = None,
    ) -> ValidationOutcome[SubscriptionValidationResponse]:
        """
        Collect the subscriptions that are active according to the receipt.

        Args:
            shared_secret: App-specific shared secret (required by Apple for
                auto-renewable subscriptions)
            refresh_local_receipt_if_needed: Ask the fetcher to refresh first
            exclude_old_transactions: Only request the latest renewal transaction
            now: Timezone-aware reference time for expiry checks, defaults to
                the current UTC time

        Returns:
            Outcome with the active receipts and pending renewal info

        Raises:
            ValueError: ``now`` is a naive datetime (checked before any I/O)
        """
        if now is not None:
            require_aware(now)

        operation = "validate_subscription"
        with log_context(operation=operation):
            try:
                response = await self._verify(
                    shared_secret,
                    refresh_local_receipt_if_needed,
                    exclude_old_transactions,
                )
                result = self.response_validator.validate_subscription(
                    response,
                    now or datetime.now(UTC),
                )
            except ReceiptValidationError as exc:
                return self._failure(operation, exc)

            metrics.record_validation(operation)
            logger.info(
                "subscription_validated",
                active_product_ids=sorted(result.active_product_ids()),
                environment=response.environment.value,
            )
            return ValidationOutcome.success(result)

    async def fetch(
        self,
        shared_secret: str | None = None,
        refresh_local_receipt_if_needed: bool = False,
        exclude_old_transactions: bool = False,
    ) -> ValidationOutcome[ReceiptResponse]:
        """
        Fetch and verify the receipt without applying any business rule.

        Returns:
            Outcome with the verified response
        """
        operation = "fetch"
        with log_context(operation=operation):
            try:
                response = await self._verify(
                    shared_secret,
                    refresh_local_receipt_if_needed,
                    exclude_old_transactions,
                )
            except ReceiptValidationError as exc:
                return self._failure(operation, exc)

            metrics.record_validation(operation)
            return ValidationOutcome.success(response)
