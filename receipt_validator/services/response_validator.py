"""
Response validation - business rules applied to a decoded receipt response.

Pure functions of the response; no I/O.
"""

from datetime import datetime
from typing import Protocol

from structlog import get_logger

from receipt_validator.exceptions import (
    BundleIdNotMatchingError,
    InvalidStatusCodeError,
    NoReceiptFoundInResponseError,
    ProductIdNotMatchingError,
    ReceiptCancelledError,
    SubscriptionExpiredError,
    TransactionIdNotMatchingError,
)
from receipt_validator.models.receipt import ReceiptResponse, SubscriptionValidationResponse

logger = get_logger(__name__)


def require_aware(now: datetime) -> None:
    """Reject naive reference times; receipt dates are always UTC-aware."""
    if now.tzinfo is None or now.utcoffset() is None:
        raise ValueError(f"Reference time must be timezone-aware, got naive {now.isoformat()}")


class ResponseValidator(Protocol):
    """Confirms a verified response matches what the caller asked about."""

    def validate_purchase(
        self,
        response: ReceiptResponse,
        bundle_id: str,
        product_id: str | None = None,
        transaction_id: str | None = None,
    ) -> ReceiptResponse: ...

    def validate_subscription(
        self,
        response: ReceiptResponse,
        now: datetime,
    ) -> SubscriptionValidationResponse: ...


class DefaultResponseValidator:
    """Receipt rules: valid status, receipts present, bundle id, product id."""

    def _check_status_and_receipts(self, response: ReceiptResponse) -> None:
        if not response.status.is_valid:
            raise InvalidStatusCodeError(response.status)
        if not response.in_app_receipts:
            raise NoReceiptFoundInResponseError(response.status)

    def validate_purchase(
        self,
        response: ReceiptResponse,
        bundle_id: str,
        product_id: str | None = None,
        transaction_id: str | None = None,
    ) -> ReceiptResponse:
        """
        Confirm the response proves the requested purchase.

        Checks run in order and stop at the first failure.

        Args:
            response: Decoded verifyReceipt response
            bundle_id: The app's bundle id
            product_id: Product that must appear in the receipt, if given
            transaction_id: Transaction (or original transaction) id the
                product's receipt must carry, if given

        Returns:
            The response, unchanged

        Raises:
            InvalidStatusCodeError: Status is not valid
            NoReceiptFoundInResponseError: No in-app receipts
            BundleIdNotMatchingError: Receipt belongs to another app
            ProductIdNotMatchingError: Product not in the receipt
            TransactionIdNotMatchingError: Transaction not in the product's receipts
            ReceiptCancelledError: Every matching receipt was cancelled
        """
        self._check_status_and_receipts(response)

        if response.bundle_id != bundle_id:
            logger.warning(
                "receipt_bundle_id_mismatch",
                expected=bundle_id,
                actual=response.bundle_id,
            )
            raise BundleIdNotMatchingError(response.status)

        if product_id is None:
            return response

        matching = response.receipts_for_product(product_id)
        if not matching:
            raise ProductIdNotMatchingError(response.status)

        if transaction_id is not None:
            matching = tuple(
                r
                for r in matching
                if transaction_id in (r.transaction_id, r.original_transaction_id)
            )
            if not matching:
                raise TransactionIdNotMatchingError(response.status)

        if all(r.is_cancelled() for r in matching):
            raise ReceiptCancelledError(response.status)

        return response

    def validate_subscription(
        self,
        response: ReceiptResponse,
        now: datetime,
    ) -> SubscriptionValidationResponse:
        """
        Collect the subscription receipts still active at ``now``.

        A receipt is active when it has an expiry strictly after ``now`` and
        has not been cancelled. Receipt dates are UTC-aware, so ``now`` must
        be timezone-aware too.

        Raises:
            ValueError: ``now`` is a naive datetime
            InvalidStatusCodeError: Status is not valid
            NoReceiptFoundInResponseError: No in-app receipts
            SubscriptionExpiredError: No receipt is active
        """
        require_aware(now)
        self._check_status_and_receipts(response)

        valid_receipts = tuple(
            r for r in response.in_app_receipts if r.is_active(now) and not r.is_cancelled()
        )
        if not valid_receipts:
            raise SubscriptionExpiredError(response.status)

        return SubscriptionValidationResponse(
            valid_receipts=valid_receipts,
            pending_renewal_info=response.pending_renewal_info,
        )
