"""
Exception Classes - Strongly typed exception hierarchy.

Validation-rule errors carry the StatusCode of the response that triggered
them so callers can branch on the rule and on Apple's own code.
"""

from receipt_validator.models.status_code import StatusCode


class ReceiptValidationError(Exception):
    """Base exception for all receipt validation errors."""

    status_code: StatusCode | None = None


# ============================================================================
# Pipeline errors - no response status available
# ============================================================================


class FetchFailedError(ReceiptValidationError):
    """Raised when the local receipt could not be obtained."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Receipt fetch failed: {detail}")


class TransportFailedError(ReceiptValidationError):
    """Raised when the verifyReceipt request failed on the network or timed out."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Receipt verification request failed: {detail}")


class DecodeFailedError(ReceiptValidationError):
    """Raised when the verifyReceipt response body could not be decoded."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Receipt response could not be decoded: {detail}")


class OtherValidationError(ReceiptValidationError):
    """Raised for failures that fit no other category."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


# ============================================================================
# Rule errors - carry the response status
# ============================================================================


class _StatusCodeError(ReceiptValidationError):
    message = "Receipt validation failed"

    def __init__(self, status_code: StatusCode) -> None:
        self.status_code = status_code
        super().__init__(f"{self.message} (status {int(status_code)})")


class InvalidStatusCodeError(_StatusCodeError):
    """Raised when Apple did not report the receipt as valid."""

    message = "Invalid receipt status code"


class NoReceiptFoundInResponseError(_StatusCodeError):
    """Raised when the response holds no in-app purchase receipts."""

    message = "No receipt found in response"


class BundleIdNotMatchingError(_StatusCodeError):
    """Raised when the receipt belongs to a different app."""

    message = "Bundle id is not matching receipt"


class ProductIdNotMatchingError(_StatusCodeError):
    """Raised when no receipt exists for the requested product id."""

    message = "Product id is not matching with receipt"


class TransactionIdNotMatchingError(_StatusCodeError):
    """Raised when no receipt for the product carries the requested transaction id."""

    message = "Transaction id is not matching with receipt"


class SubscriptionExpiredError(_StatusCodeError):
    """Raised when no subscription receipt is active."""

    message = "No active subscription found"


class ReceiptCancelledError(_StatusCodeError):
    """Raised when every receipt for the purchase was cancelled by Apple."""

    message = "Purchase was cancelled"
