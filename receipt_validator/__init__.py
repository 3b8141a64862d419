"""
App Store receipt validation.

Verifies receipts with Apple's verifyReceipt endpoints (production first,
sandbox on status 21007) and checks the decoded response against the app's
bundle id and the requested product.
"""

__version__ = "0.1.0"

from receipt_validator.config import (  # noqa: E402
    ConfigurationError,
    ValidatorSettings,
    VerificationMode,
    get_settings,
)
from receipt_validator.exceptions import (  # noqa: E402
    BundleIdNotMatchingError,
    DecodeFailedError,
    FetchFailedError,
    InvalidStatusCodeError,
    NoReceiptFoundInResponseError,
    OtherValidationError,
    ProductIdNotMatchingError,
    ReceiptCancelledError,
    ReceiptValidationError,
    SubscriptionExpiredError,
    TransactionIdNotMatchingError,
    TransportFailedError,
)
from receipt_validator.models.outcome import ValidationOutcome  # noqa: E402
from receipt_validator.models.receipt import (  # noqa: E402
    Environment,
    PurchaseReceipt,
    ReceiptResponse,
    RenewalInfo,
    SubscriptionValidationResponse,
)
from receipt_validator.models.status_code import StatusCode, StatusKind, classify  # noqa: E402
from receipt_validator.services.receipt_fetcher import FileReceiptFetcher  # noqa: E402
from receipt_validator.services.receipt_validator import ReceiptValidator  # noqa: E402

__all__ = [
    "BundleIdNotMatchingError",
    "ConfigurationError",
    "DecodeFailedError",
    "Environment",
    "FetchFailedError",
    "FileReceiptFetcher",
    "InvalidStatusCodeError",
    "NoReceiptFoundInResponseError",
    "OtherValidationError",
    "ProductIdNotMatchingError",
    "PurchaseReceipt",
    "ReceiptCancelledError",
    "ReceiptResponse",
    "ReceiptValidationError",
    "ReceiptValidator",
    "RenewalInfo",
    "StatusCode",
    "StatusKind",
    "SubscriptionExpiredError",
    "SubscriptionValidationResponse",
    "TransactionIdNotMatchingError",
    "TransportFailedError",
    "ValidationOutcome",
    "ValidatorSettings",
    "VerificationMode",
    "classify",
    "get_settings",
]
