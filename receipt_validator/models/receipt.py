"""
Receipt domain models - Immutable dataclasses for receipt validation.

NO DICTIONARIES - All data uses strongly typed models.

These are built by the response decoder from the verifyReceipt JSON payload
and never mutated afterwards.
"""

import base64
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from receipt_validator.config import PRODUCTION_VERIFY_URL, SANDBOX_VERIFY_URL
from receipt_validator.models.status_code import StatusCode


class Environment(str, Enum):
    """verifyReceipt environment."""

    PRODUCTION = "Production"
    SANDBOX = "Sandbox"

    @property
    def default_url(self) -> str:
        """Apple's verifyReceipt URL for this environment."""
        if self is Environment.SANDBOX:
            return SANDBOX_VERIFY_URL
        return PRODUCTION_VERIFY_URL


@dataclass(frozen=True)
class VerificationRequest:
    """Body of a single verifyReceipt POST."""

    receipt_base64: str
    shared_secret: str | None = None
    exclude_old_transactions: bool = False

    def __post_init__(self) -> None:
        """Validate request fields."""
        if not self.receipt_base64:
            raise ValueError("Receipt data required")

    @classmethod
    def from_receipt_data(
        cls,
        receipt_data: bytes,
        shared_secret: str | None = None,
        exclude_old_transactions: bool = False,
    ) -> "VerificationRequest":
        """Build a request from the raw receipt bytes."""
        return cls(
            receipt_base64=base64.b64encode(receipt_data).decode("ascii"),
            shared_secret=shared_secret,
            exclude_old_transactions=exclude_old_transactions,
        )

    def to_payload(self) -> dict[str, object]:
        """Serialize to the JSON body Apple expects."""
        payload: dict[str, object] = {"receipt-data": self.receipt_base64}
        if self.shared_secret is not None:
            payload["password"] = self.shared_secret
        if self.exclude_old_transactions:
            payload["exclude-old-transactions"] = True
        return payload


@dataclass(frozen=True)
class PurchaseReceipt:
    """One in-app purchase or subscription period from the receipt history."""

    product_id: str
    transaction_id: str
    original_transaction_id: str
    purchase_date: datetime
    expires_date: datetime | None = None  # Auto-renewable subscriptions only
    cancellation_date: datetime | None = None  # Refunded by Apple support
    is_trial_period: bool = False
    is_in_intro_offer_period: bool = False
    quantity: int = 1
    web_order_line_item_id: str | None = None

    def is_subscription(self) -> bool:
        """Check if this receipt belongs to an auto-renewable subscription."""
        return self.expires_date is not None

    def is_cancelled(self) -> bool:
        """Check if Apple cancelled (refunded) this transaction."""
        return self.cancellation_date is not None

    def is_active(self, now: datetime) -> bool:
        """Check if this subscription period is still running at ``now`` (timezone-aware)."""
        return self.expires_date is not None and self.expires_date > now


@dataclass(frozen=True)
class RenewalInfo:
    """Pending renewal state for an auto-renewable subscription."""

    product_id: str
    auto_renew_status: bool
    expiration_intent: int | None = None  # 1: cancelled, 2: billing error, ...
    original_transaction_id: str | None = None
    auto_renew_product_id: str | None = None
    is_in_billing_retry_period: bool = False
    grace_period_expires_date: datetime | None = None

    def will_renew(self) -> bool:
        """Check if the subscription is set to auto-renew."""
        return self.auto_renew_status


@dataclass(frozen=True)
class ReceiptResponse:
    """Decoded verifyReceipt response."""

    status: StatusCode
    environment: Environment
    bundle_id: str = ""
    app_version: str = ""
    in_app_receipts: tuple[PurchaseReceipt, ...] = ()
    pending_renewal_info: tuple[RenewalInfo, ...] = ()
    latest_receipt_base64: str | None = None
    latest_receipt_info: tuple[PurchaseReceipt, ...] = ()
    original_app_version: str | None = None
    receipt_creation_date: datetime | None = None
    is_retryable: bool | None = None  # Only sent with 21100-21199 statuses

    def receipts_for_product(self, product_id: str) -> tuple[PurchaseReceipt, ...]:
        """All in-app receipts for the given product id, in receipt order."""
        return tuple(r for r in self.in_app_receipts if r.product_id == product_id)

    def is_sandbox(self) -> bool:
        """Check if the receipt was verified by the sandbox environment."""
        return self.environment is Environment.SANDBOX


@dataclass(frozen=True)
class SubscriptionValidationResponse:
    """Active subscription receipts plus the pending renewal state."""

    valid_receipts: tuple[PurchaseReceipt, ...]
    pending_renewal_info: tuple[RenewalInfo, ...]

    def active_product_ids(self) -> frozenset[str]:
        """Product ids with at least one active receipt."""
        return frozenset(r.product_id for r in self.valid_receipts)
