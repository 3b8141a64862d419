"""
Wire Models - Pydantic models mirroring the verifyReceipt JSON payload.

Apple sends most numbers and booleans as strings ("1", "false"), so the
coercion happens here and the domain dataclasses only see typed values.

https://developer.apple.com/documentation/appstorereceipts/responsebody
"""

from datetime import UTC, datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator


def millis_to_datetime(value: int | None) -> datetime | None:
    """
    Convert an Apple millisecond timestamp to an aware UTC datetime.

    Raises:
        ValueError: If the timestamp is outside the range datetime supports
    """
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    except (OverflowError, OSError, ValueError) as exc:
        raise ValueError(f"Timestamp out of range: {value} ms") from exc


def _check_timestamp(value: int) -> int:
    millis_to_datetime(value)
    return value


# Millisecond timestamp that is known to convert to a datetime
MillisTimestamp = Annotated[int, AfterValidator(_check_timestamp)]


def _parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in ("true", "1"):
            return True
        if normalized in ("false", "0", ""):
            return False
    if isinstance(value, int):
        return value != 0
    raise ValueError(f"Expected a boolean, got: {value!r}")


class _WireModel(BaseModel):
    """Base for wire models - unknown Apple fields are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class InAppPayload(_WireModel):
    """Element of ``receipt.in_app`` and ``latest_receipt_info``."""

    product_id: str
    transaction_id: str
    original_transaction_id: str
    purchase_date_ms: MillisTimestamp
    expires_date_ms: MillisTimestamp | None = None
    cancellation_date_ms: MillisTimestamp | None = None
    is_trial_period: bool = False
    is_in_intro_offer_period: bool = False
    quantity: int = 1
    web_order_line_item_id: str | None = None

    @field_validator("is_trial_period", "is_in_intro_offer_period", mode="before")
    @classmethod
    def parse_bool_string(cls, v: object) -> bool:
        """Apple encodes these as "true"/"false" strings."""
        return _parse_bool(v)

    @field_validator("expires_date_ms", "cancellation_date_ms", mode="before")
    @classmethod
    def empty_string_is_missing(cls, v: object) -> object:
        """Treat an empty timestamp string like an absent one."""
        if v == "":
            return None
        return v


class RenewalPayload(_WireModel):
    """Element of ``pending_renewal_info``."""

    product_id: str
    auto_renew_status: bool = False
    expiration_intent: int | None = None
    original_transaction_id: str | None = None
    auto_renew_product_id: str | None = None
    is_in_billing_retry_period: bool = False
    grace_period_expires_date_ms: MillisTimestamp | None = None

    @field_validator("auto_renew_status", "is_in_billing_retry_period", mode="before")
    @classmethod
    def parse_bool_string(cls, v: object) -> bool:
        """Apple encodes these as "1"/"0" strings."""
        return _parse_bool(v)


class ReceiptPayload(_WireModel):
    """The decoded ``receipt`` object."""

    bundle_id: str = ""
    application_version: str = ""
    original_application_version: str | None = None
    receipt_creation_date_ms: MillisTimestamp | None = None
    in_app: list[InAppPayload] = Field(default_factory=list)

    @field_validator("in_app", mode="before")
    @classmethod
    def null_list_is_empty(cls, v: object) -> object:
        """Apple sends ``null`` for an empty purchase history."""
        if v is None:
            return []
        return v


class VerifyReceiptPayload(_WireModel):
    """Top-level verifyReceipt response body."""

    status: int
    environment: str | None = None
    receipt: ReceiptPayload | None = None
    latest_receipt: str | None = None
    latest_receipt_info: list[InAppPayload] = Field(default_factory=list)
    pending_renewal_info: list[RenewalPayload] = Field(default_factory=list)
    is_retryable: bool | None = Field(default=None, alias="is-retryable")

    @field_validator("latest_receipt_info", "pending_renewal_info", mode="before")
    @classmethod
    def null_list_is_empty(cls, v: object) -> object:
        """Apple sends ``null`` for some empty lists."""
        if v is None:
            return []
        return v

    @field_validator("is_retryable", mode="before")
    @classmethod
    def parse_retryable(cls, v: object) -> bool | None:
        """``is-retryable`` is only sent for internal data access errors."""
        if v is None:
            return None
        return _parse_bool(v)

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)
