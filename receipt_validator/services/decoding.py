"""
Response decoding - verifyReceipt JSON to ReceiptResponse.

Structural parsing only. Status semantics are left to the client and the
response validator.
"""

from pydantic import ValidationError
from structlog import get_logger

from receipt_validator.exceptions import DecodeFailedError
from receipt_validator.models.api import (
    InAppPayload,
    RenewalPayload,
    VerifyReceiptPayload,
    millis_to_datetime,
)
from receipt_validator.models.receipt import (
    Environment,
    PurchaseReceipt,
    ReceiptResponse,
    RenewalInfo,
)
from receipt_validator.models.status_code import classify

logger = get_logger(__name__)


def _parse_environment(value: str | None, default: Environment) -> Environment:
    if value is None:
        return default
    for environment in Environment:
        if environment.value.lower() == value.lower():
            return environment
    raise DecodeFailedError(f"Unknown environment: {value}")


def _to_purchase_receipt(payload: InAppPayload) -> PurchaseReceipt:
    purchase_date = millis_to_datetime(payload.purchase_date_ms)
    assert purchase_date is not None
    return PurchaseReceipt(
        product_id=payload.product_id,
        transaction_id=payload.transaction_id,
        original_transaction_id=payload.original_transaction_id,
        purchase_date=purchase_date,
        expires_date=millis_to_datetime(payload.expires_date_ms),
        cancellation_date=millis_to_datetime(payload.cancellation_date_ms),
        is_trial_period=payload.is_trial_period,
        is_in_intro_offer_period=payload.is_in_intro_offer_period,
        quantity=payload.quantity,
        web_order_line_item_id=payload.web_order_line_item_id,
    )


def _to_renewal_info(payload: RenewalPayload) -> RenewalInfo:
    return RenewalInfo(
        product_id=payload.product_id,
        auto_renew_status=payload.auto_renew_status,
        expiration_intent=payload.expiration_intent,
        original_transaction_id=payload.original_transaction_id,
        auto_renew_product_id=payload.auto_renew_product_id,
        is_in_billing_retry_period=payload.is_in_billing_retry_period,
        grace_period_expires_date=millis_to_datetime(payload.grace_period_expires_date_ms),
    )


def decode_response(
    raw: bytes,
    default_environment: Environment = Environment.PRODUCTION,
) -> ReceiptResponse:
    """
    Decode a verifyReceipt response body.

    Args:
        raw: Response body bytes
        default_environment: Environment to assume when Apple omits it
            (typically the endpoint the request was sent to)

    Returns:
        Decoded receipt response

    Raises:
        DecodeFailedError: If the body is not valid JSON, misses required
            fields or carries a timestamp outside the datetime range
    """
    try:
        payload = VerifyReceiptPayload.model_validate_json(raw)
    except ValidationError as exc:
        logger.warning(
            "receipt_response_decode_failed",
            error_count=exc.error_count(),
            body_size=len(raw),
        )
        raise DecodeFailedError(str(exc)) from exc

    receipt = payload.receipt
    return ReceiptResponse(
        status=classify(payload.status),
        environment=_parse_environment(payload.environment, default_environment),
        bundle_id=receipt.bundle_id if receipt else "",
        app_version=receipt.application_version if receipt else "",
        in_app_receipts=tuple(_to_purchase_receipt(p) for p in receipt.in_app) if receipt else (),
        pending_renewal_info=tuple(_to_renewal_info(p) for p in payload.pending_renewal_info),
        latest_receipt_base64=payload.latest_receipt,
        latest_receipt_info=tuple(_to_purchase_receipt(p) for p in payload.latest_receipt_info),
        original_app_version=receipt.original_application_version if receipt else None,
        receipt_creation_date=millis_to_datetime(receipt.receipt_creation_date_ms)
        if receipt
        else None,
        is_retryable=payload.is_retryable,
    )
