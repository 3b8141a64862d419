"""
Shared test builders.

Plain factories for settings, Apple verifyReceipt payloads, decoded
responses and a recording httpx transport. Fixtures in conftest.py are
built on top of these.
"""

import json
from datetime import UTC, datetime, timedelta

import httpx

from receipt_validator.config import ValidatorSettings
from receipt_validator.models.receipt import (
    Environment,
    PurchaseReceipt,
    ReceiptResponse,
    RenewalInfo,
)
from receipt_validator.models.status_code import StatusCode

BUNDLE_ID = "com.app"
RECEIPT_BYTES = b"local-receipt-bytes"
NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


def to_millis(value: datetime) -> str:
    """Apple-style millisecond timestamp string."""
    return str(int(value.timestamp() * 1000))


# ============================================================================
# Settings
# ============================================================================


def make_settings(**overrides: object) -> ValidatorSettings:
    """Build settings without reading a .env file."""
    values: dict[str, object] = {"bundle_id": BUNDLE_ID}
    values.update(overrides)
    return ValidatorSettings(_env_file=None, **values)  # type: ignore[call-arg]


# ============================================================================
# Apple Payload Builders
# ============================================================================


def in_app_entry(
    product_id: str = "sub.monthly",
    transaction_id: str = "1000000001",
    original_transaction_id: str = "1000000000",
    purchase_date: datetime = NOW - timedelta(days=1),
    expires_date: datetime | None = None,
    cancellation_date: datetime | None = None,
    is_trial_period: bool = False,
) -> dict[str, object]:
    """One purchase entry as Apple sends it."""
    entry: dict[str, object] = {
        "quantity": "1",
        "product_id": product_id,
        "transaction_id": transaction_id,
        "original_transaction_id": original_transaction_id,
        "purchase_date": purchase_date.strftime("%Y-%m-%d %H:%M:%S Etc/GMT"),
        "purchase_date_ms": to_millis(purchase_date),
        "is_trial_period": "true" if is_trial_period else "false",
    }
    if expires_date is not None:
        entry["expires_date_ms"] = to_millis(expires_date)
    if cancellation_date is not None:
        entry["cancellation_date_ms"] = to_millis(cancellation_date)
    return entry


def apple_payload(
    status: int = 0,
    bundle_id: str = BUNDLE_ID,
    in_app: list[dict[str, object]] | None = None,
    pending_renewal_info: list[dict[str, object]] | None = None,
    latest_receipt: str | None = None,
    environment: str | None = "Production",
    include_receipt: bool = True,
) -> dict[str, object]:
    """A verifyReceipt response body."""
    payload: dict[str, object] = {"status": status}
    if environment is not None:
        payload["environment"] = environment
    if include_receipt:
        payload["receipt"] = {
            "bundle_id": bundle_id,
            "application_version": "42",
            "original_application_version": "1.0",
            "receipt_creation_date_ms": to_millis(NOW - timedelta(hours=1)),
            "in_app": in_app if in_app is not None else [in_app_entry()],
        }
    if pending_renewal_info is not None:
        payload["pending_renewal_info"] = pending_renewal_info
    if latest_receipt is not None:
        payload["latest_receipt"] = latest_receipt
    return payload


def json_response(payload: dict[str, object], status_code: int = 200) -> httpx.Response:
    """httpx response carrying a JSON body."""
    return httpx.Response(status_code, content=json.dumps(payload).encode())


# ============================================================================
# Domain Model Builders
# ============================================================================


def make_purchase(
    product_id: str = "sub.monthly",
    transaction_id: str = "1000000001",
    expires_date: datetime | None = None,
    cancellation_date: datetime | None = None,
) -> PurchaseReceipt:
    """Decoded purchase receipt."""
    return PurchaseReceipt(
        product_id=product_id,
        transaction_id=transaction_id,
        original_transaction_id="1000000000",
        purchase_date=NOW - timedelta(days=1),
        expires_date=expires_date,
        cancellation_date=cancellation_date,
    )


def make_response(
    status: StatusCode = StatusCode.VALID,
    bundle_id: str = BUNDLE_ID,
    in_app_receipts: tuple[PurchaseReceipt, ...] | None = None,
    pending_renewal_info: tuple[RenewalInfo, ...] = (),
) -> ReceiptResponse:
    """Decoded verifyReceipt response."""
    return ReceiptResponse(
        status=status,
        environment=Environment.PRODUCTION,
        bundle_id=bundle_id,
        app_version="42",
        in_app_receipts=in_app_receipts if in_app_receipts is not None else (make_purchase(),),
        pending_renewal_info=pending_renewal_info,
    )


# ============================================================================
# Network
# ============================================================================


class RecordingTransport:
    """
    Queue of canned results for successive verifyReceipt requests.

    Each queued item is either an httpx.Response or an exception to raise.
    Every request is recorded for assertions.
    """

    def __init__(self, *results: httpx.Response | Exception) -> None:
        self.results = list(results)
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.results:
            raise AssertionError(f"Unexpected request to {request.url}")
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    @property
    def hosts(self) -> list[str]:
        return [request.url.host for request in self.requests]

    def body(self, index: int) -> dict[str, object]:
        return json.loads(self.requests[index].content)
