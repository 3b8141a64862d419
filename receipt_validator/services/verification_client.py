"""
App Store verifyReceipt client.

Sends the receipt to production first and retries against the sandbox only
when Apple answers with the test-receipt status (21007).

https://developer.apple.com/documentation/appstorereceipts/verifyreceipt
"""

import time
from typing import Protocol

import httpx
from structlog import get_logger

from receipt_validator.config import ValidatorSettings, VerificationMode
from receipt_validator.exceptions import (
    InvalidStatusCodeError,
    OtherValidationError,
    ReceiptValidationError,
    TransportFailedError,
)
from receipt_validator.models.receipt import Environment, ReceiptResponse, VerificationRequest
from receipt_validator.models.status_code import is_test_receipt_in_production_signal
from receipt_validator.observability.metrics import metrics
from receipt_validator.services.decoding import decode_response

logger = get_logger(__name__)


class ReceiptClient(Protocol):
    """Turns raw receipt bytes into a verified ReceiptResponse."""

    async def validate(
        self,
        receipt_data: bytes,
        shared_secret: str | None,
        *,
        exclude_old_transactions: bool = False,
    ) -> ReceiptResponse: ...


class AppStoreReceiptClient:
    """
    verifyReceipt client with production-first, sandbox-fallback protocol.

    Every network attempt opens its own httpx.AsyncClient, so concurrent
    validations never share a session.
    """

    def __init__(
        self,
        settings: ValidatorSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the verifyReceipt client.

        Args:
            settings: Validator settings (endpoints, timeout, mode)
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests
        """
        self.settings = settings
        self._transport = transport

    def _url_for(self, environment: Environment) -> str:
        if environment is Environment.SANDBOX:
            return self.settings.sandbox_url
        return self.settings.production_url

    async def validate(
        self,
        receipt_data: bytes,
        shared_secret: str | None,
        *,
        exclude_old_transactions: bool = False,
    ) -> ReceiptResponse:
        """
        Verify a receipt with Apple.

        Args:
            receipt_data: Raw receipt bytes, base64-encoded here
            shared_secret: App-specific shared secret, required for subscriptions
            exclude_old_transactions: Only return the latest renewal transaction

        Returns:
            Decoded response with a valid status

        Raises:
            TransportFailedError: Network failure, timeout or HTTP error status
            DecodeFailedError: Response body could not be decoded
            InvalidStatusCodeError: Apple reported any status other than valid
        """
        if not receipt_data:
            raise OtherValidationError("Receipt data is empty")

        request = VerificationRequest.from_receipt_data(
            receipt_data,
            shared_secret=shared_secret,
            exclude_old_transactions=exclude_old_transactions,
        )

        if self.settings.mode is VerificationMode.SANDBOX_ONLY:
            response = await self._send(request, Environment.SANDBOX)
        else:
            response = await self._send(request, Environment.PRODUCTION)
            if is_test_receipt_in_production_signal(response.status):
                logger.info(
                    "receipt_is_sandbox_receipt_retrying_sandbox",
                    status=int(response.status),
                )
                response = await self._send(request, Environment.SANDBOX)

        if not response.status.is_valid:
            logger.warning(
                "receipt_verification_invalid_status",
                status=int(response.status),
                status_kind=response.status.kind.value,
                environment=response.environment.value,
            )
            raise InvalidStatusCodeError(response.status)

        return response

    async def _send(
        self,
        request: VerificationRequest,
        environment: Environment,
    ) -> ReceiptResponse:
        """Make one verifyReceipt round trip and decode the body."""
        url = self._url_for(environment)
        log = logger.info if self.settings.verbose_logging else logger.debug
        log(
            "receipt_verification_attempt",
            environment=environment.value,
            url=url,
            has_shared_secret=request.shared_secret is not None,
        )

        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.request_timeout,
                transport=self._transport,
            ) as client:
                http_response = await client.post(url, json=request.to_payload())

            if http_response.status_code >= 400:
                raise TransportFailedError(f"HTTP {http_response.status_code} from {url}")

            response = decode_response(http_response.content, default_environment=environment)

        except httpx.TimeoutException as exc:
            self._record(environment, "timeout", start)
            logger.error("receipt_verification_timeout", environment=environment.value)
            raise TransportFailedError(f"Request to {url} timed out") from exc
        except httpx.HTTPError as exc:
            self._record(environment, "transport_error", start)
            logger.error(
                "receipt_verification_transport_error",
                environment=environment.value,
                error=str(exc),
            )
            raise TransportFailedError(str(exc) or type(exc).__name__) from exc
        except ReceiptValidationError as exc:
            self._record(environment, type(exc).__name__, start)
            raise

        self._record(environment, response.status.kind.value, start)
        log(
            "receipt_verification_response",
            environment=environment.value,
            status=int(response.status),
            in_app_count=len(response.in_app_receipts),
        )
        return response

    def _record(self, environment: Environment, outcome: str, start: float) -> None:
        metrics.record_verification_attempt(
            environment.value, outcome, time.perf_counter() - start
        )
