"""
Pytest Configuration and Centralized Fixtures.

Provides reusable fixtures for testing:
- Validator settings
- A verifyReceipt client bound to a recording httpx transport
- Stub collaborators for the receipt validator

The plain builders behind these fixtures live in builders.py.
"""

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from builders import RECEIPT_BYTES, RecordingTransport, make_response, make_settings
from receipt_validator.config import ValidatorSettings, VerificationMode
from receipt_validator.services.response_validator import DefaultResponseValidator
from receipt_validator.services.verification_client import AppStoreReceiptClient

# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def settings() -> ValidatorSettings:
    """Production-first settings for the test bundle id."""
    return make_settings()


@pytest.fixture
def sandbox_only_settings() -> ValidatorSettings:
    """Settings that skip the production endpoint."""
    return make_settings(mode=VerificationMode.SANDBOX_ONLY)


# ============================================================================
# Network Fixtures
# ============================================================================


@pytest.fixture
def make_client(settings: ValidatorSettings) -> Callable[..., AppStoreReceiptClient]:
    """Factory for a verifyReceipt client bound to a recording transport."""

    def _create(
        transport: RecordingTransport,
        client_settings: ValidatorSettings | None = None,
    ) -> AppStoreReceiptClient:
        return AppStoreReceiptClient(client_settings or settings, transport=transport.transport)

    return _create


# ============================================================================
# Collaborator Stubs
# ============================================================================


@pytest.fixture
def receipt_fetcher() -> MagicMock:
    """Fetcher returning fixed receipt bytes."""
    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(return_value=RECEIPT_BYTES)
    return fetcher


@pytest.fixture
def receipt_client() -> MagicMock:
    """Client returning a valid response."""
    client = MagicMock()
    client.validate = AsyncMock(return_value=make_response())
    return client


@pytest.fixture
def response_validator() -> DefaultResponseValidator:
    return DefaultResponseValidator()
