"""
verifyReceipt status codes.

https://developer.apple.com/documentation/appstorereceipts/status
"""

from enum import Enum, IntEnum

# Apple reserves this range for "internal data access error" codes
_INTERNAL_DATA_ACCESS_RANGE = range(21100, 21200)


class StatusKind(str, Enum):
    """How a status code should be treated by a caller."""

    VALID = "valid"
    RETRYABLE = "retryable"
    SANDBOX_REDIRECT = "sandbox_redirect"
    TERMINAL = "terminal"


class StatusCode(IntEnum):
    """Status returned by the verifyReceipt endpoint.

    Codes without a named member resolve to an ``UNKNOWN`` pseudo-member
    that keeps the raw integer as its value.
    """

    UNKNOWN = -1
    VALID = 0
    JSON_NOT_READABLE = 21000
    NO_LONGER_SENT = 21001
    MALFORMED_OR_MISSING_DATA = 21002
    RECEIPT_COULD_NOT_BE_AUTHENTICATED = 21003
    SHARED_SECRET_NOT_MATCHING = 21004
    RECEIPT_SERVER_UNAVAILABLE = 21005
    SUBSCRIPTION_IOS6_STYLE_EXPIRED = 21006
    TEST_RECEIPT = 21007
    PRODUCTION_RECEIPT_IN_SANDBOX = 21008
    INTERNAL_DATA_ACCESS_ERROR = 21009
    RECEIPT_COULD_NOT_BE_AUTHORIZED = 21010

    @classmethod
    def _missing_(cls, value: object) -> "StatusCode | None":
        if not isinstance(value, int) or isinstance(value, bool):
            return None
        pseudo_member = int.__new__(cls, value)
        pseudo_member._name_ = "UNKNOWN"
        pseudo_member._value_ = value
        return pseudo_member

    @property
    def is_valid(self) -> bool:
        """Check if the receipt was accepted."""
        return self.value == StatusCode.VALID.value

    @property
    def is_known(self) -> bool:
        """Check if this code has a named member."""
        return self.value in StatusCode._value2member_map_

    @property
    def kind(self) -> StatusKind:
        """Classify the code as valid, retryable, sandbox redirect or terminal."""
        if self.is_valid:
            return StatusKind.VALID
        if is_test_receipt_in_production_signal(self):
            return StatusKind.SANDBOX_REDIRECT
        if self.value in _RETRYABLE_CODES or self.value in _INTERNAL_DATA_ACCESS_RANGE:
            return StatusKind.RETRYABLE
        return StatusKind.TERMINAL

    @property
    def is_retryable(self) -> bool:
        """Check if the same request may succeed when sent again later."""
        return self.kind is StatusKind.RETRYABLE


_RETRYABLE_CODES = frozenset(
    {
        StatusCode.MALFORMED_OR_MISSING_DATA.value,
        StatusCode.RECEIPT_SERVER_UNAVAILABLE.value,
        StatusCode.INTERNAL_DATA_ACCESS_ERROR.value,
    }
)


def classify(raw_code: int) -> StatusCode:
    """Map any integer returned by Apple to a StatusCode."""
    return StatusCode(raw_code)


def is_test_receipt_in_production_signal(code: int) -> bool:
    """
    Check if Apple rejected a sandbox receipt sent to the production endpoint.

    This is the only status that triggers the sandbox retry.
    """
    return int(code) == StatusCode.TEST_RECEIPT.value
