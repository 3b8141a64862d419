"""
Validator Configuration - Pydantic Settings for type-safe config.

FAIL FAST - Critical config is validated when the settings object is built.
Settings are immutable and passed explicitly; there is no global instance.
"""

import sys
from enum import Enum

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PRODUCTION_VERIFY_URL = "https://buy.itunes.apple.com/verifyReceipt"
SANDBOX_VERIFY_URL = "https://sandbox.itunes.apple.com/verifyReceipt"


class ConfigurationError(Exception):
    """Raised when critical configuration is missing or invalid."""

    pass


class VerificationMode(str, Enum):
    """Which verifyReceipt endpoints a validation may contact."""

    PRODUCTION_FIRST = "production_first"  # Production, then sandbox on 21007
    SANDBOX_ONLY = "sandbox_only"  # Skip production entirely (local testing)


class ValidatorSettings(BaseSettings):
    """Receipt validator settings loaded from arguments or environment variables."""

    # App identity - NO DEFAULT, every receipt is checked against it
    bundle_id: str = ""

    # Verification endpoints
    production_url: str = PRODUCTION_VERIFY_URL
    sandbox_url: str = SANDBOX_VERIFY_URL
    mode: VerificationMode = VerificationMode.PRODUCTION_FIRST
    request_timeout: float = 20.0  # Seconds, per network attempt

    # Logging
    verbose_logging: bool = False  # Log every verification attempt at info level
    log_level: str = "INFO"
    log_format: str = "json"  # json or console
    service_name: str = "receipt-validator"

    model_config = SettingsConfigDict(
        env_prefix="RECEIPT_VALIDATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @model_validator(mode="after")
    def validate_critical_config(self) -> "ValidatorSettings":
        """
        FAIL FAST: Validate critical configuration at construction.

        Every purchase is checked against bundle_id, so it must be set.
        """
        errors: list[str] = []

        if not self.bundle_id:
            errors.append("RECEIPT_VALIDATOR_BUNDLE_ID is required but empty or missing")

        if self.request_timeout <= 0:
            errors.append(f"request_timeout must be positive, got: {self.request_timeout}")

        for name, url in (("production_url", self.production_url), ("sandbox_url", self.sandbox_url)):
            if not url.startswith("https://"):
                errors.append(f"{name} must be an https URL, got: {url[:40]}")

        if self.log_format not in ("json", "console"):
            errors.append(f"log_format must be 'json' or 'console', got: {self.log_format}")

        if errors:
            error_msg = "\n".join(
                [
                    "",
                    "=" * 60,
                    "RECEIPT VALIDATOR CONFIGURATION ERROR",
                    "=" * 60,
                    *[f"  ✗ {e}" for e in errors],
                    "=" * 60,
                    "",
                ]
            )
            print(error_msg, file=sys.stderr)
            raise ConfigurationError(error_msg)

        return self


def get_settings(**overrides: object) -> ValidatorSettings:
    """Build a settings instance from the environment, applying explicit overrides."""
    return ValidatorSettings(**overrides)  # type: ignore[arg-type]
