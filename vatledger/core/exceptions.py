"""Custom exception hierarchy for vatledger.

All domain errors derive from ``VatLedgerException`` so the API layer can
translate them in one place. Each carries a stable error code, an HTTP
status and a ``retryable`` flag telling callers whether repeating the same
call is safe.

Error codes follow pattern: [CATEGORY][NUMBER]
- TAX: Period, ledger, sequencing and document errors (300-399)
- SYS: System errors (400-499)
"""

from __future__ import annotations

from typing import Any


class VatLedgerException(Exception):
    """Base exception for all vatledger errors."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        """Initialize exception with a readable message and metadata.

        Args:
            message: Human-readable error message
            code: Unique error code (e.g., "TAX310")
            status_code: HTTP status code (default: 400 Bad Request)
            details: Optional additional context
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response format."""
        return {
            "error": {
                "message": self.message,
                "code": self.code,
                "retryable": self.retryable,
                "details": self.details,
            }
        }


# ============================================================================
# TAX ERRORS (TAX300-399)
# ============================================================================

class TaxError(VatLedgerException):
    """Base class for tax computation and filing-document errors."""
    pass


class InvalidPeriodError(TaxError):
    """Malformed filing period (month outside 1-12 or quarter outside 1-4)."""

    def __init__(self, reason: str, **details: Any):
        super().__init__(
            message=f"Invalid filing period: {reason}",
            code="TAX310",
            status_code=400,
            details=details,
        )


class LedgerQueryError(TaxError):
    """Reading transactions from the ledger store failed. Safe to retry."""

    retryable = True

    def __init__(self, tenant_id: str, reason: str | None = None):
        message = f"Could not read ledger for tenant {tenant_id}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message=message,
            code="TAX320",
            status_code=503,
            details={"tenant_id": tenant_id, "reason": reason},
        )


class SequencerError(TaxError):
    """Receipt counter increment failed or its outcome is unknown.

    Never retried: after an ambiguous failure the store may or may not have
    advanced, so a blind retry could skip or double-issue a number.
    """

    retryable = False

    def __init__(self, key: str, reason: str | None = None):
        message = f"Receipt number allocation failed for {key}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message=message,
            code="TAX330",
            status_code=503,
            details={"key": key, "reason": reason},
        )


class FormattingError(TaxError):
    """A document input broke an invariant the formatter relies on."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message=message,
            code="TAX340",
            status_code=500,
            details={"field": field} if field else {},
        )


# ============================================================================
# SYSTEM ERRORS (SYS400-499)
# ============================================================================

class SystemError(VatLedgerException):
    """Base class for system/infrastructure errors."""
    pass


class ConfigurationError(SystemError):
    """Application configuration is invalid or missing."""

    def __init__(self, parameter: str):
        message = f"Configuration error: {parameter} is not configured properly"
        super().__init__(
            message=message,
            code="SYS401",
            status_code=500,
            details={"parameter": parameter},
        )
