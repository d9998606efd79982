"""Error codes and exceptions for Surface Check."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error categories for classification."""
    AUTHENTICATION = "AUTH"
    VALIDATION = "VALID"
    RATE_LIMIT = "RATE"
    NETWORK = "NET"
    CONFIGURATION = "CONFIG"
    SYSTEM = "SYS"


@dataclass
class ErrorResponse:
    """Structured, user-facing error response."""
    code: str
    message: str
    category: ErrorCategory
    http_status: int = 500
    details: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "error": self.message,
            "category": self.category.value,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ErrorCodes:
    """Centralized error codes for the application."""

    # Verification Errors (AUTH-001 to AUTH-099)
    AUTH_TOKEN_MISSING = ErrorResponse(
        code="AUTH-001",
        message="Verification token is required",
        category=ErrorCategory.AUTHENTICATION,
        http_status=401,
    )
    AUTH_VERIFICATION_FAILED = ErrorResponse(
        code="AUTH-002",
        message="Verification failed",
        category=ErrorCategory.AUTHENTICATION,
        http_status=401,
    )

    # Validation Errors (VALID-001 to VALID-099)
    VALID_INVALID_DOMAIN = ErrorResponse(
        code="VALID-001",
        message="Invalid domain format",
        category=ErrorCategory.VALIDATION,
        http_status=400,
    )
    VALID_EMPTY_INPUT = ErrorResponse(
        code="VALID-002",
        message="A domain is required",
        category=ErrorCategory.VALIDATION,
        http_status=400,
    )
    VALID_DOMAIN_TOO_LONG = ErrorResponse(
        code="VALID-003",
        message="Domain name exceeds maximum length (253 characters)",
        category=ErrorCategory.VALIDATION,
        http_status=400,
    )
    VALID_UNSUPPORTED_TARGET = ErrorResponse(
        code="VALID-004",
        message="IP addresses and local domains are not supported",
        category=ErrorCategory.VALIDATION,
        http_status=400,
    )

    # Rate Limit Errors (RATE-001 to RATE-099)
    RATE_LIMITED = ErrorResponse(
        code="RATE-001",
        message="Too many requests. Please try again in a minute",
        category=ErrorCategory.RATE_LIMIT,
        http_status=429,
    )

    # Network Errors (NET-001 to NET-099)
    NET_UPSTREAM_UNAVAILABLE = ErrorResponse(
        code="NET-001",
        message="Upstream source unavailable",
        category=ErrorCategory.NETWORK,
        http_status=502,
    )

    # Configuration Errors (CONFIG-001 to CONFIG-099)
    CONFIG_INVALID = ErrorResponse(
        code="CONFIG-001",
        message="Invalid configuration",
        category=ErrorCategory.CONFIGURATION,
        http_status=500,
    )
    CONFIG_MISSING_SECRET = ErrorResponse(
        code="CONFIG-002",
        message="Security configuration is missing. Contact the administrator",
        category=ErrorCategory.CONFIGURATION,
        http_status=500,
    )
    CONFIG_TEST_SECRET = ErrorResponse(
        code="CONFIG-003",
        message="Security configuration is invalid. Contact the administrator",
        category=ErrorCategory.CONFIGURATION,
        http_status=500,
    )

    # System Errors (SYS-001 to SYS-099)
    SYS_INTERNAL_ERROR = ErrorResponse(
        code="SYS-001",
        message="Internal server error",
        category=ErrorCategory.SYSTEM,
        http_status=500,
    )

    @classmethod
    def with_details(cls, error: ErrorResponse, details: Optional[str]) -> ErrorResponse:
        """Create a copy of an error with additional (internal) details."""
        return ErrorResponse(
            code=error.code,
            message=error.message,
            category=error.category,
            http_status=error.http_status,
            details=details,
        )


def format_error(error: ErrorResponse) -> str:
    """Format error for display."""
    if error.details:
        return f"[{error.code}] {error.message}: {error.details}"
    return f"[{error.code}] {error.message}"


class SurfaceCheckError(Exception):
    """Base exception carrying a structured error response."""

    default_error: ErrorResponse = ErrorCodes.SYS_INTERNAL_ERROR

    def __init__(self, details: Optional[str] = None, error: Optional[ErrorResponse] = None):
        base = error or self.default_error
        # Copy so each raised error carries its own timestamp
        self.error = ErrorCodes.with_details(base, details or base.details)
        super().__init__(format_error(self.error))

    @property
    def http_status(self) -> int:
        return self.error.http_status


class InvalidDomain(SurfaceCheckError):
    """Raised when input cannot be normalized into a public domain."""
    default_error = ErrorCodes.VALID_INVALID_DOMAIN


class RateLimited(SurfaceCheckError):
    """Raised when a caller exceeds the request window."""

    default_error = ErrorCodes.RATE_LIMITED

    def __init__(self, reset_in_ms: int, limit: int, details: Optional[str] = None):
        self.reset_in_ms = reset_in_ms
        self.limit = limit
        super().__init__(details)

    @property
    def retry_after_seconds(self) -> int:
        return max(1, -(-self.reset_in_ms // 1000))


class VerificationFailed(SurfaceCheckError):
    """Raised when the challenge token is missing or rejected."""
    default_error = ErrorCodes.AUTH_VERIFICATION_FAILED


class ConfigurationError(SurfaceCheckError):
    """Raised when a required secret or setting is missing."""
    default_error = ErrorCodes.CONFIG_MISSING_SECRET


class UpstreamUnavailable(SurfaceCheckError):
    """Raised inside upstream clients; always recovered into an unavailable result."""

    default_error = ErrorCodes.NET_UPSTREAM_UNAVAILABLE

    def __init__(self, source: str, cause: str):
        self.source = source
        self.cause = cause
        super().__init__(f"{source}: {cause}")
