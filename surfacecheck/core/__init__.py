"""Core modules for Surface Check."""

from .config import Config
from .logger import setup_logger, get_logger
from .rate_limiter import AdmitResult, RateLimiter, SlidingWindowLimiter, UpstreamBudget
from .cache import ResultCache, TTLCache
from .deadline import Deadline
from .resolver import ResolverAdapter
from .domain import Band, Confidence, OverallVerdict, Pressure, PublicSignal, SignalSeverity, VerdictReport
from .security import CDNRangeSet, HTMLSanitizer, IPValidator
from .errors import (
    ConfigurationError,
    ErrorCodes,
    ErrorResponse,
    InvalidDomain,
    RateLimited,
    SurfaceCheckError,
    UpstreamUnavailable,
    VerificationFailed,
    format_error,
)
from .validation import DomainValidator, normalize_domain, validate_domain
from .verification import TurnstileVerifier

__all__ = [
    "Config",
    "setup_logger",
    "get_logger",
    "AdmitResult",
    "RateLimiter",
    "SlidingWindowLimiter",
    "UpstreamBudget",
    "ResultCache",
    "TTLCache",
    "Deadline",
    "ResolverAdapter",
    "Band",
    "Confidence",
    "OverallVerdict",
    "Pressure",
    "PublicSignal",
    "SignalSeverity",
    "VerdictReport",
    "CDNRangeSet",
    "HTMLSanitizer",
    "IPValidator",
    "ConfigurationError",
    "ErrorCodes",
    "ErrorResponse",
    "InvalidDomain",
    "RateLimited",
    "SurfaceCheckError",
    "UpstreamUnavailable",
    "VerificationFailed",
    "format_error",
    "DomainValidator",
    "normalize_domain",
    "validate_domain",
    "TurnstileVerifier",
]
