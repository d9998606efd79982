"""Input normalization for untrusted domain strings."""

import re
from typing import Optional, Tuple

from .errors import ErrorCodes, ErrorResponse, InvalidDomain, format_error
from .security import HTMLSanitizer


class DomainValidator:
    """Normalize and validate domain names typed by anonymous callers."""

    MAX_DOMAIN_LENGTH = 253
    MAX_LABEL_LENGTH = 63

    LABEL_PATTERN = re.compile(r'^[a-z0-9]([a-z0-9-]*[a-z0-9])?$')
    IPV4_PATTERN = re.compile(r'^\d{1,3}(\.\d{1,3}){3}$')
    SCHEME_PATTERN = re.compile(r'^[a-z][a-z0-9+.-]*://')

    LOCAL_NAMES = {"localhost"}
    LOCAL_SUFFIXES = (".local", ".localhost")

    @classmethod
    def clean(cls, raw: str) -> str:
        """
        Sanitize and reduce input to a bare host name.

        Markup is stripped first, then the string is lower-cased and the
        scheme, path, query, fragment and port are removed along with any
        leading/trailing dots.
        """
        domain = HTMLSanitizer.strip_markup(raw or "").strip().lower()

        domain = cls.SCHEME_PATTERN.sub("", domain)
        for separator in ("/", "?", "#"):
            domain = domain.split(separator, 1)[0]

        # Drop userinfo and port
        domain = domain.rsplit("@", 1)[-1]
        domain = domain.split(":", 1)[0]

        return domain.strip().strip(".")

    @classmethod
    def validate(cls, raw: str) -> Tuple[bool, Optional[ErrorResponse], Optional[str]]:
        """
        Validate a domain name.

        Args:
            raw: Untrusted input

        Returns:
            Tuple of (is_valid, error_response, canonical_domain)
        """
        if raw is not None and not isinstance(raw, str):
            return False, ErrorCodes.with_details(
                ErrorCodes.VALID_INVALID_DOMAIN, f"expected text, got {type(raw).__name__}"
            ), None

        domain = cls.clean(raw)

        if not domain:
            return False, ErrorCodes.VALID_EMPTY_INPUT, None

        if cls.IPV4_PATTERN.match(domain):
            return False, ErrorCodes.with_details(
                ErrorCodes.VALID_UNSUPPORTED_TARGET, "IP addresses are not supported"
            ), None

        if domain in cls.LOCAL_NAMES or domain.endswith(cls.LOCAL_SUFFIXES):
            return False, ErrorCodes.with_details(
                ErrorCodes.VALID_UNSUPPORTED_TARGET, "Local domains are not supported"
            ), None

        if len(domain) > cls.MAX_DOMAIN_LENGTH:
            return False, ErrorCodes.VALID_DOMAIN_TOO_LONG, None

        labels = domain.split(".")
        if len(labels) < 2:
            return False, ErrorCodes.with_details(
                ErrorCodes.VALID_INVALID_DOMAIN, "Domain must have at least two labels"
            ), None

        for label in labels:
            if not label or len(label) > cls.MAX_LABEL_LENGTH:
                return False, ErrorCodes.with_details(
                    ErrorCodes.VALID_INVALID_DOMAIN, "Domain contains an empty or oversized label"
                ), None
            if not cls.LABEL_PATTERN.match(label):
                return False, ErrorCodes.with_details(
                    ErrorCodes.VALID_INVALID_DOMAIN, f"Label '{label[:20]}' contains invalid characters"
                ), None

        return True, None, domain

    @classmethod
    def normalize(cls, raw: str) -> str:
        """
        Return the canonical domain for ``raw``.

        Raises:
            InvalidDomain: if the input is not a public, well-formed domain
        """
        is_valid, error, domain = cls.validate(raw)
        if not is_valid:
            raise InvalidDomain(error=error)
        return domain


def normalize_domain(raw: str) -> str:
    """Module-level shortcut for DomainValidator.normalize."""
    return DomainValidator.normalize(raw)


def validate_domain(raw: str) -> Tuple[bool, Optional[str]]:
    """Simple validation helper returning a printable error."""
    is_valid, error, _ = DomainValidator.validate(raw)
    if error:
        return False, format_error(error)
    return True, None
