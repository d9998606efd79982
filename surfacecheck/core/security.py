"""Security utilities for Surface Check."""

import ipaddress
import re
from datetime import date
from typing import Iterable, List, Optional, Tuple


class IPValidator:
    """Validates IP addresses before they are sent to IP-keyed feeds (SSRF guard)."""

    # Reserved/Special ranges not covered by the ipaddress flags
    RESERVED_RANGES = [
        ipaddress.ip_network("0.0.0.0/8"),
        ipaddress.ip_network("100.64.0.0/10"),  # Carrier-grade NAT
        ipaddress.ip_network("192.0.0.0/24"),   # IETF Protocol Assignments
        ipaddress.ip_network("192.0.2.0/24"),   # TEST-NET-1
        ipaddress.ip_network("198.51.100.0/24"),# TEST-NET-2
        ipaddress.ip_network("203.0.113.0/24"), # TEST-NET-3
        ipaddress.ip_network("198.18.0.0/15"),  # Benchmarking
        ipaddress.ip_network("240.0.0.0/4"),    # Reserved for future use
    ]

    CLOUD_METADATA_IPS = [
        ipaddress.ip_address("169.254.169.254"),
        ipaddress.ip_address("169.254.170.2"),
        ipaddress.ip_address("fd00:ec2::254"),
    ]

    @classmethod
    def is_safe_for_external_request(cls, ip_str: str) -> Tuple[bool, Optional[str]]:
        """
        Check whether an IP may be looked up in an external feed.

        Internal, loopback and reserved addresses resolved from a hostile
        domain are never forwarded.

        Returns:
            Tuple of (is_safe, reason_if_not_safe)
        """
        try:
            ip = ipaddress.ip_address(ip_str)
        except ValueError:
            return False, f"Invalid IP address: {ip_str}"

        if ip.is_loopback:
            return False, f"Loopback address blocked: {ip_str}"
        if ip.is_private:
            return False, f"Private IP address blocked: {ip_str}"
        if ip.is_link_local:
            return False, f"Link-local address blocked: {ip_str}"
        if ip.is_multicast:
            return False, f"Multicast address blocked: {ip_str}"
        if ip.is_reserved or ip.is_unspecified:
            return False, f"Reserved address blocked: {ip_str}"
        if ip in cls.CLOUD_METADATA_IPS:
            return False, f"Cloud metadata endpoint blocked: {ip_str}"
        for network in cls.RESERVED_RANGES:
            if ip.version == network.version and ip in network:
                return False, f"Reserved range blocked: {ip_str}"

        return True, None

    @staticmethod
    def reverse_pointer_v4(ip_str: str) -> Optional[str]:
        """Reverse the octets of an IPv4 address for DNSBL queries."""
        try:
            ip = ipaddress.ip_address(ip_str)
        except ValueError:
            return None
        if ip.version != 4:
            return None
        return ".".join(reversed(ip_str.split(".")))


class CDNRangeSet:
    """
    Published address ranges of a CDN provider.

    The list is static configuration with a review date. A list older than
    ``max_age_days`` is considered stale and reports no membership at all,
    so the blacklist bypass built on it fails closed.
    """

    # Cloudflare published IPv4 ranges
    CLOUDFLARE_V4 = [
        "173.245.48.0/20", "103.21.244.0/22", "103.22.200.0/22", "103.31.4.0/22",
        "141.101.64.0/18", "108.162.192.0/18", "190.93.240.0/20", "188.114.96.0/20",
        "197.234.240.0/22", "198.41.128.0/17", "162.158.0.0/15", "104.16.0.0/13",
        "104.24.0.0/14", "172.64.0.0/13", "131.0.72.0/22",
    ]

    def __init__(
        self,
        provider: str = "cloudflare",
        ranges: Optional[Iterable[str]] = None,
        reviewed_on: Optional[date] = None,
        max_age_days: int = 180,
    ):
        self.provider = provider
        self.networks: List[ipaddress.IPv4Network] = [
            ipaddress.ip_network(r, strict=False) for r in (ranges or self.CLOUDFLARE_V4)
        ]
        self.reviewed_on = reviewed_on
        self.max_age_days = max_age_days

    def is_fresh(self, today: Optional[date] = None) -> bool:
        if self.reviewed_on is None:
            return False
        today = today or date.today()
        return (today - self.reviewed_on).days <= self.max_age_days

    def contains(self, ip_str: str, today: Optional[date] = None) -> bool:
        """True when ``ip_str`` is inside a range and the list is fresh."""
        if not self.is_fresh(today):
            return False
        try:
            ip = ipaddress.ip_address(ip_str)
        except ValueError:
            return False
        return any(ip.version == net.version and ip in net for net in self.networks)


class HTMLSanitizer:
    """Strip markup and script-like fragments from untrusted text."""

    TAG_PATTERN = re.compile(r"<[^>]*>")
    SCRIPT_PROTOCOL_PATTERN = re.compile(r"javascript:", re.IGNORECASE)
    EVENT_HANDLER_PATTERN = re.compile(r"on\w+=", re.IGNORECASE)
    UNSAFE_CHARS_PATTERN = re.compile(r"[<>\"'`]")

    @classmethod
    def strip_markup(cls, text: str) -> str:
        """
        Remove HTML tags, javascript: prefixes, inline event handlers and
        quote/angle characters.

        Args:
            text: Untrusted text

        Returns:
            Text with markup removed
        """
        if not text:
            return ""
        text = cls.TAG_PATTERN.sub("", str(text))
        text = cls.SCRIPT_PROTOCOL_PATTERN.sub("", text)
        text = cls.EVENT_HANDLER_PATTERN.sub("", text)
        return cls.UNSAFE_CHARS_PATTERN.sub("", text)
