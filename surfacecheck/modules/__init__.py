"""Passive checks that make up the quick-check battery."""

from .base import AddressState, BaseCheck, CheckContext
from .email_security import EmailSecurityCheck
from .blacklist import BlacklistCheck
from .typosquat import TyposquatCheck
from .dns_hardening import DnsHardeningCheck
from .cert_transparency import CertTransparencyCheck
from .web_history import WebHistoryCheck
from .threat_intel import ThreatIntelCheck
from .exposed_services import ExposedServicesCheck
from .exploited_vulns import ExploitedVulnsCheck

__all__ = [
    "AddressState",
    "BaseCheck",
    "CheckContext",
    "EmailSecurityCheck",
    "BlacklistCheck",
    "TyposquatCheck",
    "DnsHardeningCheck",
    "CertTransparencyCheck",
    "WebHistoryCheck",
    "ThreatIntelCheck",
    "ExposedServicesCheck",
    "ExploitedVulnsCheck",
]
