"""Upstream data-source clients and the per-request gateway."""

from .base import BaseUpstreamClient, UpstreamResult, UpstreamStatus
from .crtsh import CertTransparencyClient
from .wayback import WaybackClient
from .urlhaus import URLhausClient
from .threatfox import ThreatFoxClient
from .internetdb import InternetDBClient
from .abuseipdb import AbuseIPDBClient
from .kev import KEVCatalogClient
from .gateway import IntelBundle, UpstreamGateway

__all__ = [
    "BaseUpstreamClient",
    "UpstreamResult",
    "UpstreamStatus",
    "CertTransparencyClient",
    "WaybackClient",
    "URLhausClient",
    "ThreatFoxClient",
    "InternetDBClient",
    "AbuseIPDBClient",
    "KEVCatalogClient",
    "IntelBundle",
    "UpstreamGateway",
]
