"""Shodan InternetDB lookup (open ports and advertised CVEs by IP)."""

from typing import Any, Dict, Optional

from ...core.errors import UpstreamUnavailable
from .base import BaseUpstreamClient


class InternetDBClient(BaseUpstreamClient):
    """
    Passive port/vulnerability data from an internet-wide scan feed.

    No probing is done here: InternetDB serves results of Shodan's own
    periodic scans. A 404 means the address has no data, which is a
    definitive empty answer.
    """

    name = "internetdb"
    description = "Open ports and vulnerabilities by IP (Shodan InternetDB)"
    keyed_by_ip = True

    API_BASE = "https://internetdb.shodan.io"

    def fetch(self, target: Optional[str], timeout: float) -> Dict[str, Any]:
        data = self._request_json("GET", f"{self.API_BASE}/{target}", timeout, accept_404=True)
        if data is None:
            return {"ports": [], "vulns": []}
        if not isinstance(data, dict):
            raise UpstreamUnavailable(self.name, "unexpected payload shape")

        ports = sorted({int(p) for p in data.get("ports") or [] if str(p).isdigit()})
        vulns = sorted({str(v).upper() for v in data.get("vulns") or [] if v})
        return {"ports": ports, "vulns": vulns}
