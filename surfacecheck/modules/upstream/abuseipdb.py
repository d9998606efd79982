"""AbuseIPDB integration (IP-reputation feed)."""

from typing import Any, Dict, Optional

from ...core.errors import UpstreamUnavailable
from .base import BaseUpstreamClient


class AbuseIPDBClient(BaseUpstreamClient):
    """
    AbuseIPDB API integration for IP reputation checking.

    Optional: only consulted when ABUSEIPDB_KEY is configured.
    """

    name = "abuseipdb"
    description = "IP reputation checking via AbuseIPDB"
    api_key_name = "abuseipdb"
    requires_api_key = True
    keyed_by_ip = True

    API_BASE = "https://api.abuseipdb.com/api/v2"

    @property
    def max_age_days(self) -> int:
        return int(self._settings.get("max_age_days", 90))

    def fetch(self, target: Optional[str], timeout: float) -> Dict[str, Any]:
        response = self._request_json(
            "GET",
            f"{self.API_BASE}/check",
            timeout,
            params={"ipAddress": target, "maxAgeInDays": self.max_age_days},
            headers={"Key": self.api_key},
        )
        data = response.get("data") if isinstance(response, dict) else None
        if not isinstance(data, dict):
            raise UpstreamUnavailable(self.name, "unexpected payload shape")

        try:
            abuse_score = int(data.get("abuseConfidenceScore", 0))
            total_reports = int(data.get("totalReports", 0))
        except (TypeError, ValueError):
            raise UpstreamUnavailable(self.name, "invalid score fields")

        return {"abuse_score": abuse_score, "total_reports": total_reports}
