"""abuse.ch ThreatFox IOC search (malware-IOC feed)."""

from typing import Any, Dict, Optional

from ...core.errors import UpstreamUnavailable
from .base import BaseUpstreamClient


class ThreatFoxClient(BaseUpstreamClient):
    """Number of malware IOCs ThreatFox associates with a domain."""

    name = "threatfox"
    description = "Malware-IOC feed (abuse.ch ThreatFox)"
    api_key_name = "abusech"

    API_URL = "https://threatfox-api.abuse.ch/api/v1/"

    def fetch(self, target: Optional[str], timeout: float) -> Dict[str, Any]:
        headers = {"Auth-Key": self.api_key} if self.api_key else {}
        response = self._request_json(
            "POST",
            self.API_URL,
            timeout,
            json={"query": "search_ioc", "search_term": target},
            headers=headers,
        )
        if not isinstance(response, dict):
            raise UpstreamUnavailable(self.name, "unexpected payload shape")

        status = response.get("query_status")
        if status == "no_result":
            return {"ioc_hits": 0}
        if status != "ok":
            raise UpstreamUnavailable(self.name, f"query_status {status!r}")

        data = response.get("data")
        return {"ioc_hits": len(data) if isinstance(data, list) else 0}
