"""abuse.ch URLhaus host lookup (malicious-URL feed)."""

from typing import Any, Dict, Optional

from ...core.errors import UpstreamUnavailable
from .base import BaseUpstreamClient


class URLhausClient(BaseUpstreamClient):
    """Number of malware/phishing URLs URLhaus tracks on a host."""

    name = "urlhaus"
    description = "Malicious-URL feed (abuse.ch URLhaus)"
    api_key_name = "abusech"

    API_URL = "https://urlhaus-api.abuse.ch/v1/host/"

    def fetch(self, target: Optional[str], timeout: float) -> Dict[str, Any]:
        headers = {"Auth-Key": self.api_key} if self.api_key else {}
        response = self._request_json("POST", self.API_URL, timeout, data={"host": target}, headers=headers)
        if not isinstance(response, dict):
            raise UpstreamUnavailable(self.name, "unexpected payload shape")

        status = response.get("query_status")
        if status == "no_results":
            return {"url_hits": 0}
        if status != "ok":
            raise UpstreamUnavailable(self.name, f"query_status {status!r}")

        try:
            count = int(response.get("url_count") or len(response.get("urls") or []))
        except (TypeError, ValueError):
            raise UpstreamUnavailable(self.name, "invalid url_count")
        return {"url_hits": count}
