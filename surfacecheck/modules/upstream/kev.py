"""CISA Known Exploited Vulnerabilities catalog feed."""

from typing import FrozenSet, Optional

from ...core.errors import UpstreamUnavailable
from .base import BaseUpstreamClient


class KEVCatalogClient(BaseUpstreamClient):
    """Fetch the set of CVE IDs known to be exploited in the wild."""

    name = "kev"
    description = "Known-exploited-vulnerabilities catalog (CISA KEV)"

    FEED_URL = "https://www.cisa.gov/sites/default/files/feeds/known_exploited_vulnerabilities.json"

    @property
    def feed_url(self) -> str:
        return self._settings.get("url", self.FEED_URL)

    def fetch(self, target: Optional[str], timeout: float) -> FrozenSet[str]:
        catalog = self._request_json("GET", self.feed_url, timeout)
        entries = catalog.get("vulnerabilities") if isinstance(catalog, dict) else None
        if not isinstance(entries, list) or not entries:
            raise UpstreamUnavailable(self.name, "catalog empty or malformed")

        cves = frozenset(
            str(entry["cveID"]).upper()
            for entry in entries
            if isinstance(entry, dict) and entry.get("cveID")
        )
        self.logger.info(f"Loaded {len(cves)} known-exploited CVEs")
        return cves
