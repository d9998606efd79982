"""Historical footprint via the Internet Archive CDX index."""

from typing import Any, Dict, Optional

from ...core.errors import UpstreamUnavailable
from .base import BaseUpstreamClient


class WaybackClient(BaseUpstreamClient):
    """Count distinct archived URLs under a domain (Wayback Machine CDX API)."""

    name = "wayback"
    description = "Web archive index (Wayback CDX)"

    CDX_URL = "https://web.archive.org/cdx/search/cdx"

    @property
    def max_rows(self) -> int:
        return int(self._settings.get("max_rows", 200))

    def fetch(self, target: Optional[str], timeout: float) -> Dict[str, Any]:
        rows = self._request_json(
            "GET",
            self.CDX_URL,
            timeout,
            params={
                "url": f"{target}/*",
                "output": "json",
                "fl": "original",
                "collapse": "urlkey",
                "limit": str(self.max_rows),
            },
        )
        if rows is None:
            return {"url_count": 0}
        if not isinstance(rows, list):
            raise UpstreamUnavailable(self.name, "unexpected payload shape")

        # First row is the field header when results exist
        if rows and rows[0] == ["original"]:
            rows = rows[1:]

        urls = {row[0] for row in rows if isinstance(row, list) and row}
        return {"url_count": len(urls)}
