"""Certificate Transparency search via crt.sh."""

import re
from typing import Any, Dict, List, Optional, Set

from ...core.errors import UpstreamUnavailable
from .base import BaseUpstreamClient


class CertTransparencyClient(BaseUpstreamClient):
    """
    Count distinct certificate names logged for a domain.

    Uses crt.sh to list certificates issued for the domain and its
    subdomains; common names and SAN entries are merged and de-wildcarded.
    """

    name = "crtsh"
    description = "Certificate Transparency search (crt.sh)"

    CRTSH_URL = "https://crt.sh/"

    HOSTNAME_PATTERN = re.compile(r'^[a-z0-9]([a-z0-9\-]*[a-z0-9])?(\.[a-z0-9]([a-z0-9\-]*[a-z0-9])?)*$')

    def fetch(self, target: Optional[str], timeout: float) -> Dict[str, Any]:
        certs = self._request_json(
            "GET",
            self.CRTSH_URL,
            timeout,
            accept_404=True,
            params={"q": f"%.{target}", "output": "json"},
        )
        if certs is None:
            return {"name_count": 0}
        if not isinstance(certs, list):
            raise UpstreamUnavailable(self.name, "unexpected payload shape")

        names = self.extract_names(certs, target)
        self.logger.debug(f"crt.sh returned {len(certs)} certificates, {len(names)} names for {target}")
        return {"name_count": len(names)}

    @classmethod
    def extract_names(cls, certs: List[dict], base_domain: str) -> Set[str]:
        """
        Extract distinct in-scope names from certificate records.

        Args:
            certs: Certificate records from crt.sh
            base_domain: Domain the names must belong to

        Returns:
            Set of unique host names
        """
        names: Set[str] = set()
        for cert in certs:
            if not isinstance(cert, dict):
                continue
            candidates = [cert.get("common_name") or ""]
            candidates.extend((cert.get("name_value") or "").split("\n"))
            for raw in candidates:
                name = raw.strip().lower()
                if name.startswith("*."):
                    name = name[2:]
                if cls._in_scope(name, base_domain):
                    names.add(name)
        return names

    @classmethod
    def _in_scope(cls, name: str, base_domain: str) -> bool:
        if not name or len(name) > 253:
            return False
        if name != base_domain and not name.endswith("." + base_domain):
            return False
        return bool(cls.HOSTNAME_PATTERN.match(name))
