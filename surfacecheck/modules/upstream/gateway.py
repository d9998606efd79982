"""One upstream round per request: cache read-through, fan-out, write-back."""

from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

import requests

from ...core.cache import ResultCache
from ...core.config import Config
from ...core.deadline import Deadline
from ...core.logger import get_logger
from ...core.rate_limiter import UpstreamBudget
from .abuseipdb import AbuseIPDBClient
from .base import BaseUpstreamClient, UpstreamResult
from .crtsh import CertTransparencyClient
from .internetdb import InternetDBClient
from .kev import KEVCatalogClient
from .threatfox import ThreatFoxClient
from .urlhaus import URLhausClient
from .wayback import WaybackClient


@dataclass
class IntelBundle:
    """Combined upstream result set for one (domain, IP) pair."""
    domain: str
    ip: Optional[str]
    results: Dict[str, UpstreamResult] = field(default_factory=dict)
    from_cache: bool = False

    def get(self, source: str) -> UpstreamResult:
        return self.results.get(source) or UpstreamResult.unavailable(source)

    @property
    def complete(self) -> bool:
        return bool(self.results) and all(r.settled for r in self.results.values())


class UpstreamGateway:
    """
    Runs the per-request upstream round behind budgets and the result cache.

    A cache hit skips every client and every budget. Only complete rounds
    are written back, so a transient failure is retried by the next request
    instead of being pinned for the whole TTL.
    """

    CLIENT_CLASSES = [
        CertTransparencyClient,
        WaybackClient,
        URLhausClient,
        ThreatFoxClient,
        InternetDBClient,
        AbuseIPDBClient,
    ]

    def __init__(
        self,
        config: Config,
        budget: UpstreamBudget,
        cache: ResultCache,
        session: Optional[requests.Session] = None,
        max_workers: int = 6,
    ):
        self.config = config
        self.budget = budget
        self.cache = cache
        self.max_workers = max_workers
        self.logger = get_logger("upstream.gateway")
        self.clients: List[BaseUpstreamClient] = [cls(config, budget, session) for cls in self.CLIENT_CLASSES]
        self.catalog_client = KEVCatalogClient(config, budget, session)

    def client(self, name: str) -> BaseUpstreamClient:
        for client in self.clients:
            if client.name == name:
                return client
        raise KeyError(name)

    def collect(self, domain: str, ip: Optional[str], deadline: Deadline) -> IntelBundle:
        """
        Return the upstream result set for ``domain``/``ip``.

        Args:
            domain: Normalized domain
            ip: Primary IPv4 address (None when absent or unknown)
            deadline: Request deadline; clients still running at expiry
                count as unavailable

        Returns:
            IntelBundle, from cache when a complete round is still fresh
        """
        key = ResultCache.result_key(domain, ip)
        cached = self.cache.results.get(key)
        if cached is not None:
            self.logger.debug(f"Upstream cache hit for {key}")
            return IntelBundle(cached.domain, cached.ip, dict(cached.results), from_cache=True)

        bundle = IntelBundle(domain, ip)
        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="upstream")
        try:
            futures = {
                executor.submit(client.lookup, ip if client.keyed_by_ip else domain, deadline): client.name
                for client in self.clients
            }
            done, _ = wait(futures, timeout=deadline.remaining())
            for future, source in futures.items():
                if future in done and future.exception() is None:
                    bundle.results[source] = future.result()
                else:
                    self.logger.warning_with_data("Upstream unavailable", {"source": source, "cause": "deadline"})
                    bundle.results[source] = UpstreamResult.unavailable(source)
        finally:
            executor.shutdown(wait=False)

        if bundle.complete:
            self.cache.results.set(key, bundle)
        else:
            missing = sorted(s for s, r in bundle.results.items() if not r.settled)
            self.logger.info_with_data("Partial upstream round not cached", {"key": key, "missing": missing})
        return bundle

    def exploited_catalog(self, deadline: Deadline) -> Optional[FrozenSet[str]]:
        """The KEV CVE set, or None when it could not be fetched."""
        cached = self.cache.catalog.get(ResultCache.CATALOG_KEY)
        if cached is not None:
            return cached

        result = self.catalog_client.lookup(None, deadline)
        if not result.ok:
            return None
        self.cache.catalog.set(ResultCache.CATALOG_KEY, result.data)
        return result.data
