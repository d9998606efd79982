"""DNS blocklist reputation for the domain and its primary address."""

import ipaddress
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from ..core.config import Config
from ..core.deadline import Deadline
from ..core.outcomes import BlacklistOutcome, BlacklistVerdict
from ..core.resolver import ResolverAdapter
from ..core.security import CDNRangeSet, IPValidator
from .base import AddressState, BaseCheck, CheckContext


class ZoneAnswer:
    LISTED = "listed"
    CLEAN = "clean"
    FAILED = "failed"


class BlacklistCheck(BaseCheck):
    """
    Query IP and domain DNSBL zones concurrently.

    Addresses inside a CDN's published ranges are shared by thousands of
    sites, so zones known to list whole CDN ranges are not queried for
    them. The bypass only applies while the range list is fresh.
    """

    name = "blacklist"
    title = "Blacklist Reputation"
    description = "DNS blocklist listings for the domain and its address"

    DEFAULT_IP_ZONES = [
        "zen.spamhaus.org",
        "bl.spamcop.net",
        "dnsbl.sorbs.net",
        "b.barracudacentral.org",
        "spam.dnsbl.sorbs.net",
        "cbl.abuseat.org",
        "dnsbl-1.uceprotect.net",
    ]

    DEFAULT_DOMAIN_ZONES = ["dbl.spamhaus.org", "multi.surbl.org"]

    DEFAULT_CDN_SENSITIVE_ZONES = [
        "dnsbl-1.uceprotect.net",
        "dnsbl.sorbs.net",
        "spam.dnsbl.sorbs.net",
        "b.barracudacentral.org",
    ]

    # Blocklist operators answer inside this range to refuse public resolvers
    REFUSAL_NETWORK = ipaddress.ip_network("127.255.255.0/24")

    def __init__(self, config: Config):
        super().__init__(config)
        settings = config.blacklist
        self.ip_zones: List[str] = settings.get("ip_zones") or self.DEFAULT_IP_ZONES
        self.domain_zones: List[str] = settings.get("domain_zones") or self.DEFAULT_DOMAIN_ZONES
        self.cdn_sensitive_zones = set(settings.get("cdn_sensitive_zones") or self.DEFAULT_CDN_SENSITIVE_ZONES)
        self.cdn_ranges = self._load_cdn_ranges(settings.get("cdn", {}) or {})

    @staticmethod
    def _load_cdn_ranges(cdn: Dict) -> CDNRangeSet:
        reviewed_on = cdn.get("reviewed_on")
        if isinstance(reviewed_on, str):
            reviewed_on = datetime.strptime(reviewed_on, "%Y-%m-%d").date()
        elif isinstance(reviewed_on, datetime):
            reviewed_on = reviewed_on.date()
        elif not isinstance(reviewed_on, date):
            reviewed_on = None
        return CDNRangeSet(
            provider=cdn.get("provider", "cloudflare"),
            ranges=cdn.get("ranges"),
            reviewed_on=reviewed_on,
            max_age_days=int(cdn.get("max_age_days", 180)),
        )

    def unknown(self) -> BlacklistOutcome:
        return BlacklistOutcome.unknown()

    def plan_queries(self, context: CheckContext) -> Tuple[List[Tuple[str, str]], List[str], bool]:
        """
        Build the (zone, query name) list for this request.

        Returns:
            Tuple of (queries, skipped zones, cdn_shielded)
        """
        queries = [(zone, f"{context.domain}.{zone}") for zone in self.domain_zones]
        skipped: List[str] = []
        shielded = False

        ip = context.primary_ip
        if context.address_state == AddressState.RESOLVED and ip:
            reversed_ip = IPValidator.reverse_pointer_v4(ip)
            if reversed_ip:
                shielded = self.cdn_ranges.contains(ip)
                for zone in self.ip_zones:
                    if shielded and zone in self.cdn_sensitive_zones:
                        skipped.append(zone)
                        continue
                    queries.append((zone, f"{reversed_ip}.{zone}"))

        if skipped:
            self.logger.debug_with_data(
                "CDN address, skipping range-listing zones",
                {"provider": self.cdn_ranges.provider, "skipped": len(skipped)},
            )
        return queries, skipped, shielded

    def execute(self, context: CheckContext) -> BlacklistOutcome:
        queries, skipped, shielded = self.plan_queries(context)

        with ThreadPoolExecutor(max_workers=max(1, min(len(queries), 8)), thread_name_prefix="dnsbl") as executor:
            answers = list(executor.map(
                lambda q: self.query_zone(context.resolver, q[1], context.deadline),
                queries,
            ))

        listed = answers.count(ZoneAnswer.LISTED)
        failed = answers.count(ZoneAnswer.FAILED)
        answered = len(answers) - failed
        ip_checked = context.address_state == AddressState.RESOLVED

        if listed:
            verdict = BlacklistVerdict.LISTED
        elif answered == 0 or context.address_state == AddressState.UNKNOWN:
            # Without the address half a clean result would overstate coverage
            verdict = BlacklistVerdict.UNKNOWN
        else:
            verdict = BlacklistVerdict.CLEAN

        return BlacklistOutcome(
            verdict=verdict,
            listed_count=listed,
            zones_checked=answered,
            zones_failed=failed,
            cdn_shielded=shielded,
            skipped_zones=tuple(skipped),
            ip_checked=ip_checked,
        )

    @classmethod
    def query_zone(cls, resolver: ResolverAdapter, query: str, deadline: Optional[Deadline]) -> str:
        answers = resolver.resolve_a(query, deadline)
        if answers is None:
            return ZoneAnswer.FAILED
        if not answers:
            return ZoneAnswer.CLEAN

        codes = []
        for answer in answers:
            try:
                codes.append(ipaddress.ip_address(answer))
            except ValueError:
                continue
        if codes and all(code in cls.REFUSAL_NETWORK for code in codes):
            return ZoneAnswer.FAILED
        return ZoneAnswer.LISTED if codes else ZoneAnswer.FAILED
