"""Live threat-intel correlation across URL, IOC and IP-reputation feeds."""

from typing import Optional

from ..core.outcomes import ThreatOutcome, ThreatVerdict
from .base import BaseCheck, CheckContext
from .upstream.base import UpstreamStatus


class ThreatIntelCheck(BaseCheck):
    """
    Correlate URLhaus, ThreatFox and (optionally) AbuseIPDB.

    Sources that were not configured, or had nothing to look up, are left
    out of the consulted count. A source that failed or ran out of budget
    still counts as consulted but not answered.
    """

    name = "threat_intel"
    title = "Threat Intelligence"
    description = "Malware, phishing and abuse reports linked to the domain"

    SOURCES = ("urlhaus", "threatfox", "abuseipdb")

    HIGH_IOC_HITS = 3
    HIGH_ABUSE_SCORE = 70
    ELEVATED_ABUSE_SCORE = 35

    def unknown(self) -> ThreatOutcome:
        return ThreatOutcome.unknown()

    def execute(self, context: CheckContext) -> ThreatOutcome:
        bundle = context.intel()

        url_hits = ioc_hits = 0
        abuse_score: Optional[int] = None
        answered = consulted = 0

        for source in self.SOURCES:
            result = bundle.get(source)
            if result.status in (UpstreamStatus.NOT_CONFIGURED, UpstreamStatus.SKIPPED):
                continue
            consulted += 1
            if not result.ok:
                continue
            answered += 1
            if source == "urlhaus":
                url_hits = int(result.data.get("url_hits", 0))
            elif source == "threatfox":
                ioc_hits = int(result.data.get("ioc_hits", 0))
            else:
                abuse_score = int(result.data.get("abuse_score", 0))

        if answered == 0:
            return ThreatOutcome(ThreatVerdict.UNKNOWN, sources_consulted=consulted)

        score = abuse_score or 0
        if url_hits > 0 or ioc_hits >= self.HIGH_IOC_HITS or score >= self.HIGH_ABUSE_SCORE:
            verdict = ThreatVerdict.HIGH_THREAT
        elif ioc_hits > 0 or score >= self.ELEVATED_ABUSE_SCORE:
            verdict = ThreatVerdict.ELEVATED
        else:
            verdict = ThreatVerdict.CLEAN

        return ThreatOutcome(
            verdict=verdict,
            url_hits=url_hits,
            ioc_hits=ioc_hits,
            abuse_score=abuse_score,
            sources_answered=answered,
            sources_consulted=consulted,
        )
