"""Raw per-check outcomes.

Each check has its own verdict enum and a frozen outcome dataclass. Every
verdict enum carries an explicit UNKNOWN member for "could not check",
which is never the same thing as a negative finding.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class EmailVerdict(Enum):
    PROTECTED = "protected"
    PARTIAL = "partial"
    NOT_PROTECTED = "not_protected"
    NOT_APPLICABLE = "not_applicable"
    UNKNOWN = "unknown"


class SpfEnforcement(Enum):
    STRICT = "strict"
    SOFT = "soft"
    NEUTRAL = "neutral"
    NONE = "none"
    UNKNOWN = "unknown"


class DmarcPolicy(Enum):
    REJECT = "reject"
    QUARANTINE = "quarantine"
    NONE = "none"
    MISSING = "missing"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class EmailOutcome:
    verdict: EmailVerdict
    spf: SpfEnforcement = SpfEnforcement.UNKNOWN
    dmarc_policy: DmarcPolicy = DmarcPolicy.UNKNOWN
    risk_level: int = 0

    @classmethod
    def unknown(cls) -> "EmailOutcome":
        return cls(EmailVerdict.UNKNOWN)


class BlacklistVerdict(Enum):
    CLEAN = "clean"
    LISTED = "listed"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class BlacklistOutcome:
    verdict: BlacklistVerdict
    listed_count: int = 0
    zones_checked: int = 0
    zones_failed: int = 0
    cdn_shielded: bool = False
    skipped_zones: Tuple[str, ...] = ()
    ip_checked: bool = True

    @classmethod
    def unknown(cls) -> "BlacklistOutcome":
        return cls(BlacklistVerdict.UNKNOWN)


class TyposquatVerdict(Enum):
    SAFE = "safe"
    RISK_DETECTED = "risk_detected"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TyposquatOutcome:
    verdict: TyposquatVerdict
    count: int = 0
    checked: int = 0
    failed: int = 0

    @classmethod
    def unknown(cls) -> "TyposquatOutcome":
        return cls(TyposquatVerdict.UNKNOWN)


class DnsHardeningVerdict(Enum):
    HARDENED = "hardened"
    MISSING = "missing"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DnsHardeningOutcome:
    verdict: DnsHardeningVerdict
    caa_records: int = 0

    @classmethod
    def unknown(cls) -> "DnsHardeningOutcome":
        return cls(DnsHardeningVerdict.UNKNOWN)


class CertExposureVerdict(Enum):
    HIGH_EXPOSURE = "high_exposure"
    MONITORED = "monitored"
    STABLE = "stable"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CertExposureOutcome:
    verdict: CertExposureVerdict
    name_count: int = 0

    @classmethod
    def unknown(cls) -> "CertExposureOutcome":
        return cls(CertExposureVerdict.UNKNOWN)


class HistoryVerdict(Enum):
    DEEP_HISTORY = "deep_history"
    VISIBLE = "visible"
    MINIMAL = "minimal"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class HistoryOutcome:
    verdict: HistoryVerdict
    url_count: int = 0

    @classmethod
    def unknown(cls) -> "HistoryOutcome":
        return cls(HistoryVerdict.UNKNOWN)


class ThreatVerdict(Enum):
    HIGH_THREAT = "high_threat"
    ELEVATED = "elevated"
    CLEAN = "clean"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ThreatOutcome:
    verdict: ThreatVerdict
    url_hits: int = 0
    ioc_hits: int = 0
    abuse_score: Optional[int] = None
    sources_answered: int = 0
    sources_consulted: int = 0

    @classmethod
    def unknown(cls) -> "ThreatOutcome":
        return cls(ThreatVerdict.UNKNOWN)


class ServiceExposureVerdict(Enum):
    BROAD = "broad"
    MODERATE = "moderate"
    MINIMAL = "minimal"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ServiceExposureOutcome:
    verdict: ServiceExposureVerdict
    open_ports: int = 0

    @classmethod
    def unknown(cls) -> "ServiceExposureOutcome":
        return cls(ServiceExposureVerdict.UNKNOWN)


class ExploitVerdict(Enum):
    ACTIVELY_EXPLOITED = "actively_exploited"
    THEORETICAL = "theoretical"
    NONE_KNOWN = "none_known"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ExploitOutcome:
    verdict: ExploitVerdict
    cve_count: int = 0
    exploited_count: int = 0

    @classmethod
    def unknown(cls) -> "ExploitOutcome":
        return cls(ExploitVerdict.UNKNOWN)
