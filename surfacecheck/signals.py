"""Signal mapping: raw check outcomes to public-safe graded signals.

Every mapper is a lookup in a per-verdict table followed by at most a
confidence (or band) adjustment drawn from the same outcome. Tables are
checked for totality at import time, so a verdict added to an outcome
enum without a mapping fails loudly instead of defaulting to a band.

Teasers are fixed strings: they never carry hostnames, zone names,
counts or any other raw evidence.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Type

from .core.domain import Band, Confidence, PublicSignal, SignalSeverity
from .core.outcomes import (
    BlacklistOutcome,
    BlacklistVerdict,
    CertExposureOutcome,
    CertExposureVerdict,
    DnsHardeningOutcome,
    DnsHardeningVerdict,
    EmailOutcome,
    EmailVerdict,
    ExploitOutcome,
    ExploitVerdict,
    HistoryOutcome,
    HistoryVerdict,
    ServiceExposureOutcome,
    ServiceExposureVerdict,
    ThreatOutcome,
    ThreatVerdict,
    TyposquatOutcome,
    TyposquatVerdict,
)


@dataclass(frozen=True)
class SignalRule:
    band: Band
    teaser: str
    confidence: Confidence = Confidence.HIGH


UNKNOWN_TEASER = "This check could not be completed right now"

_UNKNOWN_RULE = SignalRule(Band.GRAY, UNKNOWN_TEASER, Confidence.LOW)


def _require_total(table: Dict[Enum, SignalRule], verdicts: Type[Enum]) -> Dict[Enum, SignalRule]:
    """Fail at import unless ``table`` maps every verdict, with gray reserved for UNKNOWN."""
    missing = [v.name for v in verdicts if v not in table]
    if missing:
        raise RuntimeError(f"{verdicts.__name__} has no signal rule for: {', '.join(missing)}")
    for verdict, rule in table.items():
        if (rule.band is Band.GRAY) != (verdict.value == "unknown"):
            raise RuntimeError(f"{verdicts.__name__}.{verdict.name} must map to gray only when unknown")
    return table


EMAIL_RULES = _require_total({
    EmailVerdict.PROTECTED: SignalRule(Band.GREEN, "Email spoofing protection is enforced"),
    EmailVerdict.PARTIAL: SignalRule(Band.AMBER, "Spoofing protection is only partly enforced", Confidence.MEDIUM),
    EmailVerdict.NOT_PROTECTED: SignalRule(Band.RED, "Mail sent in this domain's name is not protected"),
    EmailVerdict.NOT_APPLICABLE: SignalRule(Band.GREEN, "Domain does not appear to receive mail", Confidence.MEDIUM),
    EmailVerdict.UNKNOWN: _UNKNOWN_RULE,
}, EmailVerdict)

BLACKLIST_RULES = _require_total({
    BlacklistVerdict.LISTED: SignalRule(Band.RED, "Listed on one or more reputation blocklists"),
    BlacklistVerdict.CLEAN: SignalRule(Band.GREEN, "No blocklist listings found"),
    BlacklistVerdict.UNKNOWN: _UNKNOWN_RULE,
}, BlacklistVerdict)

TYPOSQUAT_RULES = _require_total({
    TyposquatVerdict.RISK_DETECTED: SignalRule(Band.AMBER, "Look-alike domains are already active", Confidence.MEDIUM),
    TyposquatVerdict.SAFE: SignalRule(Band.GREEN, "No active look-alike domains spotted", Confidence.MEDIUM),
    TyposquatVerdict.UNKNOWN: _UNKNOWN_RULE,
}, TyposquatVerdict)

DNS_HARDENING_RULES = _require_total({
    DnsHardeningVerdict.HARDENED: SignalRule(Band.GREEN, "Certificate issuance is restricted"),
    DnsHardeningVerdict.MISSING: SignalRule(Band.AMBER, "Any authority may issue certificates for this domain"),
    DnsHardeningVerdict.UNKNOWN: _UNKNOWN_RULE,
}, DnsHardeningVerdict)

CERT_EXPOSURE_RULES = _require_total({
    CertExposureVerdict.HIGH_EXPOSURE: SignalRule(
        Band.RED, "Certificate logs reveal a wide set of host names", Confidence.MEDIUM
    ),
    CertExposureVerdict.MONITORED: SignalRule(
        Band.AMBER, "Certificate logs show a moderate host footprint", Confidence.MEDIUM
    ),
    CertExposureVerdict.STABLE: SignalRule(Band.GREEN, "Certificate footprint is small"),
    CertExposureVerdict.UNKNOWN: _UNKNOWN_RULE,
}, CertExposureVerdict)

HISTORY_RULES = _require_total({
    HistoryVerdict.DEEP_HISTORY: SignalRule(
        Band.RED, "Archives hold a deep history of past content", Confidence.MEDIUM
    ),
    HistoryVerdict.VISIBLE: SignalRule(
        Band.AMBER, "Archived history is visible to anyone", Confidence.MEDIUM
    ),
    HistoryVerdict.MINIMAL: SignalRule(Band.GREEN, "Little archived history"),
    HistoryVerdict.UNKNOWN: _UNKNOWN_RULE,
}, HistoryVerdict)

THREAT_RULES = _require_total({
    ThreatVerdict.HIGH_THREAT: SignalRule(Band.RED, "Linked to active malicious activity"),
    ThreatVerdict.ELEVATED: SignalRule(Band.AMBER, "Some threat reports reference this domain", Confidence.MEDIUM),
    ThreatVerdict.CLEAN: SignalRule(Band.GREEN, "No live threat reports found"),
    ThreatVerdict.UNKNOWN: _UNKNOWN_RULE,
}, ThreatVerdict)

SERVICE_EXPOSURE_RULES = _require_total({
    ServiceExposureVerdict.BROAD: SignalRule(Band.RED, "Many services are reachable from the internet"),
    ServiceExposureVerdict.MODERATE: SignalRule(Band.AMBER, "Several services are reachable from the internet"),
    ServiceExposureVerdict.MINIMAL: SignalRule(Band.GREEN, "Few services are reachable from the internet"),
    ServiceExposureVerdict.UNKNOWN: _UNKNOWN_RULE,
}, ServiceExposureVerdict)

EXPLOIT_RULES = _require_total({
    ExploitVerdict.ACTIVELY_EXPLOITED: SignalRule(Band.RED, "Exposed software has vulnerabilities exploited in the wild"),
    ExploitVerdict.THEORETICAL: SignalRule(Band.AMBER, "Exposed software has known vulnerabilities", Confidence.MEDIUM),
    ExploitVerdict.NONE_KNOWN: SignalRule(Band.GREEN, "No known vulnerabilities advertised"),
    ExploitVerdict.UNKNOWN: _UNKNOWN_RULE,
}, ExploitVerdict)


def map_email(outcome: EmailOutcome) -> SignalRule:
    return EMAIL_RULES[outcome.verdict]


def map_blacklist(outcome: BlacklistOutcome) -> SignalRule:
    rule = BLACKLIST_RULES[outcome.verdict]
    if outcome.verdict is BlacklistVerdict.CLEAN:
        if outcome.cdn_shielded:
            return SignalRule(Band.GREEN, "No blocklist listings found for this CDN-hosted domain", Confidence.MEDIUM)
        if outcome.zones_failed or not outcome.ip_checked:
            return SignalRule(rule.band, rule.teaser, Confidence.MEDIUM)
    return rule


def map_typosquat(outcome: TyposquatOutcome) -> SignalRule:
    rule = TYPOSQUAT_RULES[outcome.verdict]
    if outcome.verdict is TyposquatVerdict.RISK_DETECTED and outcome.count >= 3:
        return SignalRule(Band.RED, "Multiple look-alike domains are already active", Confidence.MEDIUM)
    return rule


def map_dns_hardening(outcome: DnsHardeningOutcome) -> SignalRule:
    return DNS_HARDENING_RULES[outcome.verdict]


def map_cert_exposure(outcome: CertExposureOutcome) -> SignalRule:
    return CERT_EXPOSURE_RULES[outcome.verdict]


def map_history(outcome: HistoryOutcome) -> SignalRule:
    return HISTORY_RULES[outcome.verdict]


def map_threat(outcome: ThreatOutcome) -> SignalRule:
    rule = THREAT_RULES[outcome.verdict]
    if outcome.verdict is ThreatVerdict.CLEAN and outcome.sources_answered < outcome.sources_consulted:
        return SignalRule(rule.band, rule.teaser, Confidence.MEDIUM)
    return rule


def map_service_exposure(outcome: ServiceExposureOutcome) -> SignalRule:
    return SERVICE_EXPOSURE_RULES[outcome.verdict]


def map_exploit(outcome: ExploitOutcome) -> SignalRule:
    return EXPLOIT_RULES[outcome.verdict]


MAPPERS: Dict[type, Callable[[Any], SignalRule]] = {
    EmailOutcome: map_email,
    BlacklistOutcome: map_blacklist,
    TyposquatOutcome: map_typosquat,
    DnsHardeningOutcome: map_dns_hardening,
    CertExposureOutcome: map_cert_exposure,
    HistoryOutcome: map_history,
    ThreatOutcome: map_threat,
    ServiceExposureOutcome: map_service_exposure,
    ExploitOutcome: map_exploit,
}


def map_outcome(check: str, title: str, outcome: Any) -> PublicSignal:
    """
    Map one raw outcome to its public signal.

    Args:
        check: Check name
        title: Public check title
        outcome: The check's raw outcome dataclass

    Returns:
        PublicSignal derived from ``outcome`` alone
    """
    try:
        mapper = MAPPERS[type(outcome)]
    except KeyError:
        raise TypeError(f"No signal mapper for {type(outcome).__name__}")

    rule = mapper(outcome)
    return PublicSignal(
        check=check,
        title=title,
        verdict=outcome.verdict.value,
        band=rule.band,
        severity=SignalSeverity.for_band(rule.band),
        teaser=rule.teaser,
        confidence=rule.confidence,
    )
