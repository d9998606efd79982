"""Email-authentication posture (MX, SPF, DMARC)."""

from typing import Dict, List, Optional

from ..core.outcomes import DmarcPolicy, EmailOutcome, EmailVerdict, SpfEnforcement
from .base import BaseCheck, CheckContext


class EmailSecurityCheck(BaseCheck):
    """
    Judge how well the domain's mail is protected against spoofing.

    Only the DMARC ``p=`` tag decides enforcement; ``sp=`` (subdomain
    policy) is parsed but never mistaken for it.
    """

    name = "email_security"
    title = "Email Spoofing Protection"
    description = "SPF and DMARC posture for domains that receive mail"

    def unknown(self) -> EmailOutcome:
        return EmailOutcome.unknown()

    def execute(self, context: CheckContext) -> EmailOutcome:
        resolver, deadline = context.resolver, context.deadline

        mx = resolver.resolve_mx(context.domain, deadline)
        if mx is None:
            return self.unknown()
        if not mx:
            return EmailOutcome(EmailVerdict.NOT_APPLICABLE)

        txt = resolver.resolve_txt(context.domain, deadline)
        dmarc_txt = resolver.resolve_txt(f"_dmarc.{context.domain}", deadline)
        if dmarc_txt is None:
            return self.unknown()

        spf = self.spf_enforcement(txt)
        policy = self.dmarc_policy(dmarc_txt)

        if policy is DmarcPolicy.MISSING and spf is SpfEnforcement.UNKNOWN:
            return self.unknown()

        return self.classify(spf, policy)

    @staticmethod
    def classify(spf: SpfEnforcement, policy: DmarcPolicy) -> EmailOutcome:
        """Combine SPF enforcement and DMARC policy into an outcome."""
        if policy in (DmarcPolicy.REJECT, DmarcPolicy.QUARANTINE):
            return EmailOutcome(EmailVerdict.PROTECTED, spf, policy, risk_level=0)
        if policy is DmarcPolicy.NONE:
            return EmailOutcome(EmailVerdict.NOT_PROTECTED, spf, policy, risk_level=3)
        if spf is SpfEnforcement.STRICT:
            return EmailOutcome(EmailVerdict.PARTIAL, spf, policy, risk_level=1)
        if spf in (SpfEnforcement.SOFT, SpfEnforcement.NEUTRAL):
            return EmailOutcome(EmailVerdict.PARTIAL, spf, policy, risk_level=2)
        return EmailOutcome(EmailVerdict.NOT_PROTECTED, spf, policy, risk_level=3)

    @staticmethod
    def spf_enforcement(records: Optional[List[str]]) -> SpfEnforcement:
        if records is None:
            return SpfEnforcement.UNKNOWN
        spf = next((r for r in records if r.lower().startswith("v=spf1")), None)
        if spf is None:
            return SpfEnforcement.NONE

        mechanisms = spf.lower().split()
        if "-all" in mechanisms:
            return SpfEnforcement.STRICT
        if "~all" in mechanisms:
            return SpfEnforcement.SOFT
        if "?all" in mechanisms:
            return SpfEnforcement.NEUTRAL
        return SpfEnforcement.NONE

    @classmethod
    def dmarc_policy(cls, records: List[str]) -> DmarcPolicy:
        record = next((r for r in records if r.lower().startswith("v=dmarc1")), None)
        if record is None:
            return DmarcPolicy.MISSING

        tags = cls.parse_tags(record)
        return {
            "reject": DmarcPolicy.REJECT,
            "quarantine": DmarcPolicy.QUARANTINE,
            "none": DmarcPolicy.NONE,
        }.get(tags.get("p", ""), DmarcPolicy.MISSING)

    @staticmethod
    def parse_tags(record: str) -> Dict[str, str]:
        """Parse ``k=v; k=v`` DMARC tag lists (keys and values lower-cased)."""
        tags = {}
        for part in record.split(";"):
            key, sep, value = part.partition("=")
            if sep:
                tags[key.strip().lower()] = value.strip().lower()
        return tags
