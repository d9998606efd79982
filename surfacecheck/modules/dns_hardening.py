"""DNS hardening: CAA records restricting certificate issuance."""

from ..core.outcomes import DnsHardeningOutcome, DnsHardeningVerdict
from .base import BaseCheck, CheckContext


class DnsHardeningCheck(BaseCheck):
    name = "dns_hardening"
    title = "DNS Hardening"
    description = "CAA records limiting which authorities may issue certificates"

    def unknown(self) -> DnsHardeningOutcome:
        return DnsHardeningOutcome.unknown()

    def execute(self, context: CheckContext) -> DnsHardeningOutcome:
        records = context.resolver.resolve_caa(context.domain, context.deadline)
        if records is None:
            return self.unknown()
        if not records:
            return DnsHardeningOutcome(DnsHardeningVerdict.MISSING)
        return DnsHardeningOutcome(DnsHardeningVerdict.HARDENED, caa_records=len(records))
