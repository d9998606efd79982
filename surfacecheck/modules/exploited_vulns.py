"""Known-exploited-vulnerability correlation."""

from ..core.outcomes import ExploitOutcome, ExploitVerdict
from .base import AddressState, BaseCheck, CheckContext


class ExploitedVulnsCheck(BaseCheck):
    """
    Compare CVEs advertised for the primary address with the KEV catalog.

    An overlap is decisive whatever the raw CVE count. Advertised CVEs that
    cannot be compared, because the catalog is unavailable or over budget,
    give an unknown outcome.
    """

    name = "exploited_vulns"
    title = "Exploited Vulnerabilities"
    description = "Advertised CVEs that are known to be exploited in the wild"

    def unknown(self) -> ExploitOutcome:
        return ExploitOutcome.unknown()

    def execute(self, context: CheckContext) -> ExploitOutcome:
        if context.address_state != AddressState.RESOLVED:
            return self.unknown()

        result = context.intel().get("internetdb")
        if not result.ok:
            return self.unknown()

        cves = set(result.data.get("vulns", []))
        if not cves:
            return ExploitOutcome(ExploitVerdict.NONE_KNOWN)

        catalog = context.gateway.exploited_catalog(context.deadline)
        if catalog is None:
            return self.unknown()

        exploited = cves & catalog
        if exploited:
            return ExploitOutcome(ExploitVerdict.ACTIVELY_EXPLOITED, len(cves), len(exploited))
        return ExploitOutcome(ExploitVerdict.THEORETICAL, cve_count=len(cves))
