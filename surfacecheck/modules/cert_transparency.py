"""Certificate-transparency exposure."""

from ..core.outcomes import CertExposureOutcome, CertExposureVerdict
from .base import BaseCheck, CheckContext


class CertTransparencyCheck(BaseCheck):
    """Count the distinct names certificate logs reveal for the domain."""

    name = "cert_transparency"
    title = "Certificate Exposure"
    description = "Host names disclosed through Certificate Transparency logs"

    HIGH_EXPOSURE_ABOVE = 15
    MONITORED_ABOVE = 5

    def unknown(self) -> CertExposureOutcome:
        return CertExposureOutcome.unknown()

    def execute(self, context: CheckContext) -> CertExposureOutcome:
        result = context.intel().get("crtsh")
        if not result.ok:
            return self.unknown()

        count = int(result.data.get("name_count", 0))
        if count > self.HIGH_EXPOSURE_ABOVE:
            verdict = CertExposureVerdict.HIGH_EXPOSURE
        elif count > self.MONITORED_ABOVE:
            verdict = CertExposureVerdict.MONITORED
        else:
            verdict = CertExposureVerdict.STABLE
        return CertExposureOutcome(verdict, name_count=count)
