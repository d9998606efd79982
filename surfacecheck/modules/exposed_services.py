"""Exposed-service breadth from passive internet-scan data."""

from ..core.outcomes import ServiceExposureOutcome, ServiceExposureVerdict
from .base import AddressState, BaseCheck, CheckContext


class ExposedServicesCheck(BaseCheck):
    name = "exposed_services"
    title = "Exposed Services"
    description = "Breadth of open ports seen on the primary address"

    BROAD_AT = 8
    MODERATE_AT = 3

    def unknown(self) -> ServiceExposureOutcome:
        return ServiceExposureOutcome.unknown()

    def execute(self, context: CheckContext) -> ServiceExposureOutcome:
        if context.address_state != AddressState.RESOLVED:
            return self.unknown()

        result = context.intel().get("internetdb")
        if not result.ok:
            return self.unknown()

        open_ports = len(result.data.get("ports", []))
        if open_ports >= self.BROAD_AT:
            verdict = ServiceExposureVerdict.BROAD
        elif open_ports >= self.MODERATE_AT:
            verdict = ServiceExposureVerdict.MODERATE
        else:
            verdict = ServiceExposureVerdict.MINIMAL
        return ServiceExposureOutcome(verdict, open_ports=open_ports)
