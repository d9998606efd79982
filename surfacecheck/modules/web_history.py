"""Historical web-archive footprint."""

from ..core.outcomes import HistoryOutcome, HistoryVerdict
from .base import BaseCheck, CheckContext


class WebHistoryCheck(BaseCheck):
    name = "web_history"
    title = "Historical Footprint"
    description = "Archived URLs that may expose forgotten content"

    DEEP_ABOVE = 50
    VISIBLE_ABOVE = 20

    def unknown(self) -> HistoryOutcome:
        return HistoryOutcome.unknown()

    def execute(self, context: CheckContext) -> HistoryOutcome:
        result = context.intel().get("wayback")
        if not result.ok:
            return self.unknown()

        count = int(result.data.get("url_count", 0))
        if count > self.DEEP_ABOVE:
            verdict = HistoryVerdict.DEEP_HISTORY
        elif count > self.VISIBLE_ABOVE:
            verdict = HistoryVerdict.VISIBLE
        else:
            verdict = HistoryVerdict.MINIMAL
        return HistoryOutcome(verdict, url_count=count)
