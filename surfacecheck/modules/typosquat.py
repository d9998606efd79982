"""Typosquat exposure: do obvious look-alike domains resolve?"""

from typing import List

from ..core.outcomes import TyposquatOutcome, TyposquatVerdict
from .base import BaseCheck, CheckContext


class TyposquatCheck(BaseCheck):
    """Resolve a handful of deterministic look-alikes of the registrable name."""

    name = "typosquat"
    title = "Typosquat Exposure"
    description = "Look-alike domains that already resolve"

    MAX_CANDIDATES = 6
    STOP_AFTER = 3

    def unknown(self) -> TyposquatOutcome:
        return TyposquatOutcome.unknown()

    @classmethod
    def candidates(cls, domain: str) -> List[str]:
        """
        Generate look-alike domains in a fixed order.

        The transforms apply to the label left of the public suffix; the
        suffix is taken to be the last label.
        """
        name, _, suffix = domain.rpartition(".")
        label_prefix, _, registrable = name.rpartition(".")
        if not registrable:
            return []

        variants = [
            registrable + "s",
            registrable[:-1],
            "ww" + registrable,
            registrable.replace("a", "4"),
            registrable.replace("o", "0"),
            registrable.replace("i", "1"),
        ]

        prefix = f"{label_prefix}." if label_prefix else ""
        result: List[str] = []
        for variant in variants:
            if not variant or variant.startswith("-") or variant.endswith("-"):
                continue
            candidate = f"{prefix}{variant}.{suffix}"
            if candidate != domain and candidate not in result:
                result.append(candidate)
        return result[:cls.MAX_CANDIDATES]

    def execute(self, context: CheckContext) -> TyposquatOutcome:
        candidates = self.candidates(context.domain)
        if not candidates:
            return TyposquatOutcome(TyposquatVerdict.SAFE)

        resolving = checked = failed = 0
        for candidate in candidates:
            if context.deadline.expired:
                break
            answers = context.resolver.resolve_a(candidate, context.deadline)
            checked += 1
            if answers is None:
                failed += 1
            elif answers:
                resolving += 1
                if resolving >= self.STOP_AFTER:
                    break

        if checked == 0 or failed == checked:
            return TyposquatOutcome(TyposquatVerdict.UNKNOWN, checked=checked, failed=failed)

        verdict = TyposquatVerdict.RISK_DETECTED if resolving else TyposquatVerdict.SAFE
        return TyposquatOutcome(verdict, count=resolving, checked=checked, failed=failed)
