"""Public signal and report data structures for Surface Check."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List


class Band(Enum):
    """Coarse graded severity of a public signal."""
    GREEN = "green"
    AMBER = "amber"
    RED = "red"
    GRAY = "gray"


class SignalSeverity(Enum):
    """Presentation severity, paired one-to-one with Band."""
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    NEUTRAL = "neutral"

    @classmethod
    def for_band(cls, band: Band) -> "SignalSeverity":
        return _BAND_SEVERITY[band]


_BAND_SEVERITY = {
    Band.GREEN: SignalSeverity.SUCCESS,
    Band.AMBER: SignalSeverity.WARNING,
    Band.RED: SignalSeverity.ERROR,
    Band.GRAY: SignalSeverity.NEUTRAL,
}


class Confidence(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class OverallVerdict(Enum):
    SECURE = "secure"
    ATTENTION = "attention"
    RISK = "risk"


class Pressure(Enum):
    """Aggregate risk level derived from weighted signal bands."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class PublicSignal:
    """A public-safe, graded teaser for one check."""
    check: str
    title: str
    verdict: str
    band: Band
    severity: SignalSeverity
    teaser: str
    confidence: Confidence

    def __post_init__(self):
        if self.severity is not SignalSeverity.for_band(self.band):
            raise ValueError(f"Severity {self.severity.value} does not match band {self.band.value}")
        is_gray = self.band is Band.GRAY
        if is_gray != (self.confidence is Confidence.LOW and self.verdict == "unknown"):
            raise ValueError("Gray band is reserved for unknown outcomes with low confidence")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "check": self.check,
            "title": self.title,
            "verdict": self.verdict,
            "band": self.band.value,
            "severity": self.severity.value,
            "teaser": self.teaser,
            "confidence": self.confidence.value,
        }


@dataclass
class VerdictReport:
    """Complete response for one quick check."""
    domain: str
    overall_verdict: OverallVerdict
    pressure: Pressure
    risk_total: int
    signals: List[PublicSignal] = field(default_factory=list)
    locked_checks: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def signal(self, check: str) -> PublicSignal:
        """Look up the signal for a check by name."""
        for signal in self.signals:
            if signal.check == check:
                return signal
        raise KeyError(check)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "domain": self.domain,
            "timestamp": self.timestamp.isoformat(),
            "overallVerdict": self.overall_verdict.value,
            "pressure": self.pressure.value,
            "riskTotal": self.risk_total,
            "signals": [s.to_dict() for s in self.signals],
            "lockedChecks": list(self.locked_checks),
        }
