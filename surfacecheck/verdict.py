"""Verdict aggregation over mapped public signals."""

from typing import Iterable, Tuple

from .core.domain import Band, OverallVerdict, Pressure, PublicSignal

BAND_WEIGHTS = {
    Band.GRAY: 0,
    Band.GREEN: 0,
    Band.AMBER: 1,
    Band.RED: 2,
}

RISK_THRESHOLD = 7
ATTENTION_THRESHOLD = 3


def risk_total(signals: Iterable[PublicSignal]) -> int:
    return sum(BAND_WEIGHTS[s.band] for s in signals)


def aggregate(signals: Iterable[PublicSignal]) -> Tuple[OverallVerdict, Pressure, int]:
    """
    Combine signals into an overall verdict.

    Unknown (gray) signals weigh nothing: missing data never raises or
    lowers the verdict.

    Returns:
        Tuple of (overall verdict, pressure, weighted total)
    """
    total = risk_total(signals)
    if total >= RISK_THRESHOLD:
        return OverallVerdict.RISK, Pressure.HIGH, total
    if total >= ATTENTION_THRESHOLD:
        return OverallVerdict.ATTENTION, Pressure.MEDIUM, total
    return OverallVerdict.SECURE, Pressure.LOW, total
