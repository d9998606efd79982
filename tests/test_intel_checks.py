"""Tests for the checks built on the upstream round."""

from typing import Dict, FrozenSet, Optional

import pytest

from surfacecheck.core.outcomes import (
    CertExposureVerdict,
    ExploitVerdict,
    HistoryVerdict,
    ServiceExposureVerdict,
    ThreatVerdict,
)
from surfacecheck.modules.base import AddressState
from surfacecheck.modules.cert_transparency import CertTransparencyCheck
from surfacecheck.modules.exploited_vulns import ExploitedVulnsCheck
from surfacecheck.modules.exposed_services import ExposedServicesCheck
from surfacecheck.modules.threat_intel import ThreatIntelCheck
from surfacecheck.modules.upstream import IntelBundle, UpstreamResult, UpstreamStatus
from surfacecheck.modules.web_history import WebHistoryCheck
from surfacecheck.signals import map_outcome


def ok(source: str, **data) -> UpstreamResult:
    return UpstreamResult(source, UpstreamStatus.OK, data)


def status(source: str, value: UpstreamStatus) -> UpstreamResult:
    return UpstreamResult(source, value)


class StubGateway:
    """Gateway returning a fixed round and catalog."""

    def __init__(self, results: Dict[str, UpstreamResult], catalog: Optional[FrozenSet[str]] = None):
        self.results = results
        self.catalog = catalog
        self.collect_calls = 0

    def collect(self, domain, ip, deadline):
        self.collect_calls += 1
        return IntelBundle(domain, ip, dict(self.results))

    def exploited_catalog(self, deadline):
        return self.catalog


def band(check, outcome) -> str:
    return map_outcome(check.name, check.title, outcome).band.value


class TestCertTransparencyCheck:
    @pytest.mark.parametrize("count,verdict", [
        (16, CertExposureVerdict.HIGH_EXPOSURE),
        (15, CertExposureVerdict.MONITORED),
        (6, CertExposureVerdict.MONITORED),
        (5, CertExposureVerdict.STABLE),
        (0, CertExposureVerdict.STABLE),
    ])
    def test_thresholds(self, config, make_context, count, verdict):
        gateway = StubGateway({"crtsh": ok("crtsh", name_count=count)})
        outcome = CertTransparencyCheck(config).execute(make_context(gateway=gateway))
        assert outcome.verdict is verdict

    @pytest.mark.parametrize("count,expected", [
        (16, ("red", "medium")),
        (6, ("amber", "medium")),
        (5, ("green", "high")),
    ])
    def test_bands(self, config, make_context, count, expected):
        check = CertTransparencyCheck(config)
        gateway = StubGateway({"crtsh": ok("crtsh", name_count=count)})

        signal = map_outcome(check.name, check.title, check.execute(make_context(gateway=gateway)))

        assert (signal.band.value, signal.confidence.value) == expected

    def test_budget_exhausted_is_gray_low(self, config, make_context):
        """Test a source at budget capacity yields exactly gray/low."""
        gateway = StubGateway({"crtsh": status("crtsh", UpstreamStatus.BUDGET_EXHAUSTED)})
        check = CertTransparencyCheck(config)

        signal = map_outcome(check.name, check.title, check.execute(make_context(gateway=gateway)))

        assert (signal.band.value, signal.confidence.value) == ("gray", "low")


class TestWebHistoryCheck:
    @pytest.mark.parametrize("count,verdict", [
        (51, HistoryVerdict.DEEP_HISTORY),
        (50, HistoryVerdict.VISIBLE),
        (21, HistoryVerdict.VISIBLE),
        (20, HistoryVerdict.MINIMAL),
    ])
    def test_thresholds(self, config, make_context, count, verdict):
        gateway = StubGateway({"wayback": ok("wayback", url_count=count)})
        outcome = WebHistoryCheck(config).execute(make_context(gateway=gateway))
        assert outcome.verdict is verdict

    @pytest.mark.parametrize("count,expected", [
        (200, "red"),
        (21, "amber"),
        (20, "green"),
    ])
    def test_bands(self, config, make_context, count, expected):
        check = WebHistoryCheck(config)
        gateway = StubGateway({"wayback": ok("wayback", url_count=count)})
        assert band(check, check.execute(make_context(gateway=gateway))) == expected

    def test_unavailable_is_unknown(self, config, make_context):
        gateway = StubGateway({"wayback": UpstreamResult.unavailable("wayback")})
        outcome = WebHistoryCheck(config).execute(make_context(gateway=gateway))
        assert outcome.verdict is HistoryVerdict.UNKNOWN


def threat_round(url_hits=0, ioc_hits=0, abuse=None, **overrides):
    results = {
        "urlhaus": ok("urlhaus", url_hits=url_hits),
        "threatfox": ok("threatfox", ioc_hits=ioc_hits),
        "abuseipdb": (
            ok("abuseipdb", abuse_score=abuse, total_reports=1)
            if abuse is not None
            else status("abuseipdb", UpstreamStatus.NOT_CONFIGURED)
        ),
    }
    results.update(overrides)
    return StubGateway(results)


class TestThreatIntelCheck:
    """Test combined threat-feed decisions."""

    def run(self, config, make_context, gateway):
        check = ThreatIntelCheck(config)
        outcome = check.execute(make_context(gateway=gateway))
        return outcome, map_outcome(check.name, check.title, outcome)

    def test_clean_all_sources(self, config, make_context):
        outcome, signal = self.run(config, make_context, threat_round())

        assert outcome.verdict is ThreatVerdict.CLEAN
        assert outcome.sources_consulted == 2
        assert (signal.band.value, signal.confidence.value) == ("green", "high")

    @pytest.mark.parametrize("kwargs", [{"url_hits": 1}, {"ioc_hits": 3}, {"abuse": 70}])
    def test_high_threat(self, config, make_context, kwargs):
        outcome, signal = self.run(config, make_context, threat_round(**kwargs))
        assert outcome.verdict is ThreatVerdict.HIGH_THREAT
        assert signal.band.value == "red"

    @pytest.mark.parametrize("kwargs", [{"ioc_hits": 1}, {"abuse": 35}, {"abuse": 69}])
    def test_elevated(self, config, make_context, kwargs):
        outcome, signal = self.run(config, make_context, threat_round(**kwargs))
        assert outcome.verdict is ThreatVerdict.ELEVATED
        assert signal.band.value == "amber"

    def test_low_abuse_score_is_clean(self, config, make_context):
        outcome, _ = self.run(config, make_context, threat_round(abuse=10))
        assert outcome.verdict is ThreatVerdict.CLEAN
        assert outcome.sources_consulted == 3

    def test_partial_answers_lower_confidence(self, config, make_context):
        gateway = threat_round(threatfox=UpstreamResult.unavailable("threatfox"))
        outcome, signal = self.run(config, make_context, gateway)

        assert outcome.verdict is ThreatVerdict.CLEAN
        assert signal.confidence.value == "medium"

    def test_no_answers_is_unknown(self, config, make_context):
        gateway = threat_round(
            urlhaus=status("urlhaus", UpstreamStatus.BUDGET_EXHAUSTED),
            threatfox=UpstreamResult.unavailable("threatfox"),
        )
        outcome, signal = self.run(config, make_context, gateway)

        assert outcome.verdict is ThreatVerdict.UNKNOWN
        assert signal.band.value == "gray"


class TestExposedServicesCheck:
    @pytest.mark.parametrize("ports,verdict", [
        (list(range(8)), ServiceExposureVerdict.BROAD),
        (list(range(3)), ServiceExposureVerdict.MODERATE),
        ([80, 443], ServiceExposureVerdict.MINIMAL),
        ([], ServiceExposureVerdict.MINIMAL),
    ])
    def test_thresholds(self, config, make_context, ports, verdict):
        gateway = StubGateway({"internetdb": ok("internetdb", ports=ports, vulns=[])})
        outcome = ExposedServicesCheck(config).execute(make_context(gateway=gateway))
        assert outcome.verdict is verdict

    def test_no_address_is_unknown_without_lookup(self, config, make_context):
        gateway = StubGateway({})
        context = make_context(ip=None, state=AddressState.ABSENT, gateway=gateway)

        outcome = ExposedServicesCheck(config).execute(context)

        assert outcome.verdict is ServiceExposureVerdict.UNKNOWN
        assert gateway.collect_calls == 0


class TestExploitedVulnsCheck:
    """Test KEV correlation."""

    def run(self, config, make_context, vulns, catalog):
        gateway = StubGateway({"internetdb": ok("internetdb", ports=[443], vulns=vulns)}, catalog)
        check = ExploitedVulnsCheck(config)
        outcome = check.execute(make_context(gateway=gateway))
        return outcome, map_outcome(check.name, check.title, outcome)

    def test_overlap_is_red_whatever_count(self, config, make_context):
        outcome, signal = self.run(config, make_context, ["CVE-2021-44228"], frozenset({"CVE-2021-44228"}))

        assert outcome.verdict is ExploitVerdict.ACTIVELY_EXPLOITED
        assert outcome.exploited_count == 1
        assert signal.band.value == "red"

    def test_no_overlap_is_theoretical(self, config, make_context):
        outcome, signal = self.run(config, make_context, ["CVE-2000-0001", "CVE-2000-0002"], frozenset({"CVE-2021-44228"}))

        assert outcome.verdict is ExploitVerdict.THEORETICAL
        assert outcome.cve_count == 2
        assert signal.band.value == "amber"

    def test_catalog_unavailable_is_gray_low(self, config, make_context):
        outcome, signal = self.run(config, make_context, ["CVE-2000-0001"], None)

        assert outcome.verdict is ExploitVerdict.UNKNOWN
        assert (signal.band.value, signal.confidence.value) == ("gray", "low")

    def test_no_cves(self, config, make_context):
        outcome, signal = self.run(config, make_context, [], None)

        assert outcome.verdict is ExploitVerdict.NONE_KNOWN
        assert signal.band.value == "green"

    def test_feed_unavailable_is_unknown(self, config, make_context):
        gateway = StubGateway({"internetdb": UpstreamResult.unavailable("internetdb")})
        outcome = ExploitedVulnsCheck(config).execute(make_context(gateway=gateway))
        assert outcome.verdict is ExploitVerdict.UNKNOWN
