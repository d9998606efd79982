"""End-to-end tests for the scanner engine on fakes."""

import time

import pytest

from surfacecheck.core.domain import OverallVerdict, Pressure
from surfacecheck.core.errors import InvalidDomain, RateLimited
from surfacecheck.modules.base import AddressState
from surfacecheck.modules.dns_hardening import DnsHardeningCheck

from conftest import FakeResolver, FakeResponse, healthy_records


CHECK_NAMES = [
    "email_security",
    "blacklist",
    "typosquat",
    "dns_hardening",
    "cert_transparency",
    "web_history",
    "threat_intel",
    "exposed_services",
    "exploited_vulns",
]


class TestAssess:
    """Test full quick checks."""

    def test_healthy_domain_is_secure(self, make_scanner):
        report = make_scanner().assess("https://Example.com/")

        assert report.domain == "example.com"
        assert [s.check for s in report.signals] == CHECK_NAMES
        assert all(s.band.value == "green" for s in report.signals)
        assert report.overall_verdict is OverallVerdict.SECURE
        assert report.pressure is Pressure.LOW
        assert report.risk_total == 0
        assert report.locked_checks == ["Port Scan", "API Review"]

    def test_report_serialization(self, make_scanner):
        data = make_scanner().assess("example.com").to_dict()

        assert data["overallVerdict"] == "secure"
        assert data["pressure"] == "low"
        assert data["riskTotal"] == 0
        assert len(data["signals"]) == 9
        assert data["timestamp"].endswith("+00:00")

    def test_invalid_domain_raises(self, make_scanner):
        with pytest.raises(InvalidDomain):
            make_scanner().assess("localhost")

    def test_second_request_served_from_cache(self, make_scanner, session):
        """Test identical signals within the TTL without new upstream calls."""
        scanner = make_scanner()

        first = scanner.assess("example.com")
        calls_after_first = len(session.calls)
        second = scanner.assess("example.com")

        assert [s.to_dict() for s in first.signals] == [s.to_dict() for s in second.signals]
        assert len(session.calls) == calls_after_first

    def test_cache_expires(self, make_scanner, session, clock):
        scanner = make_scanner()
        scanner.assess("example.com")

        clock.advance(301)
        scanner.assess("example.com")

        assert session.count("crt.sh") == 2

    def test_budget_exhaustion_degrades_to_gray(self, make_config, make_scanner):
        config = make_config({"upstream_budgets": {"crtsh": 0}})
        report = make_scanner(config=config).assess("example.com")

        signal = report.signal("cert_transparency")
        assert (signal.band.value, signal.confidence.value) == ("gray", "low")
        assert report.signal("web_history").band.value == "green"

    def test_catalog_budget_exhaustion_degrades_to_gray(self, make_config, make_scanner, session):
        session.routes["internetdb.shodan.io"] = FakeResponse(
            payload={"ip": "93.184.216.34", "ports": [443], "vulns": ["CVE-2021-44228"]}
        )
        config = make_config({"upstream_budgets": {"kev": 0}})

        report = make_scanner(config=config).assess("example.com")

        signal = report.signal("exploited_vulns")
        assert (signal.band.value, signal.confidence.value) == ("gray", "low")
        assert report.risk_total == 0
        assert session.count("known_exploited_vulnerabilities") == 0

    def test_risky_domain(self, make_scanner, session):
        records = healthy_records()
        records[("_dmarc.example.com", "TXT")] = ["v=DMARC1; p=none"]
        records[("34.216.184.93.zen.spamhaus.org", "A")] = ["127.0.0.2"]
        records[("example.com", "CAA")] = []
        session.routes["urlhaus-api.abuse.ch"] = FakeResponse(payload={"query_status": "ok", "url_count": 3})

        report = make_scanner(resolver=FakeResolver(records)).assess("example.com")

        assert report.signal("email_security").band.value == "red"
        assert report.signal("blacklist").band.value == "red"
        assert report.signal("threat_intel").band.value == "red"
        assert report.signal("dns_hardening").band.value == "amber"
        assert report.risk_total == 7
        assert report.overall_verdict is OverallVerdict.RISK
        assert report.pressure is Pressure.HIGH

    def test_unresolvable_domain(self, make_scanner):
        resolver = FakeResolver({("example.com", "A"): None})
        report = make_scanner(resolver=resolver).assess("example.com")

        assert report.signal("exposed_services").band.value == "gray"
        assert report.signal("exploited_vulns").band.value == "gray"

    def test_disabled_check_is_omitted(self, make_config, make_scanner):
        config = make_config({"modules": {"typosquat": {"enabled": False}}})
        report = make_scanner(config=config).assess("example.com")

        assert "typosquat" not in [s.check for s in report.signals]
        assert len(report.signals) == 8


class TestBattery:
    """Test concurrency and per-check timeouts."""

    def test_slow_check_resolves_to_unknown(self, make_config, make_scanner, monkeypatch):
        config = make_config({"modules": {"dns_hardening": {"timeout": 0.2}}})

        def slow_execute(self, context):
            time.sleep(1.0)
            return DnsHardeningCheck.unknown(self)

        monkeypatch.setattr(DnsHardeningCheck, "execute", slow_execute)
        started = time.monotonic()

        report = make_scanner(config=config).assess("example.com")

        assert report.signal("dns_hardening").band.value == "gray"
        assert report.signal("email_security").band.value == "green"
        assert time.monotonic() - started < 1.0

    def test_resolve_primary_states(self, make_scanner, clock):
        from surfacecheck.core.deadline import Deadline

        scanner = make_scanner(resolver=FakeResolver({
            ("up.example", "A"): ["93.184.216.34"],
            ("down.example", "A"): None,
        }))
        deadline = Deadline(5, clock)

        assert scanner.resolve_primary("up.example", deadline) == ("93.184.216.34", AddressState.RESOLVED)
        assert scanner.resolve_primary("down.example", deadline) == (None, AddressState.UNKNOWN)
        assert scanner.resolve_primary("gone.example", deadline) == (None, AddressState.ABSENT)


class TestAdmission:
    """Test caller admission through the scanner."""

    def test_eleventh_request_rate_limited(self, make_scanner):
        scanner = make_scanner()
        for _ in range(10):
            scanner.admit("198.51.100.9")

        with pytest.raises(RateLimited) as exc_info:
            scanner.admit("198.51.100.9")

        assert exc_info.value.reset_in_ms > 0
        assert exc_info.value.limit == 10
        assert exc_info.value.http_status == 429

    def test_catalog_endpoint_has_own_limit(self, make_scanner):
        scanner = make_scanner()
        for _ in range(10):
            scanner.admit("198.51.100.9")

        assert scanner.admit("198.51.100.9", "catalog").allowed is True

    def test_catalog_contents(self, make_scanner):
        catalog = make_scanner().catalog()

        assert [c["name"] for c in catalog["checks"]] == CHECK_NAMES
        assert catalog["lockedChecks"] == ["Port Scan", "API Review"]
