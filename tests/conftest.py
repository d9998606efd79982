"""Shared fixtures: temp config, fake clock, fake resolver and fake HTTP session."""

import json
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import pytest
import requests
import yaml

from surfacecheck.core.config import Config
from surfacecheck.core.deadline import Deadline
from surfacecheck.modules.base import AddressState, CheckContext
from surfacecheck.scanner import SurfaceScanner


SECRET_ENV_VARS = ("ABUSEIPDB_KEY", "ABUSECH_KEY", "TURNSTILE_SECRET_KEY", "SURFACECHECK_ENV", "SURFACECHECK_CONFIG")


def base_config() -> Dict[str, Any]:
    return {
        "environment": "development",
        "logging": {"level": "DEBUG"},
        "rate_limits": {"window_seconds": 60, "quickcheck": 10, "catalog": 30},
        "upstream_budgets": {
            "urlhaus": 20,
            "threatfox": 20,
            "crtsh": 10,
            "wayback": 10,
            "internetdb": 30,
            "abuseipdb": 15,
            "kev": 5,
        },
        "cache": {"result_ttl_seconds": 300, "catalog_ttl_seconds": 21600},
        "timeouts": {"dns": 1.0, "http": 2.0, "check": 5.0, "request": 10.0},
        "blacklist": {
            "cdn": {
                "provider": "cloudflare",
                "reviewed_on": date.today().isoformat(),
                "max_age_days": 180,
            },
        },
        "locked_checks": ["Port Scan", "API Review"],
    }


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep real secrets out of every test."""
    for var in SECRET_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def make_config(tmp_path):
    """Factory writing a config.yaml (plus empty .env) and loading it."""
    def _make(overrides: Optional[Dict[str, Any]] = None) -> Config:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.safe_dump(_merge(base_config(), overrides or {})))
        env_file = tmp_path / ".env.local"
        env_file.write_text("")
        return Config(config_path=str(config_file), env_path=str(env_file))
    return _make


@pytest.fixture
def config(make_config):
    return make_config()


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


class FakeResolver:
    """
    Resolver stand-in answering from a table.

    ``records[(name, rtype)]`` is a list of answers, or None for a
    failed lookup. Unlisted names answer empty (NXDOMAIN).
    """

    def __init__(self, records: Optional[Dict[Tuple[str, str], Optional[List[str]]]] = None):
        self.records = dict(records or {})
        self.queries: List[Tuple[str, str]] = []

    def _answer(self, name: str, rtype: str) -> Optional[List[str]]:
        self.queries.append((name, rtype))
        answer = self.records.get((name, rtype), [])
        return None if answer is None else list(answer)

    def resolve_a(self, name, deadline=None):
        return self._answer(name, "A")

    def resolve_mx(self, name, deadline=None):
        return self._answer(name, "MX")

    def resolve_txt(self, name, deadline=None):
        return self._answer(name, "TXT")

    def resolve_caa(self, name, deadline=None):
        return self._answer(name, "CAA")

    def queried(self, name: str) -> bool:
        return any(q[0] == name for q in self.queries)


def healthy_records(domain: str = "example.com", ip: str = "93.184.216.34") -> Dict:
    return {
        (domain, "A"): [ip],
        (domain, "MX"): [f"mail.{domain}"],
        (domain, "TXT"): ["v=spf1 include:_spf.example.net -all"],
        (f"_dmarc.{domain}", "TXT"): ["v=DMARC1; p=reject; rua=mailto:d@example.com"],
        (domain, "CAA"): ['0 issue "letsencrypt.org"'],
    }


@pytest.fixture
def resolver():
    return FakeResolver(healthy_records())


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        if text is None:
            text = "" if payload is None else json.dumps(payload)
        self.content = text.encode()
        self._text = text

    def json(self):
        return json.loads(self._text)


class FakeSession:
    """
    HTTP session stand-in routing by URL substring.

    A route value is a FakeResponse, or an exception instance to raise.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes = dict(routes or {})
        self.headers: Dict[str, str] = {}
        self.calls: List[Tuple[str, str, Dict]] = []

    def request(self, method: str, url: str, **kwargs):
        self.calls.append((method, url, kwargs))
        for fragment, response in self.routes.items():
            if fragment in url:
                if isinstance(response, Exception):
                    raise response
                return response
        raise requests.exceptions.ConnectionError(f"no route for {url}")

    def post(self, url: str, **kwargs):
        return self.request("POST", url, **kwargs)

    def count(self, fragment: str) -> int:
        return sum(1 for _, url, _ in self.calls if fragment in url)


def healthy_routes() -> Dict[str, Any]:
    return {
        "crt.sh": FakeResponse(payload=[{"common_name": "example.com", "name_value": "example.com\nwww.example.com"}]),
        "web.archive.org": FakeResponse(payload=[["original"], ["http://example.com/"], ["http://example.com/about"]]),
        "urlhaus-api.abuse.ch": FakeResponse(payload={"query_status": "no_results"}),
        "threatfox-api.abuse.ch": FakeResponse(payload={"query_status": "no_result", "data": "Your search did not yield any results"}),
        "internetdb.shodan.io": FakeResponse(payload={"ip": "93.184.216.34", "ports": [80, 443], "vulns": []}),
        "known_exploited_vulnerabilities": FakeResponse(payload={"vulnerabilities": [{"cveID": "CVE-2021-44228"}]}),
        "challenges.cloudflare.com": FakeResponse(payload={"success": True}),
    }


@pytest.fixture
def session():
    return FakeSession(healthy_routes())


@pytest.fixture
def make_scanner(config, resolver, session, clock):
    """Factory building a scanner wired to the fakes."""
    def _make(config=config, resolver=resolver, session=session, clock=clock) -> SurfaceScanner:
        return SurfaceScanner(
            config=config,
            resolver=resolver,
            session=session,
            clock=clock,
            configure_logging=False,
        )
    return _make


@pytest.fixture
def make_context(resolver, clock):
    """Factory for a CheckContext on the fake resolver."""
    def _make(
        domain: str = "example.com",
        ip: Optional[str] = "93.184.216.34",
        state: str = AddressState.RESOLVED,
        resolver=resolver,
        gateway=None,
    ) -> CheckContext:
        return CheckContext(
            domain=domain,
            primary_ip=ip,
            address_state=state,
            deadline=Deadline(10.0, clock),
            resolver=resolver,
            gateway=gateway,
        )
    return _make
