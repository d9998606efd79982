"""Surface Check scanner engine."""

import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

import requests

from .core.cache import ResultCache
from .core.config import Config
from .core.deadline import Deadline
from .core.domain import VerdictReport
from .core.errors import RateLimited
from .core.logger import get_logger, setup_logger
from .core.rate_limiter import AdmitResult, RateLimiter, UpstreamBudget
from .core.resolver import ResolverAdapter
from .core.validation import DomainValidator
from .modules import (
    AddressState,
    BaseCheck,
    BlacklistCheck,
    CertTransparencyCheck,
    CheckContext,
    DnsHardeningCheck,
    EmailSecurityCheck,
    ExploitedVulnsCheck,
    ExposedServicesCheck,
    ThreatIntelCheck,
    TyposquatCheck,
    WebHistoryCheck,
)
from .modules.upstream import UpstreamGateway
from .signals import map_outcome
from .verdict import aggregate


DEFAULT_LOCKED_CHECKS = [
    "Port Scan",
    "CVE Correlation",
    "Subdomain Map",
    "CDN/WAF Analysis",
    "Vulnerability Test",
    "API Review",
]


class SurfaceScanner:
    """
    Main engine that runs the passive check battery for one domain.

    Owns every process-wide store (caller limiter, upstream budgets and
    caches) so the HTTP app and the CLI share one instance.
    """

    # Signal order in the report
    CHECK_CLASSES: List[Type[BaseCheck]] = [
        EmailSecurityCheck,
        BlacklistCheck,
        TyposquatCheck,
        DnsHardeningCheck,
        CertTransparencyCheck,
        WebHistoryCheck,
        ThreatIntelCheck,
        ExposedServicesCheck,
        ExploitedVulnsCheck,
    ]

    def __init__(
        self,
        config: Optional[Config] = None,
        config_path: Optional[str] = None,
        resolver: Optional[ResolverAdapter] = None,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
        configure_logging: bool = True,
    ):
        """
        Initialize scanner.

        Args:
            config: Configuration instance (optional)
            config_path: Path to config file (optional)
            resolver: DNS adapter override (tests)
            session: Shared HTTP session for upstream clients (tests)
            clock: Monotonic clock for limiters, caches and deadlines
            configure_logging: Set up package logging from config
        """
        self.config = config or Config(config_path=config_path)
        self._clock = clock

        if configure_logging:
            log_config = self.config.get("logging", {}) or {}
            setup_logger(
                level=log_config.get("level", "INFO"),
                log_format=log_config.get("format", "json"),
                log_file=self.config.log_file,
                max_size_mb=log_config.get("max_size_mb", 10),
                backup_count=log_config.get("backup_count", 5),
            )
        self.logger = get_logger("scanner")

        limits = self.config.rate_limits
        self.rate_limiter = RateLimiter(
            window_seconds=limits["window_seconds"],
            default_limit=limits["quickcheck"],
            eviction_threshold=limits["eviction_threshold"],
            clock=clock,
        )
        self.rate_limiter.configure_from_dict({
            endpoint: value for endpoint, value in limits.items()
            if endpoint not in ("window_seconds", "eviction_threshold")
        })

        self.upstream_budget = UpstreamBudget(self.config.upstream_budgets, clock=clock)

        cache_settings = self.config.cache_settings
        self.cache = ResultCache(
            result_ttl_seconds=cache_settings["result_ttl_seconds"],
            catalog_ttl_seconds=cache_settings["catalog_ttl_seconds"],
            max_entries=cache_settings["max_entries"],
            clock=clock,
        )

        timeouts = self.config.timeouts
        self.resolver = resolver or ResolverAdapter(
            timeout=float(timeouts["dns"]),
            nameservers=self.config.get("dns.nameservers"),
        )
        self.gateway = UpstreamGateway(self.config, self.upstream_budget, self.cache, session)

        self.checks = self._init_checks()
        self.logger.info(f"Scanner initialized with {len(self.checks)} checks")

    def _init_checks(self) -> List[BaseCheck]:
        checks = []
        for check_class in self.CHECK_CLASSES:
            check = check_class(self.config)
            if check.is_enabled:
                checks.append(check)
            else:
                self.logger.debug(f"Check {check.name} is disabled, skipping")
        return checks

    @property
    def locked_checks(self) -> List[str]:
        return self.config.locked_checks or list(DEFAULT_LOCKED_CHECKS)

    def admit(self, caller: str, endpoint: str = "quickcheck") -> AdmitResult:
        """
        Apply the caller rate limit.

        Raises:
            RateLimited: the caller's window is full
        """
        result = self.rate_limiter.admit(caller, endpoint)
        if not result.allowed:
            raise RateLimited(result.reset_in_ms, self.rate_limiter.limit_for(endpoint))
        return result

    def resolve_primary(self, domain: str, deadline: Deadline) -> Tuple[Optional[str], str]:
        """Resolve the domain's first A record and classify the address state."""
        addresses = self.resolver.resolve_a(domain, deadline)
        if addresses is None:
            return None, AddressState.UNKNOWN
        if not addresses:
            return None, AddressState.ABSENT
        return addresses[0], AddressState.RESOLVED

    def assess(self, raw_domain: str) -> VerdictReport:
        """
        Run the full battery against a domain.

        Args:
            raw_domain: Untrusted user input

        Returns:
            VerdictReport with one signal per enabled check

        Raises:
            InvalidDomain: input is not a public domain name
        """
        domain = DomainValidator.normalize(raw_domain)
        start_time = time.time()
        deadline = Deadline(float(self.config.timeouts["request"]), self._clock)

        ip, address_state = self.resolve_primary(domain, deadline)
        self.logger.info_with_data("Starting quick check", {"domain": domain, "address": address_state})

        context = CheckContext(
            domain=domain,
            primary_ip=ip,
            address_state=address_state,
            deadline=deadline,
            resolver=self.resolver,
            gateway=self.gateway,
        )

        signals = [
            map_outcome(check.name, check.title, outcome)
            for check, outcome in self.run_battery(context)
        ]
        overall, pressure, total = aggregate(signals)

        self.logger.info_with_data(
            "Completed quick check",
            {
                "domain": domain,
                "verdict": overall.value,
                "risk_total": total,
                "duration": round(time.time() - start_time, 2),
            },
        )

        return VerdictReport(
            domain=domain,
            overall_verdict=overall,
            pressure=pressure,
            risk_total=total,
            signals=signals,
            locked_checks=self.locked_checks,
        )

    def run_battery(self, context: CheckContext) -> List[Tuple[BaseCheck, Any]]:
        """
        Run every check concurrently and join on a single barrier.

        Each check is awaited only until its own timeout, measured from the
        start of the battery. A check still running then yields its
        unknown outcome; its thread is left to finish in the background.
        """
        if not self.checks:
            return []

        executor = ThreadPoolExecutor(max_workers=len(self.checks), thread_name_prefix="check")
        started = time.monotonic()
        try:
            futures = [(check, executor.submit(check.run, context)) for check in self.checks]
            results = []
            for check, future in futures:
                budget = min(check.timeout - (time.monotonic() - started), context.deadline.remaining())
                try:
                    outcome = future.result(timeout=max(0.0, budget))
                except FutureTimeout:
                    self.logger.warning_with_data(
                        "Check timed out",
                        {"check": check.name, "timeout": check.timeout},
                    )
                    outcome = check.unknown()
                results.append((check, outcome))
            return results
        finally:
            executor.shutdown(wait=False)

    def catalog(self) -> Dict[str, Any]:
        """Read-only description of the battery and the locked checks."""
        return {
            "checks": [
                {"name": check.name, "title": check.title, "description": check.description}
                for check in self.checks
            ],
            "lockedChecks": self.locked_checks,
        }

    def __repr__(self) -> str:
        return f"<SurfaceScanner(checks={len(self.checks)})>"
