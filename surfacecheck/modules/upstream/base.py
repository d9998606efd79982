"""Base class for upstream data-source clients."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import requests

from ...core.config import Config
from ...core.deadline import Deadline
from ...core.errors import UpstreamUnavailable
from ...core.logger import get_logger
from ...core.rate_limiter import UpstreamBudget
from ...core.security import IPValidator


class UpstreamStatus(Enum):
    OK = "ok"
    UNAVAILABLE = "unavailable"
    BUDGET_EXHAUSTED = "budget_exhausted"
    NOT_CONFIGURED = "not_configured"
    SKIPPED = "skipped"  # nothing to look up (e.g. no public address)


@dataclass(frozen=True)
class UpstreamResult:
    """Typed result-or-unavailable outcome of one upstream call."""
    source: str
    status: UpstreamStatus
    data: Any = None

    @property
    def ok(self) -> bool:
        return self.status is UpstreamStatus.OK

    @property
    def settled(self) -> bool:
        """True when the source needs no retry: it answered or was never meant to."""
        return self.status in (UpstreamStatus.OK, UpstreamStatus.NOT_CONFIGURED, UpstreamStatus.SKIPPED)

    @classmethod
    def unavailable(cls, source: str) -> "UpstreamResult":
        return cls(source, UpstreamStatus.UNAVAILABLE)


class BaseUpstreamClient(ABC):
    """
    One HTTP call to one external source, behind its upstream budget.

    Subclasses implement ``fetch`` and raise ``UpstreamUnavailable`` for any
    non-2xx, timeout or malformed payload; ``lookup`` turns that (and budget
    exhaustion) into an ``UpstreamResult`` and never raises.
    """

    # Source name used for budgets, config and logging
    name: str = "base"

    description: str = "Base upstream client"

    # API key configuration name ("" when the source is keyless)
    api_key_name: str = ""
    requires_api_key: bool = False

    # Whether the lookup target is an IP address (SSRF guard applies)
    keyed_by_ip: bool = False

    def __init__(
        self,
        config: Config,
        budget: UpstreamBudget,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize client.

        Args:
            config: Configuration instance
            budget: Process-wide upstream budget limiter
            session: HTTP session (injectable for tests)
        """
        self.config = config
        self.budget = budget
        self.logger = get_logger(f"upstream.{self.name}")
        self._settings = config.get(f"upstream.{self.name}", {}) or {}
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": config.user_agent,
            "Accept": "application/json",
        })

    @property
    def timeout(self) -> float:
        return float(self._settings.get("timeout", self.config.timeouts["http"]))

    @property
    def api_key(self) -> str:
        return self.config.get_api_key(self.api_key_name) if self.api_key_name else ""

    @property
    def is_configured(self) -> bool:
        if not self.requires_api_key:
            return True
        return self.config.has_api_key(self.api_key_name)

    def lookup(self, target: Optional[str], deadline: Optional[Deadline] = None) -> UpstreamResult:
        """
        Look up ``target`` and wrap the answer.

        Args:
            target: Domain or IP (None for catalog feeds)
            deadline: Request deadline capping the HTTP timeout

        Returns:
            UpstreamResult; never raises
        """
        if not self.is_configured:
            self.logger.debug(f"{self.name} not configured, skipping")
            return UpstreamResult(self.name, UpstreamStatus.NOT_CONFIGURED)

        if self.keyed_by_ip:
            if not target:
                return UpstreamResult(self.name, UpstreamStatus.SKIPPED)
            is_safe, reason = IPValidator.is_safe_for_external_request(target)
            if not is_safe:
                self.logger.warning(f"Skipping {self.name} lookup: {reason}")
                return UpstreamResult(self.name, UpstreamStatus.SKIPPED)

        if deadline is not None and deadline.expired:
            self.logger.warning_with_data("Upstream skipped", {"source": self.name, "cause": "deadline expired"})
            return UpstreamResult.unavailable(self.name)

        if not self.budget.try_acquire(self.name):
            return UpstreamResult(self.name, UpstreamStatus.BUDGET_EXHAUSTED)

        timeout = deadline.cap(self.timeout) if deadline else self.timeout
        try:
            data = self.fetch(target, timeout)
        except UpstreamUnavailable as e:
            self.logger.warning_with_data("Upstream unavailable", {"source": e.source, "cause": e.cause})
            return UpstreamResult.unavailable(self.name)

        return UpstreamResult(self.name, UpstreamStatus.OK, data)

    @abstractmethod
    def fetch(self, target: Optional[str], timeout: float) -> Any:
        """
        Perform the HTTP call and parse the payload.

        Raises:
            UpstreamUnavailable: on any transport, status or parse failure
        """

    def _request_json(self, method: str, url: str, timeout: float, accept_404: bool = False, **kwargs) -> Any:
        """
        Issue one request and decode a JSON body.

        Args:
            method: HTTP method
            url: Endpoint URL
            timeout: Effective timeout in seconds
            accept_404: Return None on 404 instead of failing

        Raises:
            UpstreamUnavailable: on any failure
        """
        try:
            response = self.session.request(
                method,
                url,
                timeout=timeout,
                proxies=self.config.proxy_settings,
                **kwargs,
            )
        except requests.exceptions.Timeout:
            raise UpstreamUnavailable(self.name, f"timeout after {timeout:.1f}s")
        except requests.exceptions.RequestException as e:
            raise UpstreamUnavailable(self.name, f"request error: {e.__class__.__name__}")

        if accept_404 and response.status_code == 404:
            return None
        if response.status_code == 429:
            raise UpstreamUnavailable(self.name, "remote rate limit (429)")
        if not 200 <= response.status_code < 300:
            raise UpstreamUnavailable(self.name, f"status {response.status_code}")

        if not response.content or not response.content.strip():
            return None

        try:
            return response.json()
        except ValueError:
            raise UpstreamUnavailable(self.name, "malformed JSON payload")

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(configured={self.is_configured})>"
