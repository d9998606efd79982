"""Base class and shared context for the passive checks."""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from ..core.config import Config
from ..core.deadline import Deadline
from ..core.logger import get_logger
from ..core.resolver import ResolverAdapter
from .upstream.gateway import IntelBundle, UpstreamGateway


class AddressState:
    RESOLVED = "resolved"
    ABSENT = "absent"
    UNKNOWN = "unknown"


@dataclass
class CheckContext:
    """Everything a check may consult for one request."""
    domain: str
    primary_ip: Optional[str]
    address_state: str
    deadline: Deadline
    resolver: ResolverAdapter
    gateway: UpstreamGateway
    _bundle: Optional[IntelBundle] = field(default=None, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def intel(self) -> IntelBundle:
        """The request's upstream round; fetched once, shared by all checks."""
        with self._lock:
            if self._bundle is None:
                self._bundle = self.gateway.collect(self.domain, self.primary_ip, self.deadline)
            return self._bundle


class BaseCheck(ABC):
    """Base class for all checks in the battery."""

    # Check name used in config, logging and the public signal
    name: str = "base"

    # Public title shown with the signal
    title: str = "Base check"

    description: str = "Base check"

    def __init__(self, config: Config):
        """
        Initialize check.

        Args:
            config: Configuration instance
        """
        self.config = config
        self.logger = get_logger(f"check.{self.name}")
        self._module_config = config.get_module_config(self.name)

    @property
    def is_enabled(self) -> bool:
        """Check if this check is enabled in configuration."""
        return self.config.is_module_enabled(self.name)

    @property
    def timeout(self) -> float:
        """Per-check timeout in seconds."""
        return float(self._module_config.get("timeout", self.config.timeouts["check"]))

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a check-specific setting."""
        return self._module_config.get(key, default)

    @abstractmethod
    def execute(self, context: CheckContext) -> Any:
        """
        Run the check and return its raw outcome.

        Implementations must return the check's UNKNOWN outcome whenever
        the data needed to decide was unavailable.
        """

    @abstractmethod
    def unknown(self) -> Any:
        """The outcome used when the check could not run."""

    def run(self, context: CheckContext) -> Any:
        """
        Run the check with error handling.

        Returns:
            The raw outcome; the UNKNOWN outcome on any unexpected error
        """
        try:
            self.logger.debug(f"Running {self.name} for {context.domain}")
            return self.execute(context)
        except Exception as e:
            self.logger.error(f"{self.name} error: {e}", exc_info=True)
            return self.unknown()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(enabled={self.is_enabled})>"
