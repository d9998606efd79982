"""Timeout-bounded DNS lookups shared by the checks."""

from typing import List, Optional

import dns.exception
import dns.resolver

from .deadline import Deadline
from .logger import get_logger


class ResolverAdapter:
    """
    Thin wrapper around dnspython with one uniform timeout.

    Every method returns ``None`` when resolution failed or timed out and
    ``[]`` when the answer was definitively empty (NXDOMAIN / NoAnswer).
    Callers must treat ``None`` as "unknown", never as "record absent".
    """

    def __init__(
        self,
        timeout: float = 2.0,
        nameservers: Optional[List[str]] = None,
        resolver: Optional[dns.resolver.Resolver] = None,
    ):
        """
        Initialize resolver.

        Args:
            timeout: Lifetime of a single lookup in seconds
            nameservers: Optional nameserver override
            resolver: Preconfigured resolver (tests)
        """
        self.timeout = timeout
        self.logger = get_logger("resolver")
        if resolver is None:
            resolver = dns.resolver.Resolver()
            if nameservers:
                resolver.nameservers = nameservers
        self._resolver = resolver

    def _query(self, name: str, record_type: str, deadline: Optional[Deadline]) -> Optional[list]:
        lifetime = deadline.cap(self.timeout) if deadline else self.timeout
        if deadline is not None and deadline.expired:
            self.logger.debug(f"Deadline expired before {record_type} lookup for {name}")
            return None

        try:
            answers = self._resolver.resolve(name, record_type, lifetime=lifetime)
            return list(answers)
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            return []
        except dns.resolver.NoNameservers:
            self.logger.debug(f"No nameservers answered {record_type} for {name}")
        except dns.exception.Timeout:
            self.logger.debug(f"Timeout querying {record_type} for {name}")
        except dns.exception.DNSException as e:
            self.logger.debug(f"Error querying {record_type} for {name}: {e}")
        return None

    def resolve_a(self, name: str, deadline: Optional[Deadline] = None) -> Optional[List[str]]:
        answers = self._query(name, "A", deadline)
        if answers is None:
            return None
        return [rdata.to_text() for rdata in answers]

    def resolve_mx(self, name: str, deadline: Optional[Deadline] = None) -> Optional[List[str]]:
        answers = self._query(name, "MX", deadline)
        if answers is None:
            return None
        return [str(rdata.exchange).rstrip(".") for rdata in answers]

    def resolve_txt(self, name: str, deadline: Optional[Deadline] = None) -> Optional[List[str]]:
        answers = self._query(name, "TXT", deadline)
        if answers is None:
            return None
        return [
            "".join(s.decode(errors="replace") if isinstance(s, bytes) else s for s in rdata.strings)
            for rdata in answers
        ]

    def resolve_caa(self, name: str, deadline: Optional[Deadline] = None) -> Optional[List[str]]:
        answers = self._query(name, "CAA", deadline)
        if answers is None:
            return None
        return [rdata.to_text() for rdata in answers]
