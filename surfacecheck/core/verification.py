"""Server-side verification of challenge tokens (Cloudflare Turnstile)."""

from typing import Optional

import requests

from .config import Config
from .errors import ConfigurationError, ErrorCodes, VerificationFailed
from .logger import get_logger


class TurnstileVerifier:
    """
    Verifies a challenge token before the engine runs.

    The secret must be configured or every request fails closed. In
    production the documented test-only secrets are rejected as a
    misconfiguration.
    """

    VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"

    # Cloudflare's published dummy secrets (always pass / always fail / token spent)
    TEST_SECRETS = {
        "1x0000000000000000000000000000000AA",
        "2x0000000000000000000000000000000AA",
        "3x0000000000000000000000000000000AA",
    }

    def __init__(self, config: Config, session: Optional[requests.Session] = None, timeout: float = 5.0):
        self.config = config
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = get_logger("verification")

    @property
    def secret(self) -> str:
        return self.config.get_api_key("turnstile").strip()

    def ensure_configured(self) -> None:
        """
        Raise if the verifier cannot run safely.

        Raises:
            ConfigurationError: secret missing, or a test secret in production
        """
        if not self.secret:
            self.logger.error("TURNSTILE_SECRET_KEY is not configured; failing closed")
            raise ConfigurationError("TURNSTILE_SECRET_KEY missing")

        if self.config.is_production and self.secret in self.TEST_SECRETS:
            self.logger.error("Test-only Turnstile secret configured in production; failing closed")
            raise ConfigurationError("test secret in production", error=ErrorCodes.CONFIG_TEST_SECRET)

    def verify(self, token: Optional[str], remote_ip: Optional[str] = None) -> None:
        """
        Verify a token or raise.

        Raises:
            ConfigurationError: verifier not configured
            VerificationFailed: token missing, rejected, or verification unreachable
        """
        self.ensure_configured()

        if not token or not token.strip():
            raise VerificationFailed(error=ErrorCodes.AUTH_TOKEN_MISSING)

        payload = {"secret": self.secret, "response": token.strip()}
        if remote_ip and remote_ip != "unknown":
            payload["remoteip"] = remote_ip

        try:
            response = self.session.post(self.VERIFY_URL, data=payload, timeout=self.timeout)
            data = response.json() if response.status_code == 200 else {}
            if not isinstance(data, dict):
                raise ValueError(f"unexpected payload type {type(data).__name__}")
        except (requests.exceptions.RequestException, ValueError) as e:
            self.logger.warning_with_data("Verification response unusable", {"cause": str(e)})
            raise VerificationFailed("verification response unusable")

        if not data.get("success"):
            self.logger.info_with_data(
                "Verification rejected",
                {"status": response.status_code, "codes": data.get("error-codes", [])},
            )
            raise VerificationFailed("token rejected")
