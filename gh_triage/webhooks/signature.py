"""HMAC-SHA256 verification of GitHub webhook payloads."""

import hashlib
import hmac

from ..errors import ConfigurationError

SIGNATURE_PREFIX = "sha256="


class SignatureVerifier:
    """Checks X-Hub-Signature-256 against the configured webhook secret."""

    def __init__(self, secret: str | None, required: bool = False):
        """
        Args:
            secret: Shared webhook secret, None disables verification
            required: Refuse to start without a secret

        Raises:
            ConfigurationError: If required is set but no secret is given
        """
        if required and not secret:
            raise ConfigurationError(
                "Webhook signature verification is required but no secret is configured"
            )
        self._secret = secret.encode("utf-8") if secret else None

    @property
    def enabled(self) -> bool:
        return self._secret is not None

    def compute_signature(self, payload: bytes) -> str:
        if self._secret is None:
            raise ConfigurationError("No webhook secret configured")
        digest = hmac.new(self._secret, payload, hashlib.sha256).hexdigest()
        return SIGNATURE_PREFIX + digest

    def verify(self, payload: bytes, signature_header: str | None) -> bool:
        """Constant-time comparison of the header with the expected signature."""
        if self._secret is None:
            return True
        if not signature_header:
            return False
        expected = self.compute_signature(payload)
        return hmac.compare_digest(
            expected.encode("utf-8"), signature_header.strip().encode("utf-8")
        )
