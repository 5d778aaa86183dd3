"""Value-based masking of cluster credentials in log output.

The bearer token and certificate authority blob are registered here before
anything is logged, and every line the plugin prints is passed through
``mask_string``.
"""

import re
from typing import Any, List, Set


class SecretMasker:
    """Replaces known secret values wherever they appear in a string."""

    def __init__(self, redaction_text: str = "[REDACTED]"):
        self._secrets: Set[str] = set()
        self._redaction_text = redaction_text
        self._min_secret_length = 3  # Short strings cause false positives

    def register_secret(self, value: Any) -> None:
        """Register a secret value that should be masked.

        Args:
            value: The secret value to register (converted to string)
        """
        if value is None:
            return

        str_value = str(value)
        if not str_value:
            return

        self._secrets.add(str_value)

    def register_secrets(self, values: List[Any]) -> None:
        """Register multiple secret values at once."""
        for value in values:
            self.register_secret(value)

    def mask_string(self, text: str) -> str:
        """Replace all known secret values in a string with the redaction text.

        Longer secrets are replaced first so that a secret containing another
        one is not left partially visible.
        """
        if not text:
            return text

        masked = text
        for secret in sorted(self._secrets, key=len, reverse=True):
            if len(secret) >= self._min_secret_length:
                masked = re.sub(re.escape(secret), self._redaction_text, masked)
        return masked

    def clear(self) -> None:
        """Remove all registered secrets."""
        self._secrets.clear()

    def size(self) -> int:
        return len(self._secrets)

    def has_secret(self, value: str) -> bool:
        return value in self._secrets


_default_masker = SecretMasker()


def register_secret(value: Any) -> None:
    """Register a secret value with the default masker."""
    _default_masker.register_secret(value)


def register_secrets(values: List[Any]) -> None:
    """Register multiple secrets with the default masker."""
    _default_masker.register_secrets(values)


def mask_string(text: str) -> str:
    """Mask secrets in a string using the default masker."""
    return _default_masker.mask_string(text)


def clear_secrets() -> None:
    """Clear all registered secrets from the default masker."""
    _default_masker.clear()


def get_default_masker() -> SecretMasker:
    """Get the default masker instance (useful for testing)."""
    return _default_masker
