"""Interfaces for redacting sensitive values.

This module defines the Redactor interface and the RedactorMode enumeration
used by adapters to sanitize secrets from strings before they are displayed or
logged. Two families of secrets matter to TALLY:

- connection secrets (passwords, tokens) in database URLs and DSN fragments;
- key material: raw private keys and recovery phrases.
"""

import abc
from enum import Enum

# pylint: disable=too-few-public-methods


class RedactorMode(Enum):
    """Enumeration for redactor modes.

    Modes:
    - LENIENT: redact passwords/tokens but keep usernames/ids visible.
    - STRICT: redact passwords/tokens and also usernames/ids.
    """

    LENIENT = "lenient"
    STRICT = "strict"


class Redactor(abc.ABC):
    """Interface for sanitizing sensitive information from strings."""

    _mode: RedactorMode

    @abc.abstractmethod
    def sanitize_db_url(self, raw_url: str) -> str:
        """Return a display-safe DB URL.

        Args:
            raw_url: Raw database connection URL.

        Returns:
            A sanitized database URL with sensitive information redacted.
        """

    @abc.abstractmethod
    def redact_key_material(self, text: str) -> str:
        """Return `text` with private keys and recovery phrases masked.

        Args:
            text: Free-form text, typically a formatted log message.

        Returns:
            The text with every secret replaced by a placeholder.
        """

    @property
    def mode(self) -> RedactorMode:
        """Return the redaction mode."""
        return self._mode
