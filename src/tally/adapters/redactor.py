"""Regex-based redactor for sanitizing secrets from strings.

This module provides a Redactor implementation that masks:

- passwords, tokens and API keys found in database URLs, ODBC/DSN-style
  strings and free-form "key: value" fragments (strict mode also redacts
  usernames/ids);
- key material: 32-byte hex private keys and runs of BIP-39 words long enough
  to be a recovery phrase.
"""

import re

from mnemonic import Mnemonic

from tally.interfaces import redactor
from tally.interfaces.redactor import RedactorMode

# pylint: disable=too-few-public-methods

PLACEHOLDER = "***"
SECRET_KEYWORDS = [
    "password",
    "passwd",
    "pwd",
    "secret",
    "token",
    "api_key",
    "apikey",
    "access_token",
    "private_key",
    "privkey",
    "seed_phrase",
    "mnemonic",
]
STRICT_MODE_ADDITIONAL_KEYWORDS = ["user", "username", "uid"]
STRICT_MODE_SECRET_KEYWORDS = SECRET_KEYWORDS + STRICT_MODE_ADDITIONAL_KEYWORDS


def _keyword_pattern(keywords: list[str]) -> str:
    return "|".join(kw.replace("_", "[-_]?") for kw in keywords)


QUERY_STRING_PATTERN = re.compile(
    rf"([?&](?:{_keyword_pattern(SECRET_KEYWORDS)})=)[^&#\s;]*", re.IGNORECASE
)
STRICT_MODE_QUERY_STRING_PATTERN = re.compile(
    rf"([?&](?:{_keyword_pattern(STRICT_MODE_SECRET_KEYWORDS)})=)[^&#\s;]*",
    re.IGNORECASE,
)
KEY_VALUE_SECRET_PATTERN = re.compile(
    rf"(\b(?:{_keyword_pattern(SECRET_KEYWORDS)})\s*:\s*)\S+", re.IGNORECASE
)
STRICT_MODE_KEY_VALUE_SECRET_PATTERN = re.compile(
    rf"(\b(?:{_keyword_pattern(STRICT_MODE_SECRET_KEYWORDS)})\s*:\s*)\S+",
    re.IGNORECASE,
)
PWD_PATTERN = re.compile(r"\bpwd=\S+", re.IGNORECASE)
UID_PATTERN = re.compile(r"\buid=[^;]+", re.IGNORECASE)
URL_PASSWORD_PATTERN = re.compile(r"(?<=://)([^:@/]+):([^@/]+)@")
URL_USER_PATTERN = re.compile(r"(?<=://)([^:@/]+)(?=:(?:\*\*\*|[^@/]*)@)")

# exactly 64 hex digits; addresses (40) and signatures (>130) are left alone
PRIVATE_KEY_PATTERN = re.compile(r"\b(?:0x)?[0-9a-fA-F]{64}\b")
MIN_PHRASE_WORDS = 12


def _phrase_pattern(wordlist: list[str]) -> re.Pattern[str]:
    words = "|".join(sorted(wordlist, key=len, reverse=True))
    return re.compile(
        rf"\b(?:{words})\b(?:\s+\b(?:{words})\b){{{MIN_PHRASE_WORDS - 1},}}",
        re.IGNORECASE,
    )


class Redactor(redactor.Redactor):
    """Redactor implementation using regex-based sanitization."""

    def __init__(
        self, mode: RedactorMode = RedactorMode.LENIENT, language: str = "english"
    ) -> None:
        self._mode = mode
        self._phrase_pattern = _phrase_pattern(Mnemonic(language).wordlist)

    def sanitize_db_url(self, raw_url: str) -> str:
        sanitized = str(raw_url)

        # 1) user:pass@  → user:***@
        sanitized = URL_PASSWORD_PATTERN.sub(r"\1:***@", sanitized)

        # 2) Strict: redact visible username before '@' (but only if one exists)
        if self._mode == RedactorMode.STRICT:
            sanitized = URL_USER_PATTERN.sub(PLACEHOLDER, sanitized)

        # 3) Query-string secrets
        query_pattern = (
            STRICT_MODE_QUERY_STRING_PATTERN
            if self._mode == RedactorMode.STRICT
            else QUERY_STRING_PATTERN
        )
        sanitized = query_pattern.sub(rf"\1{PLACEHOLDER}", sanitized)

        # 4) ODBC-ish pairs: Pwd=... (leave Uid alone unless strict)
        sanitized = PWD_PATTERN.sub(f"Pwd={PLACEHOLDER}", sanitized)
        if self._mode == RedactorMode.STRICT:
            sanitized = UID_PATTERN.sub(f"Uid={PLACEHOLDER}", sanitized)

        # 5) Key:Value secrets (non-URL accidental forms)
        key_value_pattern = (
            STRICT_MODE_KEY_VALUE_SECRET_PATTERN
            if self._mode == RedactorMode.STRICT
            else KEY_VALUE_SECRET_PATTERN
        )
        return key_value_pattern.sub(rf"\1{PLACEHOLDER}", sanitized)

    def redact_key_material(self, text: str) -> str:
        sanitized = PRIVATE_KEY_PATTERN.sub(PLACEHOLDER, str(text))
        sanitized = self._phrase_pattern.sub(PLACEHOLDER, sanitized)
        return KEY_VALUE_SECRET_PATTERN.sub(rf"\1{PLACEHOLDER}", sanitized)
