"""CLI helpers for TALLY.

Utilities used by the command-line interface: URL sanitization for safe display,
OSC-8 terminal hyperlinks when supported, JSON file reading with CLI-friendly
errors, settings shared through the Click context, and message emitters that
write to stderr with emoji→ASCII fallbacks.
"""

from .context import REDACTOR_MODE_KEY, current_redactor_mode
from .db_url import sanitize_url
from .hyperlinks import hyperlink
from .json_files import dump_json, load_json
from .messages import error, success, warn

__all__ = [
    "REDACTOR_MODE_KEY",
    "current_redactor_mode",
    "dump_json",
    "error",
    "hyperlink",
    "load_json",
    "sanitize_url",
    "success",
    "warn",
]
