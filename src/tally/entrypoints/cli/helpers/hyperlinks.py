"""Clickable links in terminal output.

Terminals that understand OSC-8 escape sequences render ``hyperlink(url)`` as a
link; everywhere else, pipes included, the plain URL is printed.
"""

import os
import sys
from typing import TextIO

# TERM_PROGRAM values (lowercased) of terminals known to render OSC-8
OSC8_TERM_PROGRAMS = frozenset(
    {"apple_terminal", "vscode", "iterm.app", "wezterm", "kitty"}
)
# TERM prefixes of terminals known to render OSC-8
OSC8_TERM_PREFIXES = ("alacritty", "konsole")
# set by Windows Terminal and by VTE based terminals (GNOME Terminal, Tilix)
OSC8_MARKER_VARS = ("WT_SESSION", "VTE_VERSION")

OSC8 = "\x1b]8;;{url}\x07{text}\x1b]8;;\x07"


def supports_osc8(stream: TextIO | None = None) -> bool:
    """Guess whether `stream` (stdout by default) renders OSC-8 hyperlinks.

    Only interactive streams qualify, and only when the environment identifies
    a terminal from a short allowlist. Pagers may still strip the sequences.
    """
    stream = stream or sys.stdout
    isatty = getattr(stream, "isatty", None)
    if isatty is None or not isatty():
        return False
    if (os.getenv("TERM_PROGRAM") or "").lower() in OSC8_TERM_PROGRAMS:
        return True
    if any(os.getenv(name) for name in OSC8_MARKER_VARS):
        return True
    return os.getenv("TERM", "").startswith(OSC8_TERM_PREFIXES)


def hyperlink(url: str, text: str | None = None) -> str:
    """Return `text` (the URL itself by default) linking to `url`.

    Without terminal support the URL is returned as is, so it stays readable
    and copyable.
    """
    if not supports_osc8():
        return url
    return OSC8.format(url=url, text=text or url)
