"""Status lines for the TALLY CLI.

Every line goes to stderr so stdout stays machine-readable (``--json`` output,
signed batches piped into ``tally ledger run``). Each kind of line carries a
glyph; terminals that cannot encode the emoji get a bracketed ASCII marker.
"""

from typing import NamedTuple

import click


class _Style(NamedTuple):
    emoji: str
    fallback: str
    color: str


_STYLES = {
    "warn": _Style("⚠️", "[!]", "yellow"),  # pragma: no mutate
    "success": _Style("✅", "[OK]", "green"),  # pragma: no mutate
    "error": _Style("❌", "[X]", "red"),  # pragma: no mutate
}


def _stderr_can_encode(text: str) -> bool:
    encoding = getattr(click.get_text_stream("stderr"), "encoding", None) or "ascii"
    try:
        text.encode(encoding)
    except (UnicodeEncodeError, LookupError):
        return False
    return True


def glyph(kind: str) -> str:
    """Return the marker for `kind` ("warn", "success" or "error").

    The emoji is used when stderr can encode it, otherwise the ASCII fallback.
    """
    style = _STYLES[kind]
    return style.emoji if _stderr_can_encode(style.emoji) else style.fallback


def _emit(kind: str, msg: str) -> None:
    click.secho(f"{glyph(kind)}  {msg}", fg=_STYLES[kind].color, bold=True, err=True)


def warn(msg: str) -> None:
    """Print a bold yellow warning, e.g. ``⚠️  This prints a recovery phrase.``"""
    _emit("warn", msg)


def success(msg: str) -> None:
    """Print a bold green confirmation, e.g. ``✅  Signed 3 transactions.``"""
    _emit("success", msg)


def error(msg: str) -> None:
    """Print a bold red failure line, e.g. ``❌  Cannot read genesis file.``"""
    _emit("error", msg)
