"""Settings shared between the top-level group and its subcommands."""

import click

from tally.interfaces.redactor import RedactorMode

REDACTOR_MODE_KEY = "tally.redactor_mode"


def current_redactor_mode() -> RedactorMode:
    """Return the mode chosen with ``--redactor-mode`` (LENIENT when run standalone)."""
    ctx = click.get_current_context(silent=True)
    if ctx is None:
        return RedactorMode.LENIENT
    return ctx.meta.get(REDACTOR_MODE_KEY, RedactorMode.LENIENT)
