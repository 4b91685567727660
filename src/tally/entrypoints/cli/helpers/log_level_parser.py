"""Parsing of the repeatable ``-L/--logger-level NAME=LEVEL`` option.

Values arrive either as a tuple (repeated flags) or as one string from the
``TALLY_LOGGER_LEVELS`` environment variable, where pairs are separated by commas
or whitespace. LEVEL is a standard level name (case-insensitive) or a number.
"""

import logging
import re

import click

# third-party loggers quieted unless the user asks otherwise
DEFAULT_LIB_LEVELS = {"sqlalchemy": logging.WARNING, "alembic": logging.WARNING}

_SEPARATORS = re.compile(r"[,\s]+")


def _normalize_items(value: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """Flatten the option value into non-empty NAME=LEVEL fragments."""
    if not value:
        return []
    chunks = [value] if isinstance(value, str) else list(value)
    return [item for chunk in chunks for item in _SEPARATORS.split(chunk) if item]


def _level_from_text(text: str) -> int:
    """Return the numeric level for a level name or number.

    Raises:
        click.BadParameter: If `text` names no logging level.
    """
    text = text.strip()
    if text.isdigit():
        return int(text)
    if (level := logging.getLevelNamesMapping().get(text.upper())) is None:
        raise click.BadParameter(f"Invalid log level: {text}")
    return level


def parse_log_level(
    ctx: click.Context,  # pylint: disable=unused-argument
    param: click.Parameter | None,  # pylint: disable=unused-argument
    value: str | list[str] | tuple[str, ...] | None,
) -> dict[str, int]:
    """Click callback turning NAME=LEVEL pairs into a logger-name -> level dict.

    The result starts from DEFAULT_LIB_LEVELS; later pairs override earlier
    ones for the same logger.

    Raises:
        click.BadParameter: If a pair is malformed or its LEVEL is unknown.
    """

    levels = dict(DEFAULT_LIB_LEVELS)
    for item in _normalize_items(value):
        name, sep, level_text = item.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"Expected NAME=LEVEL, got {item!r}")
        levels[name.strip()] = _level_from_text(level_text)
    return levels
