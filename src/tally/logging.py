"""Logging setup shared by the TALLY CLI and the library.

Two destinations are configured by the CLI:

- the console, a Rich handler on stderr whose level follows ``-v``/``-q``;
- the flight recorder, a memory buffer that keeps recent records at DEBUG
  detail and writes them to a file once something at WARNING or worse
  happens (or on exit, when asked to).

Every handler carries a `SecretRedactingFilter`, so private keys and recovery
phrases never reach either destination. The console additionally tags records
from other libraries with ``[package]`` via `ThirdPartyPrefixFilter`.
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from logging.handlers import MemoryHandler
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TypeAlias

import alembic
import sqlalchemy
from rich.console import Console
from rich.logging import RichHandler

from tally.adapters.redactor import Redactor

if TYPE_CHECKING:
    from logging import Logger

    from tally.interfaces import redactor

# pylint: disable=too-few-public-methods

PROJECT_PREFIX = "tally"

CONSOLE_FORMAT = "%(prefix)s %(message)s"
DEBUG_CONSOLE_FORMAT = "%(asctime)s %(name)s: %(message)s"
FLIGHT_RECORDER_FORMAT = (
    "[%(asctime)s] [%(process)d:%(threadName)s] "
    "%(levelname)s %(name)s:%(lineno)d: %(message)s"
)

ColorSystem: TypeAlias = Literal["auto", "standard", "256", "truecolor", "windows"]


class ThirdPartyPrefixFilter(logging.Filter):
    """Set ``record.prefix`` to ``[package]`` for loggers outside ``tally``.

    Records from project loggers get an empty prefix. Never drops a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith(PROJECT_PREFIX):
            record.prefix = ""
        else:
            # "sqlalchemy.engine.Engine" -> "[sqlalchemy]"
            record.prefix = f"[{record.name.partition('.')[0]}]"
        return True


class SecretRedactingFilter(logging.Filter):
    """Mask private keys and recovery phrases in log records.

    The message is rendered with its arguments, redacted, and stored back with
    the arguments cleared, so every downstream formatter sees the masked text.
    """

    def __init__(self, redactor_: redactor.Redactor | None = None) -> None:
        super().__init__()
        self._redactor = redactor_ or Redactor()

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = self._redactor.redact_key_material(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def config_console_handler(
    level: int = logging.INFO,
    debug_mode: bool = False,
    color: bool = True,
    redacting_filter: SecretRedactingFilter | None = None,
) -> RichHandler:
    """Return a Rich handler writing to stderr.

    In debug mode the level is forced to DEBUG and records show a timestamp,
    the logger name and a link to the source line; the third-party prefix is
    left out since the logger name already says where a record came from.

    Args:
        level: Minimum level shown outside debug mode.
        debug_mode: Developer formatting at DEBUG level.
        color: False disables styling, matching click-extra's ``--no-color``.
        redacting_filter: Filter masking key material; a default one when None.
    """
    color_system: ColorSystem | None = "auto" if color else None

    handler = RichHandler(
        level=logging.DEBUG if debug_mode else level,
        console=Console(color_system=color_system, stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_path=debug_mode,
        enable_link_path=debug_mode,
    )
    handler.setFormatter(
        logging.Formatter(DEBUG_CONSOLE_FORMAT if debug_mode else CONSOLE_FORMAT)
    )
    handler.addFilter(redacting_filter or SecretRedactingFilter())
    if not debug_mode:
        handler.addFilter(ThirdPartyPrefixFilter())
    return handler


class FlightRecorder(MemoryHandler):
    """Buffer of recent records, written to `path` when trouble shows up.

    The file is truncated when the recorder is created, so it only ever holds
    the records of the current run. Records are masked before they are
    buffered.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        path: Path,
        *,
        capacity: int = 2000,
        flush_level: int = logging.WARNING,
        flush_on_close: bool = False,
        redacting_filter: SecretRedactingFilter | None = None,
    ) -> None:
        target = logging.FileHandler(path, mode="w", encoding="utf-8")
        target.setLevel(logging.DEBUG)
        target.setFormatter(logging.Formatter(FLIGHT_RECORDER_FORMAT))
        super().__init__(
            capacity=capacity,
            flushLevel=flush_level,
            target=target,
            flushOnClose=flush_on_close,
        )
        self.path = path
        self.addFilter(redacting_filter or SecretRedactingFilter())


def config_flight_recorder(
    path: Path,
    capacity: int = 2000,
    flush_level: int = logging.WARNING,
    flush_on_close: bool = False,
    redacting_filter: SecretRedactingFilter | None = None,
) -> FlightRecorder:
    """Return a `FlightRecorder` that keeps `capacity` records for `path`."""
    return FlightRecorder(
        path,
        capacity=capacity,
        flush_level=flush_level,
        flush_on_close=flush_on_close,
        redacting_filter=redacting_filter,
    )


def log_startup(  # pylint: disable=too-many-arguments
    logger: Logger,
    *,
    app_version: str,
    level: int,
    handlers: list[logging.Handler],
    log_path: Path | None,
    flight_recorder: bool,
    flight_capacity: int | None,
    force_flush_fr: bool,
    logger_levels: dict[str, int],
    redactor_mode: str,
) -> None:
    """Log a one-line INFO banner followed by DEBUG diagnostics.

    The diagnostics cover the interpreter, platform, process, working
    directory, database library versions, the active handlers, the redaction
    mode, the flight recorder settings and the per-logger level overrides.
    """
    logger.info(
        "TALLY %s: console=%s, flight-recorder=%s",
        app_version,
        logging.getLevelName(level),
        "ON" if flight_recorder else "OFF",
    )

    diagnostics: list[tuple[str, object]] = [
        ("Python", sys.version.split()[0]),
        ("Platform", f"{platform.system()} {platform.release()}"),
        ("PID", os.getpid()),
        ("CWD", Path.cwd()),
        ("Alembic", alembic.__version__),
        ("SQLAlchemy", sqlalchemy.__version__),
        ("Handlers", [type(h).__name__ for h in handlers]),
        ("Redactor mode", redactor_mode),
    ]
    if flight_recorder:
        diagnostics.append(
            (
                "Flight recorder",
                f"path={log_path or '<none>'}, capacity={flight_capacity}, "
                f"flush_on_close={force_flush_fr}",
            )
        )
    overrides = {name: logging.getLevelName(lvl) for name, lvl in logger_levels.items()}
    diagnostics.append(("Per-logger overrides", overrides or "<none>"))

    for label, value in diagnostics:
        logger.debug("%s: %s", label, value)
