"""TALLY CLI entry point.

The top-level ``tally`` group (a Click-Extra group) owns everything that is
shared by the subcommands: console verbosity, the flight recorder log file,
per-logger level overrides and the redaction mode used for anything that is
displayed. Subcommand groups:

- ``tally keys``: create and recover signing keys from recovery phrases;
- ``tally tx``: sign transaction batches offline;
- ``tally ledger``: run a signed batch against a ledger seeded from a genesis;
- ``tally events``: inspect the persisted event log;
- ``tally db``: forward-only schema management for the event log.

Examples
    $ tally --version
    $ tally -v keys generate
    $ tally ledger run genesis.json signed.json --json
"""

import logging
from logging import Handler
from pathlib import Path

import click
import click_extra as clickx
from platformdirs import user_log_dir

from tally import __version__
from tally.adapters.redactor import Redactor
from tally.interfaces.redactor import RedactorMode
from tally.logging import (
    SecretRedactingFilter,
    config_console_handler,
    config_flight_recorder,
    log_startup,
)

from .db import db as db_group
from .events import events as events_group
from .helpers import REDACTOR_MODE_KEY, hyperlink
from .helpers.log_level_parser import parse_log_level
from .keys import keys as keys_group
from .ledger import ledger as ledger_group
from .tx import tx as tx_group

logger = logging.getLogger(__name__)

DEFAULT_CONSOLE_LEVEL = logging.WARNING
LEVEL_STEP = 10  # one -v or -q moves one standard level

HELP = """TALLY command-line interface.

    TALLY is an account-based ledger: signed transactions move tokens, register
    domains and hold deposits, and every accepted change is appended to an
    event log so the ledger's history can be audited and replayed.
    """

EPILOG = "\b\n" + "\n".join(
    [
        click.style("References:", fg="blue", bold=True, underline=True),
        "  BIP-39: "
        + hyperlink("https://github.com/bitcoin/bips/blob/master/bip-0039.mediawiki"),
        "  EIP-55: " + hyperlink("https://eips.ethereum.org/EIPS/eip-55"),
    ]
)


def console_level(verbose_count: int, quiet_count: int) -> int:
    """Return the console level for the given ``-v``/``-q`` counts (DEBUG..CRITICAL)."""
    level = DEFAULT_CONSOLE_LEVEL + LEVEL_STEP * (quiet_count - verbose_count)
    return max(logging.DEBUG, min(logging.CRITICAL, level))


def _install_handlers(  # pylint: disable=too-many-arguments
    *,
    level: int,
    debug: bool,
    color: bool,
    redacting_filter: SecretRedactingFilter,
    log_path: Path | None,
    capacity: int,
    flush_on_close: bool,
) -> list[Handler]:
    """Attach the console handler (and the flight recorder when `log_path` is set)."""
    handlers: list[Handler] = [
        config_console_handler(
            level=level,
            debug_mode=debug,
            color=color,
            redacting_filter=redacting_filter,
        )
    ]
    if log_path is not None:
        handlers.append(
            config_flight_recorder(
                path=log_path,
                capacity=capacity,
                flush_on_close=flush_on_close,
                redacting_filter=redacting_filter,
            )
        )

    # the root logger sees everything; each handler applies its own threshold
    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)
    return handlers


@clickx.extra_group(
    version=__version__,
    help=HELP,
    params=[
        clickx.ColorOption(show_envvar=True),
        clickx.TimerOption(show_envvar=True),
        clickx.ExtraVersionOption(),
    ],
    epilog=EPILOG,
)
@click.option(
    "--verbose",
    "-v",
    "verbose_count",
    count=True,
    default=0,
    help="Show more on the console: -v for INFO, -vv for DEBUG.",
)
@click.option(
    "--quiet",
    "-q",
    "quiet_count",
    count=True,
    default=0,
    help="Show less on the console: -q for ERROR, -qq for CRITICAL only.",
)
@click.option(
    "--debug/--no-debug",
    default=False,
    help="Developer output: DEBUG level with timestamps, logger names and source paths.",
)
@click.option(
    "--log-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path(user_log_dir("tally", appauthor=False, ensure_exists=True))
    / "latest.log",
    envvar="TALLY_LOG_PATH",
    show_default=True,
    show_envvar=True,
    help="File the flight recorder writes to (truncated on every run).",
)
@click.option(
    "--flight-recorder-capacity",
    type=click.IntRange(min=1),
    default=2000,
    hidden=True,
    envvar="TALLY_FLIGHT_RECORDER_CAPACITY",
    show_envvar=True,
    help="Number of log records the flight recorder keeps in memory.",
)
@click.option(
    "--flight-recorder/--no-flight-recorder",
    "flight_recorder",
    default=True,
    envvar="TALLY_FLIGHT_RECORDER",
    show_envvar=True,
    help=(
        "Buffer recent records at DEBUG detail, whatever -v/-q say, and write "
        "them to --log-path as soon as a WARNING or worse is logged."
    ),
)
@click.option(
    "--force-flush/--no-force-flush",
    "force_flush_flight_recorder",
    default=False,
    envvar="TALLY_FORCE_FLUSH_FLIGHT_RECORDER",
    show_default=True,
    show_envvar=True,
    help="Also write the flight recorder buffer to --log-path when the command ends.",
)
@click.option(
    "-L",
    "--logger-level",
    "logger_levels",
    multiple=True,
    callback=parse_log_level,
    default=("sqlalchemy=WARNING", "alembic=WARNING"),
    envvar="TALLY_LOGGER_LEVELS",
    show_default=True,
    show_envvar=True,
    help=(
        "Minimum level of one logger as NAME=LEVEL; affects the console and the "
        "flight recorder alike. Repeatable, or a comma/space separated list in "
        "TALLY_LOGGER_LEVELS."
    ),
)
@click.option(
    "--redactor-mode",
    "redactor_mode",
    type=click.Choice([mode.value for mode in RedactorMode], case_sensitive=False),
    default=RedactorMode.LENIENT.value,
    envvar="TALLY_REDACTOR_MODE",
    show_default=True,
    show_envvar=True,
    help=(
        "How much to hide in displayed URLs and log lines. 'lenient' masks "
        "passwords and tokens, 'strict' masks user names as well. Private keys "
        "and recovery phrases are always masked."
    ),
)
@clickx.pass_context
def tally(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    ctx: click.Context,
    verbose_count: int,
    quiet_count: int,
    debug: bool,
    log_path: Path,
    flight_recorder_capacity: int,
    flight_recorder: bool,
    force_flush_flight_recorder: bool,
    logger_levels: dict[str, int],
    redactor_mode: str,
) -> None:
    """TALLY command-line interface."""
    level = logging.DEBUG if debug else console_level(verbose_count, quiet_count)

    mode = RedactorMode(redactor_mode.lower())
    ctx.meta[REDACTOR_MODE_KEY] = mode

    handlers = _install_handlers(
        level=level,
        debug=debug,
        color=ctx.color is not False,
        redacting_filter=SecretRedactingFilter(Redactor(mode)),
        log_path=log_path if flight_recorder else None,
        capacity=flight_recorder_capacity,
        flush_on_close=force_flush_flight_recorder,
    )
    for name, name_level in logger_levels.items():
        logging.getLogger(name).setLevel(name_level)

    log_startup(
        logger,
        app_version=__version__,
        level=level,
        handlers=handlers,
        log_path=log_path,
        flight_recorder=flight_recorder,
        flight_capacity=flight_recorder_capacity if flight_recorder else None,
        force_flush_fr=force_flush_flight_recorder,
        logger_levels=logger_levels,
        redactor_mode=mode.value,
    )

    # flushes the flight recorder (when --force-flush) after the subcommand returns
    ctx.call_on_close(logging.shutdown)


for _group in (keys_group, tx_group, ledger_group, events_group, db_group):
    tally.add_command(_group)
