"""TALLY DB CLI.

Schema management for the event log at ``TALLY_DB_URL``. Migrations only move
forward: the log is append-only, so there is no ``downgrade`` or ``stamp``.

Alembic writes its own output to **stdout**; notices, prompts and status
glyphs go to **stderr**. ``upgrade`` asks for confirmation unless ``--force``
(or ``--sql``, which only prints the DDL) is given.

Examples
    $ tally db status
    $ tally db upgrade --force
    $ tally db history -i
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum

import click
import click_extra as clickx
from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import func, inspect, select

from tally import config
from tally.adapters.db.engine import make_engine
from tally.adapters.eventstore.schema import event_store

from .helpers import current_redactor_mode, error, sanitize_url, success, warn
from .helpers.db_url import resolve_db_url

BACKUP_WARNING = (
    "This will migrate the event log schema to the latest revision.\n"
    "Back up the database first if it holds a ledger you care about."
)

NEEDS_UPGRADE_HINT = "Run 'tally db upgrade' to bring the schema up to date."


def _alembic(db_url: str | None = None) -> Config:
    # sys.stdout is looked up per call so output follows any redirection
    return config.build_alembic_config(db_url=db_url, stdout=sys.stdout)


verbose_option = click.option(
    "--verbose", "-v", is_flag=True, help="Show Alembic's detailed output."
)


class MigrationStatus(Enum):
    """Where the database schema stands relative to the migration scripts."""

    UP_TO_DATE = "up to date"
    OUT_OF_DATE = "out of date"
    UNINITIALIZED = "uninitialized"

    @classmethod
    def of(cls, current: str | None, head: str | None) -> MigrationStatus:
        """Classify a database at revision `current` against `head`."""
        if current is None:
            return cls.UNINITIALIZED
        return cls.UP_TO_DATE if current == head else cls.OUT_OF_DATE


@dataclass(frozen=True)
class SchemaReport:
    """What `tally db status` found in the database."""

    backend: str
    current: str | None
    head: str | None
    event_count: int | None

    @property
    def status(self) -> MigrationStatus:
        return MigrationStatus.of(self.current, self.head)


def inspect_schema(url: str) -> SchemaReport:
    """Read the backend name, schema revision and event count at `url`."""
    scripts = ScriptDirectory.from_config(_alembic())
    engine = make_engine(url)
    try:
        with engine.connect() as conn:
            current = MigrationContext.configure(conn).get_current_revision()
            event_count = None
            if inspect(conn).has_table(event_store.name):
                event_count = conn.execute(
                    select(func.count()).select_from(event_store)
                ).scalar_one()
        return SchemaReport(
            backend=engine.dialect.name,
            current=current,
            head=scripts.get_current_head(),
            event_count=event_count,
        )
    finally:
        engine.dispose()


@click.group(cls=clickx.ExtraGroup)
def db() -> None:
    """Database management commands."""


@db.command()
@verbose_option
def current(verbose: bool) -> None:
    """Show the revision the database is at."""
    command.current(_alembic(resolve_db_url()), verbose=verbose)


@db.command()
@verbose_option
def heads(verbose: bool) -> None:
    """Show the newest revision of the migration scripts."""
    command.heads(_alembic(), verbose=verbose)


@db.command()
@verbose_option
@click.option(
    "--indicate-current",
    "-i",
    is_flag=True,
    help="Mark the database's revision (needs TALLY_DB_URL).",
)
def history(verbose: bool, indicate_current: bool) -> None:
    """Show the migration history."""
    url = resolve_db_url() if indicate_current else None
    command.history(_alembic(url), verbose=verbose, indicate_current=indicate_current)


@db.command()
@click.option("--sql", is_flag=True, help="Print the DDL instead of running it.")
@click.option("--force", is_flag=True, help="Do not ask for confirmation.")
def upgrade(sql: bool, force: bool) -> None:
    """Migrate the database to the latest revision."""
    url = resolve_db_url()
    if not (force or sql):
        warn(BACKUP_WARNING)
        shown = click.style(sanitize_url(url, current_redactor_mode()), underline=True)
        click.echo(f"db: {shown}", err=True)
        click.confirm("Are you sure you want to proceed?", abort=True, err=True)

    command.upgrade(_alembic(url), revision="head", sql=sql)
    if not sql:
        success("Upgrade complete!")


@db.command()
def status() -> None:
    """Show whether the database answers and how its schema stands."""
    try:
        url = resolve_db_url()
    except click.ClickException as e:
        error("Cannot connect to database")
        click.echo(e.message)
        return

    report = inspect_schema(url)
    success("Database reachable")
    click.echo(f"Backend : {report.backend}")
    click.echo(f"URL     : {sanitize_url(url, current_redactor_mode())}")
    if report.current is None:
        click.echo(f"Schema  : {report.status.value}")
    else:
        click.echo(f"Schema  : {report.current} ({report.status.value})")
    if report.event_count is not None:
        click.echo(f"Events  : {report.event_count}")

    if report.status is not MigrationStatus.UP_TO_DATE:
        warn(NEEDS_UPGRADE_HINT)
