"""TALLY events CLI.

Inspect the append-only event log at ``TALLY_DB_URL``.

Examples
    $ tally events list --limit 20
    $ tally events list --since 40 --json
    $ tally events list --stream 01J...:TokenLedger
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import click
import click_extra as clickx
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import OperationalError

from tally.adapters.db.engine import make_engine
from tally.adapters.eventstore.sqlalchemy_adapters import SqlAlchemyEventStore
from tally.interfaces.eventstore import EventStoreError
from tally.service_layer.event_mapper import EventMapper, UnknownEventTypeError

from .helpers.db_url import resolve_db_url

if TYPE_CHECKING:
    from tally.interfaces.eventstore import EventEnvelope


@click.group(cls=clickx.ExtraGroup)
def events() -> None:
    """Event log commands."""


def _summary(mapper: EventMapper, envelope: EventEnvelope) -> str:
    try:
        return mapper.to_domain_event(envelope).summary
    except UnknownEventTypeError:
        return "-"


@events.command(name="list")
@click.option(
    "--since",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    help="Only show events with a global sequence number above this one.",
)
@click.option(
    "--limit", type=click.IntRange(min=1), default=None, help="Maximum events to show."
)
@click.option(
    "--stream",
    "stream_id",
    default=None,
    help="Show a single stream (ordered by version) instead of the global log.",
)
@click.option("--json", "as_json", is_flag=True, help="Print one JSON object per line.")
def list_events(
    since: int, limit: int | None, stream_id: str | None, as_json: bool
) -> None:
    """List persisted events in commit order."""
    engine = make_engine(resolve_db_url())
    try:
        with engine.connect() as conn:
            store = SqlAlchemyEventStore(conn)
            if stream_id is not None:
                envelopes = list(store.read_stream(stream_id))
                envelopes = [e for e in envelopes if (e.global_seq or 0) > since]
                envelopes = envelopes[:limit] if limit is not None else envelopes
            else:
                envelopes = list(store.read_since(since, limit))
    except (EventStoreError, OperationalError) as e:
        raise click.ClickException(
            f"Cannot read the event log: {e}\nRun 'tally db upgrade' if the schema is missing."
        ) from e
    finally:
        engine.dispose()

    mapper = EventMapper()
    if as_json:
        for envelope in envelopes:
            click.echo(
                json.dumps(
                    {
                        "global_seq": envelope.global_seq,
                        "stream_id": envelope.stream_id,
                        "version": envelope.version,
                        "event_id": envelope.event_id,
                        "event_type": envelope.event_type,
                        "payload": envelope.payload,
                        "metadata": envelope.metadata,
                        "recorded_at": envelope.recorded_at.isoformat()
                        if envelope.recorded_at
                        else None,
                    }
                )
            )
        return

    table = Table(title="Event log")
    table.add_column("Seq", justify="right")
    table.add_column("Stream")
    table.add_column("Ver", justify="right")
    table.add_column("Type")
    table.add_column("Recorded")
    table.add_column("Summary", overflow="fold")
    for envelope in envelopes:
        table.add_row(
            str(envelope.global_seq),
            envelope.stream_id,
            str(envelope.version),
            envelope.event_type,
            envelope.recorded_at.isoformat(timespec="seconds")
            if envelope.recorded_at
            else "",
            _summary(mapper, envelope),
        )
    Console().print(table)
