"""Event log on a SQL database via SQLAlchemy Core.

Rows live in the `event_store` table of `tally.adapters.eventstore.schema`.
The adapter never commits: it runs on a `Connection` owned by the unit of
work, which commits or rolls back the surrounding transaction. Driver errors
are translated into the `EventStoreError` family.
"""

from collections.abc import Iterable, Sequence
from typing import NoReturn, cast

from sqlalchemy import RowMapping, Select, func, insert, select
from sqlalchemy.engine import Connection
from sqlalchemy.exc import DataError, DBAPIError, IntegrityError

from tally.interfaces.eventstore import (
    DuplicateEventIdError,
    EventEnvelope,
    EventEnvelopeBatch,
    EventStore,
    InvalidEnvelopeError,
    StoreUnavailableError,
    VersionConflictError,
)

from ..schema import event_store

# all keywords must appear in the driver message
UNIQUE_EVENT_ID_CONSTRAINT_KEYWORDS = ("event_id", "unique")
UNIQUE_STREAM_VERSION_CONSTRAINT_KEYWORDS = ("stream_id", "version")


class SqlAlchemyEventStore(EventStore):
    """`EventStore` over the `event_store` table."""

    def __init__(self, connection: Connection):
        self.connection = connection

    # --------------------------------------------------------------------- #
    # Interface implementation
    # --------------------------------------------------------------------- #

    def append(
        self, events: Sequence[EventEnvelope] | EventEnvelopeBatch
    ) -> Sequence[EventEnvelope]:
        batch = (
            events
            if isinstance(events, EventEnvelopeBatch)
            else EventEnvelopeBatch.from_events(events)
        )

        try:
            tip = self._fetch_stream_tip(batch.stream_id)
            expected_first = 1 if tip is None else tip + 1
            if batch.starting_version != expected_first:
                raise VersionConflictError(
                    f"expected first version {expected_first}, got {batch.starting_version}"
                )
            persisted_rows = self._insert_returning(batch)
        except IntegrityError as e:
            self._raise_from_integrity_error(e)
        except DataError as e:  # value too long, bad JSON, etc.
            raise InvalidEnvelopeError(str(e)) from e
        except DBAPIError as e:  # OperationalError, InterfaceError, ...
            raise StoreUnavailableError(str(e)) from e

        return [EventEnvelope(**row) for row in persisted_rows]

    def read_stream(
        self, stream_id: str, from_version: int = 1, to_version: int | None = None
    ) -> Iterable[EventEnvelope]:
        if from_version < 1:
            raise ValueError("from_version must be >= 1")
        if to_version is not None and to_version < from_version:
            raise ValueError("to_version must be >= from_version")

        stmt: Select = (
            select(event_store)
            .where(event_store.c.stream_id == stream_id)
            .where(event_store.c.version >= from_version)
            .order_by(event_store.c.version.asc())
        )
        if to_version is not None:
            stmt = stmt.where(event_store.c.version <= to_version)

        yield from self._envelopes(stmt)

    def read_since(
        self, global_seq: int = 0, limit: int | None = None
    ) -> Iterable[EventEnvelope]:
        if global_seq < 0:
            raise ValueError("global_seq must be >= 0")
        if limit is not None and limit < 1:
            raise ValueError("limit cannot be <= 0")

        stmt: Select = (
            select(event_store)
            .where(event_store.c.global_seq > global_seq)
            .order_by(event_store.c.global_seq.asc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        yield from self._envelopes(stmt)

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _envelopes(self, stmt: Select) -> Iterable[EventEnvelope]:
        # fetch eagerly so the cursor is closed before the caller iterates
        rows = self.connection.execute(stmt).mappings().all()
        return [EventEnvelope(**row) for row in rows]

    def _fetch_stream_tip(self, stream_id: str) -> int | None:
        """Return the highest version stored for `stream_id`, or None if empty."""
        stmt = select(func.max(event_store.c.version)).where(
            event_store.c.stream_id == stream_id
        )
        return cast(int | None, self.connection.execute(stmt).scalar_one_or_none())

    def _insert_returning(self, batch: EventEnvelopeBatch) -> Sequence[RowMapping]:
        """Insert the batch in input order and return the stored rows."""
        rows = [event.as_insertable_row() for event in batch.events]
        return (
            self.connection.execute(
                insert(event_store).values(rows).returning(event_store)
            )
            .mappings()
            .all()
        )

    @staticmethod
    def _raise_from_integrity_error(integrity_error: IntegrityError) -> NoReturn:
        """Translate an IntegrityError into the matching event store error.

        Raises:
            DuplicateEventIdError: If the event_id unique constraint was violated.
            VersionConflictError: If a concurrent writer took the same stream version.
            InvalidEnvelopeError: For any other integrity error.
        """

        msg = str(integrity_error.orig or integrity_error).lower()
        if all(kw in msg for kw in UNIQUE_EVENT_ID_CONSTRAINT_KEYWORDS):
            raise DuplicateEventIdError(msg) from integrity_error
        if all(kw in msg for kw in UNIQUE_STREAM_VERSION_CONSTRAINT_KEYWORDS):
            raise VersionConflictError(msg) from integrity_error
        raise InvalidEnvelopeError(msg) from integrity_error
