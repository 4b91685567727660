"""Unit of Work implementations for TALLY.

`LedgerUnitOfWork` holds everything the two concrete units share: the writer
lock, the state checkpoint, per-stream version tracking, conversion of queued
domain events into envelopes, and publication of the committed snapshot.
Subclasses only decide where the envelopes go and how the store transaction
ends:

- `InMemoryUnitOfWork` appends to an `InMemoryEventStore`;
- `SqlAlchemyUnitOfWork` appends through a connection that it commits or rolls back.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from tally.adapters.eventstore.in_memory_adapters import InMemoryEventStore
from tally.adapters.eventstore.sqlalchemy_adapters import SqlAlchemyEventStore
from tally.adapters.id_generators import ULIDGenerator
from tally.interfaces.eventstore import EventEnvelope, EventStore
from tally.interfaces.unit_of_work import AbstractUnitOfWork

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

    from tally.domain.events import DomainEvent
    from tally.domain.ledger_state import LedgerSnapshot, LedgerState
    from tally.interfaces.id_generator import IdGenerator
    from tally.service_layer.event_mapper import EventMapper

logger = logging.getLogger(__name__)


def stream_id_for(ledger_id: str, stream_type: str) -> str:
    """Return the id of the event stream of `stream_type` on ledger `ledger_id`."""
    return f"{ledger_id}:{stream_type}"


class LedgerUnitOfWork(AbstractUnitOfWork):
    """Single-writer unit of work over a `LedgerState`.

    Entering acquires the writer lock; leaving without a commit restores the
    state to the last committed snapshot and drops queued events.
    """

    eventstore: EventStore

    def __init__(
        self,
        state: LedgerState,
        event_mapper: EventMapper,
        id_generator: IdGenerator | None = None,
    ) -> None:
        self.state = state
        self._event_mapper = event_mapper
        self._id_generator = id_generator or ULIDGenerator()
        self._lock = threading.Lock()
        self._pending: list[tuple[DomainEvent, Mapping[str, Any] | None]] = []
        self._stream_versions: dict[str, int] = {}
        self._published = state.snapshot()

    # --------------------------------------------------------------------- #
    # Context management
    # --------------------------------------------------------------------- #

    def __enter__(self) -> LedgerUnitOfWork:
        self._lock.acquire()
        try:
            self._open_store()
        except Exception:
            self._lock.release()
            raise
        return self

    def __exit__(self, *args):
        try:
            super().__exit__(*args)
        finally:
            try:
                self._close_store()
            finally:
                self._lock.release()

    # --------------------------------------------------------------------- #
    # Interface implementation
    # --------------------------------------------------------------------- #

    @property
    def published(self) -> LedgerSnapshot:
        return self._published

    def record(
        self, events: Sequence[DomainEvent], metadata: Mapping[str, Any] | None = None
    ) -> None:
        self._pending.extend((event, metadata) for event in events)

    def commit(self) -> Sequence[EventEnvelope]:
        versions = dict(self._stream_versions)
        envelopes: list[EventEnvelope] = []

        # consecutive events of one stream form one atomic batch
        for stream_type, group in itertools.groupby(
            self._pending, key=lambda item: item[0].STREAM_TYPE
        ):
            stream_id = stream_id_for(self.state.ledger_id, stream_type)
            version = versions.get(stream_id)
            if version is None:
                version = self._stream_tip(stream_id)

            batch = []
            for event, metadata in group:
                version += 1
                batch.append(
                    self._event_mapper.to_envelope(
                        stream_id=stream_id,
                        stream_type=stream_type,
                        version=version,
                        event_id=self._id_generator.new_id(),
                        event=event,
                        metadata=metadata,
                    )
                )
            envelopes.extend(self.eventstore.append(batch))
            versions[stream_id] = version

        self._commit_store()

        self._stream_versions = versions
        self._pending = []
        self._published = self.state.snapshot()
        logger.debug(
            "Committed %d event(s) on ledger %s", len(envelopes), self.state.ledger_id
        )
        return envelopes

    def rollback(self):
        self._rollback_store()
        if self._pending:
            logger.debug(
                "Discarding %d uncommitted event(s) on ledger %s",
                len(self._pending),
                self.state.ledger_id,
            )
        self._pending = []
        self.state.restore(self._published)

    # --------------------------------------------------------------------- #
    # Store hooks
    # --------------------------------------------------------------------- #

    def _stream_tip(self, stream_id: str) -> int:
        tip = 0
        for envelope in self.eventstore.read_stream(stream_id):
            tip = envelope.version
        return tip

    def _open_store(self) -> None:
        """Acquire store resources for one unit (no-op by default)."""

    def _close_store(self) -> None:
        """Release store resources acquired on entry (no-op by default)."""

    def _commit_store(self) -> None:
        """Make the appended envelopes durable (no-op by default)."""

    def _rollback_store(self) -> None:
        """Discard envelopes appended since the last commit (no-op by default)."""


class InMemoryUnitOfWork(LedgerUnitOfWork):
    """Unit of work appending to an in-memory event store."""

    def __init__(
        self,
        state: LedgerState,
        event_mapper: EventMapper,
        id_generator: IdGenerator | None = None,
        eventstore: InMemoryEventStore | None = None,
    ) -> None:
        super().__init__(state, event_mapper, id_generator)
        self.eventstore = eventstore if eventstore is not None else InMemoryEventStore()


class SqlAlchemyUnitOfWork(LedgerUnitOfWork):
    """Unit of work appending to the `event_store` table.

    A connection is opened on entry and closed on exit; commit ends its
    transaction so the appended events become durable.
    """

    def __init__(
        self,
        state: LedgerState,
        event_mapper: EventMapper,
        engine: Engine,
        id_generator: IdGenerator | None = None,
    ) -> None:
        super().__init__(state, event_mapper, id_generator)
        self.engine = engine
        self.connection: Connection | None = None

    def _open_store(self) -> None:
        self.connection = self.engine.connect()
        self.eventstore = SqlAlchemyEventStore(self.connection)

    def _close_store(self) -> None:
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    def _commit_store(self) -> None:
        if self.connection is not None:
            self.connection.commit()

    def _rollback_store(self) -> None:
        if self.connection is not None:
            self.connection.rollback()
