"""Event log port.

Each contract of a ledger writes to its own stream, ``"<ledger_id>:<contract>"``,
whose events are numbered 1, 2, 3... by ``version``. The store additionally
numbers every event it accepts with a ledger-wide ``global_seq`` so the whole
log can be replayed in commit order.

- `EventEnvelope`: one event plus its stream coordinates and metadata.
- `EventEnvelopeBatch`: consecutive events of one stream, appended atomically.
- `EventStore`: the append/read port implemented by the adapters.

Appends never rewrite history: a batch whose first version is not the stream
tip plus one is refused with `VersionConflictError`, and an ``event_id`` seen
before is refused with `DuplicateEventIdError`. Reads return envelopes in
ascending order and an empty iterator when nothing matches.
"""

import abc
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any

ULID_LENGTH = 26


class EventStoreError(Exception):
    """Base class for event log errors."""


class VersionConflictError(EventStoreError):
    """A batch does not continue its stream at the current tip."""


class DuplicateEventIdError(EventStoreError):
    """An event_id is already present in the log."""


class InvalidEnvelopeError(EventStoreError):
    """An envelope or batch breaks its invariants."""


class StoreUnavailableError(EventStoreError):
    """The backing database could not be reached; the append may be retried."""


@dataclass(frozen=True, slots=True)
class EventEnvelope:
    """A ledger event as stored in the log.

    ``global_seq`` and ``recorded_at`` are filled in by the store on append;
    a ``recorded_at`` supplied by the caller must be UTC.
    """

    # pylint: disable=too-many-instance-attributes

    stream_id: str
    stream_type: str
    version: int
    event_id: str
    event_type: str
    payload: dict[str, Any]
    metadata: dict[str, Any] | None = None
    recorded_at: datetime | None = None
    global_seq: int | None = None

    def __post_init__(self) -> None:
        if len(self.event_id) != ULID_LENGTH:
            raise InvalidEnvelopeError("event_id must be a 26-character ULID.")
        if self.version < 1:
            raise InvalidEnvelopeError("version must be >= 1")
        if self.global_seq is not None and self.global_seq < 1:
            raise InvalidEnvelopeError("global_seq must be >= 1 when set")
        if self.recorded_at is not None:
            offset = self.recorded_at.utcoffset()
            if offset is None:
                raise InvalidEnvelopeError("recorded_at must be tz-aware.")
            if offset != timedelta(0):
                raise InvalidEnvelopeError("recorded_at must be UTC.")
        if not all(
            name.strip() for name in (self.stream_id, self.stream_type, self.event_type)
        ):
            raise InvalidEnvelopeError(
                "stream_id, stream_type, and event_type must be non-empty."
            )

    def as_insertable_row(self) -> dict[str, Any]:
        """Return the columns the caller provides (no ``global_seq``, and no
        ``recorded_at`` unless one was set)."""
        row = asdict(self)
        del row["global_seq"]
        if row["recorded_at"] is None:
            del row["recorded_at"]
        return row


@dataclass(frozen=True, slots=True)
class EventEnvelopeBatch:
    """Events of a single stream, to be appended all or nothing.

    The events must be unpersisted, have distinct ids and carry consecutive
    versions in order.
    """

    stream_id: str
    stream_type: str
    events: Sequence[EventEnvelope]

    def __post_init__(self) -> None:
        if not self.events:
            raise InvalidEnvelopeError("Empty batch is not allowed.")

        streams = {(e.stream_id, e.stream_type) for e in self.events}
        if streams != {(self.stream_id, self.stream_type)}:
            raise InvalidEnvelopeError("Mixed streams in a single batch.")
        if any(e.global_seq is not None for e in self.events):
            raise InvalidEnvelopeError("global_seq must be None before persistence.")
        if len({e.event_id for e in self.events}) != len(self.events):
            raise InvalidEnvelopeError("Duplicate event_id within batch.")

        first = self.starting_version
        if [e.version for e in self.events] != list(
            range(first, first + len(self.events))
        ):
            raise InvalidEnvelopeError(
                "Versions in batch must be contiguous and ordered."
            )

    @property
    def starting_version(self) -> int:
        """Version of the first event, which must follow the stream tip."""
        return self.events[0].version

    @classmethod
    def from_events(cls, events: Sequence[EventEnvelope]) -> "EventEnvelopeBatch":
        """Build a batch on the stream of the first event.

        Raises:
            InvalidEnvelopeError: If `events` is empty or breaks the batch rules.
        """
        if not events:
            raise InvalidEnvelopeError("Empty batch is not allowed.")
        return cls(events[0].stream_id, events[0].stream_type, events)


class EventStore(abc.ABC):
    """Append-only event log."""

    @abc.abstractmethod
    def append(
        self, events: EventEnvelopeBatch | Sequence[EventEnvelope]
    ) -> Sequence[EventEnvelope]:
        """Append one stream's events atomically.

        Returns:
            The stored envelopes, in the given order, with ``global_seq`` and
            ``recorded_at`` set.

        Raises:
            InvalidEnvelopeError: If the events do not form a valid batch.
            VersionConflictError: If the batch does not start at the tip + 1.
            DuplicateEventIdError: If an event_id is already stored.
            StoreUnavailableError: If the database cannot be reached.
        """

    @abc.abstractmethod
    def read_stream(
        self, stream_id: str, from_version: int = 1, to_version: int | None = None
    ) -> Iterable[EventEnvelope]:
        """Yield the events of `stream_id` between two versions (inclusive).

        Raises:
            ValueError: If from_version < 1 or to_version < from_version.
        """

    @abc.abstractmethod
    def read_since(
        self, global_seq: int = 0, limit: int | None = None
    ) -> Iterable[EventEnvelope]:
        """Yield up to `limit` events stored after position `global_seq`.

        Raises:
            ValueError: If global_seq < 0 or limit < 1.
        """
