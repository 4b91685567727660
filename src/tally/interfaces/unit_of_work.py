"""Unit of Work interface for TALLY.

The unit of work is the ledger's single serialization point: entering it grants
exclusive write access to the `LedgerState`, and leaving it without a commit
puts the state back exactly as it was on entry.
"""

from __future__ import annotations

import abc
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from .eventstore import EventEnvelope, EventStore

if TYPE_CHECKING:
    from tally.domain.events import DomainEvent
    from tally.domain.ledger_state import LedgerSnapshot, LedgerState


class AbstractUnitOfWork(abc.ABC):
    """Contract for a transactional unit of work over the ledger."""

    state: LedgerState
    eventstore: EventStore

    def __enter__(self) -> AbstractUnitOfWork:
        """Enter the unit of work context and return the unit.

        Implementations acquire exclusive access and checkpoint the state here.
        """
        return self

    def __exit__(self, *args):
        """Exit the unit of work context.

        Default behavior is to roll back on exit.
        """
        self.rollback()

    @abc.abstractmethod
    def record(
        self, events: Sequence[DomainEvent], metadata: Mapping[str, Any] | None = None
    ) -> None:
        """Queue events to be appended to the event log on commit.

        `metadata` (typically the originating transaction) is stored with each event.
        """

    @abc.abstractmethod
    def commit(self) -> Sequence[EventEnvelope]:
        """Append queued events, publish the new state and return the envelopes."""

    @abc.abstractmethod
    def rollback(self):
        """Discard queued events and restore the state checkpointed on entry."""

    @property
    @abc.abstractmethod
    def published(self) -> LedgerSnapshot:
        """The last committed snapshot, readable without entering the unit."""
