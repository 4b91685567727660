"""Base class for all contracts."""

import abc
import hashlib
from typing import ClassVar

from tally.domain.events import DomainEvent
from tally.domain.ledger_state import LedgerState
from tally.domain.value_objects import ADDRESS_LENGTH, Address


def contract_address(ledger_id: str, contract: str) -> Address:
    """Derive the deterministic address of `contract` on ledger `ledger_id`."""
    digest = hashlib.sha256(f"{ledger_id}:{contract}".encode("utf-8")).digest()
    return Address(digest[-ADDRESS_LENGTH:])


class Contract(abc.ABC):
    """Generic base class for the ledger's rule-sets.

    A contract is a thin, stateless view over `LedgerState`: every record it reads
    or writes lives in the state, and every mutation goes through the state's
    primitives. Emitted events are queued until the caller dequeues them.
    """

    STREAM_TYPE: ClassVar[str]
    """A string identifier for the event stream this contract writes to."""

    def __init__(self, state: LedgerState) -> None:
        self.state = state
        self._pending_events: list[DomainEvent] = []

    # --- Plumbing ---

    def _emit(self, event: DomainEvent) -> None:
        if event.STREAM_TYPE != self.STREAM_TYPE:
            raise ValueError(
                f"{type(event).__name__} does not belong to the {self.STREAM_TYPE} stream"
            )
        self._pending_events.append(event)

    def dequeue_uncommitted(self) -> list[DomainEvent]:
        """Dequeue all events emitted since the last call to this method.

        Note: This is NOT thread-safe. Contracts are only used under the unit of
        work's lock.
        """

        uncommitted_events = self._pending_events
        self._pending_events = []
        return uncommitted_events
