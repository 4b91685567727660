"""Outcomes of submitting a transaction to the processor."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeAlias

from tally.domain.errors import ErrorKind
from tally.domain.ledger_state import LedgerDelta
from tally.domain.value_objects import Transaction
from tally.interfaces.eventstore import EventEnvelope


class TransactionStatus(Enum):
    """Lifecycle of a transaction inside the processor.

    RECEIVED -> VERIFIED -> APPLIED, or RECEIVED | VERIFIED -> REJECTED.
    """

    RECEIVED = "received"
    VERIFIED = "verified"
    APPLIED = "applied"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class Applied:
    """A transaction that passed every check and changed the ledger."""

    transaction: Transaction
    delta: LedgerDelta
    events: Sequence[EventEnvelope] = field(default_factory=tuple)

    status = TransactionStatus.APPLIED


@dataclass(frozen=True, slots=True)
class Rejected:
    """A transaction that failed a check; the ledger is unchanged."""

    transaction: Transaction
    kind: ErrorKind
    reason: str

    status = TransactionStatus.REJECTED


Outcome: TypeAlias = Applied | Rejected
