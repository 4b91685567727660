"""Module defining Commands."""

from dataclasses import dataclass

from tally.domain.value_objects import Transaction


@dataclass(frozen=True)
class Command:
    """Base class for all commands."""


@dataclass(frozen=True)
class SubmitTransaction(Command):
    """Command to verify and apply one signed transaction."""

    transaction: Transaction


@dataclass(frozen=True)
class SubmitBatch(Command):
    """Command to verify a batch in parallel and apply it in order."""

    transactions: tuple[Transaction, ...]
