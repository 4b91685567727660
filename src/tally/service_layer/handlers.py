"""Service layer handlers."""

import logging
from collections.abc import Callable

from . import commands
from .processor import TransactionProcessor
from .results import Applied, Outcome

logger = logging.getLogger(__name__)


# ============================================================================
#                        Transaction Handlers
# ============================================================================


def submit_transaction(
    cmd: commands.SubmitTransaction, processor: TransactionProcessor
) -> Outcome:
    """Submit a single transaction to the processor."""
    return processor.submit(cmd.transaction)


def submit_batch(
    cmd: commands.SubmitBatch, processor: TransactionProcessor
) -> list[Outcome]:
    """Submit a batch of transactions; signatures are verified in parallel."""

    outcomes = processor.submit_batch(cmd.transactions)
    applied = sum(isinstance(outcome, Applied) for outcome in outcomes)
    logger.info(
        "Batch of %d: %d applied, %d rejected",
        len(outcomes),
        applied,
        len(outcomes) - applied,
    )
    return outcomes


# ============================================================================
#                       Handler Registry
# ============================================================================


COMMAND_HANDLERS: dict[type, Callable[..., object]] = {
    commands.SubmitTransaction: submit_transaction,
    commands.SubmitBatch: submit_batch,
}
