"""The ledger's transition function.

`TransactionProcessor` takes a signed `Transaction` through

    RECEIVED -> VERIFIED -> APPLIED
    RECEIVED | VERIFIED -> REJECTED

Checks run in a fixed order: signature, nonce, then the rule of the contract
the transaction targets. All checks happen before any mutation, and every
mutation happens inside the unit of work, so a rejected transaction leaves the
ledger exactly as it found it.

Signature verification touches no ledger state and can therefore run in
parallel (`verify_batch`); applying is strictly sequential.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from tally.domain import errors
from tally.domain.contracts import Contract, DomainRegistry, SimpleWallet, TokenLedger
from tally.domain.value_objects import Transaction, TransactionKind

from .results import Applied, Outcome, Rejected, TransactionStatus

if TYPE_CHECKING:
    from tally.config import LedgerConfig
    from tally.domain.ledger_state import LedgerState
    from tally.interfaces.keys import Verifier
    from tally.interfaces.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """Verifies, checks and applies transactions against one ledger.

    Args:
        uow: The ledger's unit of work; the only way the processor touches state.
        verifier: Checks transaction signatures against their sender.
        config: Ledger constants (registration cost, minimum deposit).
        max_workers: Thread pool size for `verify_batch` (None lets the
            executor decide).
    """

    def __init__(
        self,
        uow: AbstractUnitOfWork,
        verifier: Verifier,
        config: LedgerConfig,
        max_workers: int | None = None,
    ) -> None:
        self.uow = uow
        self.verifier = verifier
        self.config = config
        self.max_workers = max_workers
        self._rules: dict[
            TransactionKind, Callable[[LedgerState, Transaction], Contract]
        ] = {
            TransactionKind.REGISTER: self._register,
            TransactionKind.TRANSFER_DOMAIN: self._transfer_domain,
            TransactionKind.TRANSFER_TOKEN: self._transfer_token,
            TransactionKind.DEPOSIT: self._deposit,
            TransactionKind.WITHDRAW: self._withdraw,
            TransactionKind.COLLECT_FEES: self._collect_fees,
        }

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def submit(self, transaction: Transaction) -> Outcome:
        """Verify and apply one transaction.

        Returns:
            `Applied` with the changed entries and persisted events, or
            `Rejected` with the error kind and reason.

        Raises:
            DomainError: For faults that are not transaction rejections, such as
                a contract that was never deployed. The state is rolled back.
            EventStoreError: If the event log cannot be written. The state is
                rolled back.
        """
        self._trace(transaction, TransactionStatus.RECEIVED)
        if not self.verify(transaction):
            return self._reject(
                transaction, errors.InvalidSignatureError(transaction.sender.hex)
            )
        return self._apply(transaction)

    def verify(self, transaction: Transaction) -> bool:
        """Return True iff the transaction carries a valid signature by its sender."""
        if transaction.signature is None:
            return False
        return self.verifier.verify(
            transaction.sender, transaction.payload, transaction.signature
        )

    def verify_batch(self, transactions: Iterable[Transaction]) -> list[bool]:
        """Verify signatures of many transactions in parallel, preserving order."""
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(self.verify, transactions))

    def submit_batch(self, transactions: Sequence[Transaction]) -> list[Outcome]:
        """Verify in parallel, then apply in input order.

        The outcomes equal those of calling `submit` on each transaction in turn.
        """
        outcomes: list[Outcome] = []
        for transaction, valid in zip(transactions, self.verify_batch(transactions)):
            self._trace(transaction, TransactionStatus.RECEIVED)
            if not valid:
                outcomes.append(
                    self._reject(
                        transaction,
                        errors.InvalidSignatureError(transaction.sender.hex),
                    )
                )
                continue
            outcomes.append(self._apply(transaction))
        return outcomes

    # ------------------------------------------------------------------ #
    # Apply stage
    # ------------------------------------------------------------------ #

    def _apply(self, transaction: Transaction) -> Outcome:
        self._trace(transaction, TransactionStatus.VERIFIED)

        with self.uow:
            before = self.uow.published
            state = self.uow.state
            try:
                if (expected := state.nonce_of(transaction.sender)) != transaction.nonce:
                    raise errors.InvalidNonceError(
                        transaction.sender.hex, expected, transaction.nonce
                    )
                contract = self._rules[transaction.kind](state, transaction)
                state.increment_nonce(transaction.sender)
                self.uow.record(
                    contract.dequeue_uncommitted(),
                    metadata={
                        "sender": transaction.sender.hex,
                        "kind": transaction.kind.value,
                        "nonce": transaction.nonce,
                    },
                )
                envelopes = self.uow.commit()
            except errors.TransactionRejectedError as e:
                return self._reject(transaction, e)
            after = self.uow.published

        self._trace(transaction, TransactionStatus.APPLIED)
        return Applied(
            transaction=transaction, delta=before.diff(after), events=tuple(envelopes)
        )

    def _reject(
        self, transaction: Transaction, error: errors.TransactionRejectedError
    ) -> Rejected:
        self._trace(transaction, TransactionStatus.REJECTED, str(error))
        return Rejected(transaction=transaction, kind=error.kind, reason=str(error))

    @staticmethod
    def _trace(
        transaction: Transaction, status: TransactionStatus, detail: str = ""
    ) -> None:
        logger.debug(
            "%s #%d from %s: %s%s",
            transaction.kind.value,
            transaction.nonce,
            transaction.sender,
            status.value.upper(),
            f" ({detail})" if detail else "",
        )

    # ------------------------------------------------------------------ #
    # Contract rules
    # ------------------------------------------------------------------ #

    def _register(self, state: LedgerState, tx: Transaction) -> Contract:
        registry = DomainRegistry(state, self.config.registration_cost)
        registry.register(tx.sender, str(tx.domain), tx.amount)
        return registry

    def _transfer_domain(self, state: LedgerState, tx: Transaction) -> Contract:
        registry = DomainRegistry(state, self.config.registration_cost)
        assert tx.recipient is not None  # enforced by Transaction
        registry.transfer(tx.sender, str(tx.domain), tx.recipient)
        return registry

    @staticmethod
    def _transfer_token(state: LedgerState, tx: Transaction) -> Contract:
        token_ledger = TokenLedger(state)
        assert tx.recipient is not None  # enforced by Transaction
        token_ledger.transfer(tx.sender, tx.recipient, tx.amount)
        return token_ledger

    def _deposit(self, state: LedgerState, tx: Transaction) -> Contract:
        wallet = SimpleWallet(state, self.config.min_deposit)
        wallet.deposit(tx.sender, tx.amount)
        return wallet

    def _withdraw(self, state: LedgerState, tx: Transaction) -> Contract:
        wallet = SimpleWallet(state, self.config.min_deposit)
        wallet.withdraw(tx.sender, tx.amount, tx.recipient)
        return wallet

    def _collect_fees(self, state: LedgerState, tx: Transaction) -> Contract:
        registry = DomainRegistry(state, self.config.registration_cost)
        registry.collect_fees(tx.sender, tx.amount, tx.recipient)
        return registry
