"""Balance-holding wallet with a single administrative owner."""

from __future__ import annotations

from typing import ClassVar

from tally.domain import errors, events
from tally.domain.ledger_state import LedgerState, WalletAccount
from tally.domain.value_objects import Address

from .base import Contract, contract_address


class SimpleWallet(Contract):
    """Wallet anyone may deposit into and only its owner may withdraw from."""

    STREAM_TYPE: ClassVar[str] = "SimpleWallet"

    def __init__(self, state: LedgerState, min_deposit: int) -> None:
        super().__init__(state)
        self.min_deposit = min_deposit

    # --- Construction Paths ---

    @classmethod
    def deploy(cls, state: LedgerState, owner: Address, min_deposit: int) -> SimpleWallet:
        """Deploy the wallet with `owner` as its administrative owner.

        Raises:
            ContractAlreadyDeployedError: If the ledger already has a wallet.
        """
        state.record_wallet(
            WalletAccount(
                address=contract_address(state.ledger_id, cls.STREAM_TYPE),
                owner=owner,
            )
        )
        return cls(state, min_deposit)

    # --- State Transitions ---

    def deposit(self, sender: Address, amount: int) -> None:
        """Move `amount` of native value from `sender` into the wallet.

        Raises:
            InsufficientFundsError: If `amount` is not above the minimum deposit.
            InsufficientBalanceError: If `sender` does not hold `amount`.
        """

        wallet = self.state.require_wallet()
        if amount <= self.min_deposit:
            raise errors.InsufficientFundsError(self.min_deposit, amount, exclusive=True)

        self.state.transfer_native(sender, wallet.address, amount)
        self._emit(events.LogDeposit(amount=str(amount), sender=sender.hex))

    def withdraw(
        self, sender: Address, amount: int, recipient: Address | None = None
    ) -> None:
        """Send `amount` from the wallet to `recipient` (default: the sender).

        Raises:
            NotOwnerError: If `sender` is not the wallet owner.
            InsufficientBalanceError: If the wallet holds less than `amount`.
        """

        wallet = self.state.require_wallet()
        if sender != wallet.owner:
            raise errors.NotOwnerError(sender.hex, self.STREAM_TYPE)

        destination = recipient if recipient is not None else sender
        self.state.transfer_native(wallet.address, destination, amount)
        self._emit(events.LogWithdrawal(amount=str(amount), recipient=destination.hex))
