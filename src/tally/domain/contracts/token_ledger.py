"""Fixed-supply token ledger."""

from __future__ import annotations

from typing import ClassVar

from tally.domain import errors, events
from tally.domain.ledger_state import LedgerState, TokenInfo
from tally.domain.value_objects import Address

from .base import Contract


class TokenLedger(Contract):
    """Token whose whole supply is minted to the deployer, once, at deployment.

    There is no mint operation after deployment, so the sum of all token
    balances equals the initial supply for the lifetime of the ledger.
    """

    STREAM_TYPE: ClassVar[str] = "TokenLedger"

    # --- Construction Paths ---

    @classmethod
    def deploy(cls, state: LedgerState, owner: Address, initial_supply: int) -> TokenLedger:
        """Deploy the token and credit `initial_supply` to `owner`.

        Raises:
            ContractAlreadyDeployedError: If the ledger already has a token.
        """

        state.record_token(TokenInfo(owner=owner, total_supply=initial_supply))
        state.credit(owner, initial_supply)

        token_ledger = cls(state)
        token_ledger._emit(
            events.TokensMinted(owner=owner.hex, amount=str(initial_supply))
        )
        return token_ledger

    # --- State Transitions ---

    def transfer(self, sender: Address, recipient: Address, amount: int) -> None:
        """Move `amount` tokens from `sender` to `recipient`.

        Raises:
            InsufficientBalanceError: If `sender` holds fewer than `amount` tokens.
        """

        self.state.require_token()
        if (balance := self.state.balance_of(sender)) < amount:
            raise errors.InsufficientBalanceError(sender.hex, balance, amount)

        self.state.debit(sender, amount)
        self.state.credit(recipient, amount)
        self._emit(
            events.TokensTransferred(
                sender=sender.hex, recipient=recipient.hex, amount=str(amount)
            )
        )
