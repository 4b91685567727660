"""Read-side queries over the last committed ledger snapshot.

Queries never enter the unit of work: they read the snapshot the unit of work
published on its last commit, so readers neither block the writer nor observe
a half-applied transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tally.domain.ledger_state import LedgerSnapshot
    from tally.domain.value_objects import Address
    from tally.interfaces.unit_of_work import AbstractUnitOfWork


class LedgerQueries:
    """Balance, ownership and nonce lookups for external callers."""

    def __init__(self, uow: AbstractUnitOfWork) -> None:
        self._uow = uow

    def snapshot(self) -> LedgerSnapshot:
        """The last committed snapshot; consecutive reads on it are consistent."""
        return self._uow.published

    def balance_of(self, address: Address) -> int:
        """Token balance of `address` (0 when the account is unknown)."""
        return self.snapshot().balance_of(address)

    def has_account(self, address: Address) -> bool:
        """True if `address` ever held tokens."""
        return self.snapshot().has_account(address)

    def owner_of(self, domain: str) -> Address | None:
        """Owner of `domain`, or None when unregistered."""
        return self.snapshot().owner_of(domain)

    def wallet_balance(self) -> int:
        """Native value held by the wallet contract."""
        return self.snapshot().wallet_balance()

    def registry_balance(self) -> int:
        """Registration fees held by the registry contract."""
        return self.snapshot().registry_balance()

    def native_balance_of(self, address: Address) -> int:
        """Native (wei) balance of `address`."""
        return self.snapshot().native_balance_of(address)

    def nonce_of(self, address: Address) -> int:
        """The nonce the next transaction from `address` must carry."""
        return self.snapshot().nonce_of(address)
