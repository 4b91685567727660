"""Domain-name ownership registry."""

from __future__ import annotations

from typing import ClassVar

from tally.domain import errors, events
from tally.domain.ledger_state import LedgerState, RegistryAccount
from tally.domain.value_objects import Address

from .base import Contract, contract_address


class DomainRegistry(Contract):
    """Registry binding domain names to owning addresses.

    Registration costs a fee paid in native value to the registry contract; the
    deployer of the registry may later collect those fees.
    """

    STREAM_TYPE: ClassVar[str] = "DomainRegistry"

    def __init__(self, state: LedgerState, registration_cost: int) -> None:
        super().__init__(state)
        self.registration_cost = registration_cost

    # --- Construction Paths ---

    @classmethod
    def deploy(
        cls, state: LedgerState, owner: Address, registration_cost: int
    ) -> DomainRegistry:
        """Deploy the registry with `owner` as its administrative owner.

        Raises:
            ContractAlreadyDeployedError: If the ledger already has a registry.
        """
        state.record_registry(
            RegistryAccount(
                address=contract_address(state.ledger_id, cls.STREAM_TYPE),
                owner=owner,
            )
        )
        return cls(state, registration_cost)

    # --- State Transitions ---

    def register(self, sender: Address, domain: str, fee: int) -> None:
        """Register `domain` to `sender`, paying `fee` to the registry.

        Raises:
            InsufficientFundsError: If `fee` is below the registration cost.
            DomainAlreadyRegisteredError: If the domain already has an owner.
            InsufficientBalanceError: If `sender` cannot pay `fee`.
        """

        registry = self.state.require_registry()
        if fee < self.registration_cost:
            raise errors.InsufficientFundsError(self.registration_cost, fee)
        # absent owner means unregistered; there is no sentinel address
        if (owner := self.state.owner_of(domain)) is not None:
            raise errors.DomainAlreadyRegisteredError(domain, owner.hex)

        self.state.transfer_native(sender, registry.address, fee)
        self.state.register_domain(domain, sender)
        self._emit(events.DomainRegistered(domain=domain, owner=sender.hex, fee=str(fee)))

    def transfer(self, sender: Address, domain: str, recipient: Address) -> None:
        """Hand `domain` over to `recipient`.

        Raises:
            NotOwnerError: If `sender` does not own the domain (or it is unregistered).
        """

        self.state.require_registry()
        if self.state.owner_of(domain) != sender:
            raise errors.NotOwnerError(sender.hex, f"domain {domain!r}")

        self.state.set_domain_owner(domain, recipient)
        self._emit(
            events.DomainTransferred(
                domain=domain, previous_owner=sender.hex, new_owner=recipient.hex
            )
        )

    def collect_fees(
        self, sender: Address, amount: int, recipient: Address | None = None
    ) -> None:
        """Send `amount` of collected fees to `recipient` (default: the owner).

        Raises:
            NotOwnerError: If `sender` is not the registry owner.
            InsufficientBalanceError: If the registry holds less than `amount`.
        """

        registry = self.state.require_registry()
        if sender != registry.owner:
            raise errors.NotOwnerError(sender.hex, self.STREAM_TYPE)

        destination = recipient if recipient is not None else sender
        self.state.transfer_native(registry.address, destination, amount)
        self._emit(
            events.RegistryFeesCollected(amount=str(amount), recipient=destination.hex)
        )
