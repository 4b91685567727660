"""Initial ledger contents: native allocations and contract deployments."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from tally.domain.contracts import DomainRegistry, SimpleWallet, TokenLedger
from tally.domain.errors import DomainError
from tally.domain.events import DomainEvent
from tally.domain.ledger_state import LedgerState
from tally.domain.value_objects import Address, parse_quantity


class InvalidGenesisError(DomainError, ValueError):
    """Raised when a genesis description cannot be parsed."""


@dataclass(frozen=True)
class Genesis:
    """Description of a ledger's initial state.

    Attributes:
        deployer: Address that deploys the token (receiving the whole supply) and
            the domain registry (becoming its owner).
        allocations: Native balances credited before any contract is deployed.
        wallet_owner: Administrative owner of the wallet; defaults to the deployer.
    """

    deployer: Address
    allocations: Mapping[Address, int] = field(default_factory=dict)
    wallet_owner: Address | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Genesis:
        """Build a genesis description from a JSON-style dict.

        Expected shape::

            {"deployer": "0x..", "wallet_owner": "0x..",
             "allocations": {"0x..": "1000000000000000000"}}

        Raises:
            InvalidGenesisError: If a field is missing or malformed.
        """
        try:
            deployer = Address.from_hex(data["deployer"])
            allocations = {
                Address.from_hex(address): parse_quantity("allocation", amount)
                for address, amount in data.get("allocations", {}).items()
            }
            wallet_owner = data.get("wallet_owner")
            return cls(
                deployer=deployer,
                allocations=allocations,
                wallet_owner=Address.from_hex(wallet_owner) if wallet_owner else None,
            )
        except KeyError as e:
            raise InvalidGenesisError(f"Missing genesis field {e}") from e
        except (AttributeError, TypeError, ValueError) as e:
            raise InvalidGenesisError(str(e)) from e


def apply_genesis(
    state: LedgerState,
    genesis: Genesis,
    *,
    initial_supply: int,
    registration_cost: int,
    min_deposit: int,
) -> list[DomainEvent]:
    """Seed `state` from `genesis` and deploy the three contracts.

    Returns:
        The events emitted by the deployments, in order.
    """

    for address, amount in genesis.allocations.items():
        if amount < 0:
            raise InvalidGenesisError(f"Negative allocation for {address}")
        state.credit_native(address, amount)

    token_ledger = TokenLedger.deploy(state, genesis.deployer, initial_supply)
    registry = DomainRegistry.deploy(state, genesis.deployer, registration_cost)
    wallet = SimpleWallet.deploy(
        state,
        genesis.wallet_owner if genesis.wallet_owner is not None else genesis.deployer,
        min_deposit,
    )

    return [
        *token_ledger.dequeue_uncommitted(),
        *registry.dequeue_uncommitted(),
        *wallet.dequeue_uncommitted(),
    ]
