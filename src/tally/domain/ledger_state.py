"""The authoritative ledger state and its mutation primitives.

`LedgerState` owns every record of the ledger: token balances, native (ETH-like)
balances, domain ownership, per-sender nonces and the deployment records of the
three contracts. It performs the local invariant checks of each primitive
(no negative balances, uint256 ceiling, unique domain owner) but knows nothing
about signatures or transaction kinds; those are the processor's and the
contracts' business.

Absent entries are never implicitly zero-initialized: `has_account` tells an
address that was never credited apart from one whose balance dropped to zero.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from tally.domain import errors
from tally.domain.value_objects import UINT256_MAX, Address

# pylint: disable=too-many-public-methods


@dataclass(frozen=True, slots=True)
class TokenInfo:
    """Deployment record of the fixed-supply token."""

    owner: Address
    total_supply: int


@dataclass(frozen=True, slots=True)
class RegistryAccount:
    """Deployment record of the domain registry contract."""

    address: Address
    owner: Address


@dataclass(frozen=True, slots=True)
class WalletAccount:
    """Deployment record of the simple wallet contract."""

    address: Address
    owner: Address


class BalanceBook:
    """An address -> uint256 balance container with explicit entries.

    Entries are created by the first credit and are never removed, so an
    account debited down to zero is still known to the book.
    """

    def __init__(self, name: str, entries: Mapping[Address, int] | None = None) -> None:
        self.name = name
        self._balances: dict[Address, int] = dict(entries or {})

    def __contains__(self, address: object) -> bool:
        return address in self._balances

    def __iter__(self) -> Iterator[Address]:
        return iter(self._balances)

    def __len__(self) -> int:
        return len(self._balances)

    def balance_of(self, address: Address) -> int:
        """Return the balance of `address`, 0 when the account is unknown."""
        return self._balances.get(address, 0)

    def total(self) -> int:
        """Return the sum of all balances in the book."""
        return sum(self._balances.values())

    def require(self, address: Address, amount: int) -> None:
        """Check that `address` can be debited `amount` without mutating anything.

        Raises:
            InsufficientBalanceError: If the balance is lower than `amount`.
        """
        if (balance := self.balance_of(address)) < amount:
            raise errors.InsufficientBalanceError(
                f"{address} ({self.name})", balance, amount
            )

    def credit(self, address: Address, amount: int) -> None:
        """Add `amount` to the balance of `address`, creating the entry if needed.

        Raises:
            BalanceOverflowError: If the resulting balance exceeds uint256.
        """
        balance = self.balance_of(address)
        if balance + amount > UINT256_MAX:
            raise errors.BalanceOverflowError(f"{address} ({self.name})", balance, amount)
        self._balances[address] = balance + amount

    def debit(self, address: Address, amount: int) -> None:
        """Subtract `amount` from the balance of `address`.

        Raises:
            InsufficientBalanceError: If `amount` exceeds the current balance.
        """
        self.require(address, amount)
        self._balances[address] = self.balance_of(address) - amount

    def transfer(self, source: Address, destination: Address, amount: int) -> None:
        """Move `amount` from `source` to `destination` with all checks up front."""
        self.require(source, amount)
        if source != destination:
            balance = self.balance_of(destination)
            if balance + amount > UINT256_MAX:
                raise errors.BalanceOverflowError(
                    f"{destination} ({self.name})", balance, amount
                )
        self.debit(source, amount)
        self.credit(destination, amount)

    def as_mapping(self) -> Mapping[Address, int]:
        """Return a read-only copy of the entries."""
        return MappingProxyType(dict(self._balances))


@dataclass(frozen=True, slots=True)
class LedgerDelta:
    """What changed between two snapshots: new values of touched entries only."""

    tokens: Mapping[Address, int] = field(default_factory=dict)
    native: Mapping[Address, int] = field(default_factory=dict)
    domains: Mapping[str, Address] = field(default_factory=dict)
    nonces: Mapping[Address, int] = field(default_factory=dict)

    def is_empty(self) -> bool:
        """True when no entry changed."""
        return not (self.tokens or self.native or self.domains or self.nonces)


def _changed(before: Mapping, after: Mapping) -> dict:
    return {key: value for key, value in after.items() if before.get(key) != value}


@dataclass(frozen=True, slots=True)
class LedgerSnapshot:
    """An immutable, consistent view of the ledger at one point in time."""

    # pylint: disable=too-many-instance-attributes

    ledger_id: str
    tokens: Mapping[Address, int]
    native: Mapping[Address, int]
    domains: Mapping[str, Address]
    nonces: Mapping[Address, int]
    token: TokenInfo | None
    registry: RegistryAccount | None
    wallet: WalletAccount | None

    # --- Queries ---

    def balance_of(self, address: Address) -> int:
        """Token balance of `address` (0 when unknown)."""
        return self.tokens.get(address, 0)

    def has_account(self, address: Address) -> bool:
        """True if `address` ever held a token balance."""
        return address in self.tokens

    def owner_of(self, domain: str) -> Address | None:
        """Owner of `domain`, or None when unregistered."""
        return self.domains.get(domain)

    def native_balance_of(self, address: Address) -> int:
        """Native (ETH-like) balance of `address` (0 when unknown)."""
        return self.native.get(address, 0)

    def nonce_of(self, address: Address) -> int:
        """The next nonce expected from `address`."""
        return self.nonces.get(address, 0)

    def wallet_balance(self) -> int:
        """Balance held by the wallet contract."""
        if self.wallet is None:
            raise errors.ContractNotDeployedError("SimpleWallet")
        return self.native_balance_of(self.wallet.address)

    def registry_balance(self) -> int:
        """Registration fees held by the registry contract."""
        if self.registry is None:
            raise errors.ContractNotDeployedError("DomainRegistry")
        return self.native_balance_of(self.registry.address)

    def diff(self, after: LedgerSnapshot) -> LedgerDelta:
        """Return the entries of `after` that differ from this snapshot."""
        return LedgerDelta(
            tokens=_changed(self.tokens, after.tokens),
            native=_changed(self.native, after.native),
            domains=_changed(self.domains, after.domains),
            nonces=_changed(self.nonces, after.nonces),
        )


class LedgerState:
    """Mutable ledger state. Mutated only through the processor's unit of work."""

    def __init__(self, ledger_id: str) -> None:
        self.ledger_id = ledger_id
        self.tokens = BalanceBook("tokens")
        self.native = BalanceBook("native")
        self._domains: dict[str, Address] = {}
        self._nonces: dict[Address, int] = {}
        self.token: TokenInfo | None = None
        self.registry: RegistryAccount | None = None
        self.wallet: WalletAccount | None = None

    # --- Read accessors ---

    def balance_of(self, address: Address) -> int:
        """Token balance of `address` (0 when unknown)."""
        return self.tokens.balance_of(address)

    def has_account(self, address: Address) -> bool:
        """True if `address` ever held a token balance."""
        return address in self.tokens

    def owner_of(self, domain: str) -> Address | None:
        """Owner of `domain`, or None when unregistered."""
        return self._domains.get(domain)

    def native_balance_of(self, address: Address) -> int:
        """Native (ETH-like) balance of `address` (0 when unknown)."""
        return self.native.balance_of(address)

    def nonce_of(self, address: Address) -> int:
        """The next nonce expected from `address`."""
        return self._nonces.get(address, 0)

    def wallet_balance(self) -> int:
        """Balance held by the wallet contract."""
        return self.native.balance_of(self.require_wallet().address)

    def registry_balance(self) -> int:
        """Registration fees held by the registry contract."""
        return self.native.balance_of(self.require_registry().address)

    def total_token_supply(self) -> int:
        """Sum of all token balances."""
        return self.tokens.total()

    def require_token(self) -> TokenInfo:
        """Return the token record or raise `ContractNotDeployedError`."""
        if self.token is None:
            raise errors.ContractNotDeployedError("TokenLedger")
        return self.token

    def require_registry(self) -> RegistryAccount:
        """Return the registry record or raise `ContractNotDeployedError`."""
        if self.registry is None:
            raise errors.ContractNotDeployedError("DomainRegistry")
        return self.registry

    def require_wallet(self) -> WalletAccount:
        """Return the wallet record or raise `ContractNotDeployedError`."""
        if self.wallet is None:
            raise errors.ContractNotDeployedError("SimpleWallet")
        return self.wallet

    # --- Deployment records ---

    def record_token(self, token: TokenInfo) -> None:
        """Record the token deployment; a ledger has at most one token."""
        if self.token is not None:
            raise errors.ContractAlreadyDeployedError("TokenLedger")
        self.token = token

    def record_registry(self, registry: RegistryAccount) -> None:
        """Record the registry deployment; a ledger has at most one registry."""
        if self.registry is not None:
            raise errors.ContractAlreadyDeployedError("DomainRegistry")
        self.registry = registry

    def record_wallet(self, wallet: WalletAccount) -> None:
        """Record the wallet deployment; a ledger has at most one wallet."""
        if self.wallet is not None:
            raise errors.ContractAlreadyDeployedError("SimpleWallet")
        self.wallet = wallet

    # --- Mutation primitives ---

    def credit(self, address: Address, amount: int) -> None:
        """Credit tokens to `address`."""
        self.tokens.credit(address, amount)

    def debit(self, address: Address, amount: int) -> None:
        """Debit tokens from `address`; never lets a balance go negative."""
        self.tokens.debit(address, amount)

    def credit_native(self, address: Address, amount: int) -> None:
        """Credit native value to `address`."""
        self.native.credit(address, amount)

    def debit_native(self, address: Address, amount: int) -> None:
        """Debit native value from `address`."""
        self.native.debit(address, amount)

    def transfer_native(self, source: Address, destination: Address, amount: int) -> None:
        """Move native value between two addresses."""
        self.native.transfer(source, destination, amount)

    def register_domain(self, domain: str, owner: Address) -> None:
        """Bind an unregistered `domain` to `owner`.

        Raises:
            DomainAlreadyRegisteredError: If the domain already has an owner.
        """
        if (current := self._domains.get(domain)) is not None:
            raise errors.DomainAlreadyRegisteredError(domain, current.hex)
        self._domains[domain] = owner

    def set_domain_owner(self, domain: str, owner: Address) -> None:
        """Replace the owner of a registered `domain`.

        Raises:
            KeyError: If the domain was never registered.
        """
        if domain not in self._domains:
            raise KeyError(domain)
        self._domains[domain] = owner

    def increment_nonce(self, address: Address) -> None:
        """Advance the nonce of `address` by one."""
        self._nonces[address] = self.nonce_of(address) + 1

    # --- Checkpointing ---

    def snapshot(self) -> LedgerSnapshot:
        """Return an immutable copy of the whole state."""
        return LedgerSnapshot(
            ledger_id=self.ledger_id,
            tokens=self.tokens.as_mapping(),
            native=self.native.as_mapping(),
            domains=MappingProxyType(dict(self._domains)),
            nonces=MappingProxyType(dict(self._nonces)),
            token=self.token,
            registry=self.registry,
            wallet=self.wallet,
        )

    def restore(self, snapshot: LedgerSnapshot) -> None:
        """Reset the state to a snapshot previously taken from this ledger."""
        if snapshot.ledger_id != self.ledger_id:
            raise ValueError(
                f"Snapshot of ledger {snapshot.ledger_id} cannot restore {self.ledger_id}"
            )
        self.tokens = BalanceBook("tokens", snapshot.tokens)
        self.native = BalanceBook("native", snapshot.native)
        self._domains = dict(snapshot.domains)
        self._nonces = dict(snapshot.nonces)
        self.token = snapshot.token
        self.registry = snapshot.registry
        self.wallet = snapshot.wallet
