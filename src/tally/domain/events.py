"""Events"""

import abc
from dataclasses import dataclass
from typing import ClassVar

# Addresses are carried as 0x-prefixed hex strings and amounts as decimal
# strings so that payloads stay JSON-serializable without losing uint256 range.


@dataclass(frozen=True, slots=True)
class DomainEvent(abc.ABC):
    """Base class for all ledger events.

    Each concrete event belongs to the stream of the contract that emitted it.
    """

    STREAM_TYPE: ClassVar[str]

    @property
    @abc.abstractmethod
    def summary(self) -> str:
        """Return a one-line human readable description of the event."""


# ============================================================================
#                              TokenLedger events
# ============================================================================


@dataclass(frozen=True, slots=True)
class TokensMinted(DomainEvent):
    """Event indicating the fixed token supply was credited to the deployer."""

    STREAM_TYPE: ClassVar[str] = "TokenLedger"

    owner: str
    amount: str

    @property
    def summary(self) -> str:
        return f"minted {self.amount} tokens to {self.owner}"


@dataclass(frozen=True, slots=True)
class TokensTransferred(DomainEvent):
    """Event indicating tokens moved between two accounts."""

    STREAM_TYPE: ClassVar[str] = "TokenLedger"

    sender: str
    recipient: str
    amount: str

    @property
    def summary(self) -> str:
        return f"{self.sender} sent {self.amount} tokens to {self.recipient}"


# ============================================================================
#                            DomainRegistry events
# ============================================================================


@dataclass(frozen=True, slots=True)
class DomainRegistered(DomainEvent):
    """Event indicating a domain name was registered."""

    STREAM_TYPE: ClassVar[str] = "DomainRegistry"

    domain: str
    owner: str
    fee: str

    @property
    def summary(self) -> str:
        return f"{self.owner} registered {self.domain!r} for {self.fee}"


@dataclass(frozen=True, slots=True)
class DomainTransferred(DomainEvent):
    """Event indicating a domain name changed owner."""

    STREAM_TYPE: ClassVar[str] = "DomainRegistry"

    domain: str
    previous_owner: str
    new_owner: str

    @property
    def summary(self) -> str:
        return f"{self.domain!r} moved from {self.previous_owner} to {self.new_owner}"


@dataclass(frozen=True, slots=True)
class RegistryFeesCollected(DomainEvent):
    """Event indicating the registry owner collected registration fees."""

    STREAM_TYPE: ClassVar[str] = "DomainRegistry"

    amount: str
    recipient: str

    @property
    def summary(self) -> str:
        return f"{self.recipient} collected {self.amount} in registry fees"


# ============================================================================
#                             SimpleWallet events
# ============================================================================


@dataclass(frozen=True, slots=True)
class LogDeposit(DomainEvent):
    """Event indicating value was deposited into the wallet."""

    STREAM_TYPE: ClassVar[str] = "SimpleWallet"

    amount: str
    sender: str

    @property
    def summary(self) -> str:
        return f"{self.sender} deposited {self.amount}"


@dataclass(frozen=True, slots=True)
class LogWithdrawal(DomainEvent):
    """Event indicating value was withdrawn from the wallet."""

    STREAM_TYPE: ClassVar[str] = "SimpleWallet"

    amount: str
    recipient: str

    @property
    def summary(self) -> str:
        return f"{self.amount} withdrawn to {self.recipient}"


# Registry of domain event types for deserialization
DOMAIN_EVENT_REGISTRY: dict[str, type[DomainEvent]] = {
    "TokensMinted": TokensMinted,
    "TokensTransferred": TokensTransferred,
    "DomainRegistered": DomainRegistered,
    "DomainTransferred": DomainTransferred,
    "RegistryFeesCollected": RegistryFeesCollected,
    "LogDeposit": LogDeposit,
    "LogWithdrawal": LogWithdrawal,
}
