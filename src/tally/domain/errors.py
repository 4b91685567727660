"""Domain-layer error definitions."""

from enum import Enum
from typing import ClassVar

# pylint: disable=too-few-public-methods

# ============================================================================
#                           General domain errors
# ============================================================================


class DomainError(Exception):
    """Base class for domain-layer errors."""


class InvalidAddressError(DomainError, ValueError):
    """Raised when a value cannot be interpreted as a ledger address."""


class MalformedTransactionError(DomainError, ValueError):
    """Raised when a transaction is missing parameters or carries invalid ones."""


class ContractNotDeployedError(DomainError):
    """Raised when a contract rule-set is used before it has been deployed."""

    def __init__(self, contract: str) -> None:
        super().__init__(f"{contract} has not been deployed on this ledger.")
        self.contract = contract


class ContractAlreadyDeployedError(DomainError):
    """Raised when a contract is deployed a second time on the same ledger."""

    def __init__(self, contract: str) -> None:
        super().__init__(f"{contract} is already deployed on this ledger.")
        self.contract = contract


class LedgerAlreadyExistsError(DomainError):
    """Raised when genesis targets a ledger whose streams already hold events."""

    def __init__(self, ledger_id: str) -> None:
        super().__init__(f"Ledger {ledger_id!r} already exists in the event log.")
        self.ledger_id = ledger_id


# ============================================================================
#                        Transaction rejection errors
# ============================================================================


class ErrorKind(str, Enum):
    """Kinds of transaction rejection surfaced to callers."""

    INVALID_SIGNATURE = "InvalidSignature"
    INVALID_NONCE = "InvalidNonce"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    BALANCE_OVERFLOW = "BalanceOverflow"
    DOMAIN_ALREADY_REGISTERED = "DomainAlreadyRegistered"
    NOT_OWNER = "NotOwner"


class TransactionRejectedError(DomainError):
    """Base class for errors that reject a transaction without applying it."""

    kind: ClassVar[ErrorKind]


class InvalidSignatureError(TransactionRejectedError):
    """Raised when a signature does not verify against the claimed sender."""

    kind = ErrorKind.INVALID_SIGNATURE

    def __init__(self, sender: str) -> None:
        super().__init__(f"Signature does not verify against sender {sender}.")
        self.sender = sender


class InvalidNonceError(TransactionRejectedError):
    """Raised when a transaction nonce is not the sender's next nonce."""

    kind = ErrorKind.INVALID_NONCE

    def __init__(self, sender: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Nonce {actual} from {sender} rejected; expected nonce {expected}."
        )
        self.sender = sender
        self.expected = expected
        self.actual = actual


class InsufficientFundsError(TransactionRejectedError):
    """Raised when an attached fee or deposit is below the required minimum."""

    kind = ErrorKind.INSUFFICIENT_FUNDS

    def __init__(self, required: int, provided: int, *, exclusive: bool = False) -> None:
        bound = "more than" if exclusive else "at least"
        super().__init__(f"Requires {bound} {required}, got {provided}.")
        self.required = required
        self.provided = provided


class InsufficientBalanceError(TransactionRejectedError):
    """Raised when a debit exceeds the current balance of an account."""

    kind = ErrorKind.INSUFFICIENT_BALANCE

    def __init__(self, account: str, balance: int, requested: int) -> None:
        super().__init__(
            f"Account {account} holds {balance}, cannot debit {requested}."
        )
        self.account = account
        self.balance = balance
        self.requested = requested


class BalanceOverflowError(TransactionRejectedError):
    """Raised when a credit would push a balance beyond the uint256 range."""

    kind = ErrorKind.BALANCE_OVERFLOW

    def __init__(self, account: str, balance: int, amount: int) -> None:
        super().__init__(
            f"Crediting {amount} to {account} (balance {balance}) overflows uint256."
        )
        self.account = account
        self.balance = balance
        self.amount = amount


class DomainAlreadyRegisteredError(TransactionRejectedError):
    """Raised when registering a domain name that already has an owner."""

    kind = ErrorKind.DOMAIN_ALREADY_REGISTERED

    def __init__(self, domain: str, owner: str) -> None:
        super().__init__(f"Domain {domain!r} is already registered to {owner}.")
        self.domain = domain
        self.owner = owner


class NotOwnerError(TransactionRejectedError):
    """Raised when a non-owning address attempts an owner-only action."""

    kind = ErrorKind.NOT_OWNER

    def __init__(self, sender: str, resource: str) -> None:
        super().__init__(f"{sender} is not the owner of {resource}.")
        self.sender = sender
        self.resource = resource


# ============================================================================
#                           Key material errors
# ============================================================================


class KeyDerivationError(DomainError):
    """Base class for key generation and derivation failures."""


class EntropyUnavailableError(KeyDerivationError):
    """Raised when the secure random source cannot provide entropy."""


class InvalidSeedPhraseError(KeyDerivationError, ValueError):
    """Raised when a recovery phrase is malformed or fails its checksum."""


class InvalidDerivationPathError(KeyDerivationError, ValueError):
    """Raised when a hierarchical derivation path cannot be parsed."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Invalid derivation path: {path!r}")
        self.path = path
