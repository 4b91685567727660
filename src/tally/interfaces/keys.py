"""Key material ports: key management, signing and verification.

The ledger only ever talks to these abstract capabilities, so the concrete
curve and hash choices stay swappable without touching ledger logic.

Private keys cross these interfaces as raw bytes and must never be logged or
rendered; `KeyPair` hides them (and any recovery phrase) from its `repr`.
"""

import abc
from dataclasses import dataclass, field

from tally.domain.value_objects import Address, Transaction

# pylint: disable=too-few-public-methods


@dataclass(frozen=True, slots=True)
class KeyPair:
    """A signing keypair and the address it controls."""

    private_key: bytes = field(repr=False)
    public_key: bytes
    address: Address
    seed_phrase: str | None = field(default=None, repr=False)
    path: str | None = None


class KeyManager(abc.ABC):
    """Contract for creating keypairs and deriving addresses."""

    @abc.abstractmethod
    def generate_random(self) -> KeyPair:
        """Create a keypair from fresh secure entropy.

        Raises:
            EntropyUnavailableError: If the secure random source is unavailable.
        """

    @abc.abstractmethod
    def new_seed_phrase(self, strength: int = 128) -> str:
        """Create a fresh recovery phrase carrying `strength` bits of entropy.

        Raises:
            EntropyUnavailableError: If the secure random source is unavailable.
        """

    @abc.abstractmethod
    def derive_from_seed_phrase(
        self, phrase: str, *, passphrase: str = "", path: str | None = None
    ) -> KeyPair:
        """Deterministically derive a keypair from a recovery phrase.

        The same phrase, passphrase and path always yield the same keypair.

        Raises:
            InvalidSeedPhraseError: If the phrase is malformed.
            InvalidDerivationPathError: If the path cannot be parsed.
        """

    @abc.abstractmethod
    def address_of(self, public_key: bytes) -> Address:
        """Derive the address controlled by `public_key` (pure and one-way)."""


class Signer(abc.ABC):
    """Contract for producing signatures with a held private key."""

    @abc.abstractmethod
    def sign(self, private_key: bytes, payload: bytes) -> bytes:
        """Sign `payload` with `private_key` and return the signature bytes."""

    def sign_transaction(self, key_pair: KeyPair, transaction: Transaction) -> Transaction:
        """Return `transaction` with a signature by `key_pair` attached.

        Raises:
            ValueError: If the transaction sender is not the keypair's address.
        """
        if transaction.sender != key_pair.address:
            raise ValueError(
                f"Key for {key_pair.address} cannot sign for sender {transaction.sender}"
            )
        return transaction.with_signature(self.sign(key_pair.private_key, transaction.payload))


class Verifier(abc.ABC):
    """Contract for checking signatures against a claimed address."""

    @abc.abstractmethod
    def verify(self, address: Address, payload: bytes, signature: bytes) -> bool:
        """Return True iff `signature` was made over `payload` by the key of `address`.

        Any mismatch (wrong key, tampered payload, malformed signature) yields
        False rather than an exception.
        """
