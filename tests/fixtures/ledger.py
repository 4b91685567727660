"""Ledger fixtures: deterministic keys, a genesis, a wired ledger and signed transactions.

Keys are derived from the ethers.js reference recovery phrase at consecutive
account indexes, so addresses are stable across runs:

- ``alice`` (index 0) deploys the contracts and owns the wallet;
- ``bob`` (index 1) and ``carol`` (index 2) are ordinary users.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pytest

from tally.adapters.crypto import EcdsaSigner, EcdsaVerifier, Secp256k1KeyManager
from tally.bootstrap import AppContainer, bootstrap
from tally.config import LedgerConfig
from tally.domain.genesis import Genesis
from tally.domain.value_objects import Transaction, TransactionKind
from tally.interfaces.keys import KeyPair

# pylint: disable=redefined-outer-name

REFERENCE_PHRASE = (
    "announce room limb pattern dry unit scale effort smooth jazz weasel alcohol"
)
# private key of account 0 of REFERENCE_PHRASE
REFERENCE_PRIVATE_KEY = (
    "1da6847600b0ee25e9ad9a52abbd786dd2502fa4005dd5af9310b7cc7a3b25db"
)
ETHER = 10**18
LEDGER_ID = "test-ledger"


@dataclass(frozen=True)
class Keyring:
    """The three test identities."""

    alice: KeyPair
    bob: KeyPair
    carol: KeyPair


@pytest.fixture(scope="session")
def key_manager() -> Secp256k1KeyManager:
    """Return the production key manager."""
    return Secp256k1KeyManager()


@pytest.fixture(scope="session")
def signer() -> EcdsaSigner:
    """Return the production signer."""
    return EcdsaSigner()


@pytest.fixture(scope="session")
def verifier(key_manager: Secp256k1KeyManager) -> EcdsaVerifier:
    """Return the production verifier."""
    return EcdsaVerifier(key_manager)


@pytest.fixture(scope="session")
def keyring(key_manager: Secp256k1KeyManager) -> Keyring:
    """Derive alice, bob and carol from the reference phrase (session-cached)."""

    def _derive(index: int) -> KeyPair:
        return key_manager.derive_from_seed_phrase(
            REFERENCE_PHRASE, path=f"m/44'/60'/0'/0/{index}"
        )

    return Keyring(alice=_derive(0), bob=_derive(1), carol=_derive(2))


@pytest.fixture
def ledger_config() -> LedgerConfig:
    """Default ledger constants."""
    return LedgerConfig()


@pytest.fixture
def genesis(keyring: Keyring) -> Genesis:
    """Alice deploys everything; everyone starts with some native value."""
    return Genesis(
        deployer=keyring.alice.address,
        allocations={
            keyring.alice.address: 10 * ETHER,
            keyring.bob.address: 10 * ETHER,
            keyring.carol.address: 1 * ETHER,
        },
    )


@pytest.fixture
def container(genesis: Genesis, ledger_config: LedgerConfig) -> AppContainer:
    """A freshly bootstrapped in-memory ledger."""
    return bootstrap(genesis, ledger_config, ledger_id=LEDGER_ID, max_workers=4)


@pytest.fixture
def make_tx(signer: EcdsaSigner) -> Callable[..., Transaction]:
    """Factory fixture: build a transaction from `key_pair` and sign it.

    Example:
        make_tx(keyring.bob, "transfer-token", 0, recipient=carol, amount=5)
    """

    def _make_tx(
        key_pair: KeyPair,
        kind: str | TransactionKind,
        nonce: int,
        *,
        sign: bool = True,
        **fields: Any,
    ) -> Transaction:
        transaction = Transaction(
            sender=key_pair.address,
            kind=TransactionKind(kind),
            nonce=nonce,
            **fields,
        )
        return signer.sign_transaction(key_pair, transaction) if sign else transaction

    return _make_tx
