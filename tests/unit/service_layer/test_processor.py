"""Unit tests for the TransactionProcessor against a bootstrapped in-memory ledger.

These tests drive whole transactions through signature, nonce and contract
checks and assert on outcomes, committed state and the emitted event log.
"""

import pytest

from tally.adapters.unit_of_work import InMemoryUnitOfWork
from tally.bootstrap import bootstrap
from tally.config import INITIAL_SUPPLY, MIN_DEPOSIT, REGISTRATION_COST, LedgerConfig
from tally.domain.errors import ContractNotDeployedError, ErrorKind
from tally.domain.ledger_state import LedgerState
from tally.domain.value_objects import Transaction, TransactionKind
from tally.service_layer.event_mapper import EventMapper
from tally.service_layer.processor import TransactionProcessor
from tally.service_layer.results import Applied, Rejected, TransactionStatus

from tests.fixtures.ledger import ETHER, LEDGER_ID

# pylint: disable=magic-value-comparison,redefined-outer-name


def _events(container):
    """All events of the ledger, in log order."""
    return list(container.uow.eventstore.read_since())


# ===========================================================================
#                               Genesis
# ===========================================================================


class TestGenesis:
    """Tests for the state right after bootstrap."""

    @staticmethod
    def test_deployer_holds_the_whole_supply(container, keyring):
        """The token supply is minted once, to the deployer."""

        queries = container.queries

        assert queries.balance_of(keyring.alice.address) == INITIAL_SUPPLY
        assert queries.snapshot().tokens == {keyring.alice.address: INITIAL_SUPPLY}
        assert not queries.has_account(keyring.bob.address)

    @staticmethod
    def test_genesis_event_is_in_the_token_stream(container):
        """The mint is the first event of the ledger."""

        (minted,) = container.genesis_events

        assert minted.stream_id == f"{LEDGER_ID}:TokenLedger"
        assert minted.event_type == "TokensMinted"
        assert minted.metadata == {"kind": "genesis"}
        assert _events(container) == [minted]

    @staticmethod
    def test_native_allocations_are_credited(container, keyring):
        """Genesis allocations become native balances."""

        assert container.queries.native_balance_of(keyring.bob.address) == 10 * ETHER
        assert container.queries.wallet_balance() == 0
        assert container.queries.registry_balance() == 0


# ===========================================================================
#                               Tokens
# ===========================================================================


class TestTokenTransfers:
    """Tests for transfer-token transactions."""

    @staticmethod
    def test_transfer_of_one_hundred_tokens(container, keyring, make_tx):
        """Transferring 100 tokens leaves 999_999_999_900 with the deployer."""

        tx = make_tx(
            keyring.alice, "transfer-token", 0, recipient=keyring.bob.address, amount=100
        )

        outcome = container.processor.submit(tx)

        assert isinstance(outcome, Applied)
        assert container.queries.balance_of(keyring.alice.address) == 999_999_999_900
        assert container.queries.balance_of(keyring.bob.address) == 100
        assert container.queries.nonce_of(keyring.alice.address) == 1

    @staticmethod
    def test_whole_supply_can_be_transferred(container, keyring, make_tx):
        """Transferring 1_000_000_000_000 tokens empties the deployer."""

        tx = make_tx(
            keyring.alice,
            "transfer-token",
            0,
            recipient=keyring.bob.address,
            amount=1_000_000_000_000,
        )

        outcome = container.processor.submit(tx)

        assert isinstance(outcome, Applied)
        assert outcome.status is TransactionStatus.APPLIED
        assert container.queries.balance_of(keyring.alice.address) == 0
        assert container.queries.balance_of(keyring.bob.address) == 1_000_000_000_000
        assert dict(outcome.delta.tokens) == {
            keyring.alice.address: 0,
            keyring.bob.address: 1_000_000_000_000,
        }
        assert dict(outcome.delta.nonces) == {keyring.alice.address: 1}

    @staticmethod
    def test_transfer_event_carries_transaction_metadata(container, keyring, make_tx):
        """Applied events are stamped with sender, kind and nonce."""

        tx = make_tx(
            keyring.alice, "transfer-token", 0, recipient=keyring.bob.address, amount=5
        )

        (event,) = container.processor.submit(tx).events

        assert event.event_type == "TokensTransferred"
        assert event.stream_id == f"{LEDGER_ID}:TokenLedger"
        assert event.version == 2
        assert event.metadata == {
            "sender": keyring.alice.address.hex,
            "kind": "transfer-token",
            "nonce": 0,
        }
        assert event.payload == {
            "sender": keyring.alice.address.hex,
            "recipient": keyring.bob.address.hex,
            "amount": "5",
        }

    @staticmethod
    def test_overdraft_is_rejected(container, keyring, make_tx):
        """A sender cannot move more tokens than it holds."""

        tx = make_tx(
            keyring.bob, "transfer-token", 0, recipient=keyring.carol.address, amount=1
        )

        outcome = container.processor.submit(tx)

        assert isinstance(outcome, Rejected)
        assert outcome.kind is ErrorKind.INSUFFICIENT_BALANCE
        assert container.queries.nonce_of(keyring.bob.address) == 0

    @staticmethod
    def test_supply_is_conserved_across_transfers(container, keyring, make_tx):
        """The sum of balances stays equal to the initial supply."""

        alice, bob, carol = keyring.alice, keyring.bob, keyring.carol
        container.processor.submit_batch(
            [
                make_tx(alice, "transfer-token", 0, recipient=bob.address, amount=700),
                make_tx(bob, "transfer-token", 0, recipient=carol.address, amount=300),
                make_tx(carol, "transfer-token", 0, recipient=alice.address, amount=1),
                make_tx(bob, "transfer-token", 1, recipient=bob.address, amount=400),
            ]
        )

        tokens = container.queries.snapshot().tokens
        assert sum(tokens.values()) == INITIAL_SUPPLY
        assert tokens[bob.address] == 400
        assert tokens[carol.address] == 299


# ===========================================================================
#                           Domain registry
# ===========================================================================


class TestDomainRegistration:
    """Tests for register, transfer-domain and collect-fees transactions."""

    @staticmethod
    def test_register_charges_the_fee(container, keyring, make_tx):
        """Registration moves the fee into the registry."""

        tx = make_tx(
            keyring.bob, "register", 0, domain="bob.eth", amount=REGISTRATION_COST
        )

        outcome = container.processor.submit(tx)

        assert isinstance(outcome, Applied)
        assert container.queries.owner_of("bob.eth") == keyring.bob.address
        assert container.queries.registry_balance() == REGISTRATION_COST
        assert container.queries.native_balance_of(keyring.bob.address) == (
            10 * ETHER - REGISTRATION_COST
        )

    @staticmethod
    def test_insufficient_fee_is_rejected(container, keyring, make_tx):
        """A fee below the registration cost leaves everything untouched."""

        before = container.queries.snapshot()
        tx = make_tx(
            keyring.bob, "register", 0, domain="bob.eth", amount=REGISTRATION_COST - 1
        )

        outcome = container.processor.submit(tx)

        assert isinstance(outcome, Rejected)
        assert outcome.kind is ErrorKind.INSUFFICIENT_FUNDS
        assert container.queries.snapshot() == before
        assert container.uow.state.snapshot() == before

    @staticmethod
    def test_double_registration_is_rejected(container, keyring, make_tx):
        """A registered domain cannot be taken by someone else."""

        container.processor.submit(
            make_tx(keyring.bob, "register", 0, domain="x.eth", amount=REGISTRATION_COST)
        )
        outcome = container.processor.submit(
            make_tx(
                keyring.alice, "register", 0, domain="x.eth", amount=REGISTRATION_COST
            )
        )

        assert isinstance(outcome, Rejected)
        assert outcome.kind is ErrorKind.DOMAIN_ALREADY_REGISTERED
        assert container.queries.owner_of("x.eth") == keyring.bob.address
        assert container.queries.registry_balance() == REGISTRATION_COST

    @staticmethod
    def test_registration_beyond_native_balance_is_rejected(
        container, keyring, make_tx
    ):
        """The sender must hold the attached fee."""

        outcome = container.processor.submit(
            make_tx(keyring.carol, "register", 0, domain="c.eth", amount=2 * ETHER)
        )

        assert isinstance(outcome, Rejected)
        assert outcome.kind is ErrorKind.INSUFFICIENT_FUNDS

        outcome = container.processor.submit(
            make_tx(
                keyring.carol, "register", 0, domain="c.eth", amount=REGISTRATION_COST
            )
        )

        assert isinstance(outcome, Rejected)
        assert outcome.kind is ErrorKind.INSUFFICIENT_BALANCE

    @staticmethod
    def test_domain_transfer_by_owner_only(container, keyring, make_tx):
        """Only the current owner may hand a domain over."""

        bob, carol = keyring.bob, keyring.carol
        container.processor.submit(
            make_tx(bob, "register", 0, domain="b.eth", amount=REGISTRATION_COST)
        )

        stolen = container.processor.submit(
            make_tx(carol, "transfer-domain", 0, domain="b.eth", recipient=carol.address)
        )
        given = container.processor.submit(
            make_tx(bob, "transfer-domain", 1, domain="b.eth", recipient=carol.address)
        )

        assert isinstance(stolen, Rejected)
        assert stolen.kind is ErrorKind.NOT_OWNER
        assert isinstance(given, Applied)
        assert dict(given.delta.domains) == {"b.eth": carol.address}
        assert container.queries.owner_of("b.eth") == carol.address

    @staticmethod
    def test_registry_owner_collects_fees(container, keyring, make_tx):
        """The registry deployer withdraws accumulated fees."""

        container.processor.submit(
            make_tx(keyring.bob, "register", 0, domain="b.eth", amount=REGISTRATION_COST)
        )

        denied = container.processor.submit(
            make_tx(keyring.bob, "collect-fees", 1, amount=REGISTRATION_COST)
        )
        collected = container.processor.submit(
            make_tx(
                keyring.alice,
                "collect-fees",
                0,
                amount=REGISTRATION_COST,
                recipient=keyring.carol.address,
            )
        )

        assert isinstance(denied, Rejected)
        assert denied.kind is ErrorKind.NOT_OWNER
        assert isinstance(collected, Applied)
        assert container.queries.registry_balance() == 0
        assert container.queries.native_balance_of(keyring.carol.address) == (
            ETHER + REGISTRATION_COST
        )


# ===========================================================================
#                               Wallet
# ===========================================================================


class TestWallet:
    """Tests for deposit and withdraw transactions."""

    @staticmethod
    def test_deposit_then_owner_withdraws(container, keyring, make_tx):
        """Deposit and withdrawal events appear in order in the log."""

        alice, bob = keyring.alice, keyring.bob
        deposit = container.processor.submit(
            make_tx(bob, "deposit", 0, amount=MIN_DEPOSIT + 1)
        )
        denied = container.processor.submit(
            make_tx(bob, "withdraw", 1, amount=MIN_DEPOSIT)
        )
        withdrawal = container.processor.submit(
            make_tx(alice, "withdraw", 0, amount=MIN_DEPOSIT)
        )

        assert isinstance(deposit, Applied)
        assert isinstance(denied, Rejected)
        assert denied.kind is ErrorKind.NOT_OWNER
        assert isinstance(withdrawal, Applied)
        assert container.queries.wallet_balance() == 1

        wallet_events = list(
            container.uow.eventstore.read_stream(f"{LEDGER_ID}:SimpleWallet")
        )
        assert [e.event_type for e in wallet_events] == ["LogDeposit", "LogWithdrawal"]
        assert [e.version for e in wallet_events] == [1, 2]
        assert wallet_events[0].global_seq < wallet_events[1].global_seq
        assert wallet_events[1].payload["recipient"] == alice.address.hex

    @staticmethod
    @pytest.mark.parametrize("amount", [0, MIN_DEPOSIT])
    def test_deposit_at_or_below_minimum_is_rejected(
        container, keyring, make_tx, amount
    ):
        """Deposits must exceed the minimum."""

        outcome = container.processor.submit(
            make_tx(keyring.bob, "deposit", 0, amount=amount)
        )

        assert isinstance(outcome, Rejected)
        assert outcome.kind is ErrorKind.INSUFFICIENT_FUNDS
        assert container.queries.wallet_balance() == 0

    @staticmethod
    def test_withdraw_beyond_wallet_balance_is_rejected(container, keyring, make_tx):
        """The owner cannot withdraw more than the wallet holds."""

        outcome = container.processor.submit(
            make_tx(keyring.alice, "withdraw", 0, amount=1)
        )

        assert isinstance(outcome, Rejected)
        assert outcome.kind is ErrorKind.INSUFFICIENT_BALANCE


# ===========================================================================
#                        Signatures and nonces
# ===========================================================================


class TestAuthorization:
    """Tests for signature and nonce checks."""

    @staticmethod
    def test_unsigned_transaction_is_rejected(container, keyring, make_tx):
        """A transaction without a signature never verifies."""

        outcome = container.processor.submit(
            make_tx(keyring.bob, "deposit", 0, sign=False, amount=MIN_DEPOSIT + 1)
        )

        assert isinstance(outcome, Rejected)
        assert outcome.kind is ErrorKind.INVALID_SIGNATURE

    @staticmethod
    def test_signature_by_another_key_is_rejected(container, keyring, signer, make_tx):
        """A transaction from bob signed with alice's key is rejected."""

        unsigned = make_tx(keyring.bob, "deposit", 0, sign=False, amount=MIN_DEPOSIT + 1)
        forged = unsigned.with_signature(
            signer.sign(keyring.alice.private_key, unsigned.payload)
        )

        outcome = container.processor.submit(forged)

        assert isinstance(outcome, Rejected)
        assert outcome.kind is ErrorKind.INVALID_SIGNATURE
        assert container.queries.wallet_balance() == 0

    @staticmethod
    def test_tampered_transaction_is_rejected(container, keyring, make_tx):
        """Changing a signed field invalidates the signature."""

        signed = make_tx(keyring.bob, "deposit", 0, amount=MIN_DEPOSIT + 1)
        tampered = Transaction(
            sender=signed.sender,
            kind=TransactionKind.DEPOSIT,
            nonce=0,
            amount=ETHER,
            signature=signed.signature,
        )

        outcome = container.processor.submit(tampered)

        assert isinstance(outcome, Rejected)
        assert outcome.kind is ErrorKind.INVALID_SIGNATURE

    @staticmethod
    def test_replayed_transaction_is_rejected(container, keyring, make_tx):
        """Submitting the same signed transaction twice applies it once."""

        tx = make_tx(keyring.bob, "deposit", 0, amount=MIN_DEPOSIT + 1)

        first = container.processor.submit(tx)
        replay = container.processor.submit(tx)

        assert isinstance(first, Applied)
        assert isinstance(replay, Rejected)
        assert replay.kind is ErrorKind.INVALID_NONCE
        assert "expected nonce 1" in replay.reason
        assert container.queries.wallet_balance() == MIN_DEPOSIT + 1

    @staticmethod
    def test_future_nonce_is_rejected(container, keyring, make_tx):
        """Nonces cannot skip ahead."""

        outcome = container.processor.submit(
            make_tx(keyring.bob, "deposit", 5, amount=MIN_DEPOSIT + 1)
        )

        assert isinstance(outcome, Rejected)
        assert outcome.kind is ErrorKind.INVALID_NONCE
        assert container.queries.nonce_of(keyring.bob.address) == 0

    @staticmethod
    def test_rejection_leaves_log_and_state_unchanged(container, keyring, make_tx):
        """A rejected transaction appends nothing and changes nothing."""

        before = container.queries.snapshot()
        log_before = _events(container)

        container.processor.submit(
            make_tx(keyring.carol, "withdraw", 0, amount=1)
        )

        assert container.queries.snapshot() == before
        assert _events(container) == log_before


# ===========================================================================
#                               Batches
# ===========================================================================


class TestBatches:
    """Tests for parallel verification and ordered application."""

    @staticmethod
    def test_verify_batch_preserves_order(container, keyring, make_tx):
        """verify_batch returns one verdict per transaction, in input order."""

        good = make_tx(keyring.bob, "deposit", 0, amount=MIN_DEPOSIT + 1)
        bad = make_tx(keyring.bob, "deposit", 1, sign=False, amount=MIN_DEPOSIT + 1)

        assert container.processor.verify_batch([good, bad, good]) == [
            True,
            False,
            True,
        ]

    @staticmethod
    def test_batch_equals_sequential_submission(
        genesis, ledger_config, keyring, make_tx
    ):
        """submit_batch yields the outcomes and state of one-by-one submission."""

        alice, bob, carol = keyring.alice, keyring.bob, keyring.carol
        batch = [
            make_tx(bob, "register", 0, domain="b.eth", amount=REGISTRATION_COST),
            make_tx(carol, "register", 0, domain="b.eth", amount=REGISTRATION_COST),
            make_tx(bob, "deposit", 1, amount=MIN_DEPOSIT + 1),
            make_tx(bob, "deposit", 1, amount=MIN_DEPOSIT + 1),
            make_tx(alice, "transfer-token", 0, recipient=carol.address, amount=9),
            make_tx(alice, "withdraw", 1, amount=MIN_DEPOSIT, recipient=carol.address),
            make_tx(carol, "deposit", 0, sign=False, amount=MIN_DEPOSIT + 1),
        ]

        batched = bootstrap(genesis, ledger_config, ledger_id=LEDGER_ID, max_workers=4)
        sequential = bootstrap(genesis, ledger_config, ledger_id=LEDGER_ID)

        batch_outcomes = batched.processor.submit_batch(batch)
        sequential_outcomes = [sequential.processor.submit(tx) for tx in batch]

        assert [o.status for o in batch_outcomes] == [
            o.status for o in sequential_outcomes
        ]
        assert [getattr(o, "kind", None) for o in batch_outcomes] == [
            None,
            ErrorKind.DOMAIN_ALREADY_REGISTERED,
            None,
            ErrorKind.INVALID_NONCE,
            None,
            None,
            ErrorKind.INVALID_SIGNATURE,
        ]
        assert batched.queries.snapshot() == sequential.queries.snapshot()
        assert [e.event_type for e in _events(batched)] == [
            e.event_type for e in _events(sequential)
        ]


# ===========================================================================
#                               Faults
# ===========================================================================


def test_undeployed_contract_propagates_and_rolls_back(keyring, verifier, make_tx):
    """Faults that are not rejections surface as exceptions without side effects."""

    state = LedgerState("empty")
    state.credit_native(keyring.bob.address, ETHER)
    uow = InMemoryUnitOfWork(state, EventMapper())
    processor = TransactionProcessor(uow, verifier, LedgerConfig())

    with pytest.raises(ContractNotDeployedError):
        processor.submit(make_tx(keyring.bob, "deposit", 0, amount=MIN_DEPOSIT + 1))

    assert state.nonce_of(keyring.bob.address) == 0
    assert state.native_balance_of(keyring.bob.address) == ETHER
    assert not list(uow.eventstore.read_since())
