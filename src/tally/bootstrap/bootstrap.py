"""Bootstrap a ledger with its processor, queries and message bus."""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tally.adapters.crypto import EcdsaSigner, EcdsaVerifier, Secp256k1KeyManager
from tally.adapters.db.engine import make_engine
from tally.adapters.id_generators import ULIDGenerator
from tally.adapters.unit_of_work import (
    InMemoryUnitOfWork,
    LedgerUnitOfWork,
    SqlAlchemyUnitOfWork,
    stream_id_for,
)
from tally.config import LedgerConfig
from tally.domain.contracts import DomainRegistry, SimpleWallet, TokenLedger
from tally.domain.errors import LedgerAlreadyExistsError
from tally.domain.genesis import Genesis, apply_genesis
from tally.domain.ledger_state import LedgerState
from tally.service_layer.event_mapper import EventMapper
from tally.service_layer.handlers import COMMAND_HANDLERS
from tally.service_layer.messagebus import MessageBus
from tally.service_layer.processor import TransactionProcessor
from tally.service_layer.queries import LedgerQueries

if TYPE_CHECKING:
    from tally.interfaces.eventstore import EventEnvelope
    from tally.interfaces.id_generator import IdGenerator
    from tally.interfaces.keys import KeyManager, Signer
    from tally.interfaces.unit_of_work import AbstractUnitOfWork
    from tally.service_layer.commands import Command

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContainer:  # pylint: disable=too-many-instance-attributes
    """A class to hold the wiring of one running ledger."""

    message_bus: MessageBus
    processor: TransactionProcessor
    queries: LedgerQueries
    uow: LedgerUnitOfWork
    key_manager: KeyManager
    signer: Signer
    config: LedgerConfig
    genesis_events: tuple[EventEnvelope, ...]

    @property
    def ledger_id(self) -> str:
        """Identifier of the ledger (prefix of its event stream ids)."""
        return self.uow.state.ledger_id


def build_uow(
    state: LedgerState,
    *,
    db_url: str | None = None,
    id_generator: IdGenerator | None = None,
) -> LedgerUnitOfWork:
    """Build the unit of work: SQLAlchemy-backed when `db_url` is given, else in memory."""
    event_mapper = EventMapper()
    if db_url is None:
        return InMemoryUnitOfWork(state, event_mapper, id_generator)
    return SqlAlchemyUnitOfWork(state, event_mapper, make_engine(db_url), id_generator)


def commit_genesis(
    uow: AbstractUnitOfWork, genesis: Genesis, config: LedgerConfig
) -> Sequence[EventEnvelope]:
    """Seed the ledger behind `uow` and append the deployment events.

    Raises:
        LedgerAlreadyExistsError: If a contract stream of the ledger already
            holds events, so the supply is never minted twice.
    """
    with uow:
        ledger_id = uow.state.ledger_id
        for contract in (TokenLedger, DomainRegistry, SimpleWallet):
            stream = uow.eventstore.read_stream(
                stream_id_for(ledger_id, contract.STREAM_TYPE), to_version=1
            )
            if list(stream):
                raise LedgerAlreadyExistsError(ledger_id)
        events = apply_genesis(
            uow.state,
            genesis,
            initial_supply=config.initial_supply,
            registration_cost=config.registration_cost,
            min_deposit=config.min_deposit,
        )
        uow.record(events, metadata={"kind": "genesis"})
        return uow.commit()


def build_message_bus(
    uow: AbstractUnitOfWork,
    command_handlers: Mapping[type[Command], Callable[..., Any]],
    dependencies: Mapping[str, object],
) -> MessageBus:
    """Build a message bus with injected dependencies."""
    injected_command_handlers = {
        command_type: inject_dependencies(handler, {"uow": uow, **dependencies})
        for command_type, handler in command_handlers.items()
    }
    return MessageBus(uow, command_handlers=injected_command_handlers)


def bootstrap(  # pylint: disable=too-many-arguments
    genesis: Genesis,
    config: LedgerConfig | None = None,
    *,
    db_url: str | None = None,
    ledger_id: str | None = None,
    id_generator: IdGenerator | None = None,
    max_workers: int | None = None,
) -> AppContainer:
    """Create a ledger from `genesis` and wire everything that operates on it.

    Args:
        genesis: Initial allocations and contract deployer.
        config: Ledger constants; read from the environment when omitted.
        db_url: Event log database; events stay in memory when omitted.
        ledger_id: Identifier of the new ledger; a fresh ULID when omitted.
        id_generator: Event id source; ULIDs when omitted.
        max_workers: Thread pool size for parallel signature verification.
    """
    config = config if config is not None else LedgerConfig.from_env()
    ledger_id = ledger_id or ULIDGenerator().new_id()

    uow = build_uow(LedgerState(ledger_id), db_url=db_url, id_generator=id_generator)
    genesis_events = tuple(commit_genesis(uow, genesis, config))
    logger.info("Ledger %s created with %d genesis events", ledger_id, len(genesis_events))

    key_manager = Secp256k1KeyManager()
    processor = TransactionProcessor(
        uow, EcdsaVerifier(key_manager), config, max_workers=max_workers
    )
    message_bus = build_message_bus(uow, COMMAND_HANDLERS, {"processor": processor})

    return AppContainer(
        message_bus=message_bus,
        processor=processor,
        queries=LedgerQueries(uow),
        uow=uow,
        key_manager=key_manager,
        signer=EcdsaSigner(),
        config=config,
        genesis_events=genesis_events,
    )


def inject_dependencies(
    handler: Callable, dependencies: Mapping[str, object]
) -> Callable:
    """Bind the dependencies a handler declares in its signature."""
    params = inspect.signature(handler).parameters
    deps = {
        name: dependency for name, dependency in dependencies.items() if name in params
    }
    return functools.partial(handler, **deps)
