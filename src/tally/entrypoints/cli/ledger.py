"""TALLY ledger CLI.

Run a signed batch of transactions against a ledger created from a genesis
file and report what happened. Signatures are verified in parallel; the
transactions are then applied one by one in file order.

Output
- Default: Rich tables (outcomes, then balances and domains) on **stdout**.
- ``--json``: one JSON document, suited to scripts.

With ``--persist`` the genesis and every accepted transaction are appended to
the event log at ``TALLY_DB_URL`` (run ``tally db upgrade`` first).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import click
import click_extra as clickx
from rich.console import Console
from rich.table import Table

from tally.adapters.crypto import to_checksum_address
from tally.bootstrap import bootstrap
from tally.config import InvalidConfigError, LedgerConfig
from tally.domain.errors import (
    InvalidAddressError,
    LedgerAlreadyExistsError,
    MalformedTransactionError,
)
from tally.domain.genesis import Genesis, InvalidGenesisError
from tally.domain.value_objects import Transaction
from tally.interfaces.eventstore import EventStoreError
from tally.service_layer.commands import SubmitBatch
from tally.service_layer.event_mapper import EventMapper
from tally.service_layer.results import Applied

from .helpers import load_json
from .helpers.db_url import resolve_db_url

if TYPE_CHECKING:
    from tally.bootstrap import AppContainer
    from tally.domain.ledger_state import LedgerSnapshot
    from tally.domain.value_objects import Address
    from tally.service_layer.results import Outcome

logger = logging.getLogger(__name__)


@click.group(cls=clickx.ExtraGroup)
def ledger() -> None:
    """Ledger commands."""


def _load_genesis(path: Path) -> Genesis:
    try:
        return Genesis.from_dict(load_json(path, "GENESIS_FILE"))
    except InvalidGenesisError as e:
        raise click.BadParameter(str(e), param_hint="GENESIS_FILE") from e


def _load_transactions(path: Path) -> tuple[Transaction, ...]:
    items = load_json(path, "BATCH_FILE")
    if not isinstance(items, list):
        raise click.BadParameter(
            "expected a JSON list of transactions", param_hint="BATCH_FILE"
        )
    transactions = []
    for index, item in enumerate(items):
        try:
            transactions.append(Transaction.from_dict(item))
        except (InvalidAddressError, MalformedTransactionError) as e:
            raise click.BadParameter(
                f"transaction #{index}: {e}", param_hint="BATCH_FILE"
            ) from e
    return tuple(transactions)


@ledger.command()
@click.argument(
    "genesis_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.argument(
    "batch_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--persist/--no-persist",
    default=False,
    help="Append events to the event log at TALLY_DB_URL.",
)
@click.option(
    "--ledger-id",
    default=None,
    help="Identifier of the new ledger (a fresh ULID by default).",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=None,
    help="Threads used to verify signatures in parallel.",
)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON.")
def run(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    genesis_file: Path,
    batch_file: Path,
    persist: bool,
    ledger_id: str | None,
    workers: int | None,
    as_json: bool,
) -> None:
    """Apply the signed transactions in BATCH_FILE to a ledger seeded from GENESIS_FILE."""
    genesis = _load_genesis(genesis_file)
    transactions = _load_transactions(batch_file)
    try:
        config = LedgerConfig.from_env()
    except InvalidConfigError as e:
        raise click.ClickException(str(e)) from e
    db_url = resolve_db_url() if persist else None

    try:
        container = bootstrap(
            genesis, config, db_url=db_url, ledger_id=ledger_id, max_workers=workers
        )
        outcomes = container.message_bus.handle(SubmitBatch(transactions))
    except InvalidGenesisError as e:
        raise click.BadParameter(str(e), param_hint="GENESIS_FILE") from e
    except LedgerAlreadyExistsError as e:
        raise click.ClickException(f"{e} Choose another --ledger-id.") from e
    except EventStoreError as e:
        raise click.ClickException(f"Event log write failed: {e}") from e

    snapshot = container.queries.snapshot()
    if as_json:
        click.echo(_to_json(container, outcomes, snapshot))
    else:
        _render(container, outcomes, snapshot)


# --------------------------------------------------------------------------- #
# Presentation
# --------------------------------------------------------------------------- #


def _describe(outcome: Outcome, mapper: EventMapper) -> str:
    if isinstance(outcome, Applied):
        return "; ".join(
            mapper.to_domain_event(envelope).summary for envelope in outcome.events
        )
    return f"{outcome.kind.value}: {outcome.reason}"


def _accounts(snapshot: LedgerSnapshot) -> list[Address]:
    return sorted({*snapshot.tokens, *snapshot.native, *snapshot.nonces})


def _label(snapshot: LedgerSnapshot, address: Address) -> str:
    if snapshot.registry is not None and address == snapshot.registry.address:
        return "DomainRegistry"
    if snapshot.wallet is not None and address == snapshot.wallet.address:
        return "SimpleWallet"
    return ""


def _to_json(
    container: AppContainer, outcomes: list[Outcome], snapshot: LedgerSnapshot
) -> str:
    mapper = EventMapper()
    document = {
        "ledger_id": container.ledger_id,
        "outcomes": [
            {
                "kind": outcome.transaction.kind.value,
                "sender": outcome.transaction.sender.hex,
                "nonce": outcome.transaction.nonce,
                "status": outcome.status.value,
                "error": None if isinstance(outcome, Applied) else outcome.kind.value,
                "detail": _describe(outcome, mapper),
            }
            for outcome in outcomes
        ],
        "accounts": {
            address.hex: {
                "tokens": str(snapshot.balance_of(address)),
                "native": str(snapshot.native_balance_of(address)),
                "nonce": snapshot.nonce_of(address),
            }
            for address in _accounts(snapshot)
        },
        "domains": {name: owner.hex for name, owner in sorted(snapshot.domains.items())},
    }
    return json.dumps(document, indent=2)


def _render(
    container: AppContainer, outcomes: list[Outcome], snapshot: LedgerSnapshot
) -> None:
    console = Console()
    mapper = EventMapper()

    table = Table(title=f"Ledger {container.ledger_id}")
    table.add_column("#", justify="right")
    table.add_column("Kind")
    table.add_column("Sender")
    table.add_column("Nonce", justify="right")
    table.add_column("Status")
    table.add_column("Detail", overflow="fold")
    for index, outcome in enumerate(outcomes):
        applied = isinstance(outcome, Applied)
        table.add_row(
            str(index),
            outcome.transaction.kind.value,
            to_checksum_address(outcome.transaction.sender),
            str(outcome.transaction.nonce),
            f"[green]{outcome.status.value}[/]" if applied else f"[red]{outcome.status.value}[/]",
            _describe(outcome, mapper),
        )
    console.print(table)

    balances = Table(title="Accounts")
    balances.add_column("Address")
    balances.add_column("Tokens", justify="right")
    balances.add_column("Native (wei)", justify="right")
    balances.add_column("Nonce", justify="right")
    for address in _accounts(snapshot):
        label = _label(snapshot, address)
        balances.add_row(
            to_checksum_address(address) + (f" ({label})" if label else ""),
            str(snapshot.balance_of(address)),
            str(snapshot.native_balance_of(address)),
            str(snapshot.nonce_of(address)),
        )
    console.print(balances)

    if snapshot.domains:
        domains = Table(title="Domains")
        domains.add_column("Domain")
        domains.add_column("Owner")
        for name, owner in sorted(snapshot.domains.items()):
            domains.add_row(name, to_checksum_address(owner))
        console.print(domains)
