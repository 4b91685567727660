"""TALLY transaction CLI.

Sign batches of transactions offline. The input file is a JSON list of
unsigned transactions::

    [{"kind": "register", "nonce": 0, "domain": "alice.eth",
      "amount": "3000000000000000000"}]

A missing ``sender`` is filled in with the address of the signing key. The
signed batch is written as JSON, ready for ``tally ledger run``.
"""

import logging
from pathlib import Path

import click
import click_extra as clickx

from tally.adapters.crypto import EcdsaSigner, Secp256k1KeyManager
from tally.domain.errors import InvalidAddressError, MalformedTransactionError
from tally.domain.value_objects import Transaction

from .helpers import dump_json, load_json, success
from .helpers.key_options import derive_key_pair, seed_phrase_options

logger = logging.getLogger(__name__)


@click.group(cls=clickx.ExtraGroup)
def tx() -> None:
    """Transaction commands."""


@tx.command()
@click.argument(
    "batch_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Write the signed batch here instead of stdout.",
)
@seed_phrase_options
def sign(
    batch_file: Path, output: Path | None, seed_phrase: str, passphrase: str, path: str
) -> None:
    """Sign every transaction in BATCH_FILE with the key of a recovery phrase."""
    key_pair = derive_key_pair(Secp256k1KeyManager(), seed_phrase, passphrase, path)
    signer = EcdsaSigner()

    items = load_json(batch_file, "BATCH_FILE")
    if not isinstance(items, list):
        raise click.BadParameter(
            "expected a JSON list of transactions", param_hint="BATCH_FILE"
        )

    signed = []
    for index, item in enumerate(items):
        try:
            if not isinstance(item, dict):
                raise MalformedTransactionError("expected a JSON object")
            transaction = Transaction.from_dict(
                {"sender": key_pair.address.hex, **item}
            )
            signed.append(signer.sign_transaction(key_pair, transaction).to_dict())
        except (InvalidAddressError, MalformedTransactionError, ValueError) as e:
            raise click.BadParameter(
                f"transaction #{index}: {e}", param_hint="BATCH_FILE"
            ) from e

    logger.info("Signed %d transaction(s) for %s", len(signed), key_pair.address)
    dump_json(signed, output)
    if output is not None:
        success(f"Signed {len(signed)} transaction(s) into {output}")
