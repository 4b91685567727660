"""TALLY keys CLI.

Create and recover signing keys. Output is JSON on **stdout** so it can be
piped; warnings go to **stderr**.

Examples
    $ tally keys generate --words 24
    $ TALLY_SEED_PHRASE='...' tally keys recover --path "m/44'/60'/0'/0/1"
"""

import logging

import click
import click_extra as clickx

from tally.adapters.crypto import Secp256k1KeyManager, to_checksum_address
from tally.domain.errors import EntropyUnavailableError

from .helpers import dump_json, warn
from .helpers.key_options import derive_key_pair, seed_phrase_options

logger = logging.getLogger(__name__)

WORDS_TO_STRENGTH = {12: 128, 15: 160, 18: 192, 21: 224, 24: 256}

PHRASE_WARNING = (
    "Anyone holding this recovery phrase controls the address. "
    "Store it offline and never share it."
)


@click.group(cls=clickx.ExtraGroup)
def keys() -> None:
    """Key management commands."""


@keys.command()
@click.option(
    "--words",
    type=click.Choice([str(n) for n in WORDS_TO_STRENGTH]),
    default="12",
    show_default=True,
    help="Number of words in the new recovery phrase.",
)
@click.option(
    "--path",
    "path",
    default=None,
    help="BIP-32 derivation path (defaults to the first Ethereum account).",
)
def generate(words: str, path: str | None) -> None:
    """Create a new recovery phrase and print its first address."""
    key_manager = Secp256k1KeyManager()
    try:
        phrase = key_manager.new_seed_phrase(strength=WORDS_TO_STRENGTH[int(words)])
    except EntropyUnavailableError as e:
        raise click.ClickException(str(e)) from e
    key_pair = derive_key_pair(key_manager, phrase, "", path)
    logger.info("Generated a %s-word recovery phrase for %s", words, key_pair.address)

    warn(PHRASE_WARNING)
    dump_json(
        {
            "seed_phrase": phrase,
            "address": to_checksum_address(key_pair.address),
            "path": key_pair.path,
        }
    )


@keys.command()
@seed_phrase_options
def recover(seed_phrase: str, passphrase: str, path: str) -> None:
    """Print the address and public key derived from a recovery phrase."""
    key_pair = derive_key_pair(Secp256k1KeyManager(), seed_phrase, passphrase, path)
    dump_json(
        {
            "address": to_checksum_address(key_pair.address),
            "path": key_pair.path,
            "public_key": "0x" + key_pair.public_key.hex(),
        }
    )
