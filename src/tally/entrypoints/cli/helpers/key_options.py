"""Shared options for commands that need a signing key.

The recovery phrase is read from ``TALLY_SEED_PHRASE`` or a hidden prompt. It is
never accepted as a visible command-line argument, so it does not end up in
shell history or process listings.
"""

import click

from tally.adapters.crypto import DEFAULT_DERIVATION_PATH
from tally.domain.errors import InvalidDerivationPathError, InvalidSeedPhraseError
from tally.interfaces.keys import KeyManager, KeyPair

SEED_PHRASE_ENV_VAR = "TALLY_SEED_PHRASE"


def seed_phrase_options(fn):
    """Attach the phrase, passphrase and derivation path options to a command."""
    fn = click.option(
        "--path",
        "path",
        default=DEFAULT_DERIVATION_PATH,
        show_default=True,
        help="BIP-32 derivation path of the key.",
    )(fn)
    fn = click.option(
        "--passphrase",
        "passphrase",
        default="",
        hide_input=True,
        envvar="TALLY_PASSPHRASE",
        show_envvar=True,
        help="Optional BIP-39 passphrase (the '25th word').",
    )(fn)
    fn = click.option(
        "--seed-phrase",
        "seed_phrase",
        prompt="Recovery phrase",
        hide_input=True,
        envvar=SEED_PHRASE_ENV_VAR,
        show_envvar=True,
        hidden=True,
        help="Recovery phrase; read from TALLY_SEED_PHRASE or prompted for.",
    )(fn)
    return fn


def derive_key_pair(
    key_manager: KeyManager, seed_phrase: str, passphrase: str, path: str | None
) -> KeyPair:
    """Derive the keypair for the given options.

    Raises:
        click.BadParameter: If the phrase or path is invalid.
    """
    try:
        return key_manager.derive_from_seed_phrase(
            seed_phrase, passphrase=passphrase, path=path
        )
    except InvalidSeedPhraseError as e:
        raise click.BadParameter(str(e), param_hint="TALLY_SEED_PHRASE") from e
    except InvalidDerivationPathError as e:
        raise click.BadParameter(str(e), param_hint="--path") from e
