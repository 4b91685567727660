"""Fixtures and helpers for end-to-end CLI tests.

Provides a test-only `log-demo` command that emits log messages (including a
private key, to check masking), a CliRunner, an isolated filesystem, and files
describing a small ledger: a genesis and an unsigned transaction batch.
"""

import json
import logging
from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from tally.entrypoints.cli.main import tally
from tests.fixtures.ledger import ETHER, REFERENCE_PHRASE, REFERENCE_PRIVATE_KEY

# pylint: disable=redefined-outer-name


@click.command()
def log_demo():
    """Emit representative log messages for CLI/flight-recorder tests."""
    logger = logging.getLogger("tally.demo")
    logger.debug("This is a debug-level test message.")
    logger.info("This is an info-level test message.")
    logger.warning("This is a warning-level test message.")
    logger.error("This is an error-level test message.")
    logger.critical("This is a critical-level test message.")
    logger.warning("Loaded key %s", REFERENCE_PRIVATE_KEY)
    third_party_logger = logging.getLogger("some.thirdparty")
    third_party_logger.debug("This is a debug-level third-party test message.")
    third_party_logger.info("This is an info-level third-party test message.")
    third_party_logger.warning("This is a warning-level third-party test message.")
    logger.debug("This is a final debug-level test message.")


def _remove_command_everywhere(group, name: str) -> None:
    """Remove a command from a Click group and its internal sections."""
    group.commands.pop(name, None)
    if hasattr(group, "_default_section"):
        group._default_section.commands.pop(name, None)  # pylint: disable=protected-access
    for sec in getattr(group, "_sections", []):
        getattr(sec, "commands", {}).pop(name, None)


@pytest.fixture
def registered_log_demo():
    """Register the 'log-demo' command for the duration of a test."""
    tally.add_command(log_demo, name="log-demo")
    try:
        yield
    finally:
        _remove_command_everywhere(tally, "log-demo")


@pytest.fixture
def runner():
    """Return a Click CliRunner for invoking CLI commands in tests."""
    return CliRunner()


@pytest.fixture
def fs(runner):
    """Run the test inside an isolated working directory."""
    with runner.isolated_filesystem():
        yield


@pytest.fixture
def seed_env() -> dict[str, str]:
    """Environment holding the reference recovery phrase for signing commands."""
    return {"TALLY_SEED_PHRASE": REFERENCE_PHRASE}


@pytest.fixture
def genesis_file(fs, keyring) -> Path:
    """genesis.json: alice deploys and holds 10 ETH, bob holds 1 ETH."""
    path = Path("genesis.json")
    path.write_text(
        json.dumps(
            {
                "deployer": keyring.alice.address.hex,
                "allocations": {
                    keyring.alice.address.hex: str(10 * ETHER),
                    keyring.bob.address.hex: str(1 * ETHER),
                },
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def batch_file(fs, keyring) -> Path:
    """batch.json: three unsigned transactions from alice."""
    path = Path("batch.json")
    path.write_text(
        json.dumps(
            [
                {
                    "kind": "register",
                    "nonce": 0,
                    "domain": "alice.eth",
                    "amount": str(3 * ETHER),
                },
                {
                    "kind": "transfer-token",
                    "nonce": 1,
                    "recipient": keyring.bob.address.hex,
                    "amount": "1000",
                },
                {"kind": "deposit", "nonce": 2, "amount": "100"},
            ]
        ),
        encoding="utf-8",
    )
    return path
