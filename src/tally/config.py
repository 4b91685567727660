"""Configuration utilities for TALLY.

This module centralizes the ledger's tunable constants and the small helpers
that read configuration from the environment:

- `LedgerConfig`: registration cost, minimum deposit and initial token supply.
- `get_db_url`: the event log database (`TALLY_DB_URL`).
- `build_alembic_config`: programmatic Alembic configuration for migrations.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, fields
from importlib.resources import files
from typing import TextIO

from alembic.config import Config

ALEMBIC_URL_KEY = "sqlalchemy.url"
ALEMBIC_SCRIPT_LOCATION_KEY = "script_location"

DB_URL_ENV_VAR = "TALLY_DB_URL"

REGISTRATION_COST = 3 * 10**18  # 3 ether, in wei
MIN_DEPOSIT = 100_000_000_000_000  # deposits must be strictly greater
INITIAL_SUPPLY = 1_000_000_000_000


class DatabaseUrlNotSetError(Exception):
    """Raised when the TALLY_DB_URL environment variable is not set."""


class InvalidConfigError(ValueError):
    """Raised when a configuration value cannot be parsed."""

    def __init__(self, name: str, value: str) -> None:
        super().__init__(f"{name} must be a non-negative integer, got {value!r}")
        self.name = name
        self.value = value


@dataclass(frozen=True)
class LedgerConfig:
    """Tunable constants of a ledger.

    Attributes:
        registration_cost: Minimum fee (wei) for registering a domain.
        min_deposit: Deposits into the wallet must exceed this amount (wei).
        initial_supply: Fixed token supply credited to the deployer at genesis.
    """

    registration_cost: int = REGISTRATION_COST
    min_deposit: int = MIN_DEPOSIT
    initial_supply: int = INITIAL_SUPPLY

    def __post_init__(self) -> None:
        for field_ in fields(self):
            if (value := getattr(self, field_.name)) < 0:
                raise InvalidConfigError(field_.name, str(value))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LedgerConfig:
        """Build a config from ``TALLY_<FIELD>`` variables, defaulting unset ones.

        Raises:
            InvalidConfigError: If a variable is not a non-negative integer.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for field_ in fields(cls):
            name = f"TALLY_{field_.name.upper()}"
            if (raw := environ.get(name)) is None or not raw.strip():
                continue
            try:
                values[field_.name] = int(raw.strip().replace("_", ""))
            except ValueError as e:
                raise InvalidConfigError(name, raw) from e
            if values[field_.name] < 0:
                raise InvalidConfigError(name, raw)
        return cls(**values)


def get_db_url() -> str:
    """Get the database URL from the environment.

    Returns:
        The value of the `TALLY_DB_URL` environment variable.

    Raises:
        DatabaseUrlNotSetError: If `TALLY_DB_URL` is not set.
    """
    if not (url := os.environ.get(DB_URL_ENV_VAR)):
        raise DatabaseUrlNotSetError
    return url


def build_alembic_config(
    db_url: str | None = None, stdout: TextIO = sys.stdout
) -> Config:
    """Build an Alembic `Config` object for TALLY's migrations.

    Args:
        db_url: SQLAlchemy database URL (e.g., `sqlite:///ledger.db`). Can be
            `None` only where Alembic won't need to connect (heads, history).
        stdout: Text stream Alembic writes status lines to; override in tests.

    Returns:
        An `alembic.config.Config` pointing to TALLY's migration scripts.
    """
    cfg = Config(stdout=stdout)
    if db_url is not None:
        cfg.set_main_option(ALEMBIC_URL_KEY, db_url)
    cfg.set_main_option(
        ALEMBIC_SCRIPT_LOCATION_KEY,
        str(files("tally.adapters.db") / "alembic"),
    )
    return cfg
