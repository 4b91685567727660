"""Fixtures for id_generator contract tests."""

from collections.abc import Iterable

import pytest

from tally.adapters.id_generators import ULIDGenerator
from tally.interfaces.id_generator import IdGenerator
from tests.fixtures.ids import SequentialIdGenerator


@pytest.fixture(params=["ulid", "simple"])
def id_generator(request: pytest.FixtureRequest) -> Iterable[IdGenerator]:
    """Return a fresh IdGenerator instance for the requested backend.

    Supported params:
      - `"ulid"` → ULIDGenerator
      - `"simple"` → SequentialIdGenerator
    """

    match request.param:
        case "ulid":
            yield ULIDGenerator()
        case "simple":
            yield SequentialIdGenerator()
        case _:
            raise ValueError(f"unknown id generator type: {request.param}")


@pytest.fixture(params=["ulid", "simple"])
def monotonic_id_generators(request: pytest.FixtureRequest) -> Iterable[IdGenerator]:
    """Yield instances of IdGenerators that promise monotonic ID order."""
    match request.param:
        case "ulid":
            yield ULIDGenerator()
        case "simple":
            yield SequentialIdGenerator()
        case _:
            raise ValueError(f"unknown monotonic id generator type: {request.param}")
