"""In-memory event store adapter (tests and ephemeral ledgers)."""

from .eventstore import InMemoryEventStore

__all__ = ["InMemoryEventStore"]
