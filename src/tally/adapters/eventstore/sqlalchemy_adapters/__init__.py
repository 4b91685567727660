"""SQLAlchemy event store adapter (durable event log)."""

from .eventstore import SqlAlchemyEventStore

__all__ = ["SqlAlchemyEventStore"]
