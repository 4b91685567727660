"""Conversions between DomainEvents and EventEnvelopes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from tally.domain.events import DOMAIN_EVENT_REGISTRY
from tally.interfaces.eventstore import EventEnvelope

if TYPE_CHECKING:
    from tally.domain.events import DomainEvent


class UnknownEventTypeError(ValueError):
    """Raised when an envelope names an event type missing from the registry."""

    def __init__(self, event_type: str) -> None:
        super().__init__(f"Unknown event type: {event_type}")
        self.event_type = event_type


class EventMapper:
    """Maps between DomainEvents and EventEnvelopes."""

    def __init__(
        self, event_registry: dict[str, type[DomainEvent]] | None = None
    ) -> None:
        self.event_registry = (
            event_registry if event_registry is not None else DOMAIN_EVENT_REGISTRY
        )

    @staticmethod
    def to_envelope(  # pylint: disable=too-many-arguments
        stream_id: str,
        stream_type: str,
        version: int,
        event_id: str,
        event: DomainEvent,
        metadata: Mapping[str, Any] | None = None,
    ) -> EventEnvelope:
        """Convert a DomainEvent to an EventEnvelope."""
        return EventEnvelope(
            stream_id=stream_id,
            stream_type=stream_type,
            version=version,
            event_id=event_id,
            event_type=type(event).__name__,
            payload=asdict(event),
            metadata=dict(metadata) if metadata is not None else None,
        )

    def to_domain_event(self, envelope: EventEnvelope) -> DomainEvent:
        """Convert an EventEnvelope back to a DomainEvent.

        Raises:
            UnknownEventTypeError: If the event type is not registered.
        """
        if not (cls := self.event_registry.get(envelope.event_type)):
            raise UnknownEventTypeError(envelope.event_type)
        return cls(**envelope.payload)
