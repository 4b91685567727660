"""EventMapper class unit tests."""

from dataclasses import dataclass
from typing import ClassVar

import pytest

from tally.domain import events
from tally.domain.events import DomainEvent
from tally.interfaces.eventstore import EventEnvelope
from tally.service_layer.event_mapper import EventMapper, UnknownEventTypeError

# pylint: disable=magic-value-comparison


@dataclass(frozen=True)
class MockDomainEvent(DomainEvent):
    """A mock domain event for testing purposes."""

    STREAM_TYPE: ClassVar[str] = "MockContract"

    text_a: str
    amount: str

    @property
    def summary(self) -> str:
        return f"{self.text_a}={self.amount}"


MOCK_REGISTRY: dict[str, type[DomainEvent]] = {"MockDomainEvent": MockDomainEvent}


def test_to_envelope():
    """Test that an EventMapper can convert from a domain event to an event envelope."""
    mapper = EventMapper(event_registry=MOCK_REGISTRY)

    envelope = mapper.to_envelope(
        stream_id="ledger-1:MockContract",
        stream_type="MockContract",
        version=1,
        event_id=f"{1:026d}",
        event=MockDomainEvent(text_a="a", amount="42"),
        metadata={"kind": "genesis"},
    )

    assert envelope == EventEnvelope(
        stream_id="ledger-1:MockContract",
        stream_type="MockContract",
        version=1,
        event_id=f"{1:026d}",
        event_type="MockDomainEvent",
        payload={"text_a": "a", "amount": "42"},
        metadata={"kind": "genesis"},
    )


def test_to_domain_event():
    """Test that an EventMapper can convert from an event envelope to a domain event."""
    mapper = EventMapper(event_registry=MOCK_REGISTRY)
    envelope = EventEnvelope(
        stream_id="ledger-1:MockContract",
        stream_type="MockContract",
        version=1,
        event_id=f"{1:026d}",
        event_type="MockDomainEvent",
        payload={"text_a": "a", "amount": "42"},
    )

    event = mapper.to_domain_event(envelope)

    assert event == MockDomainEvent(text_a="a", amount="42")
    assert event.summary == "a=42"


def test_unknown_event_type_raises():
    """Test that an unregistered event type raises UnknownEventTypeError."""
    mapper = EventMapper(event_registry=MOCK_REGISTRY)
    envelope = EventEnvelope(
        stream_id="ledger-1:MockContract",
        stream_type="MockContract",
        version=1,
        event_id=f"{1:026d}",
        event_type="NotRegistered",
        payload={},
    )

    with pytest.raises(UnknownEventTypeError, match="NotRegistered"):
        mapper.to_domain_event(envelope)


def test_default_registry_maps_ledger_events(make_envelope):
    """Test that the default registry reads the ledger's own events."""
    event = EventMapper().to_domain_event(make_envelope())

    assert isinstance(event, events.LogDeposit)
    assert event.summary == f"{'0x' + '22' * 20} deposited 200000000000000"


def test_every_registered_event_belongs_to_a_contract_stream():
    """Test that registry entries point at events of the three contract streams."""
    assert {cls.STREAM_TYPE for cls in EventMapper().event_registry.values()} == {
        "TokenLedger",
        "DomainRegistry",
        "SimpleWallet",
    }
