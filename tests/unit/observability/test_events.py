"""
devflow-orchestrator — unit tests for the configuration event bus

File: tests/unit/observability/test_events.py

Purpose
- Validate fanout order, subscriber isolation, filtering and replay.

Functional requirements
- Offline and deterministic; no sleep-based synchronization.
"""

from __future__ import annotations

import pytest

import devflow_orchestrator.observability as observability_pkg
from devflow_orchestrator.observability.events import ConfigEvent, ConfigEventType, EventBus


def test_subscribers_receive_events_in_publish_order() -> None:
    bus = EventBus(buffer_size=10)
    sub_a: list[str] = []
    sub_b: list[str] = []

    bus.subscribe(None, lambda event: sub_a.append(event.event_type.value))
    bus.subscribe(None, lambda event: sub_b.append(event.event_type.value))

    _, errors_1 = bus.emit("initialized", {"environment": "development"})
    _, errors_2 = bus.emit(ConfigEventType.RELOADED, {"old": {}, "new": {}})

    assert errors_1 == ()
    assert errors_2 == ()
    assert sub_a == ["initialized", "reloaded"]
    assert sub_b == ["initialized", "reloaded"]


def test_type_filter_only_delivers_matching_events() -> None:
    bus = EventBus()
    errors: list[ConfigEvent] = []
    bus.subscribe("error", errors.append)

    bus.emit(ConfigEventType.INITIALIZED)
    event, _ = bus.emit(ConfigEventType.ERROR, {"phase": "reload"})

    assert errors == [event]


def test_failing_subscriber_is_isolated() -> None:
    bus = EventBus()
    delivered: list[str] = []

    def broken(event: ConfigEvent) -> None:
        raise RuntimeError("listener exploded")

    bus.subscribe(None, broken)
    bus.subscribe(None, lambda event: delivered.append(event.event_id))

    event, errors = bus.emit(ConfigEventType.RELOADED)

    assert delivered == [event.event_id]
    assert len(errors) == 1
    assert errors[0].target == "broken"
    assert errors[0].error_type == "RuntimeError"
    assert bus.dispatch_errors() == errors


def test_unsubscribe_stops_delivery() -> None:
    bus = EventBus()
    received: list[ConfigEvent] = []
    token = bus.subscribe(None, received.append)

    assert bus.unsubscribe(token) is True
    assert bus.unsubscribe(token) is False
    bus.emit(ConfigEventType.INITIALIZED)

    assert received == []


def test_replay_respects_buffer_filter_and_limit() -> None:
    bus = EventBus(buffer_size=3)
    for _ in range(2):
        bus.emit(ConfigEventType.RELOADED)
    bus.emit(ConfigEventType.ERROR)
    bus.emit(ConfigEventType.RELOADED)

    replayed = bus.replay()
    assert [event.event_type for event in replayed] == [
        ConfigEventType.RELOADED,
        ConfigEventType.ERROR,
        ConfigEventType.RELOADED,
    ]
    assert len(bus.replay(event_type="reloaded")) == 2
    assert bus.replay(limit=1) == replayed[-1:]
    assert bus.replay(limit=0) == ()


def test_invalid_arguments_are_rejected() -> None:
    bus = EventBus()

    with pytest.raises(ValueError, match="invalid event_type"):
        bus.emit("changed")
    with pytest.raises(ValueError, match="callable"):
        bus.subscribe(None, "not-callable")  # type: ignore[arg-type]
    with pytest.raises(ValueError, match="buffer_size"):
        EventBus(buffer_size=0)


def test_event_payload_is_copied_on_emit() -> None:
    bus = EventBus()
    payload = {"environment": "staging"}

    event, _ = bus.emit(ConfigEventType.INITIALIZED, payload)
    payload["environment"] = "production"

    assert event.payload == {"environment": "staging"}
    assert event.timestamp.tzinfo is not None


def test_package_exports() -> None:
    assert observability_pkg.EventBus is EventBus
    assert "ConfigEventType" in observability_pkg.__all__
