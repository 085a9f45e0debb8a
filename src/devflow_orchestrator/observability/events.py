"""In-process event bus for configuration lifecycle notifications, with replay."""

from __future__ import annotations

import logging
import threading
import uuid
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Final

logger = logging.getLogger(__name__)

_DEFAULT_ERROR_BUFFER: Final[int] = 1024


class ConfigEventType(StrEnum):
    INITIALIZED = "initialized"
    RELOADED = "reloaded"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ConfigEvent:
    event_id: str
    event_type: ConfigEventType
    timestamp: datetime
    payload: Mapping[str, Any] = field(default_factory=dict)


Subscriber = Callable[[ConfigEvent], object]


@dataclass(frozen=True, slots=True)
class DispatchError:
    """Subscriber failure captured without interrupting the publisher."""

    event_id: str
    target: str
    error_type: str
    message: str


@dataclass(frozen=True, slots=True)
class _Subscription:
    token: int
    event_type: str | None
    callback: Subscriber


class EventBus:
    """Synchronous event bus; subscriber exceptions never reach the publisher."""

    def __init__(self, *, buffer_size: int = 128) -> None:
        if not isinstance(buffer_size, int):
            raise ValueError(f"buffer_size must be an integer, got {type(buffer_size).__name__}")
        if buffer_size <= 0:
            raise ValueError("buffer_size must be > 0")

        self._buffer = deque[ConfigEvent](maxlen=buffer_size)
        self._subscriptions: dict[int, _Subscription] = {}
        self._dispatch_errors = deque[DispatchError](maxlen=_DEFAULT_ERROR_BUFFER)
        self._next_token = 1
        self._lock = threading.RLock()

    def subscribe(self, event_type: str | ConfigEventType | None, callback: Subscriber) -> int:
        """Subscribe callback to an event type or all events when ``event_type`` is ``None``."""

        if not callable(callback):
            raise ValueError("callback must be callable")

        normalized_event_type = _normalize_event_type_filter(event_type)
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._subscriptions[token] = _Subscription(
                token=token,
                event_type=normalized_event_type,
                callback=callback,
            )
        return token

    def unsubscribe(self, token: int) -> bool:
        """Unsubscribe callback token. Returns ``True`` when token existed."""

        if not isinstance(token, int):
            raise ValueError(f"token must be an integer, got {type(token).__name__}")
        with self._lock:
            return self._subscriptions.pop(token, None) is not None

    def publish(self, event: ConfigEvent) -> tuple[DispatchError, ...]:
        if not isinstance(event, ConfigEvent):
            raise ValueError(f"event must be ConfigEvent, got {type(event).__name__}")
        with self._lock:
            self._buffer.append(event)
            subscriptions = tuple(self._subscriptions.values())

        errors: list[DispatchError] = []
        for subscription in subscriptions:
            if subscription.event_type is not None and subscription.event_type != event.event_type:
                continue
            target = _callback_name(subscription.callback)
            try:
                subscription.callback(event)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "subscriber %s failed on %s event: %s", target, event.event_type.value, exc
                )
                errors.append(
                    DispatchError(
                        event_id=event.event_id,
                        target=target,
                        error_type=exc.__class__.__name__,
                        message=str(exc),
                    )
                )

        if errors:
            with self._lock:
                self._dispatch_errors.extend(errors)
        return tuple(errors)

    def emit(
        self,
        event_type: str | ConfigEventType,
        payload: Mapping[str, Any] | None = None,
    ) -> tuple[ConfigEvent, tuple[DispatchError, ...]]:
        """Create and publish an event."""

        event = ConfigEvent(
            event_id=uuid.uuid4().hex,
            event_type=_as_event_type(event_type),
            timestamp=datetime.now(timezone.utc),
            payload=dict(payload or {}),
        )
        return event, self.publish(event)

    def replay(
        self,
        *,
        event_type: str | ConfigEventType | None = None,
        limit: int | None = None,
    ) -> tuple[ConfigEvent, ...]:
        """Replay buffered events in publish order."""

        type_filter = _normalize_event_type_filter(event_type)
        with self._lock:
            events = tuple(self._buffer)

        filtered = [
            event for event in events if type_filter is None or event.event_type == type_filter
        ]
        if limit is not None:
            if limit <= 0:
                return ()
            filtered = filtered[-limit:]
        return tuple(filtered)

    def dispatch_errors(self) -> tuple[DispatchError, ...]:
        with self._lock:
            return tuple(self._dispatch_errors)


def _as_event_type(value: str | ConfigEventType) -> ConfigEventType:
    if isinstance(value, ConfigEventType):
        return value
    try:
        return ConfigEventType(value)
    except ValueError as exc:
        allowed = ", ".join(item.value for item in ConfigEventType)
        raise ValueError(f"invalid event_type {value!r}; allowed: {allowed}") from exc


def _normalize_event_type_filter(value: str | ConfigEventType | None) -> str | None:
    if value is None:
        return None
    return _as_event_type(value).value


def _callback_name(callback: object) -> str:
    name = getattr(callback, "__name__", None)
    if isinstance(name, str) and name:
        return name
    return callback.__class__.__name__


__all__ = [
    "ConfigEvent",
    "ConfigEventType",
    "DispatchError",
    "EventBus",
    "Subscriber",
]
