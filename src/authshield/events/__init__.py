"""Security events emitted by the defense controls."""

from authshield.events.schemas import SecurityEvent, SecurityEventType
from authshield.events.sink import (
    CollectingEventSink,
    EventSink,
    JsonlEventSink,
    LoggingEventSink,
    create_event_sink,
)

__all__ = [
    "SecurityEvent",
    "SecurityEventType",
    "EventSink",
    "LoggingEventSink",
    "JsonlEventSink",
    "CollectingEventSink",
    "create_event_sink",
]
