"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

Typed event names for the MQTT layer of the boundary editor service.

Event Naming Convention:
    <component>.<category>.<action>

    component: mqtt, boundary, error
    category: connected, publish, outbox, event
    action: success, failed, queued, flushed, published

Example Log Query (Loki):
    {app="perimeter"} | json | event="boundary.event.published"
    {app="perimeter"} | json | category="error"
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - mqtt.*: MQTT broker interactions
    - boundary.*: Boundary change events
    - error.*: Error conditions
    """

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection lost."""

    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    """Message successfully published to broker."""

    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    """Message publication failed."""

    MQTT_PUBLISH_QUEUED = "mqtt.publish.queued"
    """Broker away: message kept in the outbox."""

    MQTT_OUTBOX_FLUSHED = "mqtt.outbox.flushed"
    """Queued messages sent after reconnect."""

    # ========== Boundary Events ==========
    BOUNDARY_EVENT_SERIALIZED = "boundary.event.serialized"
    """Boundary change message serialized to JSON."""

    BOUNDARY_EVENT_PUBLISHED = "boundary.event.published"
    """Boundary change message handed to the broker."""

    # ========== Error Events ==========
    SERIALIZATION_ERROR = "error.serialization"
    """Failed to serialize message to JSON."""

    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Failed to connect to MQTT broker."""


# Event categories, written as the "category" field of every entry
MQTT_EVENTS = {
    LogEvent.MQTT_CONNECTED,
    LogEvent.MQTT_DISCONNECTED,
    LogEvent.MQTT_PUBLISH_SUCCESS,
    LogEvent.MQTT_PUBLISH_FAILED,
    LogEvent.MQTT_PUBLISH_QUEUED,
    LogEvent.MQTT_OUTBOX_FLUSHED,
}

BOUNDARY_EVENTS = {
    LogEvent.BOUNDARY_EVENT_SERIALIZED,
    LogEvent.BOUNDARY_EVENT_PUBLISHED,
}

ERROR_EVENTS = {
    LogEvent.SERIALIZATION_ERROR,
    LogEvent.MQTT_CONNECTION_ERROR,
}

EVENT_CATEGORIES = {
    'mqtt': MQTT_EVENTS,
    'boundary': BOUNDARY_EVENTS,
    'error': ERROR_EVENTS,
}


def event_category(event: LogEvent) -> str:
    """
    Category name of event ("mqtt", "boundary" or "error").

    Raises:
        ValueError: If event belongs to no category
    """
    event = LogEvent(event)
    for category, events in EVENT_CATEGORIES.items():
        if event in events:
            return category
    raise ValueError(f"Uncategorized log event: {event.value}")
