"""
Boundary Event Publisher
========================

Bounded Context: Boundary change message production

Message Flow:
    EditorService -> BoundaryEventMessage -> BoundaryEventPublisher -> MQTT Broker

Example:
    >>> publisher = BoundaryEventPublisher(
    ...     broker_host="localhost",
    ...     topic="perimeter/data/boundaries/editor_1",
    ...     logger=create_logger("boundary_publisher")
    ... )
    >>> publisher.connect()
    >>> publisher.publish_boundary_event(
    ...     BoundaryEventMessage.create("site-1", BoundaryEventType.CREATED,
    ...                                 record.id, record.to_dict())
    ... )
"""

from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt

from .base import BasePublisher
from ..logging import LogEvent, StructuredLogger
from ..schemas import BoundaryEventMessage


class BoundaryEventPublisher(BasePublisher):
    """Publisher for BoundaryEventMessage instances."""

    def __init__(
        self,
        broker_host: str,
        topic: str,
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "perimeter_boundary_publisher",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1,
        client: Optional[mqtt.Client] = None,
        max_pending: int = 100,
    ):
        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            topic=topic,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
            qos=qos,
            client=client,
            max_pending=max_pending,
        )

    def format_message(self, event_msg: BoundaryEventMessage) -> Dict[str, Any]:
        """
        Format BoundaryEventMessage to a JSON-compatible dict.

        Raises:
            ValueError: If event_msg is not a BoundaryEventMessage
        """
        if not isinstance(event_msg, BoundaryEventMessage):
            self.logger.error(
                event=LogEvent.SERIALIZATION_ERROR,
                message="Failed to serialize boundary event message",
                metadata={'type': type(event_msg).__name__}
            )
            raise ValueError(f"Expected BoundaryEventMessage, got {type(event_msg).__name__}")

        formatted = event_msg.to_dict()
        self.logger.debug(
            event=LogEvent.BOUNDARY_EVENT_SERIALIZED,
            message="Serialized boundary event message",
            metadata={
                'site_id': event_msg.site_id,
                'event_type': event_msg.event_type.value,
                'boundary_id': event_msg.boundary_id,
            }
        )
        return formatted

    def publish_boundary_event(self, event_msg: BoundaryEventMessage) -> bool:
        """
        Publish a boundary change.

        Returns:
            True if handed to the broker, False if queued for reconnect or failed
        """
        success = self.publish(self.format_message(event_msg))

        if success:
            self.logger.info(
                event=LogEvent.BOUNDARY_EVENT_PUBLISHED,
                message=f"Published {event_msg.event_type.value} event",
                metadata={
                    'site_id': event_msg.site_id,
                    'boundary_id': event_msg.boundary_id,
                    'topic': self.topic,
                }
            )

        return success
