"""
Base MQTT Publisher
===================

Bounded Context: MQTT Infrastructure

Design:
- QoS 1 by default: boundary changes are rare and must not be lost
- Messages published while the broker is away wait in a bounded outbox
  and are flushed, in order, on the next successful connect
- Subclasses only format messages

Architecture:
    BasePublisher (abstract)
        ↓
    BoundaryEventPublisher (concrete)
"""

import json
import threading
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Deque, Dict, Optional, Tuple

import paho.mqtt.client as mqtt

from ..logging import LogEvent, StructuredLogger


class BasePublisher(ABC):
    """
    Abstract base class for MQTT publishers.

    Attributes:
        topic: MQTT topic to publish to
        qos: Quality of Service
        max_pending: Outbox size; the oldest message is dropped when full
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        topic: str,
        client_id: str,
        logger: StructuredLogger,
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1,
        client: Optional[mqtt.Client] = None,
        max_pending: int = 100,
    ):
        if max_pending < 0:
            raise ValueError(f"max_pending must be >= 0, got {max_pending}")

        self.broker_host = broker_host
        self.broker_port = broker_port
        self.topic = topic
        self.client_id = client_id
        self.logger = logger.bind(topic=topic)
        self.qos = qos
        self.max_pending = max_pending

        self.client = client or mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2, client_id=client_id
        )
        if username and password:
            self.client.username_pw_set(username, password)

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect

        self._connected = threading.Event()
        self._lock = threading.Lock()
        self._pending: Deque[Tuple[str, bool]] = deque()
        self._message_count = 0
        self._dropped_count = 0

    @property
    def broker(self) -> str:
        return f"{self.broker_host}:{self.broker_port}"

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        if reason_code.is_failure:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message=f"Failed to connect to broker (reason={reason_code})",
                metadata={'broker': self.broker}
            )
            return

        self._connected.set()
        self.logger.info(
            event=LogEvent.MQTT_CONNECTED,
            message="Connected to MQTT broker",
            metadata={'broker': self.broker, 'client_id': self.client_id}
        )
        self.flush_pending()

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None) -> None:
        self._connected.clear()
        self.logger.warning(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Disconnected from MQTT broker",
            metadata={'broker': self.broker, 'reason_code': str(reason_code)}
        )

    def connect(self, timeout: float = 10.0) -> bool:
        """
        Connect and start the network loop.

        Returns:
            True once the broker acknowledged the connection within timeout
        """
        try:
            self.client.connect(self.broker_host, self.broker_port)
            self.client.loop_start()
        except (OSError, ValueError) as e:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Failed to connect to broker",
                exc_info=e,
                metadata={'broker': self.broker}
            )
            return False

        if self._connected.wait(timeout=timeout):
            return True

        self.logger.error(
            event=LogEvent.MQTT_CONNECTION_ERROR,
            message="Connection timeout",
            metadata={'broker': self.broker, 'timeout': timeout}
        )
        return False

    def disconnect(self) -> None:
        self.client.loop_stop()
        self.client.disconnect()
        self._connected.clear()
        self.logger.info(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Disconnected from broker",
            metadata={'message_count': self._message_count, 'pending': len(self._pending)}
        )

    def is_connected(self) -> bool:
        return self._connected.is_set()

    @abstractmethod
    def format_message(self, *args, **kwargs) -> Dict[str, Any]:
        """Build the JSON-ready dict for one message."""
        raise NotImplementedError("Subclasses must implement format_message()")

    def publish(self, message_data: Dict[str, Any], retain: bool = False) -> bool:
        """
        Publish an already formatted message.

        Returns:
            True when handed to the broker. False when it was queued in the
            outbox (not connected) or rejected (not serializable, publish error).
        """
        try:
            payload = json.dumps(message_data)
        except (TypeError, ValueError) as e:
            self.logger.error(
                event=LogEvent.SERIALIZATION_ERROR,
                message="Message is not JSON serializable",
                exc_info=e,
            )
            return False

        if not self._connected.is_set():
            self._enqueue(payload, retain)
            return False

        return self._send(payload, retain)

    def _enqueue(self, payload: str, retain: bool) -> None:
        with self._lock:
            if self.max_pending and len(self._pending) >= self.max_pending:
                self._pending.popleft()
                self._dropped_count += 1
            if self.max_pending:
                self._pending.append((payload, retain))
            else:
                self._dropped_count += 1
            pending = len(self._pending)

        self.logger.warning(
            event=LogEvent.MQTT_PUBLISH_QUEUED,
            message="Not connected to broker, message queued",
            metadata={'pending': pending, 'dropped': self._dropped_count}
        )

    def _send(self, payload: str, retain: bool) -> bool:
        result = self.client.publish(
            topic=self.topic,
            payload=payload,
            qos=self.qos,
            retain=retain
        )

        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            self.logger.warning(
                event=LogEvent.MQTT_PUBLISH_FAILED,
                message=f"Publish failed (rc={result.rc})",
            )
            return False

        with self._lock:
            self._message_count += 1
            message_count = self._message_count

        self.logger.debug(
            event=LogEvent.MQTT_PUBLISH_SUCCESS,
            message="Published message",
            metadata={'message_count': message_count, 'qos': self.qos}
        )
        return True

    def flush_pending(self) -> int:
        """Send queued messages in order; stops at the first failure. Returns how many went out."""
        sent = 0
        while self._connected.is_set():
            with self._lock:
                if not self._pending:
                    break
                payload, retain = self._pending[0]
            if not self._send(payload, retain):
                break
            with self._lock:
                self._pending.popleft()
            sent += 1

        if sent:
            self.logger.info(
                event=LogEvent.MQTT_OUTBOX_FLUSHED,
                message=f"Flushed {sent} queued messages",
                metadata={'pending': len(self._pending)}
            )
        return sent

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'message_count': self._message_count,
                'pending_count': len(self._pending),
                'dropped_count': self._dropped_count,
                'connected': self._connected.is_set(),
                'topic': self.topic,
                'broker': self.broker,
            }
