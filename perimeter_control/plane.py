"""
MQTTControlPlane - MQTT Control Plane for the boundary editor service

Bounded Context: MQTT connection management + command reception
Responsibilities:
  - MQTT connection lifecycle (connect, disconnect)
  - Command message reception (subscribe to command topic)
  - Status publishing (retained editor snapshot)
  - Notice publishing (toast-equivalent user messages)
  - Command delegation to CommandRegistry

QoS Policy:
  - Commands: QoS 1 (at-least-once delivery)
  - Status: QoS 1 + retained (last status persisted)
  - Notices: QoS 1, not retained

Threading:
  - MQTT client runs own background thread (loop_start/loop_stop)
  - Command handlers run in MQTT thread, one at a time
"""

import json
import logging
from datetime import datetime, timezone
from threading import Event
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt

from .registry import CommandArgumentError, CommandNotAvailableError, CommandRegistry

logger = logging.getLogger(__name__)


class MQTTControlPlane:
    """
    MQTT Control Plane for receiving commands and publishing status/notices.

    Example:
        control_plane = MQTTControlPlane(
            broker_host="localhost",
            broker_port=1883,
            command_topic="perimeter/control/editor_1/commands",
            status_topic="perimeter/control/editor_1/status",
            notice_topic="perimeter/control/editor_1/notices",
            client_id="editor_1_control"
        )
        control_plane.command_registry.register('undo', on_undo, "Undo")
        control_plane.connect(timeout=5.0)
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        command_topic: str,
        status_topic: str,
        client_id: str,
        notice_topic: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        client: Optional[mqtt.Client] = None,
    ):
        """
        Initialize MQTT Control Plane.

        Args:
            broker_host: MQTT broker hostname
            broker_port: MQTT broker port (typically 1883)
            command_topic: Topic for receiving commands (subscribe)
            status_topic: Topic for publishing status (publish, retained)
            client_id: MQTT client identifier
            notice_topic: Topic for user notices (optional)
            username: Optional MQTT authentication username
            password: Optional MQTT authentication password
            client: Pre-built MQTT client (optional)
        """
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.command_topic = command_topic
        self.status_topic = status_topic
        self.notice_topic = notice_topic
        self.client_id = client_id

        # MQTT client
        self.client = client or mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv311,
        )
        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message
        self.client.on_disconnect = self._on_disconnect

        # Authentication
        if username and password:
            self.client.username_pw_set(username, password)

        # Connection synchronization
        self._connected = Event()
        self._running = False

        # Command registry
        self.command_registry = CommandRegistry()

    def connect(self, timeout: float = 5.0) -> bool:
        """
        Connect to MQTT broker with timeout.

        Returns:
            True if connected successfully, False otherwise
        """
        try:
            logger.info(f"🔌 Connecting to MQTT broker: {self.broker_host}:{self.broker_port}")
            self.client.connect(self.broker_host, self.broker_port, keepalive=60)
            self.client.loop_start()
            self._running = True

            if self._connected.wait(timeout=timeout):
                logger.info("✅ MQTT Control Plane connected")
                return True

            logger.error(f"❌ Connection timeout after {timeout}s")
            return False

        except (OSError, ValueError) as e:
            logger.error(f"❌ Error connecting to MQTT: {e}")
            return False

    def disconnect(self) -> None:
        """Disconnect from MQTT broker (safe to call multiple times)."""
        if self._running:
            logger.info("🔌 Disconnecting from MQTT broker")
            self.publish_status("disconnected")
            self.client.loop_stop()
            self.client.disconnect()
            self._running = False
            self._connected.clear()
            logger.info("✅ MQTT Control Plane disconnected")

    def _publish(self, topic: str, message: Dict[str, Any], retain: bool) -> None:
        try:
            self.client.publish(topic, json.dumps(message), qos=1, retain=retain)
        except (TypeError, ValueError) as e:
            logger.error(f"❌ Error publishing to {topic}: {e}")

    def publish_status(self, status: str, data: Optional[Dict[str, Any]] = None) -> None:
        """
        Publish status update to status topic.

        Args:
            status: Status string (e.g., "ready", "connected", "disconnected")
            data: Optional payload (editor snapshot)

        QoS: 1, Retained: True (last status persisted)
        """
        message = {
            "status": status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "client_id": self.client_id,
        }
        if data is not None:
            message["data"] = data

        self._publish(self.status_topic, message, retain=True)
        logger.debug(f"📤 Status published: {status}")

    def publish_notice(self, level: str, code: str, message: str) -> None:
        """Publish a user-visible notice (no-op without a notice topic)."""
        if self.notice_topic is None:
            return

        notice = {
            "level": level,
            "code": code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        self._publish(self.notice_topic, notice, retain=False)
        logger.debug(f"📤 Notice published: [{level}] {code}")

    # ===== MQTT Callbacks (run in MQTT thread) =====

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """MQTT callback: connection established."""
        if not reason_code.is_failure:
            logger.info(f"✅ Connected to broker ({reason_code})")

            client.subscribe(self.command_topic, qos=1)
            logger.info(f"📥 Subscribed to: {self.command_topic} (QoS 1)")

            self.publish_status("connected")
            self._connected.set()
        else:
            logger.error(f"❌ Connection failed ({reason_code})")
            self._connected.clear()

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None):
        """MQTT callback: disconnection detected."""
        if reason_code.is_failure:
            logger.warning(f"⚠️ Unexpected disconnection ({reason_code})")
        else:
            logger.info("✅ Disconnected from broker")
        self._connected.clear()

    def _on_message(self, client, userdata, msg):
        """
        MQTT callback: command message received.

        Rejected commands (malformed, unknown, missing arguments) are
        answered with a "command_rejected" notice; handler errors are logged
        and the plane keeps running.
        """
        command_data = self._parse_command(msg.payload)
        if command_data is None:
            return

        command = str(command_data['command']).lower()
        logger.info(f"🎯 Executing command: {command}")
        try:
            self.command_registry.execute(command, command_data)
        except (CommandNotAvailableError, CommandArgumentError) as e:
            self._reject(str(e))
        except Exception as e:
            logger.error(f"❌ Error executing '{command}': {e}", exc_info=True)
            self.publish_notice("error", "command_failed", f"{command}: {e}")

    def _parse_command(self, payload: bytes) -> Optional[Dict[str, Any]]:
        """JSON object with a non-empty "command", or None (already rejected)."""
        try:
            command_data = json.loads(payload.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            self._reject(f"Command is not valid JSON: {e}")
            return None

        if not isinstance(command_data, dict):
            self._reject("Command payload must be a JSON object")
            return None

        if not str(command_data.get('command') or '').strip():
            self._reject("Command payload has no 'command'")
            return None

        return command_data

    def _reject(self, reason: str) -> None:
        logger.warning(f"⚠️ Command rejected: {reason}")
        self.publish_notice("error", "command_rejected", reason)
