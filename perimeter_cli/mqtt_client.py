"""
MQTT client wrapper for sending commands to the boundary editor service.

The editor answers every command with a retained status snapshot on its
status topic; `request_status` sends a command and returns that answer.
"""

import json
import queue
import sys
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import paho.mqtt.client as mqtt


class MQTTCommandClient:
    """
    MQTT client for sending commands to the editor service (QoS 1).
    """

    def __init__(
        self,
        broker: str = "localhost",
        port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
        client: Optional[mqtt.Client] = None,
    ):
        self.broker = broker
        self.port = port

        self.client = client or mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)

        if username and password:
            self.client.username_pw_set(username, password)

    @staticmethod
    def _encode(command: Dict[str, Any]) -> str:
        try:
            return json.dumps(command)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid command data: {e}")

    @contextmanager
    def _connection(self) -> Iterator[mqtt.Client]:
        try:
            self.client.connect(self.broker, self.port, keepalive=60)
        except OSError as e:
            raise ConnectionError(
                f"Unable to connect to MQTT broker at {self.broker}:{self.port}. "
                f"Is mosquitto running? ({e})"
            )

        self.client.loop_start()
        try:
            yield self.client
        finally:
            self.client.disconnect()
            self.client.loop_stop()

    def send_command(
        self,
        topic: str,
        command: Dict[str, Any],
        qos: int = 1,
        timeout: float = 5.0,
    ) -> None:
        """
        Send command to MQTT topic.

        Args:
            topic: MQTT topic (e.g., "perimeter/control/editor_01/commands")
            command: Command dictionary (will be JSON serialized)
            qos: Quality of Service (default: 1 for control commands)
            timeout: Seconds to wait for the broker acknowledgement

        Raises:
            ConnectionError: If unable to connect to MQTT broker
            ValueError: If command serialization fails
        """
        payload = self._encode(command)

        with self._connection() as client:
            result = client.publish(topic, payload, qos=qos)
            result.wait_for_publish(timeout=timeout)

        print(f"✅ Command sent: {command.get('command', 'unknown')}")

    def request_status(
        self,
        command_topic: str,
        status_topic: str,
        command: Dict[str, Any],
        timeout: float = 5.0,
    ) -> Dict[str, Any]:
        """
        Send a command and wait for the status the editor publishes in reply.

        The retained status delivered on subscribe predates the command and
        is skipped.

        Raises:
            ConnectionError: If unable to connect to MQTT broker
            TimeoutError: If no status arrives within timeout
        """
        payload = self._encode(command)
        replies: "queue.Queue[Dict[str, Any]]" = queue.Queue()

        def on_message(client, userdata, msg):
            if msg.retain:
                return
            try:
                replies.put(json.loads(msg.payload.decode("utf-8")))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                print(f"⚠️  Ignoring malformed status message: {e}", file=sys.stderr)

        self.client.on_message = on_message

        with self._connection() as client:
            client.subscribe(status_topic, qos=1)
            client.publish(command_topic, payload, qos=1).wait_for_publish(timeout=timeout)
            try:
                return replies.get(timeout=timeout)
            except queue.Empty:
                raise TimeoutError(
                    f"No status on {status_topic} within {timeout}s "
                    f"(is the editor service running?)"
                )
