"""
perimeter_control - Control Plane for the boundary editor service

Bounded Context: MQTT-based command-and-control
Responsibilities:
  - MQTT connection management (Control Plane)
  - Command registration and validation
  - Command execution delegation

Architecture:
  - CommandRegistry: Explicit registration pattern
  - MQTTControlPlane: MQTT client + command reception + status/notices
  - QoS 1 for control commands (at-least-once delivery)
"""

from .registry import CommandArgumentError, CommandNotAvailableError, CommandRegistry
from .plane import MQTTControlPlane

__all__ = [
    "CommandRegistry",
    "CommandArgumentError",
    "CommandNotAvailableError",
    "MQTTControlPlane",
]
