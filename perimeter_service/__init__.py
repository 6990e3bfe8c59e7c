"""
perimeter_service - Boundary editor service

This package exposes the boundary editor of one site over MQTT: commands
drive the edit session, status snapshots and notices are published back,
and persisted changes go out as boundary events.

Architecture:
- EditorService: Main orchestrator (editor + gateway + canvas provider)
- EditorServiceConfig: Configuration management (YAML)

Threading Model:
- Control Plane Thread (paho-mqtt internal for commands)
- Main thread waits for shutdown
"""

from perimeter_service.config import EditorServiceConfig, MQTTConfig, ViewportConfig
from perimeter_service.service import EditorService

__all__ = [
    "EditorServiceConfig",
    "MQTTConfig",
    "ViewportConfig",
    "EditorService",
]
