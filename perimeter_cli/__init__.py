"""
Perimeter CLI - Command-line interface for the boundary editor service.

This package provides a CLI for sending MQTT commands to the editor
service without manually writing JSON.

Usage:
    perimeter-cli editing on
    perimeter-cli draw --kind rectangle
    perimeter-cli complete config/commands/complete_polygon.yaml
    perimeter-cli save --name "Loading Dock"
    perimeter-cli status
"""

__version__ = "1.0.0"
