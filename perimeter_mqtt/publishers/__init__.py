"""
MQTT Publishers
===============

Bounded Context: Message Production

Public API
----------
    BasePublisher: Abstract publisher (connection management)
    BoundaryEventPublisher: Boundary change message publisher
"""

from .base import BasePublisher
from .boundary_event import BoundaryEventPublisher

__all__ = [
    'BasePublisher',
    'BoundaryEventPublisher',
]
