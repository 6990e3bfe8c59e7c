"""Shared fixtures: in-memory gateway, canvas provider, editor with notice capture."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import paho.mqtt.client as mqtt
import pytest

from perimeter_editor import BoundaryEditor, CanvasMapProvider, Viewport
from perimeter_editor.geometry.shapes import (
    Bounds,
    CircleGeometry,
    LatLng,
    RectangleGeometry,
    polygon,
)
from perimeter_store import InMemoryBoundaryGateway

SITE_ID = "site-1"


@pytest.fixture
def square():
    return polygon([(0.0, 0.0), (0.0, 0.001), (0.001, 0.001), (0.001, 0.0)])


@pytest.fixture
def rectangle():
    return RectangleGeometry(bounds=Bounds(north=0.002, south=0.001, east=0.002, west=0.001))


@pytest.fixture
def circle():
    return CircleGeometry(center=LatLng(lat=0.0005, lng=0.0005), radius=25.0)


@pytest.fixture
def gateway():
    return InMemoryBoundaryGateway()


@pytest.fixture
def provider():
    return CanvasMapProvider(
        viewport=Viewport(center=LatLng(lat=0.0, lng=0.0), zoom=16, frame_resolution_wh=(320, 240))
    )


@pytest.fixture
def notices():
    return []


@pytest.fixture
def editor(gateway, provider, notices):
    editor = BoundaryEditor(SITE_ID, gateway, provider, on_notice=notices.append)
    editor.load()
    return editor


@pytest.fixture
def mqtt_client():
    """Stand-in paho client: publish() always succeeds."""
    client = MagicMock()
    client.publish.return_value = SimpleNamespace(rc=mqtt.MQTT_ERR_SUCCESS)
    return client


def draw(editor, provider, geometry, kind=None):
    """Start drawing and finish it with geometry (Idle -> Creating)."""
    editor.start_draw(kind or geometry.kind)
    return provider.complete_drawing(geometry)


def create_boundary(editor, provider, geometry, name=None):
    """Draw geometry and save it (Idle -> Idle with one more record)."""
    draw(editor, provider, geometry)
    return editor.save(name)
