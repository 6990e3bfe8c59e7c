import pytest

from perimeter_editor.errors import CloneError
from perimeter_editor.geometry.codec import GeometryCodec
from perimeter_editor.geometry.shapes import (
    Bounds,
    CircleGeometry,
    LatLng,
    RectangleGeometry,
    polygon,
)
from perimeter_editor.provider.overlay import Overlay


@pytest.fixture
def codec():
    return GeometryCodec(Overlay.from_geometry)


def test_round_trip_every_kind(codec, square, rectangle, circle):
    for geometry in (square, rectangle, circle):
        handle = codec.from_normalized(geometry)

        assert handle.kind is geometry.kind
        assert codec.to_normalized(handle) == geometry


def test_from_normalized_builds_independent_handles(codec, square):
    first = codec.from_normalized(square)
    second = codec.from_normalized(square)

    first.set_at(0, LatLng(lat=0.0002, lng=0.0002))

    assert first is not second
    assert codec.to_normalized(second) == square


def test_options_reach_the_handle(codec, circle):
    handle = codec.from_normalized(circle, {"editable": True})

    assert handle.options["editable"] is True


@pytest.mark.parametrize(
    "geometry",
    [
        polygon([(95.0, 0.0), (95.0, 1.0), (96.0, 1.0)]),
        polygon([(0.0, 0.0), (0.0, 0.0), (1.0, 1.0)]),
        RectangleGeometry(bounds=Bounds(north=0.0, south=1.0, east=1.0, west=0.0)),
        CircleGeometry(center=LatLng(lat=0.0, lng=200.0), radius=10.0),
        CircleGeometry(center=LatLng(lat=0.0, lng=0.0), radius=float("inf")),
    ],
)
def test_construction_failures_become_clone_errors(codec, geometry):
    with pytest.raises(CloneError):
        codec.from_normalized(geometry)


def test_unknown_geometry_is_a_clone_error(codec):
    with pytest.raises(CloneError):
        codec.from_normalized({"type": "polygon"})

