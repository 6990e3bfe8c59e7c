import numpy as np
import pytest

from perimeter_editor.geometry.shapes import (
    Bounds,
    GeometryKind,
    LatLng,
    RectangleGeometry,
    polygon,
)
from perimeter_editor.provider.base import KIND_EVENTS, ListenerGroup, OverlayEvent
from perimeter_editor.provider.overlay import Overlay
from perimeter_editor.rendering.visibility import (
    DEFAULT_PALETTES,
    SELECTED,
    MapScene,
    RenderState,
    ScenePlacement,
)


def _recorder():
    events = []
    return events, lambda overlay, event: events.append(event)


def test_each_polygon_mutation_emits_one_event(square):
    overlay = Overlay.from_geometry(square)
    events, callback = _recorder()
    for event in KIND_EVENTS[GeometryKind.POLYGON]:
        overlay.add_listener(event, callback)

    overlay.set_at(0, LatLng(0.0001, 0.0))
    overlay.insert_at(1, LatLng(0.0, 0.0005))
    overlay.remove_at(1)
    overlay.drag(0.001, 0.0)

    assert events == [
        OverlayEvent.VERTEX_SET,
        OverlayEvent.VERTEX_INSERT,
        OverlayEvent.VERTEX_REMOVE,
        OverlayEvent.DRAG_END,
    ]
    assert overlay.get_path()[0] == LatLng(0.0011, 0.0)


def test_rectangle_and_circle_events(rectangle, circle):
    rect = Overlay.from_geometry(rectangle)
    circ = Overlay.from_geometry(circle)
    events, callback = _recorder()
    for overlay in (rect, circ):
        for event in KIND_EVENTS[overlay.kind]:
            overlay.add_listener(event, callback)

    rect.set_bounds(Bounds(north=0.003, south=0.001, east=0.002, west=0.001))
    circ.set_center(LatLng(0.0, 0.0))
    circ.set_radius(40.0)
    circ.drag(0.0, 0.001)

    assert events == [
        OverlayEvent.BOUNDS_CHANGED,
        OverlayEvent.CENTER_CHANGED,
        OverlayEvent.RADIUS_CHANGED,
        OverlayEvent.DRAG_END,
    ]
    assert circ.get_center() == LatLng(0.0, 0.001)


def test_polygon_never_drops_below_three_vertices():
    overlay = Overlay.from_geometry(polygon([(0, 0), (0, 0.001), (0.001, 0.001)]))

    with pytest.raises(ValueError):
        overlay.remove_at(0)
    assert len(overlay.get_path()) == 3


def test_wrong_kind_accessors_raise(square):
    overlay = Overlay.from_geometry(square)

    with pytest.raises(TypeError):
        overlay.get_radius()
    with pytest.raises(TypeError):
        overlay.set_bounds(Bounds(north=1, south=0, east=1, west=0))


def test_invalid_mutation_leaves_overlay_untouched(rectangle):
    overlay = Overlay.from_geometry(rectangle)

    with pytest.raises(ValueError):
        overlay.set_bounds(Bounds(north=0.0, south=1.0, east=1.0, west=0.0))
    assert overlay.get_bounds() == rectangle.bounds


def test_collapsing_vertices_is_rejected(square):
    overlay = Overlay.from_geometry(square)
    events, callback = _recorder()
    for event in KIND_EVENTS[GeometryKind.POLYGON]:
        overlay.add_listener(event, callback)

    overlay.set_at(1, LatLng(0.0, 0.0))
    with pytest.raises(ValueError, match="distinct"):
        overlay.set_at(2, LatLng(0.0, 0.0))
    with pytest.raises(ValueError, match="distinct"):
        overlay.remove_at(2)

    assert events == [OverlayEvent.VERTEX_SET]
    assert overlay.get_path() == [
        LatLng(0.0, 0.0),
        LatLng(0.0, 0.0),
        LatLng(0.001, 0.001),
        LatLng(0.001, 0.0),
    ]


def test_out_of_range_drag_is_rejected(square, circle):
    polygon_overlay = Overlay.from_geometry(square)
    circle_overlay = Overlay.from_geometry(circle)
    events, callback = _recorder()
    polygon_overlay.add_listener(OverlayEvent.DRAG_END, callback)
    circle_overlay.add_listener(OverlayEvent.DRAG_END, callback)

    with pytest.raises(ValueError):
        polygon_overlay.drag(90.0, 0.0)
    with pytest.raises(ValueError):
        circle_overlay.drag(0.0, 180.0)

    assert events == []
    assert polygon_overlay.get_path() == list(square.path)
    assert circle_overlay.get_center() == circle.center


def test_listener_group_releases_everything(square):
    overlay = Overlay.from_geometry(square)
    events, callback = _recorder()

    with ListenerGroup() as group:
        group.attach(overlay, KIND_EVENTS[overlay.kind], callback)
        assert len(group) == 4
        assert overlay.listener_count() == 4

    assert len(group) == 0
    assert overlay.listener_count() == 0
    overlay.drag(0.001, 0.001)
    assert events == []
    group.release()


def test_listener_remove_is_idempotent(square):
    overlay = Overlay.from_geometry(square)
    listener = overlay.add_listener(OverlayEvent.VERTEX_SET, lambda o, e: None)

    listener.remove()
    listener.remove()

    assert not listener.active
    assert overlay.listener_count(OverlayEvent.VERTEX_SET) == 0


def test_complete_drawing_delivers_overlay(provider, square):
    completed = []
    provider.start_drawing(GeometryKind.POLYGON, completed.append, {"editable": True})

    overlay = provider.complete_drawing(square)

    assert completed == [overlay]
    assert overlay.provider is provider
    assert overlay.options["editable"] is True
    assert provider.drawing is None


def test_complete_drawing_requires_active_request(provider, square):
    with pytest.raises(RuntimeError):
        provider.complete_drawing(square)


def test_complete_drawing_rejects_other_kind(provider, circle):
    provider.start_drawing(GeometryKind.POLYGON, lambda overlay: None)

    with pytest.raises(ValueError):
        provider.complete_drawing(circle)
    assert provider.drawing is not None


def test_new_drawing_cancels_previous(provider):
    first = provider.start_drawing(GeometryKind.POLYGON, lambda overlay: None)
    second = provider.start_drawing(GeometryKind.CIRCLE, lambda overlay: None)

    assert not first.active
    assert provider.drawing is second


def test_render_scene_swaps_working_overlay(provider, square, circle):
    first = Overlay.from_geometry(square)
    second = Overlay.from_geometry(circle)
    state = RenderState.from_palette(DEFAULT_PALETTES[SELECTED])

    provider.render_scene(MapScene(working=first, working_state=state))
    provider.render_scene(MapScene(working=second, working_state=state))

    assert first.provider is None
    assert second.provider is provider
    assert second.options["fill_color"] == state.fill_color
    assert provider.sync_count == 2


def test_render_draws_visible_boundaries(provider):
    rect = Bounds(north=0.0005, south=-0.0005, east=0.0005, west=-0.0005)
    geometry = RectangleGeometry(bounds=rect)
    blank = provider.render()
    width, height = provider.viewport.frame_resolution_wh

    provider.render_scene(MapScene(placements=(
        ScenePlacement("a", "A", geometry, RenderState.from_palette(DEFAULT_PALETTES[SELECTED])),
    )))
    frame = provider.render()

    assert frame.shape == (height, width, 3)
    assert not np.array_equal(frame[height // 2, width // 2], blank[height // 2, width // 2])


def test_hidden_boundaries_are_not_drawn(provider, square):
    blank = provider.render()

    provider.render_scene(MapScene(placements=(ScenePlacement("a", "A", square, RenderState.hidden()),)))

    assert np.array_equal(provider.render(), blank)
