import pytest

from perimeter_editor.rendering.visibility import (
    DEFAULT,
    DEFAULT_PALETTES,
    SELECTED,
    VIEW_ALL,
    MapScene,
    Palette,
    RenderState,
    ScenePlacement,
    VisibilityContext,
    compute_render_state,
    compute_render_states,
    merge_palettes,
)


def _state(boundary_id, **context):
    return compute_render_state(boundary_id, VisibilityContext(**context))


def test_session_target_is_hidden():
    state = _state(
        "a", editing_enabled=True, selected_id="a", default_id="a",
        session_target_id="a", session_active=True,
    )

    assert state == RenderState.hidden()


def test_target_shown_again_without_session():
    state = _state("a", editing_enabled=True, selected_id="a", session_target_id="a")

    assert state == RenderState.from_palette(DEFAULT_PALETTES[SELECTED])


def test_selected_while_editing():
    assert _state("a", editing_enabled=True, selected_id="a").visible
    assert not _state("b", editing_enabled=True, selected_id="a", default_id="b").visible


def test_view_all_shows_every_boundary():
    default = _state("a", view_all=True, default_id="a")
    other = _state("b", view_all=True, default_id="a")

    assert default == RenderState.from_palette(DEFAULT_PALETTES[DEFAULT])
    assert other == RenderState.from_palette(DEFAULT_PALETTES[VIEW_ALL])


def test_only_default_without_view_all():
    assert _state("a", default_id="a").fill_color == DEFAULT_PALETTES[DEFAULT].fill_color
    assert not _state("b", default_id="a").visible


def test_no_default_hides_everything():
    states = compute_render_states(["a", "b"], VisibilityContext())

    assert list(states) == ["a", "b"]
    assert not any(s.visible for s in states.values())


def test_view_all_ignored_while_editing():
    assert not _state("b", editing_enabled=True, view_all=True, selected_id="a").visible


def test_merge_palettes_overrides_fields():
    palettes = merge_palettes({"default": {"fill_opacity": 0.5}})

    assert palettes[DEFAULT].fill_opacity == 0.5
    assert palettes[DEFAULT].fill_color == DEFAULT_PALETTES[DEFAULT].fill_color
    assert DEFAULT_PALETTES[DEFAULT].fill_opacity == 0.0


def test_merge_palettes_rejects_unknown_name():
    with pytest.raises(ValueError):
        merge_palettes({"hover": {"fill_opacity": 0.5}})


def test_palette_validation():
    with pytest.raises(ValueError):
        Palette("#fff", "#000", fill_opacity=1.5)
    with pytest.raises(ValueError):
        Palette("red", "#000")


def test_scene_visible_sorted_by_z(square):
    low = RenderState.from_palette(DEFAULT_PALETTES[VIEW_ALL])
    high = RenderState.from_palette(DEFAULT_PALETTES[DEFAULT])
    scene = MapScene(placements=(
        ScenePlacement("a", "A", square, high),
        ScenePlacement("b", "B", square, RenderState.hidden()),
        ScenePlacement("c", "C", square, low),
    ))

    assert [p.boundary_id for p in scene.visible()] == ["c", "a"]
