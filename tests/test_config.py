from pathlib import Path

import pytest

from perimeter_editor.geometry.shapes import LatLng
from perimeter_service.config import EditorServiceConfig, MQTTConfig, ViewportConfig

EXAMPLE = Path(__file__).resolve().parent.parent / "config" / "perimeter_service" / "service_config.yaml"


def test_example_config_loads():
    config = EditorServiceConfig.from_yaml(EXAMPLE)

    assert config.service_id == "editor_01"
    assert config.command_topic == "perimeter/control/editor_01/commands"
    assert config.boundary_topic == "perimeter/data/boundaries/editor_01"
    assert config.viewport.to_viewport().center == LatLng(lat=19.4326, lng=-99.1332)
    assert config.resolved_palettes()["default"].fill_opacity == 0.1


def test_minimal_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text('service_id: "ed"\nsite_id: "s1"\n')

    config = EditorServiceConfig.from_yaml(path)

    assert config.database_url.startswith("sqlite:///")
    assert config.draw_kind == "polygon"
    assert config.mqtt_config == MQTTConfig()
    assert config.notice_topic == "perimeter/control/ed/notices"


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        EditorServiceConfig.from_yaml(tmp_path / "nope.yaml")


def test_missing_site_id(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text('service_id: "ed"\n')

    with pytest.raises(ValueError, match="site_id"):
        EditorServiceConfig.from_yaml(path)


@pytest.mark.parametrize(
    "overrides",
    [
        {"service_id": ""},
        {"draw_kind": "hexagon"},
        {"default_name_base": " "},
        {"palettes": {"hover": {"fill_opacity": 0.2}}},
        {"palettes": {"default": {"fill_opacity": 2.0}}},
    ],
)
def test_invalid_values(overrides):
    kwargs = {"service_id": "ed", "site_id": "s1", **overrides}

    with pytest.raises(ValueError):
        EditorServiceConfig(**kwargs)


def test_mqtt_config_validation():
    with pytest.raises(ValueError):
        MQTTConfig(port=0)
    with pytest.raises(ValueError):
        MQTTConfig(qos=3)
    with pytest.raises(ValueError):
        MQTTConfig(outbox_size=-1)


def test_viewport_config_validation():
    with pytest.raises(ValueError):
        ViewportConfig(zoom=30)
    with pytest.raises(ValueError):
        ViewportConfig(frame_resolution_wh=(0, 720))


def test_command_line_overrides():
    from run_editor_service import load_config, parse_args

    args = parse_args([
        "--config", str(EXAMPLE), "--site-id", "warehouse-south", "--database-url", "memory://",
    ])
    config = load_config(args.config, site_id=args.site_id, database_url=args.database_url)

    assert config.site_id == "warehouse-south"
    assert config.database_url == "memory://"
    assert config.service_id == "editor_01"
    assert load_config(EXAMPLE) == EditorServiceConfig.from_yaml(EXAMPLE)
