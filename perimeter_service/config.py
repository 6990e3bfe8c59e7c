"""
Configuration schema for the boundary editor service.

This module defines the configuration structure for the editor service,
including the edited site, persistence URL, map viewport, palette overrides
and MQTT settings.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from perimeter_editor.geometry.shapes import GeometryKind, LatLng
from perimeter_editor.rendering.projection import Viewport
from perimeter_editor.rendering.visibility import Palette, merge_palettes


@dataclass(frozen=True)
class ViewportConfig:
    """Map viewport used for snapshots."""

    center: Tuple[float, float] = (0.0, 0.0)  # (lat, lng)
    zoom: float = 16.0
    frame_resolution_wh: Tuple[int, int] = (1280, 720)  # (width, height)

    def __post_init__(self):
        """Validate viewport configuration."""
        if len(self.center) != 2:
            raise ValueError(f"center must be [lat, lng], got {self.center}")

        # Viewport/LatLng run the range checks
        self.to_viewport()

    def to_viewport(self) -> Viewport:
        lat, lng = self.center
        return Viewport(
            center=LatLng(lat=float(lat), lng=float(lng)),
            zoom=float(self.zoom),
            frame_resolution_wh=(int(self.frame_resolution_wh[0]), int(self.frame_resolution_wh[1])),
        )


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker configuration."""

    broker: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    qos: int = 1  # Boundary events are low-rate, keep at-least-once
    outbox_size: int = 100  # Boundary events kept while the broker is away

    boundary_topic: str = "perimeter/data/boundaries/{service_id}"

    def __post_init__(self):
        """Validate MQTT configuration."""
        if not self.broker:
            raise ValueError("MQTT broker cannot be empty")

        if not 1 <= self.port <= 65535:
            raise ValueError(
                f"MQTT port must be in [1, 65535], got {self.port}"
            )

        if self.qos not in {0, 1, 2}:
            raise ValueError(
                f"MQTT QoS must be 0, 1, or 2, got {self.qos}"
            )

        if self.outbox_size < 0:
            raise ValueError(f"outbox_size must be >= 0, got {self.outbox_size}")


@dataclass(frozen=True)
class EditorServiceConfig:
    """
    Main configuration for the boundary editor service.

    This configuration is loaded from YAML and validated at startup.
    Immutable after construction (frozen dataclass).
    """

    # Service identification
    service_id: str
    site_id: str

    # Persistence ("memory://" or a SQLAlchemy URL)
    database_url: str = "sqlite:///./data/boundaries.db"

    # Editor behavior
    default_name_base: str = "Zone"
    draw_kind: str = "polygon"

    # Rendering
    viewport: ViewportConfig = field(default_factory=ViewportConfig)
    palettes: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    snapshot_dir: Path = Path("./runs")

    # MQTT configuration
    mqtt_config: MQTTConfig = field(default_factory=MQTTConfig)

    def __post_init__(self):
        """Validate service configuration."""
        if not self.service_id:
            raise ValueError("service_id cannot be empty")

        if not self.site_id:
            raise ValueError("site_id cannot be empty")

        if not self.database_url:
            raise ValueError("database_url cannot be empty")

        if not self.default_name_base or not self.default_name_base.strip():
            raise ValueError("default_name_base cannot be empty")

        valid_kinds = {k.value for k in GeometryKind}
        if self.draw_kind not in valid_kinds:
            raise ValueError(
                f"Invalid draw_kind: {self.draw_kind}. "
                f"Must be one of {sorted(valid_kinds)}"
            )

        # Fail at startup on unknown palette names or bad colors
        self.resolved_palettes()

    def resolved_palettes(self) -> Dict[str, Palette]:
        return merge_palettes(self.palettes)

    @property
    def command_topic(self) -> str:
        return f"perimeter/control/{self.service_id}/commands"

    @property
    def status_topic(self) -> str:
        return f"perimeter/control/{self.service_id}/status"

    @property
    def notice_topic(self) -> str:
        return f"perimeter/control/{self.service_id}/notices"

    @property
    def boundary_topic(self) -> str:
        return self.mqtt_config.boundary_topic.format(service_id=self.service_id)

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "EditorServiceConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            service_id: "editor_01"
            site_id: "warehouse-north"
            database_url: "sqlite:///./data/boundaries.db"
            default_name_base: "Zone"
            draw_kind: "polygon"

            viewport:
              center: [19.4326, -99.1332]  # [lat, lng]
              zoom: 17
              frame_resolution_wh: [1280, 720]

            palettes:
              default:
                fill_opacity: 0.1

            snapshot_dir: "./runs"

            mqtt_config:
              broker: "localhost"
              port: 1883

        Raises:
            FileNotFoundError: If yaml_path does not exist
            ValueError: If required keys are missing or values invalid
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        for key in ("service_id", "site_id"):
            if key not in data:
                raise ValueError(f"Missing required config key: {key}")

        # Parse nested configs
        viewport_data = dict(data.get("viewport") or {})
        if "center" in viewport_data:
            viewport_data["center"] = tuple(viewport_data["center"])
        if "frame_resolution_wh" in viewport_data:
            viewport_data["frame_resolution_wh"] = tuple(viewport_data["frame_resolution_wh"])
        viewport = ViewportConfig(**viewport_data)

        mqtt_config_data = data.get("mqtt_config") or {}
        mqtt_config = MQTTConfig(**mqtt_config_data)

        return cls(
            service_id=str(data["service_id"]),
            site_id=str(data["site_id"]),
            database_url=data.get("database_url", "sqlite:///./data/boundaries.db"),
            default_name_base=data.get("default_name_base", "Zone"),
            draw_kind=data.get("draw_kind", "polygon"),
            viewport=viewport,
            palettes=dict(data.get("palettes") or {}),
            snapshot_dir=Path(data.get("snapshot_dir", "./runs")),
            mqtt_config=mqtt_config,
        )
