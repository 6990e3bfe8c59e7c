"""
Boundary Editor Service - MQTT front-end of the boundary editor.

This module provides the EditorService class which exposes a BoundaryEditor
for one site over the MQTT control plane: commands drive the edit session
state machine, every command answers with a retained status snapshot, and
persisted changes are published as boundary events.

Architecture:
- BoundaryEditor owns the state machine (perimeter_editor)
- CanvasMapProvider stands in for the map SDK; remote front-ends finish
  drawings with `complete_drawing` and move shapes with `mutate`
- Gateway chosen by database_url (perimeter_store)
- Notices are forwarded to the control plane notice topic

Threading Model:
- Control Plane Thread (paho-mqtt internal, command handlers)
- Main thread only blocks in wait() and takes snapshots on request
- _command_lock serializes editor access between the two
"""

import logging
import os
import threading
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import cv2

from perimeter_control import MQTTControlPlane
from perimeter_editor import (
    BoundaryEditor,
    BoundaryGateway,
    BoundaryRecord,
    CanvasMapProvider,
    EditorError,
    EditorMode,
    Notice,
)
from perimeter_editor.geometry.shapes import Bounds, LatLng, geometry_from_dict
from perimeter_mqtt import BoundaryEventMessage, BoundaryEventPublisher, BoundaryEventType
from perimeter_service.config import EditorServiceConfig
from perimeter_store import create_gateway

logger = logging.getLogger(__name__)


def get_target_run_folder(base_dir: Path, application_name: str) -> Path:
    """Timestamped output folder: {base_dir}/{application_name}/{YYYYmmdd_HHMMSS}."""
    folder = Path(base_dir) / application_name / datetime.now().strftime('%Y%m%d_%H%M%S')
    os.makedirs(folder, exist_ok=True)
    return folder


def _flag(command_data: Dict[str, Any], key: str) -> bool:
    value = command_data[key]
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def command_handler(method: Callable) -> Callable:
    """
    Wrap a command handler: serialize it, log failures, publish status.

    EditorError is already surfaced as a notice by the editor; payload
    errors (ValueError/TypeError/KeyError/IndexError) become notices here.
    The control plane never sees an exception from a handler.
    """

    @wraps(method)
    def wrapper(self, command_data: Dict[str, Any]):
        command = command_data.get("command", method.__name__)
        with self._command_lock:
            try:
                return method(self, command_data)
            except EditorError as e:
                logger.warning(f"⚠️ Command '{command}' rejected: {e}")
            except (ValueError, TypeError, KeyError, IndexError, RuntimeError) as e:
                logger.warning(f"⚠️ Command '{command}' invalid: {e}")
                self.control_plane.publish_notice("error", "invalid_command", f"{command}: {e}")
            finally:
                self.publish_status()

    return wrapper


class EditorService:
    """
    Boundary editor service.

    Usage:
        config = EditorServiceConfig.from_yaml("service_config.yaml")
        control_plane = MQTTControlPlane(...)
        boundary_publisher = BoundaryEventPublisher(...)

        service = EditorService(config, control_plane, boundary_publisher)
        service.setup()
        service.start()
        service.wait()   # Blocks until stop()
    """

    def __init__(
        self,
        config: EditorServiceConfig,
        control_plane: MQTTControlPlane,
        boundary_publisher: Optional[BoundaryEventPublisher] = None,
        gateway: Optional[BoundaryGateway] = None,
        provider: Optional[CanvasMapProvider] = None,
    ):
        """
        Initialize editor service.

        Args:
            config: Service configuration
            control_plane: MQTT control plane for commands, status and notices
            boundary_publisher: Publisher for boundary events (optional)
            gateway: Persistence gateway (defaults to config.database_url)
            provider: Map provider (defaults to a canvas on config.viewport)
        """
        self.config = config
        self.control_plane = control_plane
        self.boundary_publisher = boundary_publisher

        self.gateway = gateway or create_gateway(config.database_url)
        self.provider = provider or CanvasMapProvider(viewport=config.viewport.to_viewport())
        self.editor = BoundaryEditor(
            site_id=config.site_id,
            gateway=self.gateway,
            provider=self.provider,
            palettes=config.resolved_palettes(),
            name_base=config.default_name_base,
            draw_kind=config.draw_kind,
            on_notice=self._on_notice,
        )

        self._command_lock = threading.RLock()
        self._running = False
        self._stop_event = threading.Event()

        logger.info(
            f"EditorService initialized for service_id={config.service_id}, "
            f"site_id={config.site_id}"
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def setup(self) -> None:
        """Register command handlers and load the site's boundaries."""
        self._setup_control_handlers()
        with self._command_lock:
            self.editor.load()

    def _setup_control_handlers(self) -> None:
        """Register all supported commands with the control plane registry."""
        registry = self.control_plane.command_registry

        # Queries
        registry.register("status", self._handle_status, "Publish editor status")
        registry.register("load", self._handle_load, "Reload boundaries from storage")
        registry.register("list_boundaries", self._handle_status, "List boundaries (in status)")

        # Switches
        registry.register("set_editing", self._handle_set_editing, "Editing mode on/off", required=("enabled",))
        registry.register("set_view_all", self._handle_set_view_all, "View all on/off", required=("enabled",))
        registry.register("set_draw_kind", self._handle_set_draw_kind, "Polygon/rectangle/circle", required=("kind",))
        registry.register("select", self._handle_select, "Select a boundary", required=("boundary_id",))

        # Sessions
        registry.register("start_draw", self._handle_start_draw, "Start drawing a new shape")
        registry.register("toggle_drawing", self._handle_toggle_drawing, "Draw/Cancel button")
        registry.register("complete_drawing", self._handle_complete_drawing, "Finish the drawing with a geometry", required=("geometry",))
        registry.register("start_edit", self._handle_start_edit, "Edit the selected boundary")
        registry.register("set_name", self._handle_set_name, "Rename the working shape", required=("name",))
        registry.register("mutate", self._handle_mutate, "Change the working shape", required=("op",))
        registry.register("undo", self._handle_undo, "Undo last shape change")
        registry.register("redo", self._handle_redo, "Redo shape change")
        registry.register("save", self._handle_save, "Save the working shape")
        registry.register("cancel", self._handle_cancel, "Cancel the session")

        # Record actions
        registry.register("delete", self._handle_delete, "Delete the selected boundary")
        registry.register("set_default", self._handle_set_default, "Make the selected boundary default")
        registry.register("snapshot", self._handle_snapshot, "Write a PNG of the map")

        logger.info(f"Control handlers registered ({registry.count()} commands)")

    def start(self) -> None:
        """
        Start the service (non-blocking).

        Raises:
            RuntimeError: If the control plane cannot connect
        """
        if self._running:
            logger.warning("Service already running")
            return

        logger.info("Starting boundary editor service")

        if not self.control_plane.connect(timeout=5.0):
            raise RuntimeError("Failed to connect to MQTT broker (control plane)")

        if self.boundary_publisher is not None:
            self.boundary_publisher.connect()

        self._running = True
        self._stop_event.clear()
        self.publish_status("running")
        logger.info("✅ Boundary editor service started")

    def wait(self) -> None:
        """Block until stop() is called."""
        if not self._running:
            logger.warning("Service not running")
            return

        try:
            while not self._stop_event.wait(timeout=1.0):
                pass
        except KeyboardInterrupt:
            logger.info("Received KeyboardInterrupt, stopping...")
            self.stop()

    def stop(self) -> None:
        """Stop the service gracefully (cancels any open session)."""
        if not self._running:
            logger.warning("Service not running")
            return

        logger.info("Stopping boundary editor service")

        with self._command_lock:
            self.editor.cancel()

        if self.boundary_publisher is not None:
            self.boundary_publisher.disconnect()

        self.publish_status("stopped")
        self.control_plane.disconnect()

        close = getattr(self.gateway, "close", None)
        if close is not None:
            close()

        self._running = False
        self._stop_event.set()
        logger.info("✅ Boundary editor service stopped")

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def publish_status(self, status: str = "ready") -> None:
        self.control_plane.publish_status(status, self.editor.status().to_dict())

    def _on_notice(self, notice: Notice) -> None:
        self.control_plane.publish_notice(notice.level, notice.code, notice.message)

    def _publish_event(
        self,
        event_type: BoundaryEventType,
        boundary_id: Optional[str],
        record: Optional[BoundaryRecord] = None,
    ) -> None:
        if self.boundary_publisher is None:
            return
        message = BoundaryEventMessage.create(
            site_id=self.config.site_id,
            event_type=event_type,
            boundary_id=boundary_id,
            record=record.to_dict() if record is not None else None,
        )
        self.boundary_publisher.publish_boundary_event(message)

    def _publish_default_change(self, previous_default: Optional[str]) -> None:
        default_id = self.editor.default_id
        if default_id != previous_default:
            record = self.editor.find(default_id) if default_id else None
            self._publish_event(BoundaryEventType.DEFAULT_CHANGED, default_id, record)

    # ------------------------------------------------------------------
    # Command handlers (Control Plane thread)
    # ------------------------------------------------------------------

    @command_handler
    def _handle_status(self, command_data: Dict[str, Any]) -> None:
        pass

    @command_handler
    def _handle_load(self, command_data: Dict[str, Any]) -> None:
        self.editor.load()

    @command_handler
    def _handle_set_editing(self, command_data: Dict[str, Any]) -> None:
        self.editor.set_editing_enabled(_flag(command_data, "enabled"))

    @command_handler
    def _handle_set_view_all(self, command_data: Dict[str, Any]) -> None:
        self.editor.set_view_all(_flag(command_data, "enabled"))

    @command_handler
    def _handle_set_draw_kind(self, command_data: Dict[str, Any]) -> None:
        self.editor.set_draw_kind(command_data["kind"])

    @command_handler
    def _handle_select(self, command_data: Dict[str, Any]) -> None:
        self.editor.select(command_data["boundary_id"])

    @command_handler
    def _handle_start_draw(self, command_data: Dict[str, Any]) -> None:
        self.editor.start_draw(command_data.get("kind"))

    @command_handler
    def _handle_toggle_drawing(self, command_data: Dict[str, Any]) -> None:
        self.editor.toggle_drawing()

    @command_handler
    def _handle_complete_drawing(self, command_data: Dict[str, Any]) -> None:
        geometry = geometry_from_dict(command_data["geometry"])
        self.provider.complete_drawing(geometry)

    @command_handler
    def _handle_start_edit(self, command_data: Dict[str, Any]) -> None:
        self.editor.start_edit()

    @command_handler
    def _handle_set_name(self, command_data: Dict[str, Any]) -> None:
        self.editor.set_name(command_data["name"])

    @command_handler
    def _handle_mutate(self, command_data: Dict[str, Any]) -> None:
        """
        Apply one overlay mutation to the working shape.

        Payloads:
            {"op": "set_at" | "insert_at", "index": 0, "point": {"lat", "lng"}}
            {"op": "remove_at", "index": 0}
            {"op": "set_bounds", "bounds": {"north", "south", "east", "west"}}
            {"op": "set_center", "center": {"lat", "lng"}}
            {"op": "set_radius", "radius": 120.0}
            {"op": "drag", "d_lat": 0.001, "d_lng": 0.0}
        """
        overlay = self.editor.working_overlay
        if overlay is None or self.editor.mode not in (EditorMode.CREATING, EditorMode.EDITING):
            raise RuntimeError("No shape is being created or edited")

        op = command_data["op"]
        if op == "set_at":
            overlay.set_at(int(command_data["index"]), LatLng.from_dict(command_data["point"]))
        elif op == "insert_at":
            overlay.insert_at(int(command_data["index"]), LatLng.from_dict(command_data["point"]))
        elif op == "remove_at":
            overlay.remove_at(int(command_data["index"]))
        elif op == "set_bounds":
            overlay.set_bounds(Bounds.from_dict(command_data["bounds"]))
        elif op == "set_center":
            overlay.set_center(LatLng.from_dict(command_data["center"]))
        elif op == "set_radius":
            overlay.set_radius(float(command_data["radius"]))
        elif op == "drag":
            overlay.drag(float(command_data.get("d_lat", 0.0)), float(command_data.get("d_lng", 0.0)))
        else:
            raise ValueError(f"Unknown mutation op: {op}")

    @command_handler
    def _handle_undo(self, command_data: Dict[str, Any]) -> None:
        self.editor.undo()

    @command_handler
    def _handle_redo(self, command_data: Dict[str, Any]) -> None:
        self.editor.redo()

    @command_handler
    def _handle_save(self, command_data: Dict[str, Any]) -> None:
        creating = self.editor.mode is EditorMode.CREATING
        previous_default = self.editor.default_id

        record = self.editor.save(command_data.get("name"))

        event_type = BoundaryEventType.CREATED if creating else BoundaryEventType.UPDATED
        self._publish_event(event_type, record.id, record)
        self._publish_default_change(previous_default)

    @command_handler
    def _handle_cancel(self, command_data: Dict[str, Any]) -> None:
        self.editor.cancel()

    @command_handler
    def _handle_delete(self, command_data: Dict[str, Any]) -> None:
        boundary_id = self.editor.selected_id
        previous_default = self.editor.default_id
        try:
            self.editor.delete()
        finally:
            # A failed default reassignment still deletes the record
            if boundary_id is not None and self.editor.find(boundary_id) is None:
                self._publish_event(BoundaryEventType.DELETED, boundary_id)
                if previous_default == boundary_id:
                    self._publish_default_change(previous_default)

    @command_handler
    def _handle_set_default(self, command_data: Dict[str, Any]) -> None:
        previous_default = self.editor.default_id
        self.editor.set_default()
        self._publish_default_change(previous_default)

    @command_handler
    def _handle_snapshot(self, command_data: Dict[str, Any]) -> None:
        self.snapshot()

    def snapshot(self) -> Path:
        """Rasterize the current map and write it as PNG."""
        with self._command_lock:
            frame = self.provider.render()

        folder = get_target_run_folder(self.config.snapshot_dir, self.config.service_id)
        path = folder / "boundaries.png"
        if not cv2.imwrite(str(path), frame):
            raise RuntimeError(f"Failed to write snapshot: {path}")

        logger.info(f"📸 Snapshot written: {path}")
        self.control_plane.publish_notice("info", "snapshot_written", str(path))
        return path
