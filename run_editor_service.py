#!/usr/bin/env python3
"""
Boundary Editor Service - Entry Point
=====================================

Starts the Perimeter boundary editor for one site:
- Loads the site's boundaries (SQLite by default)
- Runs the edit session state machine (draw, edit, undo/redo, save)
- Takes commands on the MQTT control plane, answers with status + notices
- Publishes boundary events (created, updated, deleted, default_changed)

Usage:
    python run_editor_service.py --config config/perimeter_service/service_config.yaml
    python run_editor_service.py --config ... --site-id warehouse-south --database-url memory://

Signals:
    SIGTERM / SIGINT (Ctrl+C): graceful shutdown, any open session is cancelled
"""

import argparse
import logging
import signal
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from perimeter_control import MQTTControlPlane
from perimeter_mqtt import BoundaryEventPublisher, create_logger
from perimeter_service import EditorService, EditorServiceConfig


def setup_logging(log_file: Optional[Path] = None) -> logging.Logger:
    """Console logging, plus log_file when given."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )
    return logging.getLogger(__name__)


def load_config(
    config_path: Path,
    site_id: Optional[str] = None,
    database_url: Optional[str] = None,
) -> EditorServiceConfig:
    """YAML config with command-line overrides applied (validated again)."""
    config = EditorServiceConfig.from_yaml(config_path)

    overrides = {}
    if site_id:
        overrides['site_id'] = site_id
    if database_url:
        overrides['database_url'] = database_url
    return replace(config, **overrides) if overrides else config


class EditorApp:
    """
    Application wrapper: wires the control plane, boundary publisher and
    EditorService, and shuts them down on SIGTERM/SIGINT.
    """

    def __init__(self, config: EditorServiceConfig, log_file: Optional[Path] = None):
        self.config = config
        self.logger = setup_logging(log_file)

        self.control_plane: Optional[MQTTControlPlane] = None
        self.boundary_publisher: Optional[BoundaryEventPublisher] = None
        self.service: Optional[EditorService] = None

        self._shutdown_requested = False

    def setup(self):
        config = self.config
        mqtt_config = config.mqtt_config

        self.logger.info("=" * 80)
        self.logger.info(
            f"🚀 Perimeter Boundary Editor (service_id={config.service_id}, site_id={config.site_id})"
        )
        self.logger.info(f"🗄️  Storage: {config.database_url}")

        self.control_plane = MQTTControlPlane(
            broker_host=mqtt_config.broker,
            broker_port=mqtt_config.port,
            command_topic=config.command_topic,
            status_topic=config.status_topic,
            notice_topic=config.notice_topic,
            client_id=f"editor_{config.service_id}",
            username=mqtt_config.username,
            password=mqtt_config.password,
        )

        self.boundary_publisher = BoundaryEventPublisher(
            broker_host=mqtt_config.broker,
            broker_port=mqtt_config.port,
            topic=config.boundary_topic,
            logger=create_logger(
                component="boundary_publisher",
                context={"service_id": config.service_id, "site_id": config.site_id},
            ),
            client_id=f"publisher_boundaries_{config.service_id}",
            username=mqtt_config.username,
            password=mqtt_config.password,
            qos=mqtt_config.qos,
            max_pending=mqtt_config.outbox_size,
        )

        self.service = EditorService(
            config=config,
            control_plane=self.control_plane,
            boundary_publisher=self.boundary_publisher,
        )
        self.service.setup()

        self.logger.info(f"✅ Service ready ({len(self.service.editor.boundaries)} boundaries)")
        self.logger.info(f"📥 Commands:  {config.command_topic}")
        self.logger.info(f"📤 Status:    {config.status_topic}")
        self.logger.info(f"📤 Notices:   {config.notice_topic}")
        self.logger.info(f"📤 Events:    {config.boundary_topic}")
        self.logger.info("=" * 80)

    def run(self):
        """Start and block until a signal or error stops the service."""
        if not self.service:
            raise RuntimeError("Service not initialized. Call setup() first.")

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        try:
            self.service.start()
            self.logger.info("✅ Service started, press Ctrl+C to stop")
            self.service.wait()

        except KeyboardInterrupt:
            self.logger.info("⚠️  KeyboardInterrupt received")
            self.shutdown()

        except Exception as e:
            self.logger.error(f"❌ Service error: {e}", exc_info=True)
            self.shutdown()
            sys.exit(1)

    def shutdown(self):
        if self._shutdown_requested:
            self.logger.warning("⚠️  Shutdown already in progress")
            return
        self._shutdown_requested = True

        self.logger.info("🛑 Shutting down editor service")
        if self.service:
            try:
                self.service.stop()
            except Exception as e:
                self.logger.error(f"❌ Error stopping service: {e}")
        self.logger.info("✅ Shutdown complete")

    def _signal_handler(self, signum, frame):
        self.logger.info(f"⚠️  Received signal {signal.Signals(signum).name} ({signum})")
        self.shutdown()
        sys.exit(0)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Perimeter Boundary Editor - site boundaries over MQTT",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  perimeter-editor --config config/perimeter_service/service_config.yaml
  perimeter-editor --config config/perimeter_service/service_config.yaml --no-log-file

  # Same config, another site, throwaway storage
  perimeter-editor --config config/perimeter_service/service_config.yaml \\
      --site-id warehouse-south --database-url memory://
        """
    )
    parser.add_argument(
        '--config',
        type=Path,
        required=True,
        help='Path to service configuration YAML file'
    )
    parser.add_argument(
        '--site-id',
        help='Override the site_id from the config'
    )
    parser.add_argument(
        '--database-url',
        help='Override the database_url from the config ("memory://" or a SQLAlchemy URL)'
    )
    parser.add_argument(
        '--log-file',
        type=Path,
        default=Path('logs/editor.log'),
        help='Path to log file (default: logs/editor.log)'
    )
    parser.add_argument(
        '--no-log-file',
        action='store_true',
        help='Disable file logging (console only)'
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    if not args.config.exists():
        print(f"❌ Error: Configuration file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    try:
        config = load_config(args.config, site_id=args.site_id, database_url=args.database_url)
        app = EditorApp(config, log_file=None if args.no_log_file else args.log_file)
        app.setup()
        app.run()
    except Exception as e:
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
