"""
Perimeter CLI - Main entry point.

Provides command-line interface for sending MQTT commands to the boundary
editor service.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .mqtt_client import MQTTCommandClient


def load_yaml_config(config_path: str) -> Dict[str, Any]:
    """
    Load YAML configuration file.

    Args:
        config_path: Path to YAML file

    Returns:
        Dictionary with command configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If YAML is invalid
    """
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(path) as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}")

    if not isinstance(config, dict):
        raise ValueError(f"Command file must hold a mapping: {config_path}")
    return config


def format_status(status: Dict[str, Any]) -> str:
    """Human readable summary of an editor status message."""
    data = status.get('data') or {}
    lines = [
        f"Status: {status.get('status', 'unknown')}",
        f"  mode: {data.get('mode')}  editing: {'on' if data.get('editing_enabled') else 'off'}"
        f"  view-all: {'on' if data.get('view_all') else 'off'}  draw: {data.get('draw_kind')}",
    ]
    if data.get('working_name'):
        lines.append(
            f"  working: {data['working_name']}"
            f"  (undo: {'yes' if data.get('can_undo') else 'no'},"
            f" redo: {'yes' if data.get('can_redo') else 'no'})"
        )
    if data.get('pending'):
        lines.append(f"  busy: {data['pending']}")

    boundaries = data.get('boundaries') or []
    lines.append(f"  boundaries: {len(boundaries)}")
    for b in boundaries:
        marks = ('*' if b.get('id') == data.get('selected_id') else ' ') + ('D' if b.get('is_default') else ' ')
        lines.append(f"   {marks} {b.get('name')} [{b.get('type')}] {b.get('id')}")
    return "\n".join(lines)


def send_command(
    command: Dict[str, Any],
    service_id: str = "editor_01",
    broker: str = "localhost",
    port: int = 1883,
    wait: bool = False,
    timeout: float = 5.0,
) -> None:
    """
    Send command to the editor service via MQTT.

    Args:
        command: Command dictionary
        service_id: Target service ID
        broker: MQTT broker host
        port: MQTT broker port
        wait: Wait for the status reply and print it
        timeout: Seconds to wait for the reply
    """
    topic = f"perimeter/control/{service_id}/commands"

    client = MQTTCommandClient(broker=broker, port=port)
    if not wait:
        client.send_command(topic, command, qos=1)
        return

    status = client.request_status(
        topic, f"perimeter/control/{service_id}/status", command, timeout=timeout
    )
    print(format_status(status))


# Subcommands without arguments: CLI name -> wire command
SIMPLE_COMMANDS = {
    'status': 'status',
    'load': 'load',
    'list-boundaries': 'list_boundaries',
    'toggle-drawing': 'toggle_drawing',
    'edit': 'start_edit',
    'undo': 'undo',
    'redo': 'redo',
    'cancel': 'cancel',
    'delete': 'delete',
    'set-default': 'set_default',
    'snapshot': 'snapshot',
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="perimeter-cli",
        description="Perimeter CLI - Send MQTT commands to the boundary editor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Turn editing mode on, draw a polygon and save it
  perimeter-cli editing on
  perimeter-cli draw --kind polygon
  perimeter-cli complete config/commands/complete_polygon.yaml
  perimeter-cli save --name "Loading Dock"

  # Edit the selected boundary
  perimeter-cli select 3f2b...
  perimeter-cli edit
  perimeter-cli mutate config/commands/drag_shape.yaml
  perimeter-cli undo
  perimeter-cli save

  # Simple commands (no arguments)
  perimeter-cli --wait status
  perimeter-cli delete
  perimeter-cli set-default
  perimeter-cli snapshot
"""
    )

    # Global arguments
    parser.add_argument(
        "--service-id",
        default="editor_01",
        help="Target service ID (default: editor_01)"
    )
    parser.add_argument(
        "--broker",
        default="localhost",
        help="MQTT broker host (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=1883,
        help="MQTT broker port (default: 1883)"
    )
    parser.add_argument(
        "--wait",
        action="store_true",
        help="Wait for the editor status reply and print it"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=5.0,
        help="Seconds to wait with --wait (default: 5)"
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Switches
    editing = subparsers.add_parser('editing', help='Turn editing mode on/off')
    editing.add_argument('state', choices=['on', 'off'])

    view_all = subparsers.add_parser('view-all', help='Show all boundaries on/off')
    view_all.add_argument('state', choices=['on', 'off'])

    draw_kind = subparsers.add_parser('draw-kind', help='Set the shape to draw')
    draw_kind.add_argument('kind', choices=['polygon', 'rectangle', 'circle'])

    select = subparsers.add_parser('select', help='Select a boundary by ID')
    select.add_argument('boundary_id', help='Boundary ID to select')

    # Sessions
    draw = subparsers.add_parser('draw', help='Start drawing a new shape')
    draw.add_argument('--kind', choices=['polygon', 'rectangle', 'circle'])

    complete = subparsers.add_parser('complete', help='Finish the drawing from YAML geometry')
    complete.add_argument('config', help='Path to YAML with a "geometry" mapping')

    rename = subparsers.add_parser('rename', help='Rename the working shape')
    rename.add_argument('name')

    mutate = subparsers.add_parser('mutate', help='Change the working shape from YAML')
    mutate.add_argument('config', help='Path to mutation YAML (op, ...)')

    save = subparsers.add_parser('save', help='Save the working shape')
    save.add_argument('--name', help='Name overriding the working name')

    # Raw command file
    send = subparsers.add_parser('send', help='Send any command from YAML')
    send.add_argument('config', help='Path to command YAML (must contain "command")')

    for name, wire in SIMPLE_COMMANDS.items():
        subparsers.add_parser(name, help=f"Send '{wire}'")

    return parser


def build_command(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate parsed CLI arguments into the JSON command payload.

    Raises:
        FileNotFoundError / ValueError: For unreadable YAML command files
    """
    if args.command in SIMPLE_COMMANDS:
        return {'command': SIMPLE_COMMANDS[args.command]}

    if args.command == 'editing':
        return {'command': 'set_editing', 'enabled': args.state == 'on'}

    if args.command == 'view-all':
        return {'command': 'set_view_all', 'enabled': args.state == 'on'}

    if args.command == 'draw-kind':
        return {'command': 'set_draw_kind', 'kind': args.kind}

    if args.command == 'select':
        return {'command': 'select', 'boundary_id': args.boundary_id}

    if args.command == 'draw':
        command = {'command': 'start_draw'}
        if args.kind:
            command['kind'] = args.kind
        return command

    if args.command == 'complete':
        config = load_yaml_config(args.config)
        geometry = config.get('geometry', config)
        return {'command': 'complete_drawing', 'geometry': geometry}

    if args.command == 'rename':
        return {'command': 'set_name', 'name': args.name}

    if args.command == 'mutate':
        config = load_yaml_config(args.config)
        config['command'] = 'mutate'
        return config

    if args.command == 'save':
        command = {'command': 'save'}
        if args.name is not None:
            command['name'] = args.name
        return command

    if args.command == 'send':
        config = load_yaml_config(args.config)
        if 'command' not in config:
            raise ValueError(f"Missing 'command' in {args.config}")
        return config

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        command = build_command(args)
        send_command(
            command, args.service_id, args.broker, args.port,
            wait=args.wait, timeout=args.timeout,
        )
    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
