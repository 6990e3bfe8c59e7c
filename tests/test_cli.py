import json
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from perimeter_cli import cli
from perimeter_cli.mqtt_client import MQTTCommandClient

COMMANDS = Path(__file__).resolve().parent.parent / "config" / "commands"


def build(*argv):
    return cli.build_command(cli.build_parser().parse_args(list(argv)))


@pytest.mark.parametrize("name, wire", sorted(cli.SIMPLE_COMMANDS.items()))
def test_simple_commands(name, wire):
    assert build(name) == {"command": wire}


def test_switches():
    assert build("editing", "on") == {"command": "set_editing", "enabled": True}
    assert build("view-all", "off") == {"command": "set_view_all", "enabled": False}
    assert build("draw-kind", "circle") == {"command": "set_draw_kind", "kind": "circle"}
    assert build("select", "b-1") == {"command": "select", "boundary_id": "b-1"}


def test_session_commands():
    assert build("draw") == {"command": "start_draw"}
    assert build("draw", "--kind", "rectangle") == {"command": "start_draw", "kind": "rectangle"}
    assert build("rename", "Gate") == {"command": "set_name", "name": "Gate"}
    assert build("save") == {"command": "save"}
    assert build("save", "--name", "Dock") == {"command": "save", "name": "Dock"}


def test_command_files():
    complete = build("complete", str(COMMANDS / "complete_polygon.yaml"))
    assert complete["command"] == "complete_drawing"
    assert complete["geometry"]["type"] == "polygon"
    assert len(complete["geometry"]["paths"]) == 4

    mutate = build("mutate", str(COMMANDS / "drag_shape.yaml"))
    assert mutate == {"command": "mutate", "op": "drag", "d_lat": 0.0001, "d_lng": 0.0}

    assert build("send", str(COMMANDS / "drag_shape.yaml"))["op"] == "drag"


def test_send_requires_command(tmp_path):
    path = tmp_path / "cmd.yaml"
    path.write_text("op: drag\n")

    with pytest.raises(ValueError, match="command"):
        build("send", str(path))


def test_yaml_must_be_mapping(tmp_path):
    path = tmp_path / "cmd.yaml"
    path.write_text("- 1\n- 2\n")

    with pytest.raises(ValueError):
        cli.load_yaml_config(str(path))
    with pytest.raises(FileNotFoundError):
        cli.load_yaml_config(str(tmp_path / "missing.yaml"))


def test_invalid_choice_exits():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["draw-kind", "hexagon"])


def test_main_without_command_exits():
    with pytest.raises(SystemExit) as exc:
        cli.main([])
    assert exc.value.code == 1


def test_main_sends_to_service_topic(monkeypatch):
    sent = []
    monkeypatch.setattr(
        cli, "send_command", lambda command, *args, **kwargs: sent.append((command, args, kwargs))
    )

    cli.main(["--service-id", "editor_09", "--port", "1884", "--wait", "undo"])

    assert sent == [
        ({"command": "undo"}, ("editor_09", "localhost", 1884), {"wait": True, "timeout": 5.0})
    ]


def test_client_publishes_json(capsys):
    client = MagicMock()
    command_client = MQTTCommandClient(broker="broker", port=1884, client=client)

    command_client.send_command("perimeter/control/editor_01/commands", {"command": "undo"})

    client.connect.assert_called_once_with("broker", 1884, keepalive=60)
    topic, payload = client.publish.call_args.args
    assert topic == "perimeter/control/editor_01/commands"
    assert json.loads(payload) == {"command": "undo"}
    client.disconnect.assert_called_once()
    client.loop_stop.assert_called_once()
    assert "Command sent: undo" in capsys.readouterr().out


def test_client_connection_error():
    client = MagicMock()
    client.connect.side_effect = OSError("refused")

    with pytest.raises(ConnectionError, match="broker:1883"):
        MQTTCommandClient(broker="broker", client=client).send_command("t", {"command": "undo"})
    client.publish.assert_not_called()


def test_client_rejects_unserializable_command():
    client = MagicMock()

    with pytest.raises(ValueError):
        MQTTCommandClient(client=client).send_command("t", {"command": object()})
    client.connect.assert_not_called()


def _reply(payload, retain=False):
    return SimpleNamespace(retain=retain, payload=json.dumps(payload).encode("utf-8"))


def test_request_status_skips_retained_reply():
    client = MagicMock()
    command_client = MQTTCommandClient(client=client)

    def publish(topic, payload, qos):
        client.on_message(client, None, _reply({"status": "stale"}, retain=True))
        client.on_message(client, None, _reply({"status": "ready", "data": {"mode": "idle"}}))
        return MagicMock()

    client.publish.side_effect = publish

    status = command_client.request_status(
        "perimeter/control/editor_01/commands",
        "perimeter/control/editor_01/status",
        {"command": "status"},
    )

    assert status == {"status": "ready", "data": {"mode": "idle"}}
    client.subscribe.assert_called_once_with("perimeter/control/editor_01/status", qos=1)
    client.disconnect.assert_called_once()


def test_request_status_times_out():
    client = MagicMock()

    with pytest.raises(TimeoutError):
        MQTTCommandClient(client=client).request_status("c", "s", {"command": "status"}, timeout=0.01)
    client.loop_stop.assert_called_once()


def test_format_status():
    text = cli.format_status({
        "status": "ready",
        "data": {
            "mode": "editing",
            "editing_enabled": True,
            "view_all": False,
            "draw_kind": "polygon",
            "working_name": "Gate",
            "can_undo": True,
            "can_redo": False,
            "selected_id": "b1",
            "boundaries": [
                {"id": "b1", "name": "Gate", "type": "polygon", "is_default": True},
                {"id": "b2", "name": "Dock", "type": "circle", "is_default": False},
            ],
        },
    })

    assert "mode: editing" in text
    assert "working: Gate  (undo: yes, redo: no)" in text
    assert "*D Gate [polygon] b1" in text
    assert "   Dock [circle] b2" in text
