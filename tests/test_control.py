import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from perimeter_control import (
    CommandArgumentError,
    CommandNotAvailableError,
    CommandRegistry,
    MQTTControlPlane,
)


@pytest.fixture
def plane(mqtt_client):
    return MQTTControlPlane(
        broker_host="localhost",
        broker_port=1883,
        command_topic="perimeter/control/test/commands",
        status_topic="perimeter/control/test/status",
        notice_topic="perimeter/control/test/notices",
        client_id="test_control",
        client=mqtt_client,
    )


def _message(payload):
    if not isinstance(payload, bytes):
        payload = json.dumps(payload).encode("utf-8")
    return SimpleNamespace(payload=payload)


def _published(client, topic):
    return [
        json.loads(c.args[1])
        for c in client.publish.call_args_list
        if c.args[0] == topic
    ]


def test_registry_register_and_execute():
    registry = CommandRegistry()
    handler = MagicMock(return_value="done")
    registry.register("undo", handler, "Undo")

    assert registry.execute("undo", {"command": "undo"}) == "done"
    handler.assert_called_once_with({"command": "undo"})
    assert registry.is_available("undo")
    assert registry.count() == 1
    assert registry.get_help() == {"undo": "Undo"}


def test_registry_defaults_to_empty_payload():
    registry = CommandRegistry()
    handler = MagicMock()
    registry.register("status", handler, "Status")

    registry.execute("status")

    handler.assert_called_once_with({})


def test_registry_rejects_double_registration():
    registry = CommandRegistry()
    registry.register("undo", MagicMock(), "Undo")

    with pytest.raises(ValueError):
        registry.register("undo", MagicMock(), "Again")


def test_registry_unknown_command():
    registry = CommandRegistry()
    registry.register("undo", MagicMock(), "Undo")

    with pytest.raises(CommandNotAvailableError, match="undo"):
        registry.execute("redo")


def test_registry_required_fields():
    registry = CommandRegistry()
    handler = MagicMock()
    registry.register("select", handler, "Select", required=("boundary_id",))

    with pytest.raises(CommandArgumentError):
        registry.execute("select", {"command": "select"})
    handler.assert_not_called()


def test_message_dispatches_to_handler(plane):
    handler = MagicMock()
    plane.command_registry.register("select", handler, "Select")

    plane._on_message(plane.client, None, _message({"command": "SELECT", "boundary_id": "b1"}))

    handler.assert_called_once_with({"command": "SELECT", "boundary_id": "b1"})


@pytest.mark.parametrize(
    "payload",
    [
        b"not json",
        b"\xff\xfe",
        _message([1, 2]).payload,
        _message({"command": ""}).payload,
        _message({"command": "unknown"}).payload,
    ],
)
def test_bad_messages_are_rejected(plane, mqtt_client, payload):
    handler = MagicMock()
    plane.command_registry.register("undo", handler, "Undo")

    plane._on_message(plane.client, None, _message(payload))

    handler.assert_not_called()
    notices = _published(mqtt_client, "perimeter/control/test/notices")
    assert [n["code"] for n in notices] == ["command_rejected"]


def test_missing_argument_is_rejected(plane, mqtt_client):
    plane.command_registry.register("select", MagicMock(), "Select", required=("boundary_id",))

    plane._on_message(plane.client, None, _message({"command": "select"}))

    notice = _published(mqtt_client, "perimeter/control/test/notices")[0]
    assert notice["code"] == "command_rejected"
    assert "boundary_id" in notice["message"]


def test_handler_errors_do_not_escape(plane, mqtt_client):
    plane.command_registry.register("boom", MagicMock(side_effect=KeyError("x")), "Boom")

    plane._on_message(plane.client, None, _message({"command": "boom"}))

    notice = _published(mqtt_client, "perimeter/control/test/notices")[0]
    assert notice["code"] == "command_failed"


def test_on_connect_subscribes_and_announces(plane, mqtt_client):
    plane._on_connect(mqtt_client, None, {}, SimpleNamespace(is_failure=False))

    mqtt_client.subscribe.assert_called_once_with("perimeter/control/test/commands", qos=1)
    assert _published(mqtt_client, "perimeter/control/test/status")[0]["status"] == "connected"
    assert plane._connected.is_set()


def test_failed_connect_does_not_subscribe(plane, mqtt_client):
    plane._on_connect(mqtt_client, None, {}, SimpleNamespace(is_failure=True))

    mqtt_client.subscribe.assert_not_called()
    assert not plane._connected.is_set()


def test_publish_status_is_retained(plane, mqtt_client):
    plane.publish_status("ready", {"mode": "idle"})

    call = mqtt_client.publish.call_args
    assert call.args[0] == "perimeter/control/test/status"
    assert call.kwargs == {"qos": 1, "retain": True}
    message = json.loads(call.args[1])
    assert message["status"] == "ready"
    assert message["data"] == {"mode": "idle"}
    assert message["client_id"] == "test_control"


def test_publish_notice(plane, mqtt_client):
    plane.publish_notice("error", "validation_error", "Boundary name is required")

    call = mqtt_client.publish.call_args
    assert call.args[0] == "perimeter/control/test/notices"
    assert call.kwargs == {"qos": 1, "retain": False}
    assert json.loads(call.args[1])["code"] == "validation_error"


def test_notice_without_topic_is_skipped(mqtt_client):
    plane = MQTTControlPlane(
        broker_host="localhost",
        broker_port=1883,
        command_topic="c",
        status_topic="s",
        client_id="x",
        client=mqtt_client,
    )

    plane.publish_notice("info", "code", "message")

    mqtt_client.publish.assert_not_called()


def test_disconnect_only_when_running(plane, mqtt_client):
    plane.disconnect()
    mqtt_client.disconnect.assert_not_called()

    plane._running = True
    plane.disconnect()

    mqtt_client.loop_stop.assert_called_once()
    mqtt_client.disconnect.assert_called_once()
    assert _published(mqtt_client, "perimeter/control/test/status")[-1]["status"] == "disconnected"
