"""Tests for the Z-Wave JS UI MQTT transport."""
from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from custom_components.qubino_rgbw import transport as transport_module
from custom_components.qubino_rgbw.codec import ChannelIntensities
from custom_components.qubino_rgbw.const import ColorComponent
from custom_components.qubino_rgbw.protocol import build_color_set_command
from custom_components.qubino_rgbw.transport import (
    TransportError,
    TransportSendError,
    ZwaveJsMqttTransport,
)

API_TOPIC = "zwave/_CLIENTS/ZWAVE_GATEWAY-zwave-js-ui/api/sendCommand"


def gateway_message(payload) -> MagicMock:
    """Create a received MQTT message."""
    msg = MagicMock()
    msg.topic = API_TOPIC
    msg.payload = payload if isinstance(payload, str) else json.dumps(payload)
    return msg


@pytest.fixture
async def mqtt_transport():
    """Create a transport on a mocked hass."""
    hass = MagicMock()
    hass.loop = asyncio.get_running_loop()
    transport = ZwaveJsMqttTransport(hass, node_id=7, timeout=0.05)
    yield transport
    await transport.async_stop()


@pytest.fixture
def mock_publish():
    with patch.object(
        transport_module.mqtt, "async_publish", new_callable=AsyncMock
    ) as publish:
        yield publish


def respond_with(transport: ZwaveJsMqttTransport, publish: AsyncMock, **response) -> None:
    """Make every published request get an echoed response."""

    async def _publish(hass, topic, payload):
        args = json.loads(payload)["args"]
        transport._handle_response(gateway_message({"args": args, **response}))

    publish.side_effect = _publish


async def test_subscribe_and_unsubscribe(mqtt_transport: ZwaveJsMqttTransport):
    unsubscribe = MagicMock()
    with patch.object(
        transport_module.mqtt, "async_subscribe", AsyncMock(return_value=unsubscribe)
    ) as subscribe:
        await mqtt_transport.async_start()
        await mqtt_transport.async_start()

    subscribe.assert_awaited_once()
    assert subscribe.await_args.args[1] == API_TOPIC

    await mqtt_transport.async_stop()
    unsubscribe.assert_called_once()


async def test_send_color_command(mqtt_transport: ZwaveJsMqttTransport, mock_publish):
    """Color set is sent as the gateway set API with options."""
    respond_with(mqtt_transport, mock_publish, success=True)
    command = build_color_set_command(ChannelIntensities(0, 0, 255, 10, 0), duration=3)

    await mqtt_transport.async_send(command)

    topic = mock_publish.await_args.args[1]
    payload = json.loads(mock_publish.await_args.args[2])
    assert topic == f"{API_TOPIC}/set"
    assert payload["args"] == [
        {"nodeId": 7, "commandClass": 0x33, "endpoint": 0},
        "set",
        [
            {
                "warmWhite": 0,
                "coldWhite": 0,
                "red": 255,
                "green": 10,
                "blue": 0,
                "duration": "3s",
            }
        ],
    ]


async def test_send_without_duration(mqtt_transport: ZwaveJsMqttTransport, mock_publish):
    respond_with(mqtt_transport, mock_publish, success=True)

    await mqtt_transport.async_send(build_color_set_command(ChannelIntensities()))

    options = json.loads(mock_publish.await_args.args[2])["args"][2][0]
    assert "duration" not in options


async def test_send_rejected(mqtt_transport: ZwaveJsMqttTransport, mock_publish):
    """A failed gateway response is a send error."""
    respond_with(mqtt_transport, mock_publish, success=False, message="Node is dead")

    with pytest.raises(TransportSendError, match="Node is dead"):
        await mqtt_transport.async_send(build_color_set_command(ChannelIntensities()))


async def test_send_flat_command_rejected(mqtt_transport: ZwaveJsMqttTransport, mock_publish):
    command = build_color_set_command(ChannelIntensities(), version=2)

    with pytest.raises(TransportSendError):
        await mqtt_transport.async_send(command)
    mock_publish.assert_not_awaited()


async def test_timeout(mqtt_transport: ZwaveJsMqttTransport, mock_publish):
    """No response within the timeout is a transport error."""
    with pytest.raises(TransportError):
        await mqtt_transport.async_read_level()
    assert not mqtt_transport._pending


async def test_read_channel(mqtt_transport: ZwaveJsMqttTransport, mock_publish):
    respond_with(
        mqtt_transport, mock_publish, success=True, result={"currentValue": 200}
    )

    assert await mqtt_transport.async_read_channel(ColorComponent.RED) == 200
    args = json.loads(mock_publish.await_args.args[2])["args"]
    assert args[1:] == ["get", [2]]


async def test_read_level_plain_number(mqtt_transport: ZwaveJsMqttTransport, mock_publish):
    respond_with(mqtt_transport, mock_publish, success=True, result=42)

    assert await mqtt_transport.async_read_level() == 42
    args = json.loads(mock_publish.await_args.args[2])["args"]
    assert args[0]["commandClass"] == 0x26


async def test_read_unexpected_result(mqtt_transport: ZwaveJsMqttTransport, mock_publish):
    respond_with(mqtt_transport, mock_publish, success=True, result="on")

    with pytest.raises(TransportError):
        await mqtt_transport.async_read_level()


async def test_set_level_with_duration(mqtt_transport: ZwaveJsMqttTransport, mock_publish):
    respond_with(mqtt_transport, mock_publish, success=True)

    await mqtt_transport.async_set_level(50, duration=0x81)

    args = json.loads(mock_publish.await_args.args[2])["args"]
    assert args[1:] == ["set", [50, "2m"]]


async def test_concurrent_reads_are_matched(mqtt_transport: ZwaveJsMqttTransport, mock_publish):
    """Responses are matched to requests by their args."""
    requests = []

    async def _publish(hass, topic, payload):
        requests.append(json.loads(payload)["args"])

    mock_publish.side_effect = _publish

    red = asyncio.ensure_future(mqtt_transport.async_read_channel(ColorComponent.RED))
    blue = asyncio.ensure_future(mqtt_transport.async_read_channel(ColorComponent.BLUE))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert len(requests) == 2

    blue_args = next(args for args in requests if args[2] == [4])
    red_args = next(args for args in requests if args[2] == [2])
    mqtt_transport._handle_response(
        gateway_message({"args": blue_args, "success": True, "result": 9})
    )
    mqtt_transport._handle_response(
        gateway_message({"args": red_args, "success": True, "result": 3})
    )

    assert await red == 3
    assert await blue == 9


async def test_ignores_unrelated_messages(mqtt_transport: ZwaveJsMqttTransport):
    mqtt_transport._handle_response(gateway_message("not json"))
    mqtt_transport._handle_response(gateway_message({"success": True}))
    mqtt_transport._handle_response(
        gateway_message({"args": [{"nodeId": 99}, "get", []], "success": True})
    )

    assert not mqtt_transport._pending


async def test_stop_fails_pending_requests(mqtt_transport: ZwaveJsMqttTransport, mock_publish):
    mqtt_transport._timeout = 10
    read = asyncio.ensure_future(mqtt_transport.async_read_level())
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    await mqtt_transport.async_stop()

    with pytest.raises(TransportError):
        await read
