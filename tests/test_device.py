"""Tests for the dimmer device."""
from __future__ import annotations

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from custom_components.qubino_rgbw import device as device_module
from custom_components.qubino_rgbw.codec import ChannelIntensities
from custom_components.qubino_rgbw.const import ColorComponent, LightMode
from custom_components.qubino_rgbw.device import (
    QubinoRGBWDevice,
    brightness_to_level,
    level_to_brightness,
)
from custom_components.qubino_rgbw.transport import TransportError


@pytest.fixture
async def device(mock_transport):
    """Create a device on a mocked hass."""
    loop = asyncio.get_running_loop()
    hass = MagicMock()
    hass.loop = loop
    hass.async_create_task = MagicMock(side_effect=loop.create_task)
    device = QubinoRGBWDevice(hass, mock_transport, "Living room", 7)
    yield device
    await device.stop()


def test_brightness_to_level():
    assert brightness_to_level(0) == 0
    assert brightness_to_level(1) == 1
    assert brightness_to_level(128) == 50
    assert brightness_to_level(255) == 99


def test_level_to_brightness():
    assert level_to_brightness(0) == 0
    assert level_to_brightness(99) == 255
    assert level_to_brightness(50) == 129


async def test_initial_state(device: QubinoRGBWDevice):
    assert device.is_on is None
    assert device.level == 99
    assert device.mode == LightMode.UNKNOWN


async def test_turn_on_with_brightness(device: QubinoRGBWDevice, mock_transport):
    callback_fn = MagicMock()
    device.register_callback(callback_fn)

    assert await device.async_turn_on(brightness=128, duration=2)

    mock_transport.async_set_level.assert_awaited_once_with(50, 2)
    assert device.is_on is True
    assert device.level == 50
    callback_fn.assert_called_once()


async def test_turn_off_keeps_level(device: QubinoRGBWDevice, mock_transport):
    await device.async_turn_on(brightness=128)

    assert await device.async_turn_off()

    mock_transport.async_set_level.assert_awaited_with(0, None)
    assert device.is_on is False
    assert device.level == 50

    await device.async_turn_on()
    mock_transport.async_set_level.assert_awaited_with(50, None)


async def test_set_level_failure(device: QubinoRGBWDevice, mock_transport):
    mock_transport.async_set_level.side_effect = TransportError("timeout")

    assert await device.async_turn_on(brightness=10) is False
    assert device.is_on is None
    assert device.level == 99


async def test_color_scaled_by_level(device: QubinoRGBWDevice, mock_transport):
    """Color channels follow the dimmer level."""
    await device.async_turn_on(brightness=128)

    assert await device.async_set_color(0.0, 1.0)

    command = mock_transport.async_send.await_args.args[0]
    values = ChannelIntensities(*(item.value for item in command.components))
    # 255 * 50 / 99
    assert values == ChannelIntensities(0, 0, 129, 0, 0)
    assert device.mode == LightMode.COLOR


async def test_set_mode_delegates(device: QubinoRGBWDevice, mock_transport):
    await device.async_set_temperature(1.0)

    assert await device.async_set_mode(LightMode.TEMPERATURE)

    assert mock_transport.async_send.await_count == 1
    assert device.mode == LightMode.TEMPERATURE


async def test_reconcile(device: QubinoRGBWDevice, mock_transport, set_channel_readings):
    set_channel_readings({ColorComponent.WARM_WHITE: 255})
    mock_transport.async_read_level.return_value = 40
    callback_fn = MagicMock()
    device.register_callback(callback_fn)

    await device.async_reconcile()

    assert device.is_on is True
    assert device.level == 40
    assert device.mode == LightMode.TEMPERATURE
    assert device.controller.temperature == 1.0
    callback_fn.assert_called()


async def test_reconcile_level_read_fails(device: QubinoRGBWDevice, mock_transport):
    """A failed level read counts as off and leaves the device usable."""
    mock_transport.async_read_level.side_effect = TransportError("timeout")

    await device.async_reconcile()

    assert device.is_on is False
    assert device.level == 99
    assert device.mode == LightMode.COLOR

    assert await device.async_turn_on()
    assert device.is_on is True


async def test_reconcile_divides_out_level(
    device: QubinoRGBWDevice, mock_transport, set_channel_readings
):
    """The warm channel is read back at the dimmed intensity."""
    # temperature 0.8 at level 50: warm 204 * 50 / 99
    set_channel_readings({ColorComponent.WARM_WHITE: 103, ColorComponent.COLD_WHITE: 26})
    mock_transport.async_read_level.return_value = 50

    await device.async_reconcile()

    assert device.mode == LightMode.TEMPERATURE
    assert device.controller.temperature == pytest.approx(0.8)


async def test_schedule_reconcile(device: QubinoRGBWDevice):
    """The startup reads run after a delay."""
    with patch.object(device_module, "BOOT_RECONCILE_DELAY", 0.01):
        device.async_schedule_reconcile()
    assert device.mode == LightMode.UNKNOWN

    await asyncio.sleep(0.05)

    assert device.mode == LightMode.COLOR
    assert device.is_on is True


async def test_stop_cancels_scheduled_reconcile(device: QubinoRGBWDevice, mock_transport):
    device.async_schedule_reconcile()

    await device.stop()

    assert device._boot_timer is None
    mock_transport.async_read_level.assert_not_awaited()


async def test_callback_errors_are_contained(device: QubinoRGBWDevice):
    failing = MagicMock(side_effect=RuntimeError("boom"))
    working = MagicMock()
    device.register_callback(failing)
    device.register_callback(working)

    await device.async_turn_on()

    working.assert_called_once()

    device.unregister_callback(working)
    await device.async_turn_off()
    working.assert_called_once()
