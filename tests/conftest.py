"""Common test fixtures for the Qubino Flush RGBW integration."""
from __future__ import annotations

from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from custom_components.qubino_rgbw.const import ColorComponent
from custom_components.qubino_rgbw.controller import ColorModeController


@pytest.fixture
def mock_transport() -> MagicMock:
    """Create a mock transport where every channel reads 0."""
    transport = MagicMock()
    transport.async_send = AsyncMock()
    transport.async_read_channel = AsyncMock(return_value=0)
    transport.async_set_level = AsyncMock()
    transport.async_read_level = AsyncMock(return_value=99)
    return transport


@pytest.fixture
def set_channel_readings(mock_transport: MagicMock) -> Callable[[dict], None]:
    """Make channel reads return (or raise) a value per component."""

    def _set(values: dict[ColorComponent, int | Exception]) -> None:
        async def _read(component: ColorComponent) -> int:
            value = values.get(component, 0)
            if isinstance(value, Exception):
                raise value
            return value

        mock_transport.async_read_channel = AsyncMock(side_effect=_read)

    return _set


@pytest.fixture
def listener() -> MagicMock:
    """Create a state listener."""
    return MagicMock()


@pytest.fixture
async def controller(mock_transport: MagicMock, listener: MagicMock):
    """Create a controller and cancel its timers afterwards."""
    controller = ColorModeController(mock_transport, listener=listener)
    yield controller
    controller.stop()
