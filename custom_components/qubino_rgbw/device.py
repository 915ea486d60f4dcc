"""Device class for the Qubino Flush RGBW dimmer.

Holds the dimmer level and on/off state, owns the color-mode controller and
runs the delayed startup reconciliation.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable

from homeassistant.core import HomeAssistant, callback

from .const import (
    BOOT_RECONCILE_DELAY,
    DEFAULT_COMMAND_CLASS_VERSION,
    LightMode,
    MAX_LEVEL,
)
from .controller import ColorModeController
from .transport import ColorSwitchTransport, TransportError

_LOGGER = logging.getLogger(__name__)


def brightness_to_level(brightness: int) -> int:
    """Convert brightness (0-255) to a Multilevel Switch level (0-99)."""
    if brightness <= 0:
        return 0
    return max(1, min(MAX_LEVEL, round(brightness * MAX_LEVEL / 255)))


def level_to_brightness(level: int) -> int:
    """Convert a Multilevel Switch level (0-99) to brightness (0-255)."""
    return max(0, min(255, round(level * 255 / MAX_LEVEL)))


class QubinoRGBWDevice:
    """Represents one Flush RGBW dimmer."""

    def __init__(
        self,
        hass: HomeAssistant,
        transport: ColorSwitchTransport,
        name: str,
        node_id: int,
        version: int = DEFAULT_COMMAND_CLASS_VERSION,
        transition_duration: int | None = None,
    ) -> None:
        """Initialize the device.

        Args:
            hass: Home Assistant instance
            transport: Wire to the dimmer
            name: Device name
            node_id: Z-Wave node id
            version: Negotiated Color Switch command class version
            transition_duration: Default duration hint from the settings
        """
        self._hass = hass
        self._transport = transport
        self._name = name
        self._node_id = node_id

        # Dimmer state
        self._is_on: bool | None = None
        self._level: int = MAX_LEVEL  # last non-zero level

        self._boot_timer: asyncio.TimerHandle | None = None

        # Callbacks for state updates
        self._callbacks: list[Callable[[], None]] = []

        self._controller = ColorModeController(
            transport,
            dim_level=lambda: self.dim_level,
            version=version,
            default_duration=transition_duration,
            listener=self._notify_callbacks,
        )

        _LOGGER.debug(
            "Device initialized: %s (node %d), version=%d, transition_duration=%s",
            name, node_id, version, transition_duration,
        )

    @property
    def name(self) -> str:
        """Return the device name."""
        return self._name

    @property
    def node_id(self) -> int:
        """Return the Z-Wave node id."""
        return self._node_id

    @property
    def controller(self) -> ColorModeController:
        """Return the color-mode controller."""
        return self._controller

    @property
    def is_on(self) -> bool | None:
        """Return power state."""
        return self._is_on

    @property
    def level(self) -> int:
        """Return the last non-zero dimmer level (1-99)."""
        return self._level

    @property
    def brightness(self) -> int:
        """Return brightness (0-255)."""
        return level_to_brightness(self._level)

    @property
    def dim_level(self) -> float:
        """Return the dimmer level as a fraction (0-1)."""
        return self._level / MAX_LEVEL

    @property
    def mode(self) -> LightMode:
        """Return the current light mode."""
        return self._controller.mode

    def register_callback(self, callback_fn: Callable[[], None]) -> None:
        """Register a callback for state updates."""
        self._callbacks.append(callback_fn)

    def unregister_callback(self, callback_fn: Callable[[], None]) -> None:
        """Unregister a callback."""
        if callback_fn in self._callbacks:
            self._callbacks.remove(callback_fn)

    def _notify_callbacks(self) -> None:
        """Notify all registered callbacks."""
        for callback_fn in self._callbacks:
            try:
                callback_fn()
            except Exception as ex:
                _LOGGER.exception("Error in callback: %s", ex)

    # ----- Startup -----

    def async_schedule_reconcile(self) -> None:
        """Schedule the startup channel reads.

        Delayed so the reads do not compete with other setup traffic.
        """
        if self._boot_timer:
            self._boot_timer.cancel()

        self._boot_timer = self._hass.loop.call_later(
            BOOT_RECONCILE_DELAY, self._start_reconcile
        )

    @callback
    def _start_reconcile(self) -> None:
        self._boot_timer = None
        self._hass.async_create_task(self.async_reconcile())

    async def async_reconcile(self) -> None:
        """Read the dimmer level and every channel, then publish the result."""
        try:
            level = await self._transport.async_read_level()
        except TransportError as ex:
            # A failed read counts as level 0
            _LOGGER.debug("Reading level of %s failed, assuming off: %s", self._name, ex)
            self._is_on = False
        else:
            self._is_on = level > 0
            if level > 0:
                self._level = min(level, MAX_LEVEL)

        await self._controller.async_reconcile()
        _LOGGER.debug(
            "Reconciled %s: is_on=%s, level=%d, mode=%s",
            self._name, self._is_on, self._level, self.mode.value,
        )
        self._notify_callbacks()

    # ----- Public command methods -----

    async def async_set_level(self, level: int, duration: int | None = None) -> bool:
        """Set the dimmer level (0 turns the output off)."""
        try:
            await self._transport.async_set_level(level, duration)
        except TransportError as ex:
            _LOGGER.error("Failed to set level of %s: %s", self._name, ex)
            return False

        self._is_on = level > 0
        if level > 0:
            self._level = level
        self._notify_callbacks()
        return True

    async def async_turn_on(
        self, brightness: int | None = None, duration: int | None = None
    ) -> bool:
        """Turn on, optionally at a new brightness (0-255)."""
        level = self._level if brightness is None else brightness_to_level(brightness)
        return await self.async_set_level(level, duration)

    async def async_turn_off(self, duration: int | None = None) -> bool:
        """Turn off, keeping the last level for the next turn on."""
        return await self.async_set_level(0, duration)

    async def async_set_color(
        self, hue: float, saturation: float, duration: int | None = None
    ) -> bool:
        """Set hue and saturation (0-1)."""
        return await self._controller.async_set_color(hue, saturation, duration)

    async def async_set_temperature(
        self, temperature: float, duration: int | None = None
    ) -> bool:
        """Set white temperature (0 = cold, 1 = warm)."""
        return await self._controller.async_set_temperature(temperature, duration)

    async def async_set_mode(self, mode: LightMode, duration: int | None = None) -> bool:
        """Set the light mode."""
        return await self._controller.async_set_mode(mode, duration)

    async def stop(self) -> None:
        """Stop the device and clean up."""
        if self._boot_timer:
            self._boot_timer.cancel()
            self._boot_timer = None

        self._controller.stop()
        self._callbacks.clear()
