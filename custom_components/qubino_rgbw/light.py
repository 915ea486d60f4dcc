"""Light platform for the Qubino Flush RGBW integration."""
from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.light import (
    ATTR_BRIGHTNESS,
    ATTR_COLOR_TEMP_KELVIN,
    ATTR_HS_COLOR,
    ATTR_TRANSITION,
    ColorMode,
    LightEntity,
    LightEntityFeature,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import DOMAIN, LightMode, MAX_KELVIN, MIN_KELVIN
from .device import QubinoRGBWDevice
from .protocol import transition_to_duration_hint

_LOGGER = logging.getLogger(__name__)


def kelvin_to_temperature(kelvin: int) -> float:
    """Convert Kelvin to white temperature (0 = cold, 1 = warm)."""
    kelvin = max(MIN_KELVIN, min(MAX_KELVIN, kelvin))
    return (MAX_KELVIN - kelvin) / (MAX_KELVIN - MIN_KELVIN)


def temperature_to_kelvin(temperature: float) -> int:
    """Convert white temperature (0 = cold, 1 = warm) to Kelvin."""
    return round(MAX_KELVIN - temperature * (MAX_KELVIN - MIN_KELVIN))


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the light platform."""
    device, _transport = hass.data[DOMAIN][entry.entry_id]

    async_add_entities([QubinoRGBWLight(device, entry)])


class QubinoRGBWLight(LightEntity):
    """Representation of the dimmer's RGB + tunable white output."""

    _attr_has_entity_name = True
    _attr_name = None  # Use device name
    _attr_supported_color_modes = {ColorMode.HS, ColorMode.COLOR_TEMP}
    _attr_supported_features = LightEntityFeature.TRANSITION
    _attr_min_color_temp_kelvin = MIN_KELVIN
    _attr_max_color_temp_kelvin = MAX_KELVIN

    def __init__(self, device: QubinoRGBWDevice, entry: ConfigEntry) -> None:
        """Initialize the light."""
        self._device = device
        self._entry = entry
        self._attr_unique_id = f"{entry.unique_id}_light"

    async def async_added_to_hass(self) -> None:
        """Register for state updates."""
        self._device.register_callback(self._handle_state_update)

    async def async_will_remove_from_hass(self) -> None:
        """Handle entity removal."""
        self._device.unregister_callback(self._handle_state_update)

    @callback
    def _handle_state_update(self) -> None:
        """Handle state updates from the device."""
        self.async_write_ha_state()

    @property
    def device_info(self) -> DeviceInfo:
        """Return device info."""
        return DeviceInfo(
            identifiers={(DOMAIN, self._entry.unique_id)},
            name=self._device.name,
            manufacturer="Qubino",
            model="Flush RGBW Dimmer (ZMNHWD)",
        )

    @property
    def available(self) -> bool:
        """Return True if the dimmer state is known."""
        return self._device.is_on is not None

    @property
    def is_on(self) -> bool | None:
        """Return True if light is on."""
        return self._device.is_on

    @property
    def brightness(self) -> int | None:
        """Return the brightness."""
        return self._device.brightness

    @property
    def color_mode(self) -> ColorMode:
        """Return current color mode."""
        if self._device.mode == LightMode.TEMPERATURE:
            return ColorMode.COLOR_TEMP
        return ColorMode.HS

    @property
    def hs_color(self) -> tuple[float, float] | None:
        """Return hue (0-360) and saturation (0-100)."""
        controller = self._device.controller
        return (controller.hue * 360, controller.saturation * 100)

    @property
    def color_temp_kelvin(self) -> int | None:
        """Return color temperature in Kelvin."""
        return temperature_to_kelvin(self._device.controller.temperature)

    async def async_turn_on(self, **kwargs: Any) -> None:
        """Turn the light on."""
        _LOGGER.debug("turn_on called with kwargs: %s", kwargs)

        duration = None
        if ATTR_TRANSITION in kwargs:
            duration = transition_to_duration_hint(kwargs[ATTR_TRANSITION])

        # Level first so color channels are scaled with the new dim level
        if ATTR_BRIGHTNESS in kwargs or not self._device.is_on:
            if not await self._device.async_turn_on(kwargs.get(ATTR_BRIGHTNESS), duration):
                raise HomeAssistantError(f"Failed to turn on {self._device.name}")

        if ATTR_HS_COLOR in kwargs:
            hue, saturation = kwargs[ATTR_HS_COLOR]
            ok = await self._device.async_set_color(hue / 360, saturation / 100, duration)
        elif ATTR_COLOR_TEMP_KELVIN in kwargs:
            temperature = kelvin_to_temperature(kwargs[ATTR_COLOR_TEMP_KELVIN])
            ok = await self._device.async_set_temperature(temperature, duration)
        else:
            return

        if not ok:
            raise HomeAssistantError(f"Failed to set color of {self._device.name}")

    async def async_turn_off(self, **kwargs: Any) -> None:
        """Turn the light off."""
        duration = None
        if ATTR_TRANSITION in kwargs:
            duration = transition_to_duration_hint(kwargs[ATTR_TRANSITION])
        if not await self._device.async_turn_off(duration):
            raise HomeAssistantError(f"Failed to turn off {self._device.name}")
