"""Light mode select for the Qubino Flush RGBW integration."""
from __future__ import annotations

import logging

from homeassistant.components.select import SelectEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import DOMAIN, LightMode
from .device import QubinoRGBWDevice

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the select platform."""
    device, _transport = hass.data[DOMAIN][entry.entry_id]

    async_add_entities([QubinoLightModeSelect(device, entry)])


class QubinoLightModeSelect(SelectEntity):
    """Switches the output between color and white temperature."""

    _attr_has_entity_name = True
    _attr_translation_key = "light_mode"
    _attr_options = [LightMode.COLOR.value, LightMode.TEMPERATURE.value]

    def __init__(self, device: QubinoRGBWDevice, entry: ConfigEntry) -> None:
        """Initialize the select."""
        self._device = device
        self._entry = entry
        self._attr_unique_id = f"{entry.unique_id}_light_mode"

    async def async_added_to_hass(self) -> None:
        """Register for state updates."""
        self._device.register_callback(self._handle_state_update)

    async def async_will_remove_from_hass(self) -> None:
        """Handle entity removal."""
        self._device.unregister_callback(self._handle_state_update)

    @callback
    def _handle_state_update(self) -> None:
        self.async_write_ha_state()

    @property
    def device_info(self) -> DeviceInfo:
        """Return device info."""
        return DeviceInfo(identifiers={(DOMAIN, self._entry.unique_id)})

    @property
    def current_option(self) -> str | None:
        """Return the current light mode, None until it is known."""
        mode = self._device.mode
        if mode == LightMode.UNKNOWN:
            return None
        return mode.value

    async def async_select_option(self, option: str) -> None:
        """Change the light mode."""
        _LOGGER.debug("Light mode %s requested for %s", option, self._device.name)
        if not await self._device.async_set_mode(LightMode(option)):
            raise HomeAssistantError(
                f"Failed to set light mode of {self._device.name} to {option}"
            )
