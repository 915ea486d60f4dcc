"""Qubino Flush RGBW integration for Home Assistant."""
from __future__ import annotations

import logging

from homeassistant.components import mqtt
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_NAME, Platform
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from .const import (
    DOMAIN,
    CONF_COMMAND_CLASS_VERSION,
    CONF_ENDPOINT,
    CONF_GATEWAY_NAME,
    CONF_NODE_ID,
    CONF_TOPIC_PREFIX,
    CONF_TRANSITION_DURATION,
    DEFAULT_COMMAND_CLASS_VERSION,
    DEFAULT_ENDPOINT,
    DEFAULT_GATEWAY_NAME,
    DEFAULT_TOPIC_PREFIX,
)
from .device import QubinoRGBWDevice
from .transport import ZwaveJsMqttTransport

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [Platform.LIGHT, Platform.SELECT]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up a Flush RGBW dimmer from a config entry."""
    node_id = entry.data[CONF_NODE_ID]
    name = entry.data.get(CONF_NAME, f"Flush RGBW {node_id}")
    version = entry.options.get(CONF_COMMAND_CLASS_VERSION, DEFAULT_COMMAND_CLASS_VERSION)
    transition_duration = entry.options.get(CONF_TRANSITION_DURATION)

    _LOGGER.debug(
        "Setting up Flush RGBW: %s (node %d), version=%d",
        name, node_id, version,
    )

    if not await mqtt.async_wait_for_mqtt_client(hass):
        raise ConfigEntryNotReady("MQTT integration is not available")

    transport = ZwaveJsMqttTransport(
        hass,
        node_id,
        endpoint=entry.data.get(CONF_ENDPOINT, DEFAULT_ENDPOINT),
        topic_prefix=entry.data.get(CONF_TOPIC_PREFIX, DEFAULT_TOPIC_PREFIX),
        gateway_name=entry.data.get(CONF_GATEWAY_NAME, DEFAULT_GATEWAY_NAME),
    )
    await transport.async_start()

    device = QubinoRGBWDevice(
        hass,
        transport,
        name,
        node_id,
        version=version,
        transition_duration=transition_duration,
    )

    # Store device and transport
    hass.data.setdefault(DOMAIN, {})
    hass.data[DOMAIN][entry.entry_id] = (device, transport)

    # Handle options updates
    entry.async_on_unload(entry.add_update_listener(async_options_updated))

    # Set up platforms
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    device.async_schedule_reconcile()

    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    if unload_ok := await hass.config_entries.async_unload_platforms(entry, PLATFORMS):
        device, transport = hass.data[DOMAIN].pop(entry.entry_id)
        await device.stop()
        await transport.async_stop()

    return unload_ok


async def async_options_updated(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle options update."""
    # Reload the entry to apply new options
    await hass.config_entries.async_reload(entry.entry_id)
