"""Config flow for the Qubino Flush RGBW integration."""
from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.const import CONF_NAME
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers.selector import NumberSelector, NumberSelectorConfig, NumberSelectorMode

from .const import (
    DOMAIN,
    CONF_COMMAND_CLASS_VERSION,
    CONF_ENDPOINT,
    CONF_GATEWAY_NAME,
    CONF_NODE_ID,
    CONF_TOPIC_PREFIX,
    CONF_TRANSITION_DURATION,
    CONF_TRANSITION_DURATION_UNIT,
    DEFAULT_COMMAND_CLASS_VERSION,
    DEFAULT_ENDPOINT,
    DEFAULT_GATEWAY_NAME,
    DEFAULT_TOPIC_PREFIX,
    DURATION_MAX_SECONDS,
    DURATION_MINUTES_OFFSET,
    DURATION_UNIT_MINUTES,
    DURATION_UNIT_SECONDS,
)
from .protocol import normalize_transition_setting

_LOGGER = logging.getLogger(__name__)

COMMAND_CLASS_VERSIONS = [1, 2, 3]


def _options_from_input(user_input: dict[str, Any]) -> dict[str, Any]:
    """Build entry options from the options form.

    The transition duration is stored normalized: minutes as 1000 + value.
    """
    options: dict[str, Any] = {
        CONF_COMMAND_CLASS_VERSION: int(
            user_input.get(CONF_COMMAND_CLASS_VERSION, DEFAULT_COMMAND_CLASS_VERSION)
        ),
    }

    unit = user_input.get(CONF_TRANSITION_DURATION_UNIT, DURATION_UNIT_SECONDS)
    options[CONF_TRANSITION_DURATION_UNIT] = unit

    if user_input.get(CONF_TRANSITION_DURATION) is not None:
        options[CONF_TRANSITION_DURATION] = normalize_transition_setting(
            int(user_input[CONF_TRANSITION_DURATION]), unit
        )
    return options


class QubinoRGBWConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle config flow for a Flush RGBW dimmer."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Handle user-initiated setup."""
        if user_input is not None:
            node_id = int(user_input[CONF_NODE_ID])
            gateway_name = user_input[CONF_GATEWAY_NAME]
            await self.async_set_unique_id(f"{gateway_name}_{node_id}")
            self._abort_if_unique_id_configured()

            _LOGGER.debug("Creating entry for node %d on %s", node_id, gateway_name)

            return self.async_create_entry(
                title=user_input[CONF_NAME],
                data={
                    CONF_NAME: user_input[CONF_NAME],
                    CONF_NODE_ID: node_id,
                    CONF_ENDPOINT: int(user_input[CONF_ENDPOINT]),
                    CONF_TOPIC_PREFIX: user_input[CONF_TOPIC_PREFIX],
                    CONF_GATEWAY_NAME: gateway_name,
                },
                options={CONF_COMMAND_CLASS_VERSION: DEFAULT_COMMAND_CLASS_VERSION},
            )

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema({
                vol.Required(CONF_NAME, default="Flush RGBW"): str,
                vol.Required(CONF_NODE_ID): NumberSelector(
                    NumberSelectorConfig(min=1, max=232, mode=NumberSelectorMode.BOX)
                ),
                vol.Required(CONF_ENDPOINT, default=DEFAULT_ENDPOINT): NumberSelector(
                    NumberSelectorConfig(min=0, max=127, mode=NumberSelectorMode.BOX)
                ),
                vol.Required(CONF_TOPIC_PREFIX, default=DEFAULT_TOPIC_PREFIX): str,
                vol.Required(CONF_GATEWAY_NAME, default=DEFAULT_GATEWAY_NAME): str,
            }),
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> OptionsFlowHandler:
        """Get the options flow handler."""
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handle options flow for the integration."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        """Initialize options flow."""
        self._config_entry = config_entry

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Handle options."""
        if user_input is not None:
            return self.async_create_entry(title="", data=_options_from_input(user_input))

        options = self._config_entry.options
        unit = options.get(CONF_TRANSITION_DURATION_UNIT, DURATION_UNIT_SECONDS)

        # Show the duration the way it was entered
        current_duration = options.get(CONF_TRANSITION_DURATION)
        if current_duration is not None and unit == DURATION_UNIT_MINUTES:
            current_duration -= DURATION_MINUTES_OFFSET

        schema_dict: dict[vol.Marker, Any] = {
            vol.Optional(
                CONF_TRANSITION_DURATION,
                description={"suggested_value": current_duration},
            ): NumberSelector(
                NumberSelectorConfig(
                    min=0, max=DURATION_MAX_SECONDS, mode=NumberSelectorMode.BOX
                )
            ),
            vol.Optional(CONF_TRANSITION_DURATION_UNIT, default=unit): vol.In(
                [DURATION_UNIT_SECONDS, DURATION_UNIT_MINUTES]
            ),
            vol.Optional(
                CONF_COMMAND_CLASS_VERSION,
                default=options.get(
                    CONF_COMMAND_CLASS_VERSION, DEFAULT_COMMAND_CLASS_VERSION
                ),
            ): vol.In(COMMAND_CLASS_VERSIONS),
        }

        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(schema_dict),
        )
