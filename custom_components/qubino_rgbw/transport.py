"""Transport to the dimmer through the Z-Wave JS UI MQTT gateway.

The gateway exposes the command class APIs of every node on
<prefix>/_CLIENTS/ZWAVE_GATEWAY-<name>/api/sendCommand/set and publishes
the result on the same topic without the /set suffix. Responses carry the
request args, which is how concurrent requests are matched.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Protocol

from homeassistant.components import mqtt
from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError

from .const import (
    ColorComponent,
    COMMAND_CLASS_SWITCH_COLOR,
    COMMAND_CLASS_SWITCH_MULTILEVEL,
    DEFAULT_ENDPOINT,
    DEFAULT_GATEWAY_NAME,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TOPIC_PREFIX,
)
from .protocol import ColorSwitchSetCommand, format_duration

_LOGGER = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised when the dimmer could not be reached."""


class TransportSendError(TransportError):
    """Raised when a command was rejected or not acknowledged."""


class ColorSwitchTransport(Protocol):
    """What the controller needs from the wire."""

    async def async_send(self, command: ColorSwitchSetCommand) -> None:
        """Send a Color Switch set command."""

    async def async_read_channel(self, component: ColorComponent) -> int:
        """Read the current intensity of one channel."""

    async def async_set_level(self, level: int, duration: int | None = None) -> None:
        """Set the dimmer level (0-99)."""

    async def async_read_level(self) -> int:
        """Read the dimmer level (0-99)."""


class ZwaveJsMqttTransport:
    """Talks to one node through the Z-Wave JS UI MQTT API."""

    def __init__(
        self,
        hass: HomeAssistant,
        node_id: int,
        endpoint: int = DEFAULT_ENDPOINT,
        topic_prefix: str = DEFAULT_TOPIC_PREFIX,
        gateway_name: str = DEFAULT_GATEWAY_NAME,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        """Initialize the transport.

        Args:
            hass: Home Assistant instance
            node_id: Z-Wave node id of the dimmer
            endpoint: Endpoint carrying the color channels
            topic_prefix: MQTT prefix configured in the gateway
            gateway_name: Gateway name configured in the gateway
            timeout: Seconds to wait for a response
        """
        self._hass = hass
        self._node_id = node_id
        self._endpoint = endpoint
        self._timeout = timeout
        self._api_topic = (
            f"{topic_prefix}/_CLIENTS/ZWAVE_GATEWAY-{gateway_name}/api/sendCommand"
        )
        self._pending: dict[str, list[asyncio.Future]] = {}
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def api_topic(self) -> str:
        """Return the topic responses are published on."""
        return self._api_topic

    async def async_start(self) -> None:
        """Subscribe to gateway responses."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = await mqtt.async_subscribe(
            self._hass, self._api_topic, self._handle_response
        )
        _LOGGER.debug("Subscribed to %s", self._api_topic)

    async def async_stop(self) -> None:
        """Unsubscribe and fail every outstanding request."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for futures in self._pending.values():
            for future in futures:
                if not future.done():
                    future.set_exception(TransportError("Transport stopped"))
        self._pending.clear()

    # ----- Public API -----

    async def async_send(self, command: ColorSwitchSetCommand) -> None:
        """Send a Color Switch set command."""
        if command.is_flat:
            # The gateway has no raw frame entry point
            raise TransportSendError(
                "Flat encoded commands are not supported by the MQTT gateway"
            )
        options: dict[str, Any] = command.as_options()
        if command.duration is not None:
            options["duration"] = format_duration(command.duration)
        await self._async_call(COMMAND_CLASS_SWITCH_COLOR, "set", [options])

    async def async_read_channel(self, component: ColorComponent) -> int:
        """Read the current intensity of one channel."""
        result = await self._async_call(
            COMMAND_CLASS_SWITCH_COLOR, "get", [int(component)]
        )
        return self._current_value(result)

    async def async_set_level(self, level: int, duration: int | None = None) -> None:
        """Set the dimmer level (0-99)."""
        params: list[Any] = [level]
        if duration is not None:
            params.append(format_duration(duration))
        await self._async_call(COMMAND_CLASS_SWITCH_MULTILEVEL, "set", params)

    async def async_read_level(self) -> int:
        """Read the dimmer level (0-99)."""
        result = await self._async_call(COMMAND_CLASS_SWITCH_MULTILEVEL, "get", [])
        return self._current_value(result)

    # ----- Request/response -----

    def _build_args(self, command_class: int, method: str, params: list) -> list:
        """Build the sendCommand args for this node."""
        return [
            {
                "nodeId": self._node_id,
                "commandClass": command_class,
                "endpoint": self._endpoint,
            },
            method,
            params,
        ]

    @staticmethod
    def _request_key(args: Any) -> str:
        """Return a stable key for matching responses to requests."""
        return json.dumps(args, sort_keys=True)

    async def _async_call(self, command_class: int, method: str, params: list) -> Any:
        """Publish a sendCommand request and wait for its response."""
        args = self._build_args(command_class, method, params)
        key = self._request_key(args)
        future: asyncio.Future = self._hass.loop.create_future()
        self._pending.setdefault(key, []).append(future)

        payload = json.dumps({"args": args})
        _LOGGER.debug("Sending to node %d: %s", self._node_id, payload)

        try:
            await mqtt.async_publish(self._hass, f"{self._api_topic}/set", payload)
            response = await asyncio.wait_for(future, timeout=self._timeout)
        except asyncio.TimeoutError as ex:
            raise TransportError(
                f"No response from node {self._node_id} for {method} "
                f"(command class 0x{command_class:02X})"
            ) from ex
        except HomeAssistantError as ex:
            raise TransportError(f"MQTT publish failed: {ex}") from ex
        finally:
            futures = self._pending.get(key)
            if futures and future in futures:
                futures.remove(future)
            if not futures:
                self._pending.pop(key, None)

        if not response.get("success"):
            raise TransportSendError(
                response.get("message") or f"Node {self._node_id} rejected {method}"
            )
        return response.get("result")

    @callback
    def _handle_response(self, msg: mqtt.ReceiveMessage) -> None:
        """Resolve the request matching a gateway response."""
        try:
            data = json.loads(msg.payload)
        except ValueError:
            _LOGGER.warning("Invalid JSON on %s: %s", msg.topic, msg.payload)
            return

        if not isinstance(data, dict) or "args" not in data:
            _LOGGER.debug("Ignoring gateway message without args: %s", data)
            return

        futures = self._pending.get(self._request_key(data["args"]))
        if not futures:
            _LOGGER.debug("No pending request for response: %s", data)
            return

        future = futures.pop(0)
        if not future.done():
            future.set_result(data)

    @staticmethod
    def _current_value(result: Any) -> int:
        """Extract the current value from a get result."""
        if isinstance(result, dict):
            result = result.get("currentValue")
        if isinstance(result, (int, float)) and not isinstance(result, bool):
            return int(result)
        raise TransportError(f"Unexpected get result: {result!r}")
