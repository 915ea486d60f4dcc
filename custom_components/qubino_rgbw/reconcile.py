"""Startup reconciliation: infer light mode and values from channel reads."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .codec import ChannelIntensities, channels_to_hsv, channels_to_temperature
from .const import ColorComponent, LightMode, MAX_INTENSITY
from .transport import ColorSwitchTransport, TransportError

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class InferredState:
    """Mode and values reconstructed from the channel readings."""
    mode: LightMode
    hue: float | None = None
    saturation: float | None = None
    temperature: float | None = None


async def _async_read_or_zero(
    transport: ColorSwitchTransport, component: ColorComponent
) -> int:
    """Read one channel, treating any failure as an unlit channel."""
    try:
        return await transport.async_read_channel(component)
    except (TransportError, asyncio.TimeoutError) as ex:
        _LOGGER.debug("Reading %s failed, assuming 0: %s", component.name, ex)
        return 0


async def async_read_channels(transport: ColorSwitchTransport) -> ChannelIntensities:
    """Read all five channels concurrently.

    Every read is individually fault tolerant, so the join never fails.
    """
    values = await asyncio.gather(
        *(_async_read_or_zero(transport, component) for component in ColorComponent)
    )
    return ChannelIntensities(*values)


def infer_state(channels: ChannelIntensities, dim_level: float = 1.0) -> InferredState:
    """Infer the light mode from channel readings.

    Both white channels at 0 means color mode. A dark output reads the same
    in either mode and is reported as color.

    The readings carry the dimmer level; dim_level (0-1) divides it back
    out of the warm channel before the temperature is recovered. Hue and
    saturation do not depend on it.
    """
    if channels.warm == 0 and channels.cold == 0:
        hue, saturation = channels_to_hsv(channels.red, channels.green, channels.blue)
        return InferredState(LightMode.COLOR, hue=hue, saturation=saturation)
    warm = channels.warm
    if 0 < dim_level < 1:
        warm = min(MAX_INTENSITY, channels.warm / dim_level)
    return InferredState(
        LightMode.TEMPERATURE, temperature=channels_to_temperature(warm)
    )


async def async_reconcile(
    transport: ColorSwitchTransport, dim_level: float = 1.0
) -> InferredState:
    """Read every channel and infer the current state."""
    channels = await async_read_channels(transport)
    inferred = infer_state(channels, dim_level)
    _LOGGER.debug("Channels %s -> %s", channels, inferred)
    return inferred
