"""Protocol layer for the Qubino Flush RGBW dimmer.

This module handles:
- Duration quantization (settings/transition -> Z-Wave duration byte)
- Building the Color Switch set command for all five channels
- Rendering durations for the Z-Wave JS gateway API
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from .codec import ChannelIntensities, quantize
from .const import (
    ColorComponent,
    COMPONENT_PROPERTY_NAMES,
    DURATION_FACTORY_DEFAULT,
    DURATION_INSTANT,
    DURATION_MAX_MINUTES,
    DURATION_MAX_SECONDS,
    DURATION_MIN_VERSION,
    DURATION_MINUTES_OFFSET,
    DURATION_UNIT_MINUTES,
    FLAT_ENCODING_VERSION,
)

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComponentValue:
    """One (component id, value) pair of a Color Switch set command."""
    component: ColorComponent
    value: int


@dataclass(frozen=True)
class ColorSwitchSetCommand:
    """Color Switch set command addressing all five channels.

    duration is the quantized duration byte, or None when the command does
    not carry one. raw holds the flat byte sequence for the protocol
    revision that cannot parse the structured duration field.
    """
    components: tuple[ComponentValue, ...]
    duration: int | None = None
    raw: bytes | None = None

    @property
    def is_flat(self) -> bool:
        """Return True if the command must be sent as a flat byte sequence."""
        return self.raw is not None

    def as_options(self) -> dict[str, int]:
        """Return component values keyed by gateway property name."""
        return {
            COMPONENT_PROPERTY_NAMES[item.component]: item.value
            for item in self.components
        }


# =============================================================================
# DURATION
# =============================================================================

def normalize_transition_setting(value: int, unit: str) -> int:
    """
    Normalize a transition duration setting into a duration hint.

    Minute values are stored as 1000 + minutes, second values as-is.
    """
    if unit == DURATION_UNIT_MINUTES:
        return value + DURATION_MINUTES_OFFSET
    return value


def transition_to_duration_hint(seconds: float) -> int:
    """Convert a transition in seconds into a duration hint."""
    whole_seconds = max(0, round(seconds))
    if whole_seconds <= DURATION_MAX_SECONDS:
        return whole_seconds
    minutes = round(whole_seconds / 60)
    return DURATION_MINUTES_OFFSET + min(minutes, DURATION_MAX_MINUTES)


def quantize_duration(hint: int | None) -> int:
    """
    Convert a duration hint into the Z-Wave duration byte.

    Encoding:
      - 0x00: instant
      - 0x01-0x7F: 1-127 seconds
      - 0x80-0xFE: 1-127 minutes
      - 0xFF: factory default (also used when no hint is given)
    """
    if hint is None:
        return DURATION_FACTORY_DEFAULT
    if hint >= DURATION_MINUTES_OFFSET:
        minutes = hint - DURATION_MINUTES_OFFSET
        if minutes <= 0:
            return DURATION_INSTANT
        return DURATION_MAX_SECONDS + min(minutes, DURATION_MAX_MINUTES)
    if hint <= 0:
        return DURATION_INSTANT
    if hint <= DURATION_MAX_SECONDS:
        return hint
    # Seconds beyond the seconds range are rounded to whole minutes
    minutes = round(hint / 60)
    return DURATION_MAX_SECONDS + min(minutes, DURATION_MAX_MINUTES)


def format_duration(duration: int) -> str:
    """Render a duration byte the way the gateway parses durations."""
    if duration == DURATION_FACTORY_DEFAULT:
        return "default"
    if duration <= DURATION_MAX_SECONDS:
        return f"{duration}s"
    return f"{duration - DURATION_MAX_SECONDS}m"


# =============================================================================
# COLOR SWITCH SET
# =============================================================================

def build_color_set_command(
    channels: ChannelIntensities,
    duration: int | None = None,
    version: int = FLAT_ENCODING_VERSION + 1,
) -> ColorSwitchSetCommand:
    """
    Build the Color Switch set command for all five channels.

    Args:
        channels: Target intensities (warm, cold, red, green, blue)
        duration: Duration hint, None for factory default
        version: Negotiated Color Switch command class version

    Version 2 devices mis-parse the structured duration field, so for them
    the whole command is serialized as:
      [count, id0, value0, ..., id4, value4, duration]
    """
    components = tuple(
        ComponentValue(component, quantize(value))
        for component, value in zip(ColorComponent, channels)
    )

    duration_byte = None
    if duration is not None and version >= DURATION_MIN_VERSION:
        duration_byte = quantize_duration(duration)

    if version == FLAT_ENCODING_VERSION:
        raw = bytearray([len(components) & 0x1F])
        for item in components:
            raw.extend((item.component, item.value))
        raw.append(
            duration_byte if duration_byte is not None else DURATION_FACTORY_DEFAULT
        )
        _LOGGER.debug(
            "Flat color set (v%d): %s",
            version,
            " ".join(f"0x{b:02X}" for b in raw),
        )
        return ColorSwitchSetCommand(components, duration_byte, bytes(raw))

    return ColorSwitchSetCommand(components, duration_byte)
