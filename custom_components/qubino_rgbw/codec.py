"""Channel conversions for the five-channel (WW, CW, R, G, B) output.

All conversions end in integer intensities 0-255. Rounding is half away
from zero, followed by a clamp so that float overshoot never leaves the
channel range.
"""
from __future__ import annotations

import colorsys
import math
from typing import NamedTuple, Tuple

from .const import MAX_INTENSITY


class ChannelIntensities(NamedTuple):
    """Target intensity for every channel, in component id order."""
    warm: int = 0
    cold: int = 0
    red: int = 0
    green: int = 0
    blue: int = 0


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def quantize(value: float) -> int:
    """Convert a fractional intensity (0-255 scale) into a valid channel value."""
    return max(0, min(MAX_INTENSITY, round_half_away(value)))


# =============================================================================
# COLOR
# =============================================================================

def hsv_to_channels(
    hue: float, saturation: float, brightness: float = 1.0
) -> Tuple[int, int, int]:
    """
    Convert HSV (all 0-1) to RGB channel values (0-255).

    Brightness defaults to 1; the dimmer level is applied separately with
    scale_channels().
    """
    r, g, b = colorsys.hsv_to_rgb(hue % 1.0, saturation, brightness)
    return (
        quantize(r * MAX_INTENSITY),
        quantize(g * MAX_INTENSITY),
        quantize(b * MAX_INTENSITY),
    )


def channels_to_hsv(red: int, green: int, blue: int) -> Tuple[float, float]:
    """Convert RGB channel values (0-255) back to hue and saturation (0-1)."""
    h, s, _v = colorsys.rgb_to_hsv(
        red / MAX_INTENSITY, green / MAX_INTENSITY, blue / MAX_INTENSITY
    )
    return (h, s)


# =============================================================================
# WHITE TEMPERATURE
# =============================================================================

def temperature_to_channels(temperature: float) -> Tuple[int, int]:
    """
    Convert a white temperature (0 = fully cold, 1 = fully warm) to (warm, cold).
    """
    return (
        quantize(temperature * MAX_INTENSITY),
        quantize((1 - temperature) * MAX_INTENSITY),
    )


def channels_to_temperature(warm: float) -> float:
    """Recover the white temperature from the warm channel, two decimals."""
    return round_half_away(warm / MAX_INTENSITY * 100) / 100


# =============================================================================
# DIM LEVEL
# =============================================================================

def scale_channels(channels: ChannelIntensities, dim_level: float) -> ChannelIntensities:
    """Multiply every channel by the dimmer level (0-1)."""
    dim_level = max(0.0, min(1.0, dim_level))
    return ChannelIntensities(*(quantize(value * dim_level) for value in channels))


def color_channels(hue: float, saturation: float) -> ChannelIntensities:
    """Full-brightness channel set for color mode (white channels off)."""
    red, green, blue = hsv_to_channels(hue, saturation, 1.0)
    return ChannelIntensities(warm=0, cold=0, red=red, green=green, blue=blue)


def temperature_channels(temperature: float) -> ChannelIntensities:
    """Full-brightness channel set for temperature mode (RGB channels off)."""
    warm, cold = temperature_to_channels(temperature)
    return ChannelIntensities(warm=warm, cold=cold)
