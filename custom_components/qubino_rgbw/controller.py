"""Color-mode state controller for the five-channel dimmer.

Two independent writers drive the same five channels: value writes (hue and
saturation, or white temperature) and light mode writes. A value write
already implies its mode, so a mode write that follows it closely must not
re-send the channels. A short debounce window armed by every value write
marks that case.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable

from .codec import ChannelIntensities, color_channels, scale_channels, temperature_channels
from .const import (
    DEBOUNCE_WINDOW,
    DEFAULT_COMMAND_CLASS_VERSION,
    LightMode,
    MODE_WRITE_DELAY,
)
from .protocol import build_color_set_command
from .reconcile import InferredState, async_reconcile
from .transport import ColorSwitchTransport, TransportError

_LOGGER = logging.getLogger(__name__)


class DebounceArbiter:
    """Single outstanding suppression window.

    Arming replaces any previous window; the old timer handle is cancelled.
    """

    def __init__(self, window: float = DEBOUNCE_WINDOW) -> None:
        self._window = window
        self._handle: asyncio.TimerHandle | None = None

    @property
    def armed(self) -> bool:
        """Return True while the window is open."""
        return self._handle is not None

    def arm(self) -> None:
        """Open a new window, discarding the current one."""
        self.cancel()
        self._handle = asyncio.get_running_loop().call_later(
            self._window, self._expire
        )

    def consume(self) -> bool:
        """Close the window. Return True if it was open."""
        if self._handle is None:
            return False
        self.cancel()
        return True

    def cancel(self) -> None:
        """Close the window without reporting it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _expire(self) -> None:
        self._handle = None


def resolve_mode_write(
    current: LightMode, requested: LightMode, debounce_armed: bool
) -> tuple[LightMode, bool]:
    """Decide the outcome of a light mode write.

    Returns the new mode and whether the channels must be re-sent. While the
    debounce window is open the preceding value write already set the
    channels, so only the mode is recorded.
    """
    if requested == LightMode.UNKNOWN:
        raise ValueError(f"Cannot switch from {current.value} to unknown mode")
    return requested, not debounce_armed


class ColorModeController:
    """Owns light mode, hue, saturation and temperature of one dimmer."""

    def __init__(
        self,
        transport: ColorSwitchTransport,
        dim_level: Callable[[], float] | None = None,
        version: int = DEFAULT_COMMAND_CLASS_VERSION,
        default_duration: int | None = None,
        listener: Callable[[], None] | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            transport: Wire to the dimmer
            dim_level: Provider of the current dimmer level (0-1)
            version: Negotiated Color Switch command class version
            default_duration: Duration hint used when a write has none
            listener: Called after every state change
        """
        self._transport = transport
        self._dim_level = dim_level or (lambda: 1.0)
        self._version = version
        self._default_duration = default_duration
        self._listener = listener

        self._mode = LightMode.UNKNOWN
        self._hue: float = 0.0
        self._saturation: float = 0.0
        self._temperature: float = 0.5

        self._debounce = DebounceArbiter()
        self._send_lock = asyncio.Lock()
        # Bumped by every committed write so stale boot reads can be dropped
        self._generation = 0
        # Writes are numbered when accepted; a commit never overrides the mode
        # of a newer write that already committed
        self._accepted_seq = 0
        self._committed_seq = 0

    @property
    def mode(self) -> LightMode:
        """Return the current light mode."""
        return self._mode

    @property
    def hue(self) -> float:
        """Return hue (0-1)."""
        return self._hue

    @property
    def saturation(self) -> float:
        """Return saturation (0-1)."""
        return self._saturation

    @property
    def temperature(self) -> float:
        """Return white temperature (0 = cold, 1 = warm)."""
        return self._temperature

    @property
    def debounce(self) -> DebounceArbiter:
        """Return the debounce arbiter."""
        return self._debounce

    def channels_for(self, mode: LightMode) -> ChannelIntensities:
        """Full-brightness channels for a mode from the last known values."""
        if mode == LightMode.COLOR:
            return color_channels(self._hue, self._saturation)
        if mode == LightMode.TEMPERATURE:
            return temperature_channels(self._temperature)
        return ChannelIntensities()

    # ----- Writes -----

    async def async_set_color(
        self, hue: float, saturation: float, duration: int | None = None
    ) -> bool:
        """Set hue and saturation (color mode)."""
        seq = self._accept()
        self._debounce.arm()
        if not await self._async_send(color_channels(hue, saturation), duration):
            return False
        self._hue = hue
        self._saturation = saturation
        self._commit(LightMode.COLOR, seq)
        return True

    async def async_set_temperature(
        self, temperature: float, duration: int | None = None
    ) -> bool:
        """Set white temperature (temperature mode)."""
        seq = self._accept()
        self._debounce.arm()
        if not await self._async_send(temperature_channels(temperature), duration):
            return False
        self._temperature = temperature
        self._commit(LightMode.TEMPERATURE, seq)
        return True

    async def async_set_mode(self, mode: LightMode, duration: int | None = None) -> bool:
        """Set the light mode.

        Evaluated after a short delay so that a value write arriving at the
        same time can open the debounce window first.
        """
        if mode == LightMode.UNKNOWN:
            raise ValueError("Light mode can only be set to color or temperature")
        seq = self._accept()

        await asyncio.sleep(MODE_WRITE_DELAY)

        new_mode, resend = resolve_mode_write(self._mode, mode, self._debounce.consume())
        if not resend:
            _LOGGER.debug("Mode write %s follows a value write, not re-sending", mode.value)
            # Let the in-flight value write finish first
            async with self._send_lock:
                pass
            self._commit(new_mode, seq)
            return True

        if not await self._async_send(self.channels_for(new_mode), duration):
            return False
        self._commit(new_mode, seq)
        return True

    async def async_reconcile(self) -> bool:
        """Read the channels and adopt the inferred state.

        Returns False if a write was committed while the reads were in
        flight; that write wins.
        """
        generation = self._generation
        inferred = await async_reconcile(self._transport, self._dim_level())
        if generation != self._generation:
            _LOGGER.debug("Discarding boot state %s, superseded by a write", inferred)
            return False
        self._apply(inferred)
        return True

    def stop(self) -> None:
        """Cancel pending timers."""
        self._debounce.cancel()

    # ----- Internals -----

    def _apply(self, inferred: InferredState) -> None:
        """Adopt reconciled values."""
        if inferred.hue is not None:
            self._hue = inferred.hue
        if inferred.saturation is not None:
            self._saturation = inferred.saturation
        if inferred.temperature is not None:
            self._temperature = inferred.temperature
        self._mode = inferred.mode
        self._notify()

    def _accept(self) -> int:
        self._accepted_seq += 1
        return self._accepted_seq

    def _commit(self, mode: LightMode, seq: int) -> None:
        self._generation += 1
        if seq < self._committed_seq:
            _LOGGER.debug(
                "Keeping light mode %s, write %d superseded by %d",
                self._mode.value, seq, self._committed_seq,
            )
        else:
            if mode != self._mode:
                _LOGGER.debug("Light mode %s -> %s", self._mode.value, mode.value)
            self._mode = mode
            self._committed_seq = seq
        self._notify()

    def _notify(self) -> None:
        if self._listener is not None:
            self._listener()

    async def _async_send(self, channels: ChannelIntensities, duration: int | None) -> bool:
        """Scale by the dim level, build and send the color set command."""
        if duration is None:
            duration = self._default_duration
        scaled = scale_channels(channels, self._dim_level())
        command = build_color_set_command(scaled, duration, self._version)
        _LOGGER.debug("Sending channels %s (duration=%s)", scaled, command.duration)

        async with self._send_lock:
            try:
                await self._transport.async_send(command)
            except TransportError as ex:
                _LOGGER.error("Failed to send color command: %s", ex)
                return False
        return True
