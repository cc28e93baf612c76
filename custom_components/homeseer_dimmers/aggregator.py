"""Fold per LED state channels into one desired LED table."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
import logging
from typing import Protocol

from .config import ConfigurationError
from .const import STATE_ON, STATE_UNAVAILABLE
from .domain import LED_COUNT, BlinkState, Color, LedAspect, LedInputTable

_LOGGER = logging.getLogger(__name__)

ChangeCallback = Callable[[str, str | None], None]
TableObserver = Callable[[LedInputTable], None]
Unsubscribe = Callable[[], None]


class StateChannelSource(Protocol):
    """Source of named single value state channels."""

    def current_value(self, channel_id: str) -> str | None:
        """Return the current raw value of ``channel_id`` if known."""

    def subscribe(
        self, channel_ids: Sequence[str], callback: ChangeCallback
    ) -> Unsubscribe:
        """Deliver ``(channel_id, raw_value)`` for every change of the channels."""


@dataclass(frozen=True, slots=True)
class ChannelUpdate:
    """Decoded value for one aspect of one LED."""

    index: int
    aspect: LedAspect
    value: Color | BlinkState


def decode_color(raw: str | None) -> Color:
    """Decode a color channel value, falling back to ``Color.OFF``."""

    if raw is None or raw.strip().lower() == STATE_UNAVAILABLE:
        return Color.OFF
    try:
        return Color.parse(raw)
    except ValueError:
        _LOGGER.warning("Unable to parse LED color %r, using off", raw)
        return Color.OFF


def decode_blink(raw: str | None) -> BlinkState:
    """Decode a blink channel value; anything but ``on`` means off."""

    if raw is not None and raw.strip().lower() == STATE_ON:
        return BlinkState.ON
    return BlinkState.OFF


def build_channel_map(
    color_pattern: str, blink_pattern: str
) -> dict[str, tuple[int, LedAspect]]:
    """Return channel ids mapped to the LED index and aspect they drive.

    Each pattern holds one positional placeholder replaced by the LED
    ordinal 1-7.
    """

    color_pattern = (color_pattern or "").strip()
    blink_pattern = (blink_pattern or "").strip()
    if not color_pattern:
        raise ConfigurationError("Color entity pattern must not be empty")
    if not blink_pattern:
        raise ConfigurationError("Blink entity pattern must not be empty")
    if color_pattern.casefold() == blink_pattern.casefold():
        raise ConfigurationError("Color and blink entity patterns must differ")

    channels: dict[str, tuple[int, LedAspect]] = {}
    for pattern, aspect in (
        (color_pattern, LedAspect.COLOR),
        (blink_pattern, LedAspect.BLINK),
    ):
        for index in range(LED_COUNT):
            try:
                channel_id = pattern.format(index + 1)
            except (IndexError, KeyError, ValueError) as err:
                raise ConfigurationError(
                    f"Invalid {aspect.value} entity pattern {pattern!r}: {err}"
                ) from err
            if channel_id in channels:
                raise ConfigurationError(
                    f"Entity pattern {pattern!r} maps several LEDs to {channel_id}"
                )
            channels[channel_id] = (index, aspect)
    return channels


def apply_update(table: LedInputTable, update: ChannelUpdate) -> LedInputTable:
    """Return ``table`` with the entry named by ``update`` replaced."""

    if update.aspect is LedAspect.COLOR:
        return table.with_color(update.index, Color(update.value))
    return table.with_blink(update.index, BlinkState(update.value))


class InputAggregator:
    """Keep one current LED table built from fourteen state channels.

    The table starts from the channels' current values. Every change replaces
    exactly one entry and the new table is pushed to all observers. Observers
    receive the current table as soon as they subscribe.
    """

    def __init__(
        self,
        source: StateChannelSource,
        color_pattern: str,
        blink_pattern: str,
    ) -> None:
        """Validate the patterns and fold in the initial channel values."""

        self._channels = build_channel_map(color_pattern, blink_pattern)
        self._source = source
        self._observers: list[TableObserver] = []
        self._unsubscribe: Unsubscribe | None = None

        table = LedInputTable()
        for channel_id in self._channels:
            raw = source.current_value(channel_id)
            if raw is None:
                _LOGGER.warning("Entity not found: %s", channel_id)
                continue
            _LOGGER.info("Monitoring %s, initial value %s", channel_id, raw)
            update = self._decode(channel_id, raw)
            if update is not None:
                table = apply_update(table, update)
        self._current = table

    @property
    def current(self) -> LedInputTable:
        """Return the most recent LED table."""

        return self._current

    @property
    def channel_ids(self) -> tuple[str, ...]:
        """Return every channel id the aggregator listens to."""

        return tuple(self._channels)

    def start(self) -> None:
        """Subscribe to all channel changes as one merged stream."""

        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._source.subscribe(
            self.channel_ids, self._handle_change
        )

    def stop(self) -> None:
        """Unsubscribe from channel changes and drop observers."""

        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()
        self._observers.clear()

    def subscribe(self, observer: TableObserver) -> Unsubscribe:
        """Register ``observer`` and replay the current table to it."""

        self._observers.append(observer)
        self._notify(observer, self._current)

        def _remove() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _remove

    def _decode(self, channel_id: str, raw: str | None) -> ChannelUpdate | None:
        target = self._channels.get(channel_id)
        if target is None:
            return None
        index, aspect = target
        if aspect is LedAspect.COLOR:
            return ChannelUpdate(index, aspect, decode_color(raw))
        return ChannelUpdate(index, aspect, decode_blink(raw))

    def _handle_change(self, channel_id: str, raw: str | None) -> None:
        """Fold one channel change into the table and publish it."""

        update = self._decode(channel_id, raw)
        if update is None:
            _LOGGER.warning("Entity not found: %s", channel_id)
            return
        self._current = apply_update(self._current, update)
        _LOGGER.debug(
            "LED %s %s changed to %s",
            update.index + 1,
            update.aspect.value,
            update.value.name.lower(),
        )
        for observer in list(self._observers):
            self._notify(observer, self._current)

    def _notify(self, observer: TableObserver, table: LedInputTable) -> None:
        try:
            observer(table)
        except Exception:
            _LOGGER.exception("LED table observer failed")
