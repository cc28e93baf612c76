"""Dimmer configuration snapshot and Z-Wave command class identifiers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from .leds import LED_COUNT, BlinkState, Color


class CustomLedStatusMode(IntEnum):
    """Whether the dimmer shows custom LED status instead of the level."""

    DISABLED = 0
    ENABLED = 1


class ZWaveCommandClassId(IntEnum):
    """Command classes that can be targeted by a ping refresh."""

    NO_OPERATION = 0
    BASIC = 32
    SWITCH_BINARY = 37
    SWITCH_MULTILEVEL = 38
    SENSOR_BINARY = 48
    DOOR_LOCK = 98

    @classmethod
    def parse(cls, value: str | int) -> int:
        """Return a command class id from a number or a known name."""

        if isinstance(value, int) and not isinstance(value, bool):
            if value < 0:
                raise ValueError(f"Invalid command class id: {value}")
            return value
        text = str(value).strip()
        if text.isdigit():
            return int(text)
        key = text.upper().replace(" ", "_").replace("-", "_")
        try:
            return int(cls[key])
        except KeyError as err:
            raise ValueError(f"Unknown command class: {value!r}") from err


@dataclass(frozen=True, slots=True)
class DimmerConfiguration:
    """LED related configuration read from a dimmer."""

    colors: tuple[Color, ...]
    blinks: tuple[BlinkState, ...]
    custom_mode: CustomLedStatusMode
    blink_frequency: int

    def __post_init__(self) -> None:
        """Validate the per LED sequences."""

        if len(self.colors) != LED_COUNT or len(self.blinks) != LED_COUNT:
            msg = f"Dimmer configuration must describe {LED_COUNT} LEDs"
            raise ValueError(msg)
