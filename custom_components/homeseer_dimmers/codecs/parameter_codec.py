"""Encode and decode HomeSeer dimmer LED configuration parameters.

All LED settings live in the Z-Wave configuration command class (112) on
endpoint 0. Parameter values are addressed as
``{node}-112-0-{property}[-{property_key}]``:

* properties 21-27 hold the color of LEDs 1-7 (bottom to top)
* property 31 holds the blink flags; each LED uses a bitmask key ``1 << index``
* property 13 toggles custom LED status mode
* property 30 sets the blink frequency
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum
from typing import TypeVar

from ..domain import (
    LED_COUNT,
    BlinkState,
    Color,
    CustomLedStatusMode,
    DimmerConfiguration,
    LedInputTable,
)
from .zwave_models import ConfigurationParameter, ParameterValueKind

CONFIGURATION_COMMAND_CLASS = 112
ENDPOINT = 0

PROPERTY_CUSTOM_MODE = 13
PROPERTY_FIRST_COLOR = 21
PROPERTY_BLINK_FREQUENCY = 30
PROPERTY_BLINK = 31

E = TypeVar("E", bound=IntEnum)


class DimmerConfigurationError(Exception):
    """Dimmer configuration could not be read or decoded."""


def _check_index(led_index: int) -> None:
    if not 0 <= led_index < LED_COUNT:
        raise ValueError(f"LED index must be between 0 and {LED_COUNT - 1}")


def _address(node_id: int, prop: int, property_key: int | None = None) -> str:
    base = f"{node_id}-{CONFIGURATION_COMMAND_CLASS}-{ENDPOINT}-{prop}"
    if property_key is None:
        return base
    return f"{base}-{property_key}"


def color_property(led_index: int) -> int:
    """Return the parameter number holding the color of ``led_index``."""

    _check_index(led_index)
    return PROPERTY_FIRST_COLOR + led_index


def blink_property_key(led_index: int) -> int:
    """Return the bitmask key of ``led_index`` within the blink parameter."""

    _check_index(led_index)
    return 1 << led_index


def color_address(node_id: int, led_index: int) -> str:
    """Return the value address of an LED color."""

    return _address(node_id, color_property(led_index))


def blink_address(node_id: int, led_index: int) -> str:
    """Return the value address of an LED blink flag."""

    return _address(node_id, PROPERTY_BLINK, blink_property_key(led_index))


def custom_mode_address(node_id: int) -> str:
    """Return the value address of the custom LED status mode."""

    return _address(node_id, PROPERTY_CUSTOM_MODE)


def blink_frequency_address(node_id: int) -> str:
    """Return the value address of the blink frequency."""

    return _address(node_id, PROPERTY_BLINK_FREQUENCY)


def decode_enumerated(
    parameter: ConfigurationParameter | None, enum_type: type[E]
) -> E | None:
    """Decode an enumerated parameter into ``enum_type``.

    Returns ``None`` when the parameter is missing, is not enumerated, holds a
    non integral value or matches no member of ``enum_type``.
    """

    if parameter is None or parameter.kind is not ParameterValueKind.ENUMERATED:
        return None
    raw = parameter.int_value()
    if raw is None:
        return None
    try:
        return enum_type(raw)
    except ValueError:
        return None


def decode_int(parameter: ConfigurationParameter | None) -> int | None:
    """Decode a manual entry parameter into an integer or return ``None``."""

    if parameter is None or parameter.kind is not ParameterValueKind.MANUAL_ENTRY:
        return None
    return parameter.int_value()


def read_dimmer_configuration(
    node_id: int, parameters: Mapping[str, ConfigurationParameter]
) -> DimmerConfiguration:
    """Build a ``DimmerConfiguration`` from a device's parameter mapping."""

    colors: list[Color] = []
    blinks: list[BlinkState] = []
    for index in range(LED_COUNT):
        address = color_address(node_id, index)
        color = decode_enumerated(parameters.get(address), Color)
        if color is None:
            raise DimmerConfigurationError(f"Unable to decode LED color at {address}")
        colors.append(color)
    for index in range(LED_COUNT):
        address = blink_address(node_id, index)
        blink = decode_enumerated(parameters.get(address), BlinkState)
        if blink is None:
            raise DimmerConfigurationError(f"Unable to decode LED blink at {address}")
        blinks.append(blink)

    address = custom_mode_address(node_id)
    mode = decode_enumerated(parameters.get(address), CustomLedStatusMode)
    if mode is None:
        raise DimmerConfigurationError(f"Unable to decode custom LED mode at {address}")

    address = blink_frequency_address(node_id)
    frequency = decode_int(parameters.get(address))
    if frequency is None:
        raise DimmerConfigurationError(f"Unable to decode blink frequency at {address}")

    return DimmerConfiguration(
        colors=tuple(colors),
        blinks=tuple(blinks),
        custom_mode=mode,
        blink_frequency=frequency,
    )


@dataclass(frozen=True, slots=True)
class ParameterWrite:
    """A single configuration parameter write."""

    property: int
    value: str
    property_key: int | None = None
    description: str = ""


def encode_color(led_index: int, color: Color) -> ParameterWrite:
    """Return the write that sets the color of ``led_index``."""

    return ParameterWrite(
        property=color_property(led_index),
        value=str(int(color)),
        description=f"LED {led_index + 1} color {color.name.lower()}",
    )


def encode_blink(led_index: int, blink: BlinkState) -> ParameterWrite:
    """Return the write that sets the blink flag of ``led_index``."""

    return ParameterWrite(
        property=PROPERTY_BLINK,
        property_key=blink_property_key(led_index),
        value=str(int(blink)),
        description=f"LED {led_index + 1} blink {blink.name.lower()}",
    )


def encode_custom_mode(mode: CustomLedStatusMode) -> ParameterWrite:
    """Return the write that sets the custom LED status mode."""

    return ParameterWrite(
        property=PROPERTY_CUSTOM_MODE,
        value=str(int(mode)),
        description=f"custom LED mode {mode.name.lower()}",
    )


def encode_blink_frequency(frequency: int) -> ParameterWrite:
    """Return the write that sets the blink frequency."""

    return ParameterWrite(
        property=PROPERTY_BLINK_FREQUENCY,
        value=str(int(frequency)),
        description=f"blink frequency {frequency}",
    )


def plan_writes(
    desired: LedInputTable, current: DimmerConfiguration, blink_frequency: int
) -> list[ParameterWrite]:
    """Return the writes needed to bring ``current`` to ``desired``.

    Writes are ordered colors first, then blink flags, then the custom mode
    and finally the blink frequency. Fields already at the desired value are
    left out.
    """

    writes: list[ParameterWrite] = [
        encode_color(index, led.color)
        for index, led in enumerate(desired)
        if current.colors[index] != led.color
    ]
    writes.extend(
        encode_blink(index, led.blink)
        for index, led in enumerate(desired)
        if current.blinks[index] != led.blink
    )
    if current.custom_mode != CustomLedStatusMode.ENABLED:
        writes.append(encode_custom_mode(CustomLedStatusMode.ENABLED))
    if current.blink_frequency != blink_frequency:
        writes.append(encode_blink_frequency(blink_frequency))
    return writes

