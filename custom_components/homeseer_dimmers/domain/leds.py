"""LED colors, blink states and the desired LED table."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, IntEnum

LED_COUNT = 7


class Color(IntEnum):
    """Status LED colors; the numeric value is the parameter wire value."""

    OFF = 0
    RED = 1
    GREEN = 2
    BLUE = 3
    MAGENTA = 4
    YELLOW = 5
    CYAN = 6
    WHITE = 7

    @classmethod
    def parse(cls, value: str) -> Color:
        """Return the color whose name matches ``value`` ignoring case."""

        try:
            return cls[value.strip().upper()]
        except KeyError as err:
            raise ValueError(f"Unknown LED color: {value!r}") from err


class BlinkState(IntEnum):
    """Whether a status LED blinks."""

    OFF = 0
    ON = 1


class LedAspect(str, Enum):
    """Which half of an LED entry a state channel drives."""

    COLOR = "color"
    BLINK = "blink"


@dataclass(frozen=True, slots=True)
class LedState:
    """Desired color and blink state of a single LED."""

    color: Color = Color.OFF
    blink: BlinkState = BlinkState.OFF


@dataclass(frozen=True, slots=True)
class LedInputTable:
    """Immutable desired state of the seven status LEDs.

    Index 0 is the bottom LED and index 6 the top one.
    """

    leds: tuple[LedState, ...] = (LedState(),) * LED_COUNT

    def __post_init__(self) -> None:
        """Validate the table length and coerce the entries to a tuple."""

        leds = tuple(self.leds)
        if len(leds) != LED_COUNT:
            msg = f"LED table must contain exactly {LED_COUNT} entries"
            raise ValueError(msg)
        object.__setattr__(self, "leds", leds)

    def __len__(self) -> int:
        return LED_COUNT

    def __getitem__(self, index: int) -> LedState:
        return self.leds[index]

    def __iter__(self) -> Iterator[LedState]:
        return iter(self.leds)

    def with_color(self, index: int, color: Color) -> LedInputTable:
        """Return a copy with the color of LED ``index`` replaced."""

        _check_index(index)
        leds = list(self.leds)
        leds[index] = LedState(color, leds[index].blink)
        return LedInputTable(tuple(leds))

    def with_blink(self, index: int, blink: BlinkState) -> LedInputTable:
        """Return a copy with the blink state of LED ``index`` replaced."""

        _check_index(index)
        leds = list(self.leds)
        leds[index] = LedState(leds[index].color, blink)
        return LedInputTable(tuple(leds))

    def as_dict(self) -> list[dict[str, str]]:
        """Return a JSON friendly representation of the table."""

        return [
            {"color": led.color.name.lower(), "blink": led.blink.name.lower()}
            for led in self.leds
        ]


def _check_index(index: int) -> None:
    if not 0 <= index < LED_COUNT:
        raise IndexError(f"LED index out of range: {index}")
