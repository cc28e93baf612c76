"""Domain-layer primitives for HomeSeer dimmer LED synchronisation."""

from .dimmer import CustomLedStatusMode, DimmerConfiguration, ZWaveCommandClassId
from .leds import LED_COUNT, BlinkState, Color, LedAspect, LedInputTable, LedState

__all__ = [
    "LED_COUNT",
    "BlinkState",
    "Color",
    "CustomLedStatusMode",
    "DimmerConfiguration",
    "LedAspect",
    "LedInputTable",
    "LedState",
    "ZWaveCommandClassId",
]
