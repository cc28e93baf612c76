"""Parsed configuration for LED synchronisation and device pings."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .const import (
    CONF_ACCESS_TOKEN,
    CONF_BLINK_ENTITY_PATTERN,
    CONF_BLINK_FREQUENCY,
    CONF_COLOR_ENTITY_PATTERN,
    CONF_DISCOVERY_VALIDITY,
    CONF_LED_SYNC_INTERVAL,
    CONF_PING_DEVICES,
    CONF_PING_INTERVAL,
    CONF_URL,
    DEFAULT_BLINK_ENTITY_PATTERN,
    DEFAULT_BLINK_FREQUENCY,
    DEFAULT_COLOR_ENTITY_PATTERN,
    DEFAULT_DISCOVERY_VALIDITY,
    DEFAULT_LED_SYNC_INTERVAL,
    DEFAULT_PING_INTERVAL,
    MAX_BLINK_FREQUENCY,
    MIN_BLINK_FREQUENCY,
    OPTION_DEFAULTS,
)
from .domain import ZWaveCommandClassId


class ConfigurationError(ValueError):
    """Configuration values are invalid or ambiguous."""


def parse_ping_devices(text: str | Mapping[str, Any] | None) -> dict[str, int]:
    """Parse ping targets into a device name to command class mapping.

    Text input holds one ``device name = command class`` entry per line;
    blank lines and lines starting with ``#`` are ignored. The command class
    may be numeric or a known name such as ``switch_binary``.
    """

    if not text:
        return {}
    if isinstance(text, Mapping):
        items = [(str(name), value) for name, value in text.items()]
    else:
        items = []
        for number, raw_line in enumerate(str(text).splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            name, sep, value = line.rpartition("=")
            if not sep:
                raise ConfigurationError(
                    f"Ping device line {number} must look like 'name = command class'"
                )
            items.append((name, value))

    targets: dict[str, int] = {}
    for name, value in items:
        name = name.strip()
        if not name:
            raise ConfigurationError("Ping device name must not be empty")
        try:
            targets[name] = ZWaveCommandClassId.parse(value)
        except ValueError as err:
            raise ConfigurationError(str(err)) from err
    return targets


def format_ping_devices(targets: Mapping[str, int]) -> str:
    """Render ping targets back to the multi-line option format."""

    lines = []
    for name, command_class in targets.items():
        try:
            label = ZWaveCommandClassId(command_class).name.lower()
        except ValueError:
            label = str(command_class)
        lines.append(f"{name} = {label}")
    return "\n".join(lines)


def _coerce_seconds(key: str, value: Any) -> float:
    try:
        seconds = float(value)
    except (TypeError, ValueError) as err:
        raise ConfigurationError(f"{key} must be a number of seconds") from err
    return seconds


@dataclass(frozen=True, slots=True)
class DimmerSyncConfig:
    """Validated settings for a config entry."""

    url: str
    access_token: str
    color_entity_pattern: str = DEFAULT_COLOR_ENTITY_PATTERN
    blink_entity_pattern: str = DEFAULT_BLINK_ENTITY_PATTERN
    led_sync_interval: float = DEFAULT_LED_SYNC_INTERVAL
    ping_interval: float = DEFAULT_PING_INTERVAL
    discovery_validity: float = DEFAULT_DISCOVERY_VALIDITY
    blink_frequency: int = DEFAULT_BLINK_FREQUENCY
    ping_devices: Mapping[str, int] = field(default_factory=dict)

    @classmethod
    def from_entry(
        cls, data: Mapping[str, Any], options: Mapping[str, Any] | None = None
    ) -> DimmerSyncConfig:
        """Build a config from config entry data and options."""

        merged: dict[str, Any] = dict(OPTION_DEFAULTS)
        merged.update(
            {key: value for key, value in data.items() if key in OPTION_DEFAULTS}
        )
        merged.update(options or {})

        url = str(data.get(CONF_URL) or "").strip()
        token = str(data.get(CONF_ACCESS_TOKEN) or "").strip()
        if not url:
            raise ConfigurationError("Home Assistant URL is required")
        if not token:
            raise ConfigurationError("Access token is required")

        try:
            frequency = int(merged[CONF_BLINK_FREQUENCY])
        except (TypeError, ValueError) as err:
            raise ConfigurationError("blink_frequency must be an integer") from err
        if not MIN_BLINK_FREQUENCY <= frequency <= MAX_BLINK_FREQUENCY:
            raise ConfigurationError(
                f"blink_frequency must be between {MIN_BLINK_FREQUENCY}"
                f" and {MAX_BLINK_FREQUENCY}"
            )

        return cls(
            url=url,
            access_token=token,
            color_entity_pattern=str(merged[CONF_COLOR_ENTITY_PATTERN]).strip(),
            blink_entity_pattern=str(merged[CONF_BLINK_ENTITY_PATTERN]).strip(),
            led_sync_interval=_coerce_seconds(
                CONF_LED_SYNC_INTERVAL, merged[CONF_LED_SYNC_INTERVAL]
            ),
            ping_interval=_coerce_seconds(
                CONF_PING_INTERVAL, merged[CONF_PING_INTERVAL]
            ),
            discovery_validity=max(
                0.0,
                _coerce_seconds(
                    CONF_DISCOVERY_VALIDITY, merged[CONF_DISCOVERY_VALIDITY]
                ),
            ),
            blink_frequency=frequency,
            ping_devices=parse_ping_devices(merged[CONF_PING_DEVICES]),
        )

    def as_dict(self) -> dict[str, Any]:
        """Return a diagnostics friendly representation."""

        return {
            CONF_URL: self.url,
            CONF_ACCESS_TOKEN: self.access_token,
            CONF_COLOR_ENTITY_PATTERN: self.color_entity_pattern,
            CONF_BLINK_ENTITY_PATTERN: self.blink_entity_pattern,
            CONF_LED_SYNC_INTERVAL: self.led_sync_interval,
            CONF_PING_INTERVAL: self.ping_interval,
            CONF_DISCOVERY_VALIDITY: self.discovery_validity,
            CONF_BLINK_FREQUENCY: self.blink_frequency,
            CONF_PING_DEVICES: dict(self.ping_devices),
        }
