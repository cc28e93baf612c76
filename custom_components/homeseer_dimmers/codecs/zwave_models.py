"""Pydantic models for Home Assistant device registry and Z-Wave JS payloads."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..const import STATUS_ACCEPTED, ZWAVE_JS_DOMAIN


class InvalidZWaveDeviceError(ValueError):
    """Device does not carry a usable Z-Wave JS identifier."""


class Device(BaseModel):
    """Snapshot of a device registry entry."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    area_id: str | None = None
    name: str | None = None
    name_by_user: str | None = None
    manufacturer: str | None = None
    model: str | None = None
    identifiers: tuple[tuple[str, ...], ...] = ()

    @field_validator("identifiers", mode="before")
    @classmethod
    def _coerce_identifiers(cls, value: Any) -> Any:
        """Convert identifier pairs to tuples of strings, dropping junk."""

        if value is None:
            return ()
        if not isinstance(value, (list, tuple)):
            return value
        pairs: list[tuple[str, ...]] = []
        for item in value:
            if isinstance(item, (list, tuple)):
                pairs.append(tuple(str(part) for part in item))
        return tuple(pairs)

    @property
    def display_name(self) -> str:
        """Return the user visible name of the device."""

        return self.name_by_user or self.name or self.id


def zwave_node_id(device: Device) -> int:
    """Extract the Z-Wave node id from ``device``.

    Z-Wave JS identifiers look like ``("zwave_js", "4023755774-37")`` where
    the second dash separated component is the node id. Only the first
    identifier pair is considered.
    """

    if not device.identifiers:
        raise InvalidZWaveDeviceError(f"Device {device.id} has no identifiers")
    first = device.identifiers[0]
    if len(first) < 2 or first[0] != ZWAVE_JS_DOMAIN:
        raise InvalidZWaveDeviceError(f"Device {device.id} is not a Z-Wave device")
    parts = first[1].split("-")
    if len(parts) < 2:
        raise InvalidZWaveDeviceError(
            f"Device {device.id} has a malformed Z-Wave identifier: {first[1]}"
        )
    try:
        return int(parts[1])
    except ValueError as err:
        raise InvalidZWaveDeviceError(
            f"Device {device.id} has a non numeric node id: {parts[1]}"
        ) from err


class ParameterValueKind(str, Enum):
    """Kind discriminator carried by a configuration parameter value."""

    ENUMERATED = "enumerated"
    MANUAL_ENTRY = "manual_entry"
    OTHER = "other"


class ConfigurationParameter(BaseModel):
    """Configuration parameter as returned by ``get_config_parameters``."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    property: int
    property_key: int | None = None
    configuration_value_type: ParameterValueKind = ParameterValueKind.OTHER
    value: Any = None

    @field_validator("configuration_value_type", mode="before")
    @classmethod
    def _normalise_kind(cls, value: Any) -> Any:
        """Map unknown value types to ``other``."""

        if isinstance(value, ParameterValueKind):
            return value
        if isinstance(value, str):
            try:
                return ParameterValueKind(value.strip().lower())
            except ValueError:
                return ParameterValueKind.OTHER
        return ParameterValueKind.OTHER

    @property
    def kind(self) -> ParameterValueKind:
        """Return the value kind discriminator."""

        return self.configuration_value_type

    def int_value(self) -> int | None:
        """Return the raw value as an integer, or ``None`` if not integral."""

        raw = self.value
        if isinstance(raw, bool):
            return None
        if isinstance(raw, int):
            return raw
        if isinstance(raw, float) and raw.is_integer():
            return int(raw)
        return None


class SetResultStatus(BaseModel):
    """Nested status object returned by some registry versions."""

    model_config = ConfigDict(extra="ignore")

    status: str = ""
    result: dict[str, Any] | None = None


class SetConfigParameterResult(BaseModel):
    """Result of ``set_config_parameter`` in either historical shape."""

    model_config = ConfigDict(extra="ignore")

    value_id: str | None = None
    status: str | SetResultStatus = ""

    @property
    def status_text(self) -> str:
        """Return the write status as a plain string."""

        if isinstance(self.status, SetResultStatus):
            return self.status.status
        return self.status


def is_accepted_status(status: str | None) -> bool:
    """Return ``True`` for the ``accepted`` write status, in any case."""

    return (status or "").strip().lower() == STATUS_ACCEPTED


def decode_device_list(raw: Any) -> list[Device]:
    """Validate a device registry listing, skipping malformed entries."""

    if not isinstance(raw, list):
        return []
    devices: list[Device] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            devices.append(Device.model_validate(item))
        except ValidationError:
            continue
    return devices


def decode_config_parameters(raw: Any) -> dict[str, ConfigurationParameter]:
    """Validate a configuration parameter mapping keyed by address."""

    if not isinstance(raw, dict):
        return {}
    params: dict[str, ConfigurationParameter] = {}
    for address, item in raw.items():
        if not isinstance(item, dict):
            continue
        try:
            params[str(address)] = ConfigurationParameter.model_validate(item)
        except ValidationError:
            continue
    return params
