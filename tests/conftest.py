# ruff: noqa: D100,D101,D102,D103,D107,INP001
from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

import pytest

from custom_components.homeseer_dimmers.api import RegistryConnectionError
from custom_components.homeseer_dimmers.codecs.parameter_codec import (
    blink_address,
    blink_frequency_address,
    color_address,
    custom_mode_address,
)
from custom_components.homeseer_dimmers.codecs.zwave_models import (
    ConfigurationParameter,
    Device,
    zwave_node_id,
)
from custom_components.homeseer_dimmers.domain import BlinkState, Color


def make_device(
    device_id: str = "dev-1",
    node_id: int | None = 37,
    *,
    name: str = "Kitchen Dimmer",
    name_by_user: str | None = None,
    manufacturer: str = "HomeSeer Technologies",
    model: str = "HS-WD200+",
    area_id: str | None = "kitchen",
    identifiers: Sequence[Sequence[str]] | None = None,
) -> Device:
    """Return a device registry entry for tests."""

    if identifiers is None:
        identifiers = [["zwave_js", f"4023755774-{node_id}"]] if node_id is not None else []
    return Device.model_validate(
        {
            "id": device_id,
            "area_id": area_id,
            "name": name,
            "name_by_user": name_by_user,
            "manufacturer": manufacturer,
            "model": model,
            "identifiers": [list(pair) for pair in identifiers],
        }
    )


def dimmer_parameters(
    node_id: int,
    *,
    colors: Iterable[Color] = (Color.OFF,) * 7,
    blinks: Iterable[BlinkState] = (BlinkState.OFF,) * 7,
    custom_mode: int = 1,
    blink_frequency: int = 5,
) -> dict[str, ConfigurationParameter]:
    """Return a parameter mapping as read from a HomeSeer dimmer."""

    params: dict[str, ConfigurationParameter] = {}
    for index, color in enumerate(colors):
        params[color_address(node_id, index)] = ConfigurationParameter(
            property=21 + index,
            configuration_value_type="enumerated",
            value=int(color),
        )
    for index, blink in enumerate(blinks):
        params[blink_address(node_id, index)] = ConfigurationParameter(
            property=31,
            property_key=1 << index,
            configuration_value_type="enumerated",
            value=int(blink),
        )
    params[custom_mode_address(node_id)] = ConfigurationParameter(
        property=13, configuration_value_type="enumerated", value=custom_mode
    )
    params[blink_frequency_address(node_id)] = ConfigurationParameter(
        property=30, configuration_value_type="manual_entry", value=blink_frequency
    )
    return params


class FakeRegistryClient:
    """In-memory registry that applies accepted writes to its parameters."""

    def __init__(
        self,
        devices: Iterable[Device] = (),
        parameters: Mapping[str, dict[str, ConfigurationParameter]] | None = None,
    ) -> None:
        self.devices = list(devices)
        self.parameters: dict[str, dict[str, ConfigurationParameter]] = dict(
            parameters or {}
        )
        self.list_calls = 0
        self.read_calls: list[str] = []
        self.writes: list[tuple[str, int, int | None, str]] = []
        self.refreshes: list[tuple[str, int | None]] = []
        self.write_status: Callable[[Device, int, int | None, str], str] = (
            lambda *_: "accepted"
        )
        self.write_error: Exception | None = None
        self.read_errors: dict[str, Exception] = {}
        self.refresh_errors: dict[str, Exception] = {}
        self.connect_error: Exception | None = None
        self.connect_calls = 0

    def add_dimmer(self, device: Device, **kwargs: Any) -> None:
        self.devices.append(device)
        self.parameters[device.id] = dimmer_parameters(zwave_node_id(device), **kwargs)

    async def async_connect(self) -> None:
        self.connect_calls += 1
        if self.connect_error is not None:
            raise self.connect_error

    async def list_devices(self) -> list[Device]:
        self.list_calls += 1
        return list(self.devices)

    async def get_configuration_parameters(
        self, device: Device
    ) -> dict[str, ConfigurationParameter]:
        self.read_calls.append(device.id)
        if device.id in self.read_errors:
            raise self.read_errors[device.id]
        return dict(self.parameters.get(device.id, {}))

    async def set_configuration_parameter(
        self, device: Device, prop: int, property_key: int | None, value: str
    ) -> str:
        self.writes.append((device.id, prop, property_key, value))
        if self.write_error is not None:
            raise self.write_error
        status = self.write_status(device, prop, property_key, value)
        if status.lower() == "accepted":
            params = self.parameters.get(device.id, {})
            for address, param in params.items():
                if param.property == prop and param.property_key == property_key:
                    params[address] = param.model_copy(update={"value": int(value)})
        return status

    async def refresh_values(self, device: Device) -> None:
        self.refreshes.append((device.id, None))
        if device.id in self.refresh_errors:
            raise self.refresh_errors[device.id]

    async def refresh_command_class_values(
        self, device: Device, command_class_id: int
    ) -> None:
        self.refreshes.append((device.id, command_class_id))
        if device.id in self.refresh_errors:
            raise self.refresh_errors[device.id]


class FakeClock:
    """Monotonic clock advanced manually."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeStateSource:
    """State channels backed by a dict with manual change emission."""

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(values or {})
        self.subscriptions: list[tuple[tuple[str, ...], Callable[[str, str | None], None]]] = []
        self.unsubscribed = 0

    def current_value(self, channel_id: str) -> str | None:
        return self.values.get(channel_id)

    def subscribe(
        self, channel_ids: Sequence[str], callback: Callable[[str, str | None], None]
    ) -> Callable[[], None]:
        entry = (tuple(channel_ids), callback)
        self.subscriptions.append(entry)

        def _unsubscribe() -> None:
            self.unsubscribed += 1
            if entry in self.subscriptions:
                self.subscriptions.remove(entry)

        return _unsubscribe

    def emit(self, channel_id: str, value: str | None) -> None:
        if value is not None:
            self.values[channel_id] = value
        for channel_ids, callback in list(self.subscriptions):
            if channel_id in channel_ids:
                callback(channel_id, value)


@pytest.fixture
def registry() -> FakeRegistryClient:
    return FakeRegistryClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def state_source() -> FakeStateSource:
    return FakeStateSource()


@pytest.fixture
def unavailable_error() -> RegistryConnectionError:
    return RegistryConnectionError("Websocket closed")
