"""Tests for registry and Z-Wave payload models."""

from __future__ import annotations

import pytest

from conftest import make_device
from custom_components.homeseer_dimmers.codecs.zwave_models import (
    ConfigurationParameter,
    InvalidZWaveDeviceError,
    ParameterValueKind,
    SetConfigParameterResult,
    decode_config_parameters,
    decode_device_list,
    is_accepted_status,
    zwave_node_id,
)


def test_zwave_node_id_from_first_identifier() -> None:
    """The node id is the second dash separated part of the identifier."""

    device = make_device(
        identifiers=[["zwave_js", "4023755774-37"], ["zwave_js", "4023755774-37-12:1"]]
    )

    assert zwave_node_id(device) == 37


@pytest.mark.parametrize(
    "identifiers",
    [
        [],
        [["hue", "4023755774-37"]],
        [["zwave_js", "4023755774"]],
        [["zwave_js", "4023755774-abc"]],
        [["mqtt", "x"], ["zwave_js", "4023755774-37"]],
    ],
)
def test_zwave_node_id_rejects_non_zwave_devices(identifiers: list[list[str]]) -> None:
    """Devices without a usable first Z-Wave identifier are rejected."""

    device = make_device(identifiers=identifiers)

    with pytest.raises(InvalidZWaveDeviceError):
        zwave_node_id(device)


def test_device_display_name_prefers_user_name() -> None:
    """The user assigned name wins over the integration name."""

    assert make_device(name="Dimmer", name_by_user="Hall").display_name == "Hall"
    assert make_device(name="Dimmer").display_name == "Dimmer"


def test_decode_device_list_skips_malformed_entries() -> None:
    """Entries without an id or of the wrong type are dropped."""

    devices = decode_device_list(
        [
            {"id": "a", "name": "A", "identifiers": [["zwave_js", "1-2"]], "extra": 1},
            {"name": "missing id"},
            "junk",
        ]
    )

    assert [device.id for device in devices] == ["a"]
    assert devices[0].identifiers == (("zwave_js", "1-2"),)
    assert decode_device_list(None) == []


def test_configuration_parameter_kinds() -> None:
    """Unknown value types map to the ``other`` kind."""

    params = decode_config_parameters(
        {
            "4-112-0-21": {
                "property": 21,
                "property_key": None,
                "configuration_value_type": "enumerated",
                "value": 1,
            },
            "4-112-0-40": {"property": 40, "configuration_value_type": "range", "value": 3},
            "bad": "junk",
        }
    )

    assert set(params) == {"4-112-0-21", "4-112-0-40"}
    assert params["4-112-0-21"].kind is ParameterValueKind.ENUMERATED
    assert params["4-112-0-40"].kind is ParameterValueKind.OTHER


def test_configuration_parameter_int_value() -> None:
    """Integral floats are integers, booleans and strings are not."""

    def param(value: object) -> ConfigurationParameter:
        return ConfigurationParameter(property=30, value=value)

    assert param(4).int_value() == 4
    assert param(4.0).int_value() == 4
    assert param(4.5).int_value() is None
    assert param(False).int_value() is None
    assert param("4").int_value() is None


def test_set_result_flat_and_nested_status() -> None:
    """Both historical result shapes normalise to a status string."""

    flat = SetConfigParameterResult.model_validate(
        {"value_id": "4-112-0-21", "status": "accepted"}
    )
    nested = SetConfigParameterResult.model_validate(
        {"value_id": "4-112-0-21", "status": {"status": "Accepted", "result": {}}}
    )
    queued = SetConfigParameterResult.model_validate({"status": "queued"})

    assert flat.status_text == "accepted"
    assert nested.status_text == "Accepted"
    assert queued.status_text == "queued"


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("accepted", True),
        (" Accepted ", True),
        ("queued", False),
        ("", False),
        (None, False),
    ],
)
def test_is_accepted_status(status: str | None, expected: bool) -> None:
    """Only the accepted status counts as success, ignoring case and padding."""

    assert is_accepted_status(status) is expected
