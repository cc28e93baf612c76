"""Constants for the HomeSeer Dimmers integration."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Final

# Domain
DOMAIN: Final = "homeseer_dimmers"

# Config entry keys
CONF_URL: Final = "url"
CONF_ACCESS_TOKEN: Final = "access_token"
CONF_COLOR_ENTITY_PATTERN: Final = "color_entity_pattern"
CONF_BLINK_ENTITY_PATTERN: Final = "blink_entity_pattern"
CONF_LED_SYNC_INTERVAL: Final = "led_sync_interval"
CONF_PING_INTERVAL: Final = "ping_interval"
CONF_DISCOVERY_VALIDITY: Final = "discovery_validity"
CONF_BLINK_FREQUENCY: Final = "blink_frequency"
CONF_PING_DEVICES: Final = "ping_devices"

DEFAULT_URL: Final = "http://homeassistant.local:8123"
DEFAULT_COLOR_ENTITY_PATTERN: Final = "input_select.dimmer_led_{}_color"
DEFAULT_BLINK_ENTITY_PATTERN: Final = "input_boolean.dimmer_led_{}_blink"
DEFAULT_LED_SYNC_INTERVAL: Final = 300  # seconds
DEFAULT_PING_INTERVAL: Final = 0  # seconds, disabled
DEFAULT_DISCOVERY_VALIDITY: Final = 3600  # seconds
DEFAULT_BLINK_FREQUENCY: Final = 5  # x100 ms
MIN_BLINK_FREQUENCY: Final = 0
MAX_BLINK_FREQUENCY: Final = 255

# Websocket API
WS_API_PATH: Final = "/api/websocket"
WS_COMMAND_TIMEOUT: Final = 30.0  # seconds
WS_CONNECT_TIMEOUT: Final = 15.0  # seconds

CMD_DEVICE_REGISTRY_LIST: Final = "config/device_registry/list"
CMD_GET_CONFIG_PARAMETERS: Final = "zwave_js/get_config_parameters"
CMD_SET_CONFIG_PARAMETER: Final = "zwave_js/set_config_parameter"
CMD_REFRESH_NODE_VALUES: Final = "zwave_js/refresh_node_values"
CMD_REFRESH_NODE_CC_VALUES: Final = "zwave_js/refresh_node_cc_values"

# Device registry namespace used by Z-Wave JS identifiers
ZWAVE_JS_DOMAIN: Final = "zwave_js"

# Supported dimmers
# HS-WD200+ => https://docs.homeseer.com/products/lighting/legacy-lighting/hs-wd200+
# HS-WX300 is untested => https://docs.homeseer.com/products/lighting/hs-wx300
HOMESEER_MANUFACTURER: Final = "HomeSeer Technologies"
SUPPORTED_DIMMER_MODELS: Final = frozenset({"HS-WD200+", "HS-WX300"})

# Write status reported by the registry for an applied parameter
STATUS_ACCEPTED: Final = "accepted"

# Services
SERVICE_SYNCHRONIZE_DIMMERS: Final = "synchronize_dimmers"
SERVICE_PING_DEVICES: Final = "ping_devices"

# Channel values with special meaning
STATE_UNAVAILABLE: Final = "unavailable"
STATE_ON: Final = "on"

OPTION_DEFAULTS: Final[Mapping[str, object]] = {
    CONF_COLOR_ENTITY_PATTERN: DEFAULT_COLOR_ENTITY_PATTERN,
    CONF_BLINK_ENTITY_PATTERN: DEFAULT_BLINK_ENTITY_PATTERN,
    CONF_LED_SYNC_INTERVAL: DEFAULT_LED_SYNC_INTERVAL,
    CONF_PING_INTERVAL: DEFAULT_PING_INTERVAL,
    CONF_DISCOVERY_VALIDITY: DEFAULT_DISCOVERY_VALIDITY,
    CONF_BLINK_FREQUENCY: DEFAULT_BLINK_FREQUENCY,
    CONF_PING_DEVICES: "",
}


def websocket_url(base_url: str) -> str:
    """Return the websocket endpoint for a Home Assistant base URL."""

    base = base_url.strip().rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://") :]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://") :]
    if base.endswith(WS_API_PATH):
        return base
    return f"{base}{WS_API_PATH}"
