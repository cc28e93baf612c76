"""Config flow handlers for the HomeSeer Dimmers integration."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant import config_entries
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import aiohttp_client
import voluptuous as vol

from .aggregator import build_channel_map
from .api import HomeAssistantWsClient, RegistryAuthError, RegistryError
from .config import ConfigurationError, format_ping_devices, parse_ping_devices
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
    DEFAULT_URL,
    DOMAIN,
    MAX_BLINK_FREQUENCY,
    MIN_BLINK_FREQUENCY,
    OPTION_DEFAULTS,
    websocket_url,
)

_LOGGER = logging.getLogger(__name__)


def _user_schema(default_url: str = DEFAULT_URL) -> vol.Schema:
    """Build the connection form schema with provided defaults."""
    return vol.Schema(
        {
            vol.Required(CONF_URL, default=default_url): str,
            vol.Required(CONF_ACCESS_TOKEN): str,
        }
    )


def _options_schema(current: dict[str, Any]) -> vol.Schema:
    """Build the options form schema from the current values."""
    return vol.Schema(
        {
            vol.Required(
                CONF_COLOR_ENTITY_PATTERN, default=current[CONF_COLOR_ENTITY_PATTERN]
            ): str,
            vol.Required(
                CONF_BLINK_ENTITY_PATTERN, default=current[CONF_BLINK_ENTITY_PATTERN]
            ): str,
            vol.Required(
                CONF_LED_SYNC_INTERVAL, default=current[CONF_LED_SYNC_INTERVAL]
            ): vol.All(vol.Coerce(int), vol.Range(min=0)),
            vol.Required(
                CONF_PING_INTERVAL, default=current[CONF_PING_INTERVAL]
            ): vol.All(vol.Coerce(int), vol.Range(min=0)),
            vol.Required(
                CONF_DISCOVERY_VALIDITY, default=current[CONF_DISCOVERY_VALIDITY]
            ): vol.All(vol.Coerce(int), vol.Range(min=0)),
            vol.Required(
                CONF_BLINK_FREQUENCY, default=current[CONF_BLINK_FREQUENCY]
            ): vol.All(
                vol.Coerce(int),
                vol.Range(min=MIN_BLINK_FREQUENCY, max=MAX_BLINK_FREQUENCY),
            ),
            vol.Optional(
                CONF_PING_DEVICES, default=current[CONF_PING_DEVICES]
            ): str,
        }
    )


async def _validate_connection(hass: HomeAssistant, url: str, token: str) -> int:
    """Authenticate against Home Assistant and return the device count."""
    session = aiohttp_client.async_get_clientsession(hass)
    client = HomeAssistantWsClient(session, url, token)
    try:
        await client.async_connect()
        devices = await client.list_devices()
    finally:
        await client.async_close()
    return len(devices)


def validate_options(user_input: dict[str, Any]) -> dict[str, str]:
    """Return form errors for invalid option values."""
    errors: dict[str, str] = {}
    try:
        build_channel_map(
            user_input.get(CONF_COLOR_ENTITY_PATTERN, ""),
            user_input.get(CONF_BLINK_ENTITY_PATTERN, ""),
        )
    except ConfigurationError:
        errors["base"] = "invalid_pattern"
    try:
        parse_ping_devices(user_input.get(CONF_PING_DEVICES, ""))
    except ConfigurationError:
        errors[CONF_PING_DEVICES] = "invalid_ping_devices"
    return errors


class HomeSeerDimmersConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Collect the Home Assistant endpoint and access token."""

    VERSION = 1

    async def async_step_user(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Validate the connection and create the config entry."""
        if user_input is None:
            return self.async_show_form(step_id="user", data_schema=_user_schema())

        url = (user_input.get(CONF_URL) or DEFAULT_URL).strip()
        token = (user_input.get(CONF_ACCESS_TOKEN) or "").strip()

        errors: dict[str, str] = {}
        try:
            count = await _validate_connection(self.hass, url, token)
        except RegistryAuthError:
            errors["base"] = "invalid_auth"
        except RegistryError:
            errors["base"] = "cannot_connect"
        except Exception:
            _LOGGER.exception("Unexpected error during user step")
            errors["base"] = "unknown"

        if errors:
            return self.async_show_form(
                step_id="user", data_schema=_user_schema(url), errors=errors
            )

        _LOGGER.info("Connected to %s, %d devices in the registry", url, count)
        await self.async_set_unique_id(websocket_url(url))
        self._abort_if_unique_id_configured()
        return self.async_create_entry(
            title=f"HomeSeer Dimmers ({url})",
            data={CONF_URL: url, CONF_ACCESS_TOKEN: token},
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: ConfigEntry,
    ) -> HomeSeerDimmersOptionsFlow:
        """Return the options flow handler for this config entry."""
        return HomeSeerDimmersOptionsFlow(config_entry)


class HomeSeerDimmersOptionsFlow(config_entries.OptionsFlow):
    """Options flow for LED patterns, intervals and ping targets."""

    def __init__(self, entry: ConfigEntry) -> None:
        """Store the entry being configured."""
        self.entry = entry

    def _current(self) -> dict[str, Any]:
        current = dict(OPTION_DEFAULTS)
        current.update(self.entry.options)
        ping_devices = current.get(CONF_PING_DEVICES)
        if isinstance(ping_devices, dict):
            current[CONF_PING_DEVICES] = format_ping_devices(ping_devices)
        return current

    async def async_step_init(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Show or process the options form."""
        errors: dict[str, str] = {}
        if user_input is not None:
            errors = validate_options(user_input)
            if not errors:
                return self.async_create_entry(title="", data=dict(user_input))

        current = self._current()
        if user_input is not None:
            current.update(user_input)
        return self.async_show_form(
            step_id="init", data_schema=_options_schema(current), errors=errors
        )
