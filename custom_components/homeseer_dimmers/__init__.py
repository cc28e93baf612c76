"""Home Assistant entry point for the HomeSeer Dimmers integration."""

from __future__ import annotations

from datetime import datetime, timedelta
import logging

import voluptuous as vol

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, ServiceCall, callback
from homeassistant.exceptions import ConfigEntryAuthFailed, ConfigEntryNotReady
from homeassistant.helpers import aiohttp_client
from homeassistant.helpers.event import async_track_time_interval

from .aggregator import InputAggregator
from .api import HomeAssistantWsClient, RegistryAuthError, RegistryError
from .config import ConfigurationError, DimmerSyncConfig
from .const import DOMAIN, SERVICE_PING_DEVICES, SERVICE_SYNCHRONIZE_DIMMERS
from .discovery import DiscoveryCache
from .manager import DimmerSyncManager
from .ping import PingEngine
from .reconcile import ReconcileEngine
from .runtime import EntryRuntime, iter_entry_runtimes
from .serializer import OperationSerializer
from .state_source import HassStateChannelSource

_LOGGER = logging.getLogger(__name__)

ATTR_CONFIG_ENTRY_ID = "config_entry_id"

SERVICE_SCHEMA = vol.Schema({vol.Optional(ATTR_CONFIG_ENTRY_ID): str})


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up LED synchronisation for a config entry."""

    try:
        config = DimmerSyncConfig.from_entry(entry.data, entry.options)
    except ConfigurationError as err:
        _LOGGER.error("Invalid HomeSeer dimmer configuration: %s", err)
        return False

    session = aiohttp_client.async_get_clientsession(hass)
    client = HomeAssistantWsClient(session, config.url, config.access_token)
    try:
        await client.async_connect()
    except RegistryAuthError as err:
        raise ConfigEntryAuthFailed from err
    except RegistryError as err:
        raise ConfigEntryNotReady from err

    try:
        aggregator = InputAggregator(
            HassStateChannelSource(hass),
            config.color_entity_pattern,
            config.blink_entity_pattern,
        )
    except ConfigurationError as err:
        _LOGGER.error("Invalid LED entity patterns: %s", err)
        await client.async_close()
        return False

    serializer = OperationSerializer()
    dimmer_cache = DiscoveryCache(client, name="dimmers")
    ping_cache = DiscoveryCache(client, name="ping devices")
    reconcile = ReconcileEngine(
        client,
        dimmer_cache,
        blink_frequency=config.blink_frequency,
        discovery_validity=config.discovery_validity,
    )
    ping = PingEngine(
        client,
        ping_cache,
        config.ping_devices,
        discovery_validity=config.discovery_validity,
    )
    manager = DimmerSyncManager(client, serializer, reconcile, ping)
    runtime = EntryRuntime(
        config=config,
        client=client,
        aggregator=aggregator,
        serializer=serializer,
        manager=manager,
        dimmer_cache=dimmer_cache,
        ping_cache=ping_cache,
    )
    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = runtime

    serializer.start()
    aggregator.start()
    manager.attach(aggregator)

    if config.led_sync_interval > 0:
        _LOGGER.info(
            "Scheduling periodic LED sync every %s seconds", config.led_sync_interval
        )

        @callback
        def _async_resync(_now: datetime) -> None:
            manager.resync_using_last_table()

        runtime.unsubscribers.append(
            async_track_time_interval(
                hass, _async_resync, timedelta(seconds=config.led_sync_interval)
            )
        )

    if config.ping_interval > 0:
        _LOGGER.info(
            "Scheduling periodic Z-Wave pings every %s seconds", config.ping_interval
        )

        @callback
        def _async_ping(_now: datetime) -> None:
            manager.ping_devices()

        runtime.unsubscribers.append(
            async_track_time_interval(
                hass, _async_ping, timedelta(seconds=config.ping_interval)
            )
        )

    entry.async_on_unload(entry.add_update_listener(async_update_entry_options))
    async_register_services(hass)
    return True


@callback
def async_register_services(hass: HomeAssistant) -> None:
    """Register the manual resync and ping services once."""

    if hass.services.has_service(DOMAIN, SERVICE_SYNCHRONIZE_DIMMERS):
        return

    def _runtimes(call: ServiceCall) -> list[EntryRuntime]:
        entry_id = call.data.get(ATTR_CONFIG_ENTRY_ID)
        runtimes = iter_entry_runtimes(hass)
        if entry_id:
            runtimes = [
                runtime
                for runtime in runtimes
                if hass.data[DOMAIN].get(entry_id) is runtime
            ]
        if not runtimes:
            _LOGGER.warning("%s: no matching config entries", call.service)
        return runtimes

    async def _async_synchronize_dimmers(call: ServiceCall) -> None:
        """Queue a LED resync with the last aggregated table."""

        for runtime in _runtimes(call):
            runtime.manager.resync_using_last_table()

    async def _async_ping_devices(call: ServiceCall) -> None:
        """Queue a ping pass."""

        for runtime in _runtimes(call):
            runtime.manager.ping_devices()

    hass.services.async_register(
        DOMAIN,
        SERVICE_SYNCHRONIZE_DIMMERS,
        _async_synchronize_dimmers,
        schema=SERVICE_SCHEMA,
    )
    hass.services.async_register(
        DOMAIN, SERVICE_PING_DEVICES, _async_ping_devices, schema=SERVICE_SCHEMA
    )


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""

    domain_data = hass.data.get(DOMAIN)
    runtime = domain_data.pop(entry.entry_id, None) if domain_data else None
    if isinstance(runtime, EntryRuntime):
        await runtime.async_shutdown()

    if domain_data is not None and not domain_data:
        hass.data.pop(DOMAIN, None)
        for service in (SERVICE_SYNCHRONIZE_DIMMERS, SERVICE_PING_DEVICES):
            if hass.services.has_service(DOMAIN, service):
                hass.services.async_remove(DOMAIN, service)
    return True


async def async_update_entry_options(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry so option changes take effect."""

    await hass.config_entries.async_reload(entry.entry_id)
